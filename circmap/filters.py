"""
Feature filters

A track's feature list is narrowed by a list of filter entries (all must
pass) and an optional clip range. Each filter entry tests exactly one
criterion: the first criterion present in the entry decides whether the
feature passes it.

Filter entries come from the track's `feat-filters` list, and from the older
single-valued options (`feat-type`, `feat-tag`, ...) which are converted into
equivalent entries.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from .errors import GlyphError
from .logging_config import get_logger
from .models import Feature, FeatureIndex

logger = get_logger(__name__)

# Filter entry keys, with the spellings accepted for each
_KEY_ALIASES = {
    "type": "type",
    "type-regex": "type_regex",
    "type_regex": "type_regex",
    "strand": "strand",
    "min_length": "min_length",
    "min-length": "min_length",
    "max_length": "max_length",
    "max-length": "max_length",
    "tag": "tag",
    "value": "value",
    "min-value": "min_value",
    "min_value": "min_value",
    "max-value": "max_value",
    "max_value": "max_value",
    "regex": "regex",
    "overlapping_feat_type": "overlapping_feat_type",
    "overlapping-feat-type": "overlapping_feat_type",
    "fn": "fn",
}


def circular_intervals(feature: Feature, seqlen: int | None) -> list[tuple[int, int]]:
    """[fmin, fmax) of a feature, split in two when it wraps past the origin"""
    if seqlen is None or feature.fmax <= seqlen:
        return [(feature.fmin, feature.fmax)]
    return [(feature.fmin, seqlen), (0, feature.fmax - seqlen)]


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class FeatureFilter:
    """One filter entry; see module docstring for evaluation order"""

    type: str | None = None
    type_regex: str | None = None
    strand: int | None = None
    min_length: int | None = None
    max_length: int | None = None
    tag: str | None = None
    value: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    regex: str | None = None
    overlapping_feat_type: str | None = None
    fn: Callable[[Feature], bool] | None = None

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> "FeatureFilter":
        """
        Build a filter from a `feat-filters` entry

        Raises:
            GlyphError: If the entry has an unknown key or an illegal value
        """
        kwargs = {}
        for key, value in entry.items():
            attr = _KEY_ALIASES.get(key)
            if attr is None:
                valid = ", ".join(sorted(_KEY_ALIASES))
                raise GlyphError(f"Unknown feature filter key: {key}. Valid keys: {valid}")
            kwargs[attr] = value

        try:
            if kwargs.get("strand") is not None:
                kwargs["strand"] = int(kwargs["strand"])
            for attr in ("min_length", "max_length"):
                if kwargs.get(attr) is not None:
                    kwargs[attr] = int(kwargs[attr])
            for attr in ("min_value", "max_value"):
                if kwargs.get(attr) is not None:
                    kwargs[attr] = float(kwargs[attr])
        except (TypeError, ValueError) as e:
            raise GlyphError(f"illegal value in feature filter {entry!r}: {e}") from e

        if kwargs.get("fn") is not None and not callable(kwargs["fn"]):
            raise GlyphError(f"feature filter fn is not callable: {kwargs['fn']!r}")
        if kwargs.get("value") is not None:
            kwargs["value"] = str(kwargs["value"])

        for attr in ("type_regex", "regex"):
            if kwargs.get(attr) is not None:
                try:
                    re.compile(kwargs[attr])
                except re.error as e:
                    raise GlyphError(f"illegal regex in feature filter {entry!r}: {e}") from e

        return cls(**kwargs)

    def matches(
        self,
        feature: Feature,
        overlap_sets: dict[str, list[tuple[int, int]]] | None = None,
        seqlen: int | None = None,
    ) -> bool:
        if self.fn is not None:
            return bool(self.fn(feature))
        if self.overlapping_feat_type is not None:
            others = (overlap_sets or {}).get(self.overlapping_feat_type, [])
            return any(
                fmin < other_fmax and fmax > other_fmin
                for fmin, fmax in circular_intervals(feature, seqlen)
                for other_fmin, other_fmax in others
            )
        if self.type is not None:
            return feature.type == self.type
        if self.type_regex is not None:
            return re.search(self.type_regex, feature.type) is not None
        if self.strand is not None:
            return feature.strand == self.strand
        if self.min_length is not None:
            return feature.length >= self.min_length
        if self.max_length is not None:
            return feature.length <= self.max_length
        if self.tag is not None:
            return self._tag_matches(feature)
        return True

    def _tag_matches(self, feature: Feature) -> bool:
        if not feature.has_tag(self.tag):
            return False
        for tag_value in feature.tag_values(self.tag):
            if self.value is not None:
                if str(tag_value) == self.value:
                    return True
            elif self.min_value is not None:
                num = _as_float(tag_value)
                if num is not None and num >= self.min_value:
                    return True
            elif self.max_value is not None:
                num = _as_float(tag_value)
                if num is not None and num <= self.max_value:
                    return True
            elif self.regex is not None:
                if re.search(self.regex, str(tag_value)) is not None:
                    return True
            else:
                return True
        return False


def legacy_filter_entries(options: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Convert single-valued filter options into `feat-filters` entries

    Examples:
        >>> legacy_filter_entries({"feat-type": "gene", "feat-tag": "pseudo"})
        [{'type': 'gene'}, {'tag': 'pseudo', 'regex': '.*'}]
    """
    entries = []
    simple = (
        ("feat-type", "type"),
        ("feat-type-regex", "type-regex"),
        ("feat-strand", "strand"),
        ("feat-min-length", "min_length"),
        ("feat-max-length", "max_length"),
        ("overlapping-feat-type", "overlapping_feat_type"),
    )
    for option, key in simple:
        if options.get(option) is not None:
            entries.append({key: options[option]})

    tag = options.get("feat-tag")
    if tag is not None:
        tag_entries = []
        for option, key in (
            ("feat-tag-value", "value"),
            ("feat-tag-min-value", "min-value"),
            ("feat-tag-max-value", "max-value"),
            ("feat-tag-regex", "regex"),
        ):
            if options.get(option) is not None:
                tag_entries.append({"tag": tag, key: options[option]})
        # A bare feat-tag only requires the tag to be present
        entries.extend(tag_entries or [{"tag": tag, "regex": ".*"}])
    return entries


@dataclass
class FeatureFilterSet:
    """All filters of one track plus its clip range"""

    filters: list[FeatureFilter]
    clip_fmin: int | None = None
    clip_fmax: int | None = None

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "FeatureFilterSet":
        entries = list(options.get("feat-filters") or [])
        entries.extend(legacy_filter_entries(options))
        filters = [
            e if isinstance(e, FeatureFilter) else FeatureFilter.from_dict(e) for e in entries
        ]
        clip_fmin = options.get("clip-fmin")
        clip_fmax = options.get("clip-fmax")
        return cls(
            filters=filters,
            clip_fmin=int(clip_fmin) if clip_fmin is not None else None,
            clip_fmax=int(clip_fmax) if clip_fmax is not None else None,
        )

    @property
    def is_empty(self) -> bool:
        return not self.filters and self.clip_fmin is None and self.clip_fmax is None

    def apply(self, features: Iterable[Feature], index: FeatureIndex) -> list[Feature]:
        """
        Features passing the clip range and every filter

        Args:
            features: Candidate features
            index: Global feature index, searched for overlapping-feat-type
        """
        features = list(features)
        if self.is_empty:
            return features

        overlap_types = {
            f.overlapping_feat_type for f in self.filters if f.overlapping_feat_type
        }
        overlap_sets = {t: [] for t in overlap_types}
        if overlap_sets:
            for feature in index:
                if feature.type in overlap_sets:
                    overlap_sets[feature.type].extend(circular_intervals(feature, index.seqlen))

        kept = []
        for feature in features:
            if self.clip_fmin is not None and feature.fmax < self.clip_fmin:
                continue
            if self.clip_fmax is not None and feature.fmin > self.clip_fmax:
                continue
            if all(f.matches(feature, overlap_sets, index.seqlen) for f in self.filters):
                kept.append(feature)

        logger.debug(f"filtered {len(kept)}/{len(features)} feature(s)")
        return kept
