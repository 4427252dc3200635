"""
Feature pipeline: the feature list each track draws

resolve(track) picks the first applicable source:

1. `feat-track`: another track's already-resolved features
2. `features`: an inline list of literal features
3. `feat-file` (+ `feat-file-type`): features read from a file
4. every feature in the global index

and then applies the track's filters. Results are memoized per track, and
parsed files are cached by (path, format) for the life of the process.
"""

from typing import Any

from .cache import FeatureCache, FeatureCacheKey
from .errors import AssemblyError, GlyphError
from .filters import FeatureFilterSet
from .io import get_reader, infer_format, resolve_path
from .logging_config import get_logger
from .models import Assembly, Feature, Track
from .tracks import resolve_track_reference

logger = get_logger(__name__)

DEFAULT_LITERAL_TYPE = "unknown"


class FeaturePipeline:
    """
    Resolves, caches and filters track features

    Args:
        assembly: Assembled sequence; its feature index receives every
            literal and file feature
        tracks: Full, expanded track list (for feat-track references)
        data_dir: Directory that relative feat-file paths resolve against
        cache: File cache shared across pipelines (a new one by default)
    """

    def __init__(
        self,
        assembly: Assembly,
        tracks: list[Track],
        data_dir=None,
        cache: FeatureCache | None = None,
    ):
        self.assembly = assembly
        self.tracks = tracks
        self.data_dir = data_dir
        self.cache = cache if cache is not None else FeatureCache()
        self._resolved: dict[int, tuple[Track, list[Feature]]] = {}
        self._resolving: set[int] = set()

    def __repr__(self) -> str:
        return f"<FeaturePipeline: {len(self._resolved)} resolved track(s), {self.cache!r}>"

    def resolve(self, track: Track) -> tuple[Track, list[Feature]]:
        """
        Feature list for a track

        Returns:
            Tuple of (effective track, features). The effective track is the
            referenced track when `feat-track` is set, otherwise `track`.

        Raises:
            GlyphError: On an unresolvable or cyclic feat-track reference
            AssemblyError: If a literal feature names an unknown contig
        """
        key = id(track)
        if key in self._resolved:
            return self._resolved[key]
        if key in self._resolving:
            raise GlyphError(f"cyclic feat-track reference involving {track.label}")

        self._resolving.add(key)
        try:
            effective, features = self._resolve_unfiltered(track)
            filters = FeatureFilterSet.from_options(track.options)
            if not filters.is_empty:
                features = filters.apply(features, self.assembly.features)
        finally:
            self._resolving.discard(key)

        logger.debug(f"{track.label}: {len(features)} feature(s)")
        result = (effective, features)
        self._resolved[key] = result
        return result

    def _resolve_unfiltered(self, track: Track) -> tuple[Track, list[Feature]]:
        referenced = resolve_track_reference(self.tracks, track, track.get("feat-track"))
        if referenced is not None:
            _, features = self.resolve(referenced)
            return referenced, list(features)

        literals = track.get("features")
        if literals is not None:
            return track, [self._literal_feature(lit) for lit in literals]

        feat_file = track.get("feat-file")
        if feat_file is not None:
            return track, list(self._file_features(track, feat_file))

        return track, self.assembly.features.all()

    def _literal_feature(self, literal: dict[str, Any]) -> Feature:
        """Convert and register one inline feature"""
        start, end = literal.get("start"), literal.get("end")
        strand = int(literal.get("strand", 1))
        if start is not None and end is not None:
            start, end = int(start), int(end)
            if end < start:
                start, end, strand = end, start, -1
            fmin, fmax = start - 1, end
        else:
            fmin, fmax = int(literal["fmin"]), int(literal["fmax"])

        seq = literal.get("seq")
        if seq is not None:
            contig = self.assembly.contig(seq)
            if contig is None:
                known = ", ".join(self.assembly.contigs)
                raise AssemblyError(
                    f"feature {literal.get('id', '')} refers to unknown contig {seq} "
                    f"(known contigs: {known})"
                )
            fmin, fmax, strand = contig.remap_interval(fmin, fmax, strand)

        tags = {k: list(v) if isinstance(v, list) else [str(v)]
                for k, v in (literal.get("tags") or {}).items()}
        feature = Feature(
            type=literal.get("type", DEFAULT_LITERAL_TYPE),
            fmin=fmin,
            fmax=fmax,
            strand=strand,
            name=literal.get("id"),
            feature_id=literal.get("id"),
            seq_id=seq,
            tags=tags,
        )
        return self.assembly.features.add(feature)

    def _file_features(self, track: Track, feat_file: str) -> list[Feature]:
        path = resolve_path(self.data_dir, feat_file)
        file_format = track.get("feat-file-type") or infer_format(path)
        reader = get_reader(file_format)
        key = FeatureCacheKey.create(path, reader.format_name)
        return self.cache.get_or_load(key, lambda: self._load_file(track, reader, path))

    def _load_file(self, track: Track, reader, path) -> list[Feature]:
        options = {
            "seq-id": track.get("refseq-name") or self.assembly.default_seq_id,
            "feat-file-seq-regex": track.get("feat-file-seq-regex"),
            "snp-query": track.get("snp-query"),
        }
        features = []
        multi_contig = len(self.assembly.contigs) > 1
        for entry in reader.parse(path, options):
            contig = self.assembly.contig(entry.seq_id)
            if contig is None:
                known = ", ".join(self.assembly.contigs)
                logger.warning(
                    f"couldn't find reference sequence {entry.seq_id} read from {path} "
                    f"among the known contigs ({known}), skipping its features"
                )
                continue
            for feature in entry.features:
                if multi_contig:
                    parts = contig.remap_feature_parts(feature)
                else:
                    parts = [contig.remap_feature(feature)]
                features.extend(self.assembly.features.add(part) for part in parts)
        logger.debug(f"loaded {len(features)} feature(s) from {path}")
        return features
