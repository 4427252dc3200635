"""Core data model: features, contigs, the assembled sequence, and tracks"""

from dataclasses import dataclass, field, replace
from typing import Any

from .errors import AssemblyError, FeatureError

VALID_STRANDS = (-1, 0, 1)


@dataclass
class Feature:
    """Annotated interval on the assembled sequence

    Coordinates are 0-based interbase: the feature spans [fmin, fmax).
    fmax may exceed the sequence length for features that wrap the origin.
    """

    type: str
    fmin: int
    fmax: int
    strand: int = 1
    name: str | None = None
    feature_id: str | None = None
    seq_id: str | None = None
    tags: dict[str, list[str]] = field(default_factory=dict)
    score: float | None = None

    def __post_init__(self):
        if self.strand not in VALID_STRANDS:
            raise FeatureError(
                f"undefined strand {self.strand!r} for {self.type} feature "
                f"at {self.fmin}-{self.fmax}"
            )
        if self.fmin > self.fmax:
            raise FeatureError(
                f"{self.type} feature has fmin={self.fmin} > fmax={self.fmax}"
            )

    @classmethod
    def from_one_based(
        cls, start: int, end: int, strand: int = 1, **kwargs
    ) -> "Feature":
        """Build a feature from 1-based, fully closed [start, end] coordinates"""
        return cls(fmin=int(start) - 1, fmax=int(end), strand=strand, **kwargs)

    @property
    def start(self) -> int:
        """1-based start coordinate"""
        return self.fmin + 1

    @property
    def end(self) -> int:
        """1-based end coordinate"""
        return self.fmax

    @property
    def length(self) -> int:
        return self.fmax - self.fmin

    @property
    def midpoint(self) -> float:
        return (self.fmin + self.fmax) / 2.0

    @property
    def display_name(self) -> str | None:
        return self.name if self.name is not None else self.feature_id

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def tag_values(self, tag: str) -> list[str]:
        return list(self.tags.get(tag, []))

    def first_tag(self, tag: str, default=None):
        values = self.tags.get(tag)
        return values[0] if values else default

    def overlaps(self, other: "Feature") -> bool:
        """Half-open interval overlap test"""
        return not (self.fmax <= other.fmin or self.fmin >= other.fmax)

    def moved(self, fmin: int, fmax: int, strand: int) -> "Feature":
        return replace(self, fmin=fmin, fmax=fmax, strand=strand)


def flip_strand(strand: int) -> int:
    """Negate +1/-1 strands, leave strand 0 unchanged"""
    return -strand if strand != 0 else 0


@dataclass(frozen=True)
class Contig:
    """Contig placed in the assembled coordinate space

    Attributes:
        contig_id: Unique contig identifier
        length: Contig length in bp
        orientation: +1 for forward, -1 for reverse-complemented
        offset: Absolute 0-based start of the contig in the assembly
    """

    contig_id: str
    length: int
    orientation: int = 1
    offset: int = 0
    display_name: str | None = None
    circular: bool = False

    @property
    def end(self) -> int:
        return self.offset + self.length

    def remap(self, start: int, end: int, strand: int) -> tuple[int, int, int]:
        """
        Map 1-based contig coordinates to 1-based assembly coordinates

        Args:
            start: 1-based start on the contig
            end: 1-based end on the contig
            strand: Strand on the contig (-1, 0 or 1)

        Returns:
            Tuple of (start, end, strand) in the assembly

        Examples:
            >>> Contig("Y", 2000, orientation=-1, offset=1500).remap(1, 100, 1)
            (3401, 3500, -1)
        """
        if self.orientation == -1:
            return (
                self.length - end + 1 + self.offset,
                self.length - start + 1 + self.offset,
                flip_strand(strand),
            )
        return start + self.offset, end + self.offset, strand

    def remap_interval(self, fmin: int, fmax: int, strand: int) -> tuple[int, int, int]:
        """
        Map an interbase contig interval to the assembly

        The interval length fmax - fmin is preserved in both orientations.

        Examples:
            >>> Contig("Y", 2000, orientation=-1, offset=1500).remap_interval(1, 100, 1)
            (3400, 3499, -1)
        """
        if self.orientation == -1:
            return (
                self.offset + self.length - fmax,
                self.offset + self.length - fmin,
                flip_strand(strand),
            )
        return fmin + self.offset, fmax + self.offset, strand

    def remap_feature(self, feature: Feature) -> Feature:
        if self.offset == 0 and self.orientation == 1:
            return replace(feature, seq_id=self.contig_id)
        fmin, fmax, strand = self.remap_interval(
            feature.fmin, feature.fmax, feature.strand
        )
        return replace(feature, fmin=fmin, fmax=fmax, strand=strand, seq_id=self.contig_id)

    def split_at_origin(self, feature: Feature) -> list[Feature]:
        """
        Split a feature that runs past the end of this contig

        A feature crossing the origin of a circular contig ends beyond the
        contig length. Inside a multi-contig assembly it becomes one part up
        to the contig end and one part starting at position 0.

        Examples:
            >>> parts = Contig("X", 1000).split_at_origin(Feature("gene", 900, 1050))
            >>> [(p.fmin, p.fmax) for p in parts]
            [(900, 1000), (0, 50)]
        """
        if feature.fmax <= self.length:
            return [feature]
        if feature.fmin >= self.length:
            return [replace(feature, fmin=feature.fmin - self.length,
                            fmax=feature.fmax - self.length)]
        return [
            replace(feature, fmax=self.length),
            replace(feature, fmin=0, fmax=min(feature.fmax - self.length, feature.fmin)),
        ]

    def remap_feature_parts(self, feature: Feature) -> list[Feature]:
        """Split a feature at the contig origin, then remap each part"""
        return [self.remap_feature(part) for part in self.split_at_origin(feature)]


class FeatureIndex:
    """
    Global, append-only index of every feature known to a render

    Synthetic features (contigs, gaps, genomes), features loaded by tracks,
    and features computed by tracks are all registered here so later tracks
    can select them by type or filter.
    """

    def __init__(self, seqlen: int):
        self.seqlen = seqlen
        self._features: list[Feature] = []

    def __repr__(self) -> str:
        return f"<FeatureIndex: {len(self._features)} features on {self.seqlen} bp>"

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self):
        return iter(self._features)

    def add(self, feature: Feature) -> Feature:
        """
        Register a feature

        Raises:
            AssemblyError: If the feature is not a Feature or starts outside
                the sequence
        """
        if not isinstance(feature, Feature):
            raise AssemblyError(f"failed to register {feature!r}: not a Feature")
        if feature.fmin < 0 or feature.fmin > self.seqlen:
            raise AssemblyError(
                f"failed to register {feature.type} feature "
                f"{feature.display_name or ''} at {feature.fmin}-{feature.fmax}: "
                f"outside sequence of length {self.seqlen}"
            )
        self._features.append(feature)
        return feature

    def extend(self, features) -> None:
        for feature in features:
            self.add(feature)

    def by_type(self, feature_type: str) -> list[Feature]:
        return [f for f in self._features if f.type == feature_type]

    def all(self) -> list[Feature]:
        return list(self._features)


@dataclass
class Assembly:
    """Circular coordinate space built by the sequence assembler

    Attributes:
        name: Display name of the assembled molecule
        seqlen: Total length L in bp
        contigs: Contigs keyed by id, in input order
        features: Global feature index
        sequence: Concatenated sequence, or None if unavailable
        circular: Whether the molecule is circular
    """

    name: str
    seqlen: int
    contigs: dict[str, Contig]
    features: FeatureIndex
    sequence: str | None = None
    circular: bool = True

    def contig(self, contig_id: str) -> Contig | None:
        return self.contigs.get(contig_id)

    @property
    def default_seq_id(self) -> str:
        """Sequence id used by readers whose files carry no sequence id"""
        if len(self.contigs) == 1:
            return next(iter(self.contigs))
        return self.name


# Track keys that are stored as attributes rather than in the option bag
_TRACK_FIELDS = ("glyph", "start-frac", "end-frac", "name")


@dataclass
class Track:
    """One concentric band of the map

    Options keep the hyphenated names used in track configuration files,
    e.g. track.get("feat-type").
    """

    glyph: str
    start_frac: float = 0.0
    end_frac: float = 0.0
    name: str | None = None
    options: dict[str, Any] = field(default_factory=dict)
    number: int = 0

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> "Track":
        if "glyph" not in record:
            raise ValueError(f"track record has no glyph: {record!r}")
        options = {k: v for k, v in record.items() if k not in _TRACK_FIELDS}
        return cls(
            glyph=str(record["glyph"]),
            start_frac=float(record.get("start-frac", 0.0)),
            end_frac=float(record.get("end-frac", 0.0)),
            name=record.get("name"),
            options=options,
        )

    def to_dict(self) -> dict[str, Any]:
        record = dict(self.options)
        record.update(
            {
                "glyph": self.glyph,
                "start-frac": self.start_frac,
                "end-frac": self.end_frac,
            }
        )
        if self.name is not None:
            record["name"] = self.name
        return record

    def get(self, key: str, default=None):
        value = self.options.get(key)
        return default if value is None else value

    def flag(self, key: str) -> bool:
        value = self.options.get(key)
        if isinstance(value, str):
            return value.strip().lower() not in ("", "0", "false", "no")
        return bool(value)

    @property
    def height(self) -> float:
        return self.end_frac - self.start_frac

    @property
    def label(self) -> str:
        """Short description used in log messages"""
        return f"track {self.number}" + (f" ({self.name})" if self.name else "")
