"""
Annotation reader interface

Every supported file format is read by one AnnotationReader subclass. A
reader turns a file into a list of SequenceEntry objects: one per sequence
(contig, chromosome, plasmid) named in the file, each carrying features in
0-based interbase coordinates relative to that sequence.
"""

import gzip
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..logging_config import get_logger
from ..models import Feature

logger = get_logger(__name__)


@dataclass
class SequenceEntry:
    """One sequence read from an annotation or sequence file

    Attributes:
        seq_id: Sequence identifier used to match contigs
        features: Features in 0-based contig coordinates
        length: Length declared by the file, if any
        sequence: Residues, if the file carries them
        circular: Whether the file declares a circular molecule
        display_name: Human-readable name, if the file has one
    """

    seq_id: str
    features: list[Feature] = field(default_factory=list)
    length: int | None = None
    sequence: str | None = None
    circular: bool = False
    display_name: str | None = None

    @property
    def effective_length(self) -> int | None:
        if self.sequence:
            return len(self.sequence)
        return self.length


class AnnotationReader(ABC):
    """
    Abstract base class for annotation file readers

    Subclasses set `format_name` (the value of a track's feat-file-type) and
    `extensions` (used to infer the format from a file name), and implement
    parse().

    Options understood by all readers:
        seq-id: Sequence id for formats whose rows carry none
        feat-file-seq-regex: Keep only rows whose sequence id matches
    """

    format_name: str = ""
    extensions: tuple[str, ...] = ()

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.format_name}>"

    @abstractmethod
    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        """
        Read every sequence entry from a file

        Args:
            path: File to read (may be gzip-compressed where the format allows)
            options: Reader options, see class docstring

        Returns:
            Sequence entries in file order

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file content is malformed
        """
        pass

    @staticmethod
    def check_path(path: str | Path) -> Path:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Annotation file not found: {path}")
        return path


def open_text(path: str | Path):
    """Open a text file for reading, decompressing .gz files"""
    path = Path(path)
    if path.suffix == ".gz":
        return gzip.open(path, "rt")
    return open(path)


class EntryCollector:
    """Groups features by sequence id, preserving first-seen order"""

    def __init__(self):
        self._entries: dict[str, SequenceEntry] = {}

    def entry(self, seq_id: str) -> SequenceEntry:
        entry = self._entries.get(seq_id)
        if entry is None:
            entry = self._entries[seq_id] = SequenceEntry(seq_id)
        return entry

    def add(self, seq_id: str, feature: Feature) -> None:
        self.entry(seq_id).features.append(feature)

    def entries(self) -> list[SequenceEntry]:
        return list(self._entries.values())


def parse_strand(value: str | None) -> int:
    """Strand from a +/-/. column"""
    if value == "-":
        return -1
    if value == "+":
        return 1
    return 0


def merge_location_parts(
    parts: list[tuple[int, int]],
    seqlen: int | None,
    circular: bool,
    slippage: bool = False,
    name: str | None = None,
) -> tuple[int, int]:
    """
    Collapse a multi-part location into a single [fmin, fmax) interval

    Handles three known cases quietly: two parts wrapping the origin of a
    circular sequence (fmax then exceeds seqlen), two abutting parts, and a
    CDS split by ribosomal slippage. Anything else spans from the first part
    to the last with a warning.

    Args:
        parts: Interbase (fmin, fmax) pairs in the order written in the file
        seqlen: Length of the sequence the location is on
        circular: Whether that sequence is circular
        slippage: Whether the feature has a ribosomal_slippage tag
        name: Feature name used in log messages

    Examples:
        >>> merge_location_parts([(900, 1000), (0, 50)], 1000, True)
        (900, 1050)
    """
    if len(parts) == 1:
        return parts[0]

    if len(parts) == 2 and circular and seqlen is not None:
        a, b = parts
        for first, second in ((a, b), (b, a)):
            if first[1] == seqlen and second[0] == 0:
                logger.debug(
                    f"feature {name or ''} spans the origin: {first[0]}-{second[1] + seqlen}"
                )
                return first[0], second[1] + seqlen

    ordered = sorted(parts)
    if len(ordered) == 2:
        a, b = ordered
        # 1-based distance between the start of the second part and the end of the first
        dist = abs((b[0] + 1) - a[1])
        if dist == 0:
            return a[0], max(a[1], b[1])
        if dist < 3 and b[0] >= a[0] and b[1] >= a[1] and slippage:
            logger.debug(f"feature {name or ''} has a ribosomal slippage split location")
            return a[0], b[1]

    fmin = min(p[0] for p in parts)
    fmax = max(p[1] for p in parts)
    logger.warning(
        f"found split location ({len(parts)} parts) in feature '{name or ''}' "
        f"({fmin}-{fmax}) that does not appear to span the sequence origin"
    )
    return fmin, fmax
