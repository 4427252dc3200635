"""
Sequence assembly: combine contigs, gaps and genome markers into one circle

A single contig is drawn as-is. Two or more contigs are concatenated into a
pseudomolecule, with gaps inserted between adjacent contigs (unless the input
lists its own gaps) and every contig feature remapped by its contig's offset
and orientation.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from Bio.Seq import reverse_complement

from .constants import (
    CONTIG_FEATURE_TYPE,
    DEFAULT_CONTIG_GAP_SIZE_BP,
    DEFAULT_CONTIG_MIN_SIZE_BP,
    GAP_FEATURE_TYPE,
    GENOME_FEATURE_TYPE,
    REFERENCE_FEATURE_TYPE,
    ContigKind,
)
from .errors import AssemblyError, ContigListError
from .logging_config import get_logger
from .models import Assembly, Contig, Feature, FeatureIndex

logger = get_logger(__name__)

CONTIG_LIST_RE = re.compile(
    r"^([^\t]*)\t([^\t]*)\t(\d*)\t([^\t]*)\t([^\t]*)(\t(revcomp)?)?$"
)


@dataclass
class ContigEntry:
    """One input entry for the assembler

    Attributes:
        kind: Real contig, gap or genome marker
        seq_id: Contig id (unused for gaps)
        display_name: Name shown on the map; for genome markers, the name of
            the aggregate genome feature
        length: Declared length, or None to take it from the sequence
        sequence: Contig sequence, if known
        features: Features in 0-based contig coordinates
        revcomp: Draw the contig reverse-complemented
        circular: Whether the source record declares a circular molecule
    """

    kind: ContigKind
    seq_id: str | None = None
    display_name: str | None = None
    length: int | None = None
    sequence: str | None = None
    features: list[Feature] = field(default_factory=list)
    revcomp: bool = False
    circular: bool = False

    @classmethod
    def gap(cls, length: int) -> "ContigEntry":
        return cls(ContigKind.GAP, seq_id="gap", length=length)

    @classmethod
    def genome(cls, name: str) -> "ContigEntry":
        return cls(ContigKind.GENOME, seq_id="genome", display_name=name, length=0)

    @property
    def is_contig(self) -> bool:
        return self.kind == ContigKind.CONTIG


@dataclass(frozen=True)
class ContigListRow:
    """Parsed row of a contig list file"""

    contig_id: str
    display_name: str
    length: int | None
    annotation_file: str
    sequence_file: str
    revcomp: bool
    line_number: int

    @property
    def kind(self) -> ContigKind:
        if self.contig_id.lower() == "gap":
            return ContigKind.GAP
        if self.contig_id.lower() == "genome":
            return ContigKind.GENOME
        return ContigKind.CONTIG


def parse_contig_list(path: str | Path) -> list[ContigListRow]:
    """
    Read a tab-delimited contig list

    Each line holds contig id, display name, length, annotation file and
    sequence file, optionally followed by "revcomp". Blank lines and lines
    starting with '#' are ignored.

    Args:
        path: Contig list file

    Returns:
        Rows in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ContigListError: If a line cannot be parsed, or a gap/genome row is
            marked revcomp
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Contig list not found: {path}")

    rows = []
    with open(path) as fh:
        for lnum, line in enumerate(fh, start=1):
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue
            match = CONTIG_LIST_RE.match(line)
            if match is None:
                raise ContigListError(path, lnum, line)
            row = ContigListRow(
                contig_id=match.group(1),
                display_name=match.group(2),
                length=int(match.group(3)) if match.group(3) else None,
                annotation_file=match.group(4),
                sequence_file=match.group(5),
                revcomp=match.group(7) == "revcomp",
                line_number=lnum,
            )
            if row.revcomp and row.kind != ContigKind.CONTIG:
                raise ContigListError(path, lnum, line)
            rows.append(row)

    logger.debug(f"read {len(rows)} contig list entries from {path}")
    return rows


class SequenceAssembler:
    """
    Builds the circular coordinate space from contig entries

    Args:
        gap_size: Gap inserted between adjacent contigs when the input has
            no explicit gaps
        min_size: Contigs shorter than this are dropped
        no_seq: Skip building the concatenated sequence

    Examples:
        >>> assembler = SequenceAssembler(gap_size=500)
        >>> assembly = assembler.assemble([
        ...     ContigEntry(ContigKind.CONTIG, "X", length=1000),
        ...     ContigEntry(ContigKind.CONTIG, "Y", length=2000, revcomp=True),
        ... ])
        >>> assembly.seqlen, assembly.contigs["Y"].offset
        (3500, 1500)
    """

    def __init__(
        self,
        gap_size: int = DEFAULT_CONTIG_GAP_SIZE_BP,
        min_size: int = DEFAULT_CONTIG_MIN_SIZE_BP,
        no_seq: bool = False,
    ):
        if gap_size < 0:
            raise ValueError(f"contig gap size must be >= 0, got {gap_size}")
        self.gap_size = gap_size
        self.min_size = min_size
        self.no_seq = no_seq

    def assemble(self, entries: list[ContigEntry], name: str | None = None) -> Assembly:
        """
        Combine entries into one Assembly

        Raises:
            AssemblyError: On duplicate contig ids, zero usable contigs, or a
                contig whose length cannot be determined
        """
        seen = set()
        for entry in entries:
            if not entry.is_contig:
                continue
            if entry.seq_id in seen:
                raise AssemblyError(f"duplicate contig id {entry.seq_id}")
            seen.add(entry.seq_id)

        entries = self._resolve_lengths(entries)
        real = [e for e in entries if e.is_contig]
        if not real:
            raise AssemblyError("no usable contigs found in the input")

        if len(entries) == 1:
            return self._assemble_single(real[0], name)
        return self._assemble_multiple(entries, name)

    def _resolve_lengths(self, entries: list[ContigEntry]) -> list[ContigEntry]:
        resolved = []
        n_too_small = 0
        for entry in entries:
            if entry.kind == ContigKind.GAP:
                if entry.length is None or entry.length < 0:
                    raise AssemblyError("gap entry has no usable length")
                resolved.append(entry)
                continue
            if entry.kind == ContigKind.GENOME:
                resolved.append(entry)
                continue

            seq_len = len(entry.sequence) if entry.sequence is not None else None
            if entry.length is None and seq_len is None:
                raise AssemblyError(
                    f"unable to determine length of contig {entry.seq_id}: "
                    f"no length and no sequence given"
                )
            length = entry.length if seq_len is None else seq_len
            if entry.length is not None and seq_len is not None and entry.length != seq_len:
                length = max(entry.length, seq_len)
                logger.warning(
                    f"declared length of {entry.seq_id} ({entry.length} bp) does not "
                    f"match sequence length ({seq_len} bp), using {length} bp"
                )
            entry.length = length

            if length < self.min_size:
                n_too_small += 1
                continue
            resolved.append(entry)

        if n_too_small:
            logger.info(f"skipped {n_too_small} contig(s) shorter than {self.min_size} bp")
        return resolved

    def _entry_sequence(self, entry: ContigEntry) -> str:
        if entry.sequence is None:
            return "N" * entry.length
        seq = entry.sequence
        if len(seq) < entry.length:
            seq = seq + "N" * (entry.length - len(seq))
        return reverse_complement(seq) if entry.revcomp else seq

    def _assemble_single(self, entry: ContigEntry, name: str | None) -> Assembly:
        seqlen = entry.length
        if entry.revcomp:
            logger.warning(
                f"ignoring revcomp on {entry.seq_id}: a single contig is drawn as-is"
            )
        contig = Contig(
            contig_id=entry.seq_id,
            length=seqlen,
            display_name=entry.display_name,
            circular=True,
        )
        index = FeatureIndex(seqlen)
        for feature in entry.features:
            index.add(contig.remap_feature(feature))
        index.add(
            Feature(
                CONTIG_FEATURE_TYPE,
                0,
                seqlen,
                strand=1,
                name=entry.display_name or entry.seq_id,
                feature_id=entry.seq_id,
                seq_id=entry.seq_id,
            )
        )
        self._add_reference_feature(index, seqlen, name or entry.seq_id)

        sequence = None
        if not self.no_seq and entry.sequence is not None:
            sequence = self._entry_sequence(entry)

        logger.debug(f"single contig {entry.seq_id} of length {seqlen} bp")
        return Assembly(
            name=name or entry.display_name or entry.seq_id,
            seqlen=seqlen,
            contigs={entry.seq_id: contig},
            features=index,
            sequence=sequence,
            circular=True,
        )

    def _assemble_multiple(self, entries: list[ContigEntry], name: str | None) -> Assembly:
        explicit_gaps = any(e.kind == ContigKind.GAP for e in entries)
        n_real = sum(1 for e in entries if e.is_contig)
        mode = "explicit gaps" if explicit_gaps else f"gaps of {self.gap_size} bp"
        logger.debug(f"combining {n_real} contig(s) with {mode}")

        contigs: dict[str, Contig] = {}
        gaps: list[tuple[int, int]] = []
        genomes: list[tuple[str, int, int]] = []
        pieces: list[str] = []
        offset = 0
        placed_contig = False
        genome_start: int | None = None
        last_contig_end: int | None = None

        for entry in entries:
            if entry.kind == ContigKind.GAP:
                gaps.append((offset, offset + entry.length))
                pieces.append("N" * entry.length)
                offset += entry.length
                continue

            if entry.kind == ContigKind.GENOME:
                if genome_start is None:
                    logger.warning(
                        f"genome marker {entry.display_name} has no preceding contigs, skipping"
                    )
                    continue
                genomes.append((entry.display_name or "genome", genome_start, last_contig_end))
                genome_start = None
                continue

            if placed_contig and not explicit_gaps and self.gap_size > 0:
                gaps.append((offset, offset + self.gap_size))
                pieces.append("N" * self.gap_size)
                offset += self.gap_size

            if entry.circular:
                logger.warning(
                    f"concatenating contig {entry.seq_id}, which is annotated as a "
                    f"circular molecule, into a multi-contig pseudomolecule"
                )
            contig = Contig(
                contig_id=entry.seq_id,
                length=entry.length,
                orientation=-1 if entry.revcomp else 1,
                offset=offset,
                display_name=entry.display_name,
                circular=entry.circular,
            )
            contigs[entry.seq_id] = contig
            logger.debug(
                f"placed contig {entry.seq_id} ({entry.length} bp, "
                f"orientation {contig.orientation:+d}) at offset {offset}"
            )
            if genome_start is None:
                genome_start = offset
            pieces.append(self._entry_sequence(entry))
            offset += entry.length
            last_contig_end = offset
            placed_contig = True

        seqlen = offset
        index = FeatureIndex(seqlen)
        by_id = {e.seq_id: e for e in entries if e.is_contig}
        for contig_id, contig in contigs.items():
            entry = by_id[contig_id]
            for feature in entry.features:
                parts = contig.remap_feature_parts(feature)
                if len(parts) > 1:
                    logger.warning(
                        f"{feature.type} feature {feature.display_name or ''} crosses the "
                        f"origin of contig {contig_id}, splitting it at the contig end"
                    )
                index.extend(parts)
            index.add(
                Feature(
                    CONTIG_FEATURE_TYPE,
                    contig.offset,
                    contig.end,
                    strand=contig.orientation,
                    name=entry.display_name or contig_id,
                    feature_id=contig_id,
                    seq_id=contig_id,
                )
            )
        for gap_start, gap_end in gaps:
            index.add(Feature(GAP_FEATURE_TYPE, gap_start, gap_end, strand=1, name="contig gap"))
        for genome_name, gs, ge in genomes:
            index.add(
                Feature(GENOME_FEATURE_TYPE, gs, ge, strand=1, name=genome_name, feature_id=genome_name)
            )
            logger.debug(f"added genome feature {genome_name} at {gs}-{ge}")

        pseudo_name = name or f"pseudomolecule ({len(contigs)} contigs)"
        self._add_reference_feature(index, seqlen, pseudo_name)

        sequence = None
        if not self.no_seq and any(by_id[c].sequence is not None for c in contigs):
            sequence = "".join(pieces)

        return Assembly(
            name=pseudo_name,
            seqlen=seqlen,
            contigs=contigs,
            features=index,
            sequence=sequence,
            circular=True,
        )

    @staticmethod
    def _add_reference_feature(index: FeatureIndex, seqlen: int, name: str) -> None:
        index.add(
            Feature(REFERENCE_FEATURE_TYPE, 0, seqlen, strand=1, name=name, feature_id=name)
        )
