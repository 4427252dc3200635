"""
Input loading: turn command-line inputs into assembler entries

Either a contig list file or a single annotation/sequence/length triple is
read into ContigEntry objects for the SequenceAssembler.
"""

from pathlib import Path

from ..assembly import ContigEntry, ContigListRow, parse_contig_list
from ..constants import ContigKind
from ..errors import AssemblyError
from ..logging_config import get_logger
from .base import SequenceEntry
from .registry import get_reader, infer_format

logger = get_logger(__name__)


def resolve_path(data_dir: str | Path | None, path: str | Path | None) -> Path | None:
    """
    Resolve a possibly relative input path against the data directory

    Blank paths resolve to None. Paths that exist as given are used as-is.
    """
    if path is None or not str(path).strip():
        return None
    path = Path(str(path).strip())
    if path.is_absolute() or data_dir is None or path.exists():
        return path
    return Path(data_dir) / path


def read_sequence_file(path: Path, min_size: int = 0) -> list[SequenceEntry]:
    reader = get_reader(infer_format(path))
    return [e for e in reader.parse(path, {"min-size": min_size}) if e.sequence]


def _attach_sequences(
    entries: list[SequenceEntry], seq_entries: list[SequenceEntry], seq_path: Path
) -> None:
    by_id = {e.seq_id: e.sequence for e in seq_entries}
    for entry in entries:
        sequence = by_id.get(entry.seq_id)
        if sequence is None and len(entries) == 1 and len(by_id) == 1:
            only_id = next(iter(by_id))
            logger.warning(
                f"sequence id '{only_id}' in {seq_path} does not exactly match entry "
                f"id '{entry.seq_id}', using sequence anyway"
            )
            sequence = by_id[only_id]
        if sequence is None:
            continue
        if entry.sequence:
            logger.warning(f"the sequence read from {seq_path} overrides the one in the annotation file")
        entry.sequence = sequence
        entry.length = len(sequence)


def _entries_for_files(
    contig_id: str,
    display_name: str,
    length: int | None,
    annotation_file: Path | None,
    sequence_file: Path | None,
    revcomp: bool,
    min_size: int,
) -> list[ContigEntry]:
    if annotation_file is not None:
        reader = get_reader(infer_format(annotation_file))
        logger.info(f"reading annotation from {annotation_file} ({reader.format_name})")
        entries = reader.parse(annotation_file, {"min-size": min_size, "seq-id": contig_id or None})
    else:
        entries = read_sequence_file(sequence_file, min_size)

    if len(entries) == 1 and contig_id:
        if entries[0].seq_id != contig_id:
            logger.debug(f"overriding sequence id {entries[0].seq_id} with {contig_id}")
        entries[0].seq_id = contig_id

    if annotation_file is not None and sequence_file is not None:
        _attach_sequences(entries, read_sequence_file(sequence_file), sequence_file)

    contig_entries = []
    for entry in entries:
        declared = entry.length
        if len(entries) == 1 and length is not None:
            declared = length
        logger.info(
            f"{entry.seq_id}: {len(entry.features)} feature(s) and "
            f"{len(entry.sequence) if entry.sequence else 'no'} bp of sequence"
        )
        contig_entries.append(
            ContigEntry(
                kind=ContigKind.CONTIG,
                seq_id=entry.seq_id,
                display_name=display_name or entry.display_name or entry.seq_id,
                length=declared,
                sequence=entry.sequence,
                features=entry.features,
                revcomp=revcomp,
                circular=entry.circular,
            )
        )
    return contig_entries


def _entries_for_row(row: ContigListRow, data_dir, min_size: int) -> list[ContigEntry]:
    annotation_file = resolve_path(data_dir, row.annotation_file)
    sequence_file = resolve_path(data_dir, row.sequence_file)
    if annotation_file is not None or sequence_file is not None:
        return _entries_for_files(
            row.contig_id,
            row.display_name,
            row.length,
            annotation_file,
            sequence_file,
            row.revcomp,
            min_size,
        )

    if row.kind == ContigKind.GENOME:
        return [ContigEntry.genome(row.display_name)]
    if row.kind == ContigKind.GAP:
        if row.length is None:
            raise AssemblyError(f"gap at line {row.line_number} has no length")
        return [ContigEntry.gap(row.length)]
    if row.length is None:
        raise AssemblyError(
            f"contig {row.contig_id} at line {row.line_number} has no length and no files"
        )
    if row.length < min_size:
        return []
    return [
        ContigEntry(
            kind=ContigKind.CONTIG,
            seq_id=row.contig_id,
            display_name=row.display_name or row.contig_id,
            length=row.length,
            revcomp=row.revcomp,
        )
    ]


def load_contig_entries(
    contig_list: str | Path | None = None,
    data: str | Path | None = None,
    sequence: str | Path | None = None,
    seqlen: int | None = None,
    data_dir: str | Path | None = None,
    min_size: int = 0,
    seq_id: str | None = None,
) -> list[ContigEntry]:
    """
    Read the inputs that define the circular sequence

    Args:
        contig_list: Tab-delimited contig list; overrides data/sequence/seqlen
        data: Annotation file (GenBank, GFF, ...)
        sequence: Sequence file, overriding any sequence in `data`
        seqlen: Declared sequence length when there is no sequence
        data_dir: Directory that relative paths are resolved against
        min_size: Drop contigs shorter than this
        seq_id: Sequence id to use when only a length is given

    Returns:
        Entries for SequenceAssembler.assemble()

    Raises:
        FileNotFoundError: If an input file does not exist
        ContigListError: If the contig list is malformed
        AssemblyError: If a contig's length cannot be determined
    """
    if contig_list is not None:
        for name, value in (("--data", data), ("--sequence", sequence), ("--seqlen", seqlen)):
            if value is not None:
                logger.warning(f"{name} will be ignored because a contig list was given")
        rows = parse_contig_list(resolve_path(data_dir, contig_list))
        entries = []
        for row in rows:
            entries.extend(_entries_for_row(row, data_dir, min_size))
        return entries

    annotation_file = resolve_path(data_dir, data)
    sequence_file = resolve_path(data_dir, sequence)
    if annotation_file is None and sequence_file is None:
        if seqlen is None:
            raise AssemblyError("no input: give an annotation file, a sequence file or a length")
        return [
            ContigEntry(
                kind=ContigKind.CONTIG,
                seq_id=seq_id or "sequence",
                length=int(seqlen),
            )
        ]
    return _entries_for_files(
        seq_id or "",
        "",
        int(seqlen) if seqlen is not None else None,
        annotation_file,
        sequence_file,
        False,
        min_size,
    )
