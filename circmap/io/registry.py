"""
Format registry for annotation readers

The registry is built once at import time. UCSC tables are registered under
`ucsc_<table>` for every supported table.
"""

from pathlib import Path

from .base import AnnotationReader
from .fasta import FastaReader
from .genbank import EmblReader, GenBankReader
from .gff import GffReader
from .tables import (
    UCSC_TABLES,
    CsvSnpReader,
    CufflinksGtfReader,
    TabbedSnpReader,
    TrfReader,
    UcscTableReader,
)
from .vcf import VcfReader


def _build_registry() -> dict[str, AnnotationReader]:
    readers: list[AnnotationReader] = [
        GenBankReader(),
        EmblReader(),
        FastaReader(),
        GffReader(),
        VcfReader(),
        CsvSnpReader(),
        TabbedSnpReader(),
        CufflinksGtfReader(),
        TrfReader(),
    ]
    readers.extend(UcscTableReader(table) for table in UCSC_TABLES)
    return {reader.format_name: reader for reader in readers}


READERS: dict[str, AnnotationReader] = _build_registry()

# Aliases accepted for feat-file-type
FORMAT_ALIASES = {
    "gb": "genbank",
    "gbk": "genbank",
    "gff3": "gff",
    "fa": "fasta",
}


def get_reader(file_format: str) -> AnnotationReader:
    """
    Look up the reader for a format name (case-insensitive)

    Raises:
        ValueError: If the format is not supported
    """
    key = file_format.strip()
    key = FORMAT_ALIASES.get(key.lower(), key)
    reader = READERS.get(key)
    if reader is None:
        reader = {name.lower(): r for name, r in READERS.items()}.get(key.lower())
    if reader is None:
        valid = ", ".join(sorted(READERS))
        raise ValueError(f"Unknown file format: {file_format}. Valid formats: {valid}")
    return reader


def infer_format(path: str | Path) -> str:
    """
    Guess a file's format from its extension (ignoring a trailing .gz)

    Raises:
        ValueError: If no reader claims the extension
    """
    name = Path(path).name.lower()
    if name.endswith(".gz"):
        name = name[:-3]
    for format_name, reader in READERS.items():
        if any(name.endswith(ext) for ext in reader.extensions):
            return format_name
    raise ValueError(
        f"Cannot infer the format of {path}; set feat-file-type to one of: "
        f"{', '.join(sorted(READERS))}"
    )
