"""FASTA sequence reader (pysam)"""

from pathlib import Path
from typing import Any

import pysam

from ..logging_config import get_logger
from .base import AnnotationReader, SequenceEntry

logger = get_logger(__name__)


class FastaReader(AnnotationReader):
    """
    Reads sequences from a FASTA file

    pysam builds a .fai index beside the file on first use. Entries carry
    sequence but no features.
    """

    format_name = "fasta"
    extensions = (".fa", ".fasta", ".fna", ".fas", ".seq")

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        min_size = int(options.get("min-size") or 0)

        entries = []
        with pysam.FastaFile(str(path)) as fasta:
            for name, length in zip(fasta.references, fasta.lengths):
                if length < min_size:
                    continue
                entries.append(
                    SequenceEntry(
                        seq_id=name,
                        length=length,
                        sequence=fasta.fetch(name).upper(),
                    )
                )
        logger.debug(f"read {len(entries)} sequence(s) from {path}")
        return entries
