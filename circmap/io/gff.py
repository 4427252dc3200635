"""GFF3 reader"""

from pathlib import Path
from typing import Any
from urllib.parse import unquote

from ..logging_config import get_logger
from ..models import Feature
from .base import AnnotationReader, EntryCollector, SequenceEntry, open_text, parse_strand

logger = get_logger(__name__)


def parse_attributes(column: str) -> dict[str, list[str]]:
    """
    Parse a GFF3 attribute column into a tag multimap

    Examples:
        >>> parse_attributes("ID=gene1;Name=dnaA;Note=a%2Cb,c")
        {'ID': ['gene1'], 'Name': ['dnaA'], 'Note': ['a,b', 'c']}
    """
    tags: dict[str, list[str]] = {}
    if column in ("", "."):
        return tags
    for item in column.strip().strip(";").split(";"):
        item = item.strip()
        if not item:
            continue
        key, _, value = item.partition("=")
        tags.setdefault(unquote(key), []).extend(unquote(v) for v in value.split(","))
    return tags


class GffReader(AnnotationReader):
    """
    Reads features from GFF3 files

    `##sequence-region` pragmas supply declared lengths. Parsing stops at a
    `##FASTA` section.
    """

    format_name = "gff"
    extensions = (".gff", ".gff3")

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        collector = EntryCollector()
        n_features = 0

        with open_text(path) as fh:
            for lnum, line in enumerate(fh, start=1):
                line = line.rstrip("\r\n")
                if line.startswith("##FASTA"):
                    break
                if line.startswith("##sequence-region"):
                    fields = line.split()
                    if len(fields) >= 4:
                        collector.entry(fields[1]).length = int(fields[3])
                    continue
                if not line.strip() or line.startswith("#"):
                    continue

                fields = line.split("\t")
                if len(fields) != 9:
                    raise ValueError(
                        f"wrong number of fields ({len(fields)} instead of 9) "
                        f"at line {lnum} of {path}"
                    )
                seq_id, _source, feat_type, start, end, score, strand, _phase, attrs = fields
                tags = parse_attributes(attrs)
                try:
                    feature = Feature.from_one_based(
                        int(start),
                        int(end),
                        strand=parse_strand(strand),
                        type=feat_type,
                        name=(tags.get("Name") or tags.get("ID") or [None])[0],
                        feature_id=(tags.get("ID") or [None])[0],
                        tags=tags,
                        score=float(score) if score != "." else None,
                    )
                except ValueError as e:
                    raise ValueError(f"unable to parse line {lnum} of {path}: {e}") from e
                collector.add(unquote(seq_id), feature)
                n_features += 1

        entries = collector.entries()
        logger.debug(f"read {n_features} feature(s) on {len(entries)} sequence(s) from {path}")
        return entries
