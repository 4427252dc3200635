"""GenBank and EMBL flat file readers (Biopython SeqIO)"""

from pathlib import Path
from typing import Any

from Bio import SeqIO
from Bio.Seq import UndefinedSequenceError

from ..logging_config import get_logger
from ..models import Feature
from .base import AnnotationReader, SequenceEntry, merge_location_parts, open_text

logger = get_logger(__name__)

# Qualifiers tried, in order, for a feature's display name
NAME_QUALIFIERS = ("gene", "locus_tag", "label", "product")


def _record_sequence(record) -> str | None:
    try:
        seq = str(record.seq)
    except UndefinedSequenceError:
        return None
    return seq or None


def convert_seq_feature(seq_feature, seqlen: int, circular: bool) -> Feature | None:
    """
    Convert a Biopython SeqFeature to a Feature

    Returns None for features without a usable location.
    """
    location = seq_feature.location
    if location is None:
        return None

    qualifiers = {k: [str(v) for v in vals] for k, vals in seq_feature.qualifiers.items()}
    name = next(
        (qualifiers[q][0] for q in NAME_QUALIFIERS if qualifiers.get(q)), None
    )
    feature_id = (qualifiers.get("locus_tag") or [None])[0] or seq_feature.id
    if feature_id in ("", "<unknown id>"):
        feature_id = None

    parts = [(int(p.start), int(p.end)) for p in location.parts]
    fmin, fmax = merge_location_parts(
        parts,
        seqlen,
        circular,
        slippage="ribosomal_slippage" in qualifiers,
        name=name or seq_feature.type,
    )
    strand = location.strand if location.strand in (-1, 1) else 0

    return Feature(
        type=seq_feature.type,
        fmin=fmin,
        fmax=fmax,
        strand=strand,
        name=name,
        feature_id=feature_id,
        tags=qualifiers,
    )


class GenBankReader(AnnotationReader):
    """
    Reads sequences and features from GenBank flat files

    Multi-record files produce one SequenceEntry per record. Records shorter
    than the `min-size` option are skipped.
    """

    format_name = "genbank"
    extensions = (".gb", ".gbk", ".gbff", ".genbank")
    seqio_format = "genbank"

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        min_size = int(options.get("min-size") or 0)

        entries = []
        n_too_small = 0
        with open_text(path) as handle:
            for record in SeqIO.parse(handle, self.seqio_format):
                seqlen = len(record)
                if seqlen < min_size:
                    n_too_small += 1
                    continue
                circular = "circular" in record.annotations.get("topology", "")
                features = []
                for seq_feature in record.features:
                    feature = convert_seq_feature(seq_feature, seqlen, circular)
                    if feature is not None:
                        features.append(feature)

                seq_id = record.id if record.id not in ("", "<unknown id>") else record.name
                entries.append(
                    SequenceEntry(
                        seq_id=seq_id,
                        features=features,
                        length=seqlen,
                        sequence=_record_sequence(record),
                        circular=circular,
                        display_name=record.name,
                    )
                )
                logger.debug(f"{seq_id}: {len(features)} feature(s), {seqlen} bp")

        if n_too_small:
            logger.info(f"skipped {n_too_small} record(s) shorter than {min_size} bp in {path}")
        return entries


class EmblReader(GenBankReader):
    """Reads sequences and features from EMBL flat files"""

    format_name = "embl"
    extensions = (".embl",)
    seqio_format = "embl"
