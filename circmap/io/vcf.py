"""VCF variant reader (pysam)"""

from pathlib import Path
from typing import Any

import pysam

from ..logging_config import get_logger
from ..models import Feature
from .base import AnnotationReader, EntryCollector, SequenceEntry

logger = get_logger(__name__)


def variant_type(ref: str, alts: tuple[str, ...]) -> str:
    """SNP when every allele is a single base, otherwise indel"""
    if len(ref) == 1 and alts and all(len(a) == 1 for a in alts):
        return "SNP"
    return "indel"


def _has_alt_allele(record, sample: str) -> bool:
    alleles = record.samples[sample].allele_indices or ()
    return any(a is not None and a > 0 for a in alleles)


class VcfReader(AnnotationReader):
    """
    Reads variants from VCF/BCF files

    Each record becomes a SNP or indel feature tagged with ref, alt, qual,
    filter and the record's INFO fields. With the `snp-query` option only
    records where that sample carries a non-reference allele are kept.
    """

    format_name = "vcf"
    extensions = (".vcf", ".vcf.gz", ".bcf")

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        query = options.get("snp-query")
        collector = EntryCollector()
        n_records = 0
        n_kept = 0

        with pysam.VariantFile(str(path)) as vcf:
            for name, contig in vcf.header.contigs.items():
                if contig.length is not None:
                    collector.entry(name).length = contig.length
            if query is not None and query not in vcf.header.samples:
                raise ValueError(
                    f"Unknown snp-query sample: {query}. "
                    f"Valid samples: {', '.join(vcf.header.samples)}"
                )

            for record in vcf:
                n_records += 1
                if query is not None and not _has_alt_allele(record, query):
                    continue
                alts = tuple(record.alts or ())
                tags = {
                    "ref": [record.ref],
                    "alt": [",".join(alts)],
                    "filter": [",".join(record.filter.keys())],
                }
                if record.qual is not None:
                    tags["qual"] = [str(record.qual)]
                for key, value in record.info.items():
                    if isinstance(value, tuple):
                        tags[key] = [str(v) for v in value]
                    else:
                        tags[key] = [str(value)]
                name = record.id or f"SNP_{record.pos}_{record.ref}_{','.join(alts)}"
                collector.add(
                    record.chrom,
                    Feature(
                        type=variant_type(record.ref, alts),
                        fmin=record.start,
                        fmax=record.stop,
                        strand=1,
                        name=name,
                        feature_id=record.id,
                        tags=tags,
                        score=record.qual,
                    ),
                )
                n_kept += 1

        logger.debug(f"kept {n_kept}/{n_records} variant(s) from {path}")
        return collector.entries()
