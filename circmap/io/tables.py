"""
Readers for tabular annotation formats

Covers SNP tables (comma- and tab-delimited), UCSC genome browser table
dumps, Cufflinks GTF expression output and Tandem Repeats Finder .dat files.
"""

import csv
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..logging_config import get_logger
from ..models import Feature
from .base import AnnotationReader, EntryCollector, SequenceEntry, open_text

logger = get_logger(__name__)

DEFAULT_SEQ_ID = "sequence"

NUCLEOTIDE_RE = re.compile(r"^[ACGTUMRWSYKVHDBN.]+$")


def _seq_id(options: dict[str, Any]) -> str:
    return options.get("seq-id") or DEFAULT_SEQ_ID


def _seq_regex(options: dict[str, Any]):
    pattern = options.get("feat-file-seq-regex")
    return re.compile(pattern) if pattern else None


# ==============================================================================
# SNP tables
# ==============================================================================


class CsvSnpReader(AnnotationReader):
    """
    Comma-separated SNP table

    Columns: start, end, reference bases, variant bases, total depth and
    variant frequency. Rows whose first field does not start with a digit
    (headers, comments) are skipped. All SNPs go on the sequence named by the
    `seq-id` option.
    """

    format_name = "csv-snp"
    extensions = (".csv",)

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        entry = SequenceEntry(_seq_id(options))

        with open_text(path) as fh:
            for lnum, row in enumerate(csv.reader(fh), start=1):
                if not row or not row[0][:1].isdigit():
                    continue
                if len(row) < 6:
                    raise ValueError(
                        f"expected 6 columns at line {lnum} of {path}, found {len(row)}"
                    )
                start, end, ref_seq, var_seq, total_depth, var_freq = row[:6]
                entry.features.append(
                    Feature.from_one_based(
                        int(start),
                        int(end),
                        strand=1,
                        type="SNP",
                        name=f"SNP_{start}_{ref_seq}_{var_seq}",
                        tags={
                            "ref_seq": [ref_seq],
                            "var_seq": [var_seq],
                            "total_depth": [total_depth],
                            "var_freq": [var_freq],
                        },
                    )
                )

        logger.info(f"parsed {len(entry.features)} SNP(s) from {path}")
        return [entry]


class TabbedSnpReader(AnnotationReader):
    """
    Tab-delimited SNP table with a header line

    Columns: query organism, gene id, reference base, query base, position
    in the reference, position in the gene, SYN/NSYN/NA, homopolymer run
    length, buff, dist, gene product. A '.' base marks an indel.
    """

    format_name = "tabbed-snp"
    extensions = ()

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        entry = SequenceEntry(_seq_id(options))
        counts: dict[str, dict[str, int]] = {}

        with open_text(path) as fh:
            fh.readline()
            for lnum, line in enumerate(fh, start=2):
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                fields = line.split("\t")
                if len(fields) != 11:
                    raise ValueError(
                        f"wrong number of fields ({len(fields)} instead of 11) "
                        f"at line {lnum} of {path}"
                    )
                (org, gene, ref_base, query_base, abs_posn, gene_posn, syn_nsyn,
                 num_homopolymer, buff, dist, product) = fields

                if not NUCLEOTIDE_RE.match(ref_base):
                    raise ValueError(f"illegal ref_base '{ref_base}' at line {lnum} of {path}")
                if not NUCLEOTIDE_RE.match(query_base):
                    raise ValueError(
                        f"illegal query_base '{query_base}' at line {lnum} of {path}"
                    )
                if not abs_posn.isdigit():
                    raise ValueError(
                        f"illegal abs_position '{abs_posn}' at line {lnum} of {path}"
                    )

                start = int(abs_posn)
                end = start + len(ref_base) - 1
                snp_type = syn_nsyn
                if ref_base == ".":
                    snp_type = "insertion"
                elif query_base == ".":
                    snp_type = "deletion"
                elif syn_nsyn == "NA" and product == "intergenic":
                    snp_type = "intergenic"
                org_counts = counts.setdefault(org, {})
                org_counts[snp_type] = org_counts.get(snp_type, 0) + 1

                entry.features.append(
                    Feature.from_one_based(
                        start,
                        end,
                        strand=1,
                        type="SNP",
                        name=f"SNP_{start}_{ref_base}_{query_base}",
                        tags={
                            "query_org": [org],
                            "gene": [gene],
                            "ref_base": [ref_base],
                            "query_base": [query_base],
                            "gene_posn": [gene_posn],
                            "syn_nonsyn": [syn_nsyn],
                            "num_homopolymer": [num_homopolymer],
                            "buff": [buff],
                            "dist": [dist],
                            "product": [product],
                        },
                    )
                )

        for org, org_counts in counts.items():
            summary = " ".join(f"{k}: {v}" for k, v in sorted(org_counts.items()))
            logger.debug(f"{org}: {summary}")
        logger.info(f"parsed {len(entry.features)} SNP(s) from {path}")
        return [entry]


# ==============================================================================
# UCSC genome browser tables
# ==============================================================================


@dataclass(frozen=True)
class UcscTableSpec:
    """Column layout of one UCSC table dump (0-based column indices)"""

    ncols: int
    name_col: int
    seq_col: int
    start_col: int
    end_col: int
    strand_col: int
    feat_type: str


UCSC_TABLES = {
    "refGene": UcscTableSpec(16, 1, 2, 4, 5, 3, "transcript"),
    "refGene_exons": UcscTableSpec(16, 1, 2, 9, 10, 3, "exon"),
    "knownGene": UcscTableSpec(12, 0, 1, 3, 4, 2, "transcript"),
    "knownGene_exons": UcscTableSpec(12, 0, 1, 8, 9, 2, "exon"),
    "rmsk": UcscTableSpec(17, 10, 5, 6, 7, 9, "repeat"),
}


class UcscTableReader(AnnotationReader):
    """
    UCSC table dump (refGene, knownGene, rmsk and their exon views)

    Start/end columns may hold comma-separated lists (exonStarts/exonEnds);
    each pair becomes one feature. UCSC starts are already 0-based.
    """

    extensions = ()

    def __init__(self, table: str):
        if table not in UCSC_TABLES:
            raise ValueError(
                f"Unknown UCSC table: {table}. Valid tables: {', '.join(UCSC_TABLES)}"
            )
        self.table = table
        self.spec = UCSC_TABLES[table]
        self.format_name = f"ucsc_{table}"

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        seq_regex = _seq_regex(options)
        spec = self.spec
        collector = EntryCollector()
        n_features = 0

        with open_text(path) as fh:
            for lnum, line in enumerate(fh, start=1):
                line = line.rstrip("\r\n")
                if not line or line.startswith("#"):
                    continue
                fields = line.split("\t")
                if len(fields) != spec.ncols:
                    raise ValueError(
                        f"wrong number of fields ({len(fields)} instead of {spec.ncols}) "
                        f"at line {lnum} of {path}"
                    )
                chrom = fields[spec.seq_col]
                if seq_regex is not None and not seq_regex.search(chrom):
                    continue
                starts = [s for s in fields[spec.start_col].split(",") if s]
                ends = [e for e in fields[spec.end_col].split(",") if e]
                if len(starts) != len(ends):
                    raise ValueError(
                        f"different number of start ({len(starts)}) and end ({len(ends)}) "
                        f"coordinates at line {lnum} of {path}"
                    )
                strand = -1 if fields[spec.strand_col] == "-" else 1
                for start, end in zip(starts, ends):
                    collector.add(
                        chrom,
                        Feature(
                            type=spec.feat_type,
                            fmin=int(start),
                            fmax=int(end),
                            strand=strand,
                            name=fields[spec.name_col],
                        ),
                    )
                    n_features += 1

        entries = collector.entries()
        logger.debug(f"parsed {n_features} feature(s) for {len(entries)} sequence(s) from {path}")
        return entries


# ==============================================================================
# Cufflinks expression output
# ==============================================================================

GTF_ATTRIBUTE_RE = re.compile(r'(\S+) "([^"]*)"')


def _log10_or_zero(value: float) -> float:
    return 0.0 if value <= 1 else math.log10(value)


class CufflinksGtfReader(AnnotationReader):
    """
    Cufflinks transcripts.gtf with FPKM expression values

    Features are tagged with gene_id, transcript_id, fpkm, conf_lo, conf_hi
    and log10 versions of the FPKM and its confidence bounds. Features whose
    FPKM rounds to 0.00 are dropped.
    """

    format_name = "cufflinks_gtf"
    extensions = ()

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        seq_regex = _seq_regex(options)
        collector = EntryCollector()
        n_features = 0

        with open_text(path) as fh:
            for lnum, line in enumerate(fh, start=1):
                line = line.rstrip("\r\n")
                if not line or line.startswith("#"):
                    continue
                fields = line.split("\t")
                if len(fields) != 9:
                    raise ValueError(
                        f"wrong number of fields ({len(fields)} instead of 9) "
                        f"at line {lnum} of {path}"
                    )
                seq_id, _src, feat_type, start, end, _score, strand, _frame, atts = fields
                if seq_regex is not None and not seq_regex.search(seq_id):
                    continue
                attrs = dict(GTF_ATTRIBUTE_RE.findall(atts))
                fpkm = float(attrs.get("FPKM", 0))
                if f"{fpkm:0.2f}" == "0.00":
                    continue
                conf_lo = float(attrs.get("conf_lo", 0))
                conf_hi = float(attrs.get("conf_hi", 0))
                tags = {
                    "gene_id": [attrs.get("gene_id", "")],
                    "transcript_id": [attrs.get("transcript_id", "")],
                    "fpkm": [str(fpkm)],
                    "fpkm_log10": [str(_log10_or_zero(fpkm))],
                    "fpkm_lo_log10": [str(_log10_or_zero(fpkm * (1.0 - conf_lo)))],
                    "fpkm_hi_log10": [str(_log10_or_zero(fpkm * (1.0 + conf_hi)))],
                    "conf_lo": [str(conf_lo)],
                    "conf_hi": [str(conf_hi)],
                }
                name = attrs.get("transcript_id")
                exon_number = attrs.get("exon_number")
                if name is not None and exon_number is not None:
                    name = f"{name}.{exon_number}"
                collector.add(
                    seq_id,
                    Feature.from_one_based(
                        int(start),
                        int(end),
                        strand=-1 if strand == "-" else 1,
                        type=feat_type,
                        name=name,
                        tags=tags,
                        score=fpkm,
                    ),
                )
                n_features += 1

        entries = collector.entries()
        logger.debug(f"parsed {n_features} feature(s) for {len(entries)} sequence(s) from {path}")
        return entries


# ==============================================================================
# Tandem Repeats Finder
# ==============================================================================

TRF_COLUMNS = (
    "period",
    "copies",
    "consensus_size",
    "percent_matches",
    "percent_indels",
    "score",
    "A",
    "C",
    "G",
    "T",
    "entropy",
    "consensus",
)


class TrfReader(AnnotationReader):
    """
    Tandem Repeats Finder .dat output

    `Sequence:` lines switch the current sequence; each data row becomes a
    `tandem_repeat` feature tagged with the TRF statistics.
    """

    format_name = "trf"
    extensions = (".dat",)

    def parse(
        self, path: str | Path, options: dict[str, Any] | None = None
    ) -> list[SequenceEntry]:
        path = self.check_path(path)
        options = options or {}
        collector = EntryCollector()
        current = _seq_id(options)

        with open_text(path) as fh:
            for lnum, line in enumerate(fh, start=1):
                line = line.strip()
                if line.startswith("Sequence:"):
                    current = line.split(":", 1)[1].strip().split()[0]
                    collector.entry(current)
                    continue
                fields = line.split()
                if len(fields) < 14 or not fields[0].isdigit():
                    continue
                start, end = int(fields[0]), int(fields[1])
                tags = {key: [value] for key, value in zip(TRF_COLUMNS, fields[2:14])}
                collector.add(
                    current,
                    Feature.from_one_based(
                        start,
                        end,
                        strand=0,
                        type="tandem_repeat",
                        name=f"TRF_{start}_{fields[2]}x{fields[3]}",
                        tags=tags,
                        score=float(fields[7]),
                    ),
                )

        return collector.entries()
