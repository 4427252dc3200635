"""
Tests for annotation readers and input loading
"""

import gzip

import pytest
from Bio.Seq import Seq
from Bio.SeqFeature import CompoundLocation, FeatureLocation, SeqFeature
from Bio.SeqIO import write as seqio_write
from Bio.SeqRecord import SeqRecord

from circmap.io import get_reader, infer_format, load_contig_entries, merge_location_parts
from circmap.io.gff import parse_attributes

GFF_TEXT = (
    "##gff-version 3\n"
    "##sequence-region chr1 1 5000\n"
    "chr1\ttest\tgene\t101\t900\t.\t+\t.\tID=gene1;Name=dnaA\n"
    "chr1\ttest\tCDS\t2001\t2600\t3.5\t-\t0\tID=cds1;Note=a%2Cb,c\n"
    "##FASTA\n"
    ">chr1\n"
    "ACGT\n"
)


@pytest.fixture
def gff_file(tmp_path):
    """Small GFF3 file on one sequence"""
    path = tmp_path / "genes.gff"
    path.write_text(GFF_TEXT)
    return path


@pytest.fixture
def genbank_file(tmp_path):
    """Circular GenBank record with a feature spanning the origin"""
    record = SeqRecord(
        Seq("ACGT" * 250),
        id="pTest",
        name="pTest",
        description="test plasmid",
        annotations={"molecule_type": "DNA", "topology": "circular"},
    )
    record.features = [
        SeqFeature(FeatureLocation(99, 400, strand=1), type="gene", qualifiers={"gene": ["bla"]}),
        SeqFeature(
            CompoundLocation(
                [FeatureLocation(950, 1000, strand=1), FeatureLocation(0, 30, strand=1)]
            ),
            type="CDS",
            qualifiers={"locus_tag": ["PT_0001"]},
        ),
    ]
    path = tmp_path / "plasmid.gb"
    with open(path, "w") as fh:
        seqio_write([record], fh, "genbank")
    return path


class TestGffReader:
    """Tests for the GFF3 reader"""

    def test_parse_features(self, gff_file):
        """Test that rows become 0-based features"""
        entries = get_reader("gff").parse(gff_file)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.seq_id == "chr1"
        assert entry.length == 5000
        gene, cds = entry.features
        assert (gene.fmin, gene.fmax, gene.strand, gene.name) == (100, 900, 1, "dnaA")
        assert (cds.fmin, cds.fmax, cds.strand, cds.score) == (2000, 2600, -1, 3.5)

    def test_attributes_unescaped(self):
        """Test that attribute values are split and unescaped"""
        assert parse_attributes("ID=gene1;Name=dnaA;Note=a%2Cb,c") == {
            "ID": ["gene1"],
            "Name": ["dnaA"],
            "Note": ["a,b", "c"],
        }

    def test_gzip_input(self, tmp_path):
        """Test that .gz files are decompressed"""
        path = tmp_path / "genes.gff.gz"
        with gzip.open(path, "wt") as fh:
            fh.write(GFF_TEXT)

        assert infer_format(path) == "gff"
        assert len(get_reader("gff").parse(path)[0].features) == 2

    def test_wrong_field_count(self, tmp_path):
        """Test that a short row is reported with its line number"""
        path = tmp_path / "bad.gff"
        path.write_text("chr1\ttest\tgene\t1\t10\n")

        with pytest.raises(ValueError, match="line 1"):
            get_reader("gff").parse(path)


class TestGenBankReader:
    """Tests for the Biopython-backed GenBank reader"""

    def test_parse_record(self, genbank_file):
        """Test reading sequence, topology and features"""
        entry = get_reader("genbank").parse(genbank_file)[0]

        assert entry.seq_id == "pTest"
        assert entry.length == 1000
        assert entry.circular
        assert entry.sequence.startswith("ACGT")
        gene = entry.features[0]
        assert (gene.fmin, gene.fmax, gene.name) == (99, 400, "bla")

    def test_origin_spanning_feature(self, genbank_file):
        """Test that a two-part location across the origin is merged"""
        cds = get_reader("genbank").parse(genbank_file)[0].features[1]

        assert (cds.fmin, cds.fmax) == (950, 1030)
        assert cds.feature_id == "PT_0001"


class TestMergeLocationParts:
    """Tests for compound location heuristics"""

    def test_single_part(self):
        """Test that a single part is returned unchanged"""
        assert merge_location_parts([(10, 20)], 100, True) == (10, 20)

    def test_origin(self):
        """Test a location wrapping the origin of a circular sequence"""
        assert merge_location_parts([(900, 1000), (0, 50)], 1000, True) == (900, 1050)

    def test_abutting(self):
        """Test that abutting parts are joined"""
        assert merge_location_parts([(10, 20), (19, 30)], 1000, False) == (10, 30)

    def test_ribosomal_slippage(self):
        """Test a slippage split with a one-base overlap"""
        parts = [(0, 300), (300, 900)]
        assert merge_location_parts(parts, 1000, False, slippage=True) == (0, 900)

    def test_unrecognized_split(self):
        """Test that other split locations span first to last part"""
        assert merge_location_parts([(10, 20), (500, 600)], 1000, False) == (10, 600)


class TestRegistry:
    """Tests for the reader registry"""

    def test_known_formats(self):
        """Test that every documented format is registered"""
        for name in ("genbank", "embl", "fasta", "gff", "vcf", "csv-snp", "tabbed-snp",
                     "cufflinks_gtf", "trf", "ucsc_refGene", "ucsc_rmsk"):
            assert get_reader(name).format_name == name

    def test_aliases(self):
        """Test format aliases and case-insensitive lookup"""
        assert get_reader("gbk").format_name == "genbank"
        assert get_reader("GFF3").format_name == "gff"

    def test_unknown_format(self):
        """Test that an unknown format lists the valid ones"""
        with pytest.raises(ValueError, match="Valid formats"):
            get_reader("bed")

    def test_infer_format(self):
        """Test inference from file extensions"""
        assert infer_format("a.gbk") == "genbank"
        assert infer_format("a.fasta") == "fasta"
        with pytest.raises(ValueError):
            infer_format("a.unknown")


class TestCsvSnpReader:
    """Tests for the comma-separated SNP reader"""

    def test_parse(self, tmp_path):
        """Test that header rows are skipped and SNPs named by position"""
        path = tmp_path / "snps.csv"
        path.write_text("start,end,ref,var,depth,freq\n101,101,A,G,30,0.9\n")

        entry = get_reader("csv-snp").parse(path, {"seq-id": "chr1"})[0]

        assert entry.seq_id == "chr1"
        snp = entry.features[0]
        assert (snp.fmin, snp.fmax, snp.type) == (100, 101, "SNP")
        assert snp.first_tag("var_seq") == "G"


class TestLoadContigEntries:
    """Tests for load_contig_entries"""

    def test_annotation_with_length(self, gff_file):
        """Test that --seqlen overrides a single entry's declared length"""
        entries = load_contig_entries(data=gff_file, seqlen=6000)

        assert len(entries) == 1
        assert entries[0].length == 6000
        assert len(entries[0].features) == 2

    def test_seq_id_overrides_single_entry(self, gff_file):
        """Test that an explicit sequence id renames a single parsed entry"""
        entries = load_contig_entries(data=gff_file, seq_id="plasmid")

        assert entries[0].seq_id == "plasmid"

    def test_length_only(self):
        """Test a bare sequence length"""
        entries = load_contig_entries(seqlen=1234)

        assert entries[0].length == 1234
        assert entries[0].features == []

    def test_contig_list_with_data_dir(self, tmp_path, gff_file):
        """Test that contig list files resolve against the data directory"""
        contig_list = tmp_path / "contigs.txt"
        contig_list.write_text("c1\tContig 1\t5000\tgenes.gff\t\ngap\t\t100\t\t\nc2\tContig 2\t300\t\t\n")

        entries = load_contig_entries(contig_list="contigs.txt", data_dir=tmp_path)

        assert [e.seq_id for e in entries] == ["c1", "gap", "c2"]
        assert len(entries[0].features) == 2

    def test_missing_file(self, tmp_path):
        """Test that a missing annotation file is a FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            load_contig_entries(data=tmp_path / "missing.gff")


class TestFastaReader:
    """Tests for the pysam-backed FASTA reader"""

    def test_parse_sequences(self, tmp_path):
        """Test that every sequence is read with its length"""
        path = tmp_path / "contigs.fa"
        path.write_text(">c1\nacgtACGT\n>c2\nGGGG\n")

        entries = get_reader("fasta").parse(path)

        assert [(e.seq_id, e.length) for e in entries] == [("c1", 8), ("c2", 4)]
        assert entries[0].sequence == "ACGTACGT"
        assert entries[0].features == []

    def test_min_size(self, tmp_path):
        """Test that short sequences are dropped"""
        path = tmp_path / "contigs.fa"
        path.write_text(">c1\nACGTACGT\n>c2\nGGGG\n")

        entries = get_reader("fasta").parse(path, {"min-size": 5})

        assert [e.seq_id for e in entries] == ["c1"]


VCF_TEXT = (
    "##fileformat=VCFv4.2\n"
    "##contig=<ID=chr1,length=5000>\n"
    '##INFO=<ID=DP,Number=1,Type=Integer,Description="Depth">\n'
    '##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">\n'
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\ts1\ts2\n"
    "chr1\t101\trs1\tA\tG\t50\tPASS\tDP=30\tGT\t0/1\t0/0\n"
    "chr1\t201\t.\tAT\tA\t20\tPASS\tDP=10\tGT\t0/0\t1/1\n"
)


class TestVcfReader:
    """Tests for the pysam-backed VCF reader"""

    @pytest.fixture
    def vcf_file(self, tmp_path):
        path = tmp_path / "variants.vcf"
        path.write_text(VCF_TEXT)
        return path

    def test_parse_variants(self, vcf_file):
        """Test SNP and indel features with header contig lengths"""
        (entry,) = get_reader("vcf").parse(vcf_file)

        assert entry.seq_id == "chr1"
        assert entry.length == 5000
        snp, indel = entry.features
        assert (snp.fmin, snp.fmax, snp.type, snp.name) == (100, 101, "SNP", "rs1")
        assert snp.first_tag("DP") == "30"
        assert (indel.fmin, indel.fmax, indel.type) == (200, 202, "indel")
        assert indel.name == "SNP_201_AT_A"

    def test_sample_query(self, vcf_file):
        """Test that snp-query keeps variants carried by one sample"""
        (entry,) = get_reader("vcf").parse(vcf_file, {"snp-query": "s2"})

        assert [f.type for f in entry.features] == ["indel"]

    def test_unknown_sample(self, vcf_file):
        """Test that an unknown snp-query sample lists the valid ones"""
        with pytest.raises(ValueError, match="Valid samples"):
            get_reader("vcf").parse(vcf_file, {"snp-query": "s9"})


class TestTableReaders:
    """Tests for UCSC, tabbed SNP, Cufflinks and TRF readers"""

    def test_ucsc_exons(self, tmp_path):
        """Test that exon start/end lists become one feature per exon"""
        fields = ["585", "NM_1", "chr1", "-", "100", "900", "150", "850", "2",
                  "100,500,", "300,900,", "0", "geneA", "cmpl", "cmpl", "0,0,"]
        path = tmp_path / "refGene.txt"
        path.write_text("\t".join(fields) + "\n")

        (entry,) = get_reader("ucsc_refGene_exons").parse(path)

        assert [(f.fmin, f.fmax) for f in entry.features] == [(100, 300), (500, 900)]
        assert all(f.strand == -1 and f.type == "exon" for f in entry.features)
        assert entry.features[0].name == "NM_1"

    def test_ucsc_field_count(self, tmp_path):
        """Test that a short row is rejected"""
        path = tmp_path / "knownGene.txt"
        path.write_text("uc1\tchr1\t+\n")

        with pytest.raises(ValueError, match="wrong number of fields"):
            get_reader("ucsc_knownGene").parse(path)

    def test_tabbed_snp(self, tmp_path):
        """Test tab-delimited SNPs, including a deletion"""
        header = "\t".join(["org", "gene", "ref", "query", "pos", "gpos", "syn",
                            "hp", "buff", "dist", "product"])
        row = "\t".join(["strainB", "g1", "A", ".", "42", "7", "NA", "1", "0", "0", "dnaA"])
        path = tmp_path / "snps.tsv"
        path.write_text(f"{header}\n{row}\n")

        (entry,) = get_reader("tabbed-snp").parse(path)

        snp = entry.features[0]
        assert (snp.fmin, snp.fmax) == (41, 42)
        assert snp.first_tag("query_org") == "strainB"

    def test_cufflinks_gtf(self, tmp_path):
        """Test FPKM tags and dropping unexpressed transcripts"""
        attrs = 'gene_id "G1"; transcript_id "T1"; exon_number "2"; FPKM "100.0"; conf_lo "0.5"; conf_hi "0.5";'
        silent = 'gene_id "G2"; transcript_id "T2"; FPKM "0.001";'
        path = tmp_path / "transcripts.gtf"
        path.write_text(
            f"chr1\tCufflinks\texon\t11\t20\t1000\t+\t.\t{attrs}\n"
            f"chr1\tCufflinks\texon\t31\t40\t1000\t+\t.\t{silent}\n"
        )

        (entry,) = get_reader("cufflinks_gtf").parse(path)

        (feature,) = entry.features
        assert feature.name == "T1.2"
        assert feature.score == 100.0
        assert float(feature.first_tag("fpkm_log10")) == pytest.approx(2.0)

    def test_trf(self, tmp_path):
        """Test tandem repeats grouped under their Sequence: line"""
        path = tmp_path / "repeats.dat"
        path.write_text(
            "Tandem Repeats Finder Program\n\n"
            "Sequence: chr1 plasmid\n\n"
            "Parameters: 2 7 7 80 10 50 500\n\n"
            "101 130 6 5.0 6 100 0 60 33 33 0 33 1.58 ACGTTT ACGTTTACGTTT\n"
        )

        (entry,) = get_reader("trf").parse(path)

        assert entry.seq_id == "chr1"
        repeat = entry.features[0]
        assert (repeat.fmin, repeat.fmax, repeat.type) == (100, 130, "tandem_repeat")
        assert repeat.first_tag("consensus") == "ACGTTT"
        assert repeat.score == 60.0
