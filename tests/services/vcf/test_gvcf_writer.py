"""
Tests for gVCF serialization and the command-line entry point.
"""

import io

import pytest
from somaticgvcf.services.blocks import BlockError, Genotype, NON_REF_SYMBOLIC_ALLELE, VariantRecord
from somaticgvcf.services.vcf import GVCFWriter, build_header, format_record, read_vcf
from somaticgvcf.services.vcf.__main__ import main

HEADER_LINES = [
    "##fileformat=VCFv4.2",
    "##FORMAT=<ID=DP,Number=1,Type=Integer,Description=\"Read depth\">",
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tTUMOR",
]

INPUT_VCF = "\n".join(HEADER_LINES) + "\n" + (
    "chr1\t100\t.\tA\t<NON_REF>\t.\t.\t.\tGT:DP:TLOD\t0/0:30:0.50\n"
    "chr1\t101\t.\tC\t<NON_REF>\t.\t.\t.\tGT:DP:TLOD\t0/0:10:1.80\n"
    "chr1\t102\t.\tG\t<NON_REF>\t.\t.\t.\tGT:DP:TLOD\t0/0:20:2.40\n"
    "chr1\t103\t.\tT\tA,<NON_REF>\t50\tPASS\t.\tGT:DP:TLOD\t0/1:33:15.20\n"
)


def ref_record(pos, lod, dp):
    return VariantRecord(
        contig="chr1",
        position=pos,
        ref="A",
        alts=[NON_REF_SYMBOLIC_ALLELE],
        genotypes=[Genotype(sample_name="TUMOR", alleles=["A", "A"], dp=dp, attributes={"TLOD": lod})],
    )


class TestBuildHeader:

    def test_adds_block_definitions_before_chrom_line(self):
        lines = build_header(HEADER_LINES, "TUMOR", "TLOD", "MIN_DP")

        assert lines[0] == "##fileformat=VCFv4.2"
        assert lines[-1].startswith("#CHROM")
        joined = "\n".join(lines)
        for needle in ("##INFO=<ID=END,", "##FORMAT=<ID=TLOD,", "##FORMAT=<ID=MIN_DP,", "##ALT=<ID=NON_REF,"):
            assert needle in joined

    def test_existing_definitions_not_duplicated(self):
        existing = ['##FORMAT=<ID=TLOD,Number=1,Type=Float,Description="x">'] + HEADER_LINES
        lines = build_header(existing, "TUMOR", "TLOD", "MIN_DP")
        assert sum(1 for line in lines if line.startswith("##FORMAT=<ID=TLOD,")) == 1

    def test_synthesizes_chrom_line(self):
        lines = build_header([], "S1", "TLOD", "MIN_DP")
        assert lines[0].startswith("##fileformat=")
        assert lines[-1].split("\t")[-1] == "S1"


class TestFormatRecord:

    def test_block_line(self):
        record = VariantRecord(
            contig="chr1",
            position=100,
            end=102,
            ref="A",
            alts=[NON_REF_SYMBOLIC_ALLELE],
            info={"END": 102},
            genotypes=[Genotype(
                sample_name="TUMOR", alleles=["A", "A"], dp=20,
                attributes={"TLOD": 18.0, "MIN_DP": 10},
            )],
        )
        assert format_record(record) == (
            "chr1\t100\t.\tA\t<NON_REF>\t.\t.\tEND=102\tGT:DP:TLOD:MIN_DP\t0/0:20:18.00:10"
        )

    def test_sites_only_line(self):
        record = VariantRecord(contig="chr2", position=5, ref="G", alts=["C"], qual=30.0, info={"SOMATIC": True})
        assert format_record(record) == "chr2\t5\t.\tG\tC\t30.0\t.\tSOMATIC"

    def test_passed_through_line_is_unchanged(self):
        """
        GIVEN a variant line with three-decimal QUAL, INFO and FORMAT values
        WHEN it is parsed and formatted again
        THEN the line is reproduced byte for byte
        """
        line = "chr1\t111\t.\tG\tT\t45.678\tPASS\tAF=0.0012;TLOD=6.234\tGT:DP:TLOD\t0/1:38:6.234"
        record = read_vcf("\n".join(HEADER_LINES) + "\n" + line + "\n").records[0]
        assert format_record(record) == line


class TestGVCFWriter:

    def test_writes_blocks(self):
        out = io.StringIO()
        with GVCFWriter(out, "TUMOR", lod_partitions=[0, 2, 4]) as writer:
            writer.write_header(HEADER_LINES)
            for pos, lod, dp in [(100, 0.5, 30), (101, 1.0, 10), (102, 3.5, 7)]:
                writer.add(ref_record(pos, lod, dp))

        data = [line for line in out.getvalue().splitlines() if not line.startswith("#")]
        assert data == [
            "chr1\t100\t.\tA\t<NON_REF>\t.\t.\tEND=101\tGT:DP:TLOD:MIN_DP\t0/0:20:1.00:10",
            "chr1\t102\t.\tA\t<NON_REF>\t.\t.\tEND=102\tGT:DP:TLOD:MIN_DP\t0/0:7:3.50:7",
        ]
        assert writer.lines_written == 2

    def test_header_written_on_first_add(self):
        out = io.StringIO()
        writer = GVCFWriter(out, "TUMOR")
        writer.add(ref_record(1, 0.5, 3))
        writer.close()
        assert out.getvalue().startswith("##fileformat=")

    def test_add_after_close_fails(self):
        writer = GVCFWriter(io.StringIO(), "TUMOR")
        writer.close()
        with pytest.raises(ValueError):
            writer.add(ref_record(1, 0.5, 3))

    def test_open_block_dropped_when_exception_propagates(self):
        out = io.StringIO()
        with pytest.raises(BlockError):
            with GVCFWriter(out, "TUMOR", lod_partitions=[0, 2]) as writer:
                writer.write_header(HEADER_LINES)
                writer.add(ref_record(100, 0.5, 30))
                writer.add(ref_record(101, float("inf"), 30))

        data = [line for line in out.getvalue().splitlines() if not line.startswith("#")]
        assert data == []
        assert writer.closed
        assert writer.lines_written == 0

    def test_output_parses_back(self):
        out = io.StringIO()
        with GVCFWriter(out, "TUMOR", lod_partitions=[0, 2, 4]) as writer:
            writer.write_header(HEADER_LINES)
            for record in read_vcf(INPUT_VCF).records:
                writer.add(record)

        records = read_vcf(out.getvalue()).records
        assert [(r.position, r.end) for r in records] == [(100, 101), (102, 102), (103, 103)]
        assert records[0].get_genotype().get_extended_attribute("MIN_DP") == "10"


class TestCommandLine:

    def test_converts_file(self, tmp_path):
        src = tmp_path / "in.vcf"
        dst = tmp_path / "out.g.vcf"
        src.write_text(INPUT_VCF)

        assert main([str(src), "-o", str(dst), "--lod-band", "0", "--lod-band", "2", "--lod-band", "4"]) == 0

        data = [line for line in dst.read_text().splitlines() if not line.startswith("#")]
        assert len(data) == 3
        assert data[0].split("\t")[7] == "END=101"

    def test_missing_input(self, tmp_path):
        assert main([str(tmp_path / "nope.vcf")]) == 2

    def test_bad_header(self, tmp_path):
        src = tmp_path / "bad.vcf"
        src.write_text("chr1\t1\t.\tA\tT\t.\t.\t.\n")
        assert main([str(src), "-o", str(tmp_path / "out.vcf")]) == 2

    def test_bad_partitions(self, tmp_path):
        src = tmp_path / "in.vcf"
        src.write_text(INPUT_VCF)
        assert main([str(src), "-o", str(tmp_path / "out.vcf"), "--lod-band", "3", "--lod-band", "1"]) == 2

    def test_non_numeric_score_written_unblocked(self, tmp_path):
        src = tmp_path / "in.vcf"
        dst = tmp_path / "out.g.vcf"
        na_line = "chr1\t101\t.\tC\t<NON_REF>\t.\t.\t.\tGT:DP:TLOD\t0/0:30:NA"
        src.write_text("\n".join(HEADER_LINES) + "\n" + (
            "chr1\t100\t.\tA\t<NON_REF>\t.\t.\t.\tGT:DP:TLOD\t0/0:30:0.50\n"
            + na_line + "\n"
        ))

        assert main([str(src), "-o", str(dst), "--lod-band", "0", "--lod-band", "2"]) == 0

        data = [line for line in dst.read_text().splitlines() if not line.startswith("#")]
        assert len(data) == 2
        assert data[1] == na_line

    def test_failed_run_leaves_no_output_file(self, tmp_path):
        src = tmp_path / "in.vcf"
        dst = tmp_path / "out.g.vcf"
        src.write_text("\n".join(HEADER_LINES) + "\n" + (
            "chr1\t100\t.\tA\t<NON_REF>\t.\t.\t.\tGT:DP:TLOD\t0/0:30:0.50\n"
            "chr1\t101\t.\tC\t<NON_REF>\t.\t.\t.\tGT:DP:TLOD\t0/0:30:inf\n"
        ))

        assert main([str(src), "-o", str(dst), "--lod-band", "0", "--lod-band", "2"]) == 2
        assert not dst.exists()

    def test_unknown_log_level(self, tmp_path):
        src = tmp_path / "in.vcf"
        src.write_text(INPUT_VCF)
        assert main([str(src), "-o", str(tmp_path / "out.vcf"), "--log-level", "BOGUS"]) == 2

    @pytest.mark.parametrize("contents", [None, "{not json", '{"lod_partitions": []}', '{"bogus": 1}'])
    def test_unusable_config(self, tmp_path, contents):
        src = tmp_path / "in.vcf"
        src.write_text(INPUT_VCF)
        config_path = tmp_path / "config.json"
        if contents is not None:
            config_path.write_text(contents)

        assert main([str(src), "-o", str(tmp_path / "out.vcf"), "--config", str(config_path)]) == 2
