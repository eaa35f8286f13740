"""Tests for candidate locus and alignment input."""

import pytest

from gtcall.core.kernel import CoordinateKernel
from gtcall.io.input import (
    AlignmentReader,
    VcfReader,
    check_sequence_dictionaries,
    check_single_sample,
    check_variant_contigs,
)
from gtcall.models.core import GtcallConfig, VariantType


def test_vcf_reader(write_vcf):
    vcf = write_vcf([
        ("chr1", 11, "rs1", "A", "T"),
        ("chr1", 21, ".", "A", "AGG"),
        ("chr1", 41, ".", "ACG", "A"),
        ("chr1", 61, ".", "A", "C,G"),
        ("chr2", 5, ".", "G", "<NON_REF>"),
        ("chr2", 9, ".", "C", "*"),
    ])

    reader = VcfReader(vcf)
    variants = list(reader)
    contigs = reader.contigs
    reader.close()

    assert contigs == {"chr1": 200, "chr2": 100}
    assert [(v.chrom, v.start, v.end, v.ref, v.alt) for v in variants] == [
        ("chr1", 10, 11, "A", "T"),
        ("chr1", 20, 21, "A", "AGG"),
        ("chr1", 40, 43, "ACG", "A"),
        ("chr1", 60, 61, "A", "C"),
        ("chr1", 60, 61, "A", "G"),
    ]
    assert variants[0].original_id == "rs1"
    assert variants[1].original_id is None
    assert [v.variant_type for v in variants[:3]] == [
        VariantType.SNP, VariantType.INSERTION, VariantType.DELETION
    ]


def test_vcf_contigs_without_lengths(write_vcf):
    reader = VcfReader(write_vcf([], contigs={"chr1": None}))
    assert reader.contigs == {"chr1": None}
    reader.close()


@pytest.fixture
def reads_bam(make_read, build_bam, chr1_sequence):
    return build_bam([
        make_read("early", 5, chr1_sequence[5:25]),
        make_read("inside", 20, chr1_sequence[20:40]),
        make_read("duplicate", 22, chr1_sequence[22:42], flag=1024),
        make_read("low_mapq", 24, chr1_sequence[24:44], mapq=5),
        make_read("late", 60, chr1_sequence[60:80]),
    ])


def _config(bam, temp_dir, **kwargs):
    return GtcallConfig(bam_file=bam, output_file=temp_dir / "out.vcf", score_all_sites=True, **kwargs)


def test_alignment_reader_metadata(reads_bam, temp_dir):
    reader = AlignmentReader(reads_bam, _config(reads_bam, temp_dir))
    assert reader.samples == ["NA12878"]
    assert reader.contigs == {"chr1": 200, "chr2": 100}
    reader.close()


def test_fetch_owns_reads_starting_in_window(reads_bam, temp_dir):
    reader = AlignmentReader(reads_bam, _config(reads_bam, temp_dir))
    names = [r.query_name for r in reader.fetch("chr1", 10, 50)]
    reader.close()
    assert names == ["inside", "low_mapq"]


def test_fetch_filters(reads_bam, temp_dir):
    config = _config(reads_bam, temp_dir, filter_duplicates=False, min_mapping_quality=10)
    reader = AlignmentReader(reads_bam, config)
    names = [r.query_name for r in reader.fetch("chr1", 0, 200)]
    reader.close()
    assert names == ["early", "inside", "duplicate", "late"]


def test_two_samples_is_an_error():
    check_single_sample(["NA12878"])
    check_single_sample([])
    with pytest.raises(ValueError, match="only support a single sample"):
        check_single_sample(["NA12878", "NA12891"])


def test_samples_from_read_groups(make_read, build_bam, chr1_sequence, temp_dir):
    bam = build_bam([make_read("r", 5, chr1_sequence[5:25])], samples=["tumor", "normal", "tumor"])
    reader = AlignmentReader(bam, _config(bam, temp_dir))
    assert reader.samples == ["tumor", "normal"]
    reader.close()


def test_sequence_dictionaries():
    check_sequence_dictionaries({"chr1": 200, "chr3": 50, "chr2": None}, {"chr1": 200, "chr2": 100})
    with pytest.raises(ValueError, match="chr1"):
        check_sequence_dictionaries({"chr1": 250}, {"chr1": 200})


def test_variant_contigs():
    variants = [CoordinateKernel.vcf_to_internal("chr1", 11, "A", "T")]
    check_variant_contigs(variants, {"chr1": 200})

    with pytest.raises(ValueError, match="chr1") as excinfo:
        check_variant_contigs(variants, {"1": 200})
    assert "'chr' prefix" in str(excinfo.value)

    with pytest.raises(ValueError) as excinfo:
        check_variant_contigs(variants, {"chr9": 200})
    assert "prefix" not in str(excinfo.value)
