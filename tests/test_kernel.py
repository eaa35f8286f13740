"""Tests for locus classification and coordinate conversion."""

import pytest

from gtcall.core.kernel import CoordinateKernel, deletion_length
from gtcall.models.core import DiscoveredVariant, ReferenceRegion, VariantType


def test_snp_conversion():
    v = CoordinateKernel.vcf_to_internal("chr1", 100, "A", "T", original_id="rs1")
    assert (v.start, v.end) == (99, 100)
    assert v.variant_type == VariantType.SNP
    assert v.original_id == "rs1"


def test_insertion_conversion():
    v = CoordinateKernel.vcf_to_internal("chr1", 100, "A", "ATG")
    # insertion keeps its anchor base
    assert (v.start, v.end) == (99, 100)
    assert v.variant_type == VariantType.INSERTION


def test_deletion_conversion():
    v = CoordinateKernel.vcf_to_internal("chr1", 100, "ACG", "A")
    assert (v.start, v.end) == (99, 102)
    assert v.variant_type == VariantType.DELETION
    assert deletion_length(v) == 2


def test_complex_conversion():
    v = CoordinateKernel.vcf_to_internal("chr1", 100, "AC", "GT")
    assert v.variant_type == VariantType.COMPLEX
    assert deletion_length(v) == 0


def test_classify_non_ref():
    assert CoordinateKernel.classify(None, None) == VariantType.NON_REF


def test_normalize_chromosome():
    assert CoordinateKernel.normalize_chromosome("chr1") == "1"
    assert CoordinateKernel.normalize_chromosome("CHRX") == "X"
    assert CoordinateKernel.normalize_chromosome("1") == "1"


def test_non_ref_locus():
    region = ReferenceRegion(chrom="chr2", start=10, end=11)
    v = DiscoveredVariant.non_ref(region)
    assert v.is_non_ref_model
    assert v.key == ("chr2", 10, None, None)
    assert v.region == region
    assert v.variant_type == VariantType.NON_REF


def test_overlaps_is_half_open():
    v = CoordinateKernel.vcf_to_internal("chr1", 11, "AC", "A")  # [10, 12)
    assert v.overlaps(ReferenceRegion(chrom="chr1", start=11, end=12))
    assert not v.overlaps(ReferenceRegion(chrom="chr1", start=12, end=13))
    assert not v.overlaps(ReferenceRegion(chrom="chr2", start=10, end=12))


def test_region_rejects_inverted_interval():
    with pytest.raises(ValueError):
        ReferenceRegion(chrom="chr1", start=10, end=5)
