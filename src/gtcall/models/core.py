"""
Core data models for gtcall.
"""

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VariantType(str, Enum):
    """Type of candidate locus."""
    SNP = "SNP"
    INSERTION = "INSERTION"
    DELETION = "DELETION"
    COMPLEX = "COMPLEX"
    NON_REF = "NON_REF"


class ReferenceRegion(BaseModel):
    """
    Represents a 0-based, half-open genomic interval [start, end).

    This is the canonical internal representation for all coordinates.
    Regions are strand independent.
    """
    model_config = ConfigDict(frozen=True)

    chrom: str
    start: int = Field(ge=0, description="0-based start position (inclusive)")
    end: int = Field(ge=0, description="0-based end position (exclusive)")

    @model_validator(mode="after")
    def validate_interval(self) -> "ReferenceRegion":
        if self.end < self.start:
            raise ValueError(f"End position ({self.end}) must be >= start position ({self.start})")
        return self

    @property
    def width(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "ReferenceRegion") -> bool:
        return self.chrom == other.chrom and self.start < other.end and other.start < self.end


class DiscoveredVariant(BaseModel):
    """
    A candidate locus to genotype.

    Loci with no alternate allele are "non-reference model" sites, synthesized
    to score every covered base (gVCF style).
    """
    model_config = ConfigDict(frozen=True)

    chrom: str
    start: int = Field(ge=0, description="0-based position of the first reference base")
    end: int = Field(ge=0, description="0-based exclusive end of the reference allele")
    ref: str | None = None
    alt: str | None = None
    variant_type: VariantType = VariantType.NON_REF

    # Original input metadata (optional)
    original_id: str | None = None

    @classmethod
    def non_ref(cls, region: ReferenceRegion) -> "DiscoveredVariant":
        """Synthesize a non-reference model locus covering a region."""
        return cls(chrom=region.chrom, start=region.start, end=region.end)

    @property
    def is_non_ref_model(self) -> bool:
        return self.alt is None

    @property
    def region(self) -> ReferenceRegion:
        return ReferenceRegion(chrom=self.chrom, start=self.start, end=self.end)

    @property
    def key(self) -> tuple[str, int, str | None, str | None]:
        """Aggregation key: (contig, start, reference allele, alternate allele)."""
        return (self.chrom, self.start, self.ref, self.alt)

    def overlaps(self, other: "DiscoveredVariant | ReferenceRegion") -> bool:
        return (
            self.chrom == other.chrom
            and self.start < other.end
            and other.start < self.end
        )


class GtcallConfig(BaseModel):
    """
    Global configuration for gtcall execution.
    """
    # Input
    bam_file: Path
    variant_file: Path | None = None
    reference_fasta: Path | None = None
    copy_number_file: Path | None = None

    # Output
    output_file: Path

    # Model
    base_ploidy: int = Field(default=2, ge=1)
    score_all_sites: bool = False
    max_base_quality: int = Field(default=93, ge=0)
    max_mapping_quality: int = Field(default=93, ge=0)
    sample_name: str | None = None

    # Filters
    min_mapping_quality: int = Field(default=0, ge=0)
    filter_duplicates: bool = True
    filter_secondary: bool = False
    filter_supplementary: bool = False
    filter_qc_failed: bool = False

    # Performance
    threads: int = Field(default=1, ge=1)
    backend: Literal["loky", "threading"] = "loky"
    window_size: int = Field(default=1_000_000, ge=1)

    @field_validator("bam_file")
    @classmethod
    def validate_bam_exists(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"BAM file not found: {v}")
        return v

    @field_validator("variant_file", "reference_fasta", "copy_number_file")
    @classmethod
    def validate_optional_file_exists(cls, v: Path | None) -> Path | None:
        if v is not None and not v.exists():
            raise ValueError(f"File not found: {v}")
        return v

    @field_validator("output_file")
    @classmethod
    def validate_output_file(cls, v: Path) -> Path:
        if v.is_dir():
            raise ValueError(f"Output path must be a file, not a directory: {v}")
        return v

    @model_validator(mode="after")
    def validate_loci_source(self) -> "GtcallConfig":
        if self.variant_file is None and not self.score_all_sites:
            raise ValueError("A variant file is required unless scoring all sites")
        return self
