"""
Input Adapters: candidate loci from VCF, reads from BAM/CRAM.

Candidate loci are converted into the internal representation using
CoordinateKernel. Alignment access applies the read filters and exposes the
metadata needed to check run preconditions (sample ids, sequence dictionary).
"""

import logging
from collections.abc import Iterator
from pathlib import Path

import pysam

from ..core.kernel import CoordinateKernel
from ..models.core import DiscoveredVariant, GtcallConfig

logger = logging.getLogger(__name__)


class VariantReader:
    """Abstract base class for variant readers."""

    def __iter__(self) -> Iterator[DiscoveredVariant]:
        raise NotImplementedError


class VcfReader(VariantReader):
    """Reads candidate loci from a VCF file."""

    def __init__(self, path: Path):
        self.path = path
        self._vcf = pysam.VariantFile(str(path))

    @property
    def contigs(self) -> dict[str, int | None]:
        """Contigs declared in the VCF header, with lengths where given."""
        return {name: contig.length for name, contig in self._vcf.header.contigs.items()}

    def __iter__(self) -> Iterator[DiscoveredVariant]:
        for record in self._vcf:
            # Handle multiple ALTs
            for alt in record.alts or []:
                # symbolic alleles (<NON_REF>, <DEL>, ...) and spanning deletions
                if alt.startswith("<") or alt == "*":
                    continue
                # pysam record.pos is the 1-based VCF POS
                yield CoordinateKernel.vcf_to_internal(
                    chrom=record.chrom,
                    pos=record.pos,
                    ref=record.ref,
                    alt=alt,
                    original_id=record.id,
                )

    def close(self):
        self._vcf.close()


class AlignmentReader:
    """Reads filtered alignments from an indexed BAM/CRAM file."""

    def __init__(self, path: Path, config: GtcallConfig, reference: Path | None = None):
        self.path = path
        self.config = config
        self._bam = pysam.AlignmentFile(
            str(path), reference_filename=str(reference) if reference else None
        )

    @property
    def samples(self) -> list[str]:
        """Distinct sample ids in the read group header, in order of appearance."""
        header = self._bam.header.to_dict()
        samples: list[str] = []
        for read_group in header.get("RG", []):
            sample = read_group.get("SM")
            if sample is not None and sample not in samples:
                samples.append(sample)
        return samples

    @property
    def contigs(self) -> dict[str, int]:
        return dict(zip(self._bam.references, self._bam.lengths))

    def should_filter_alignment(self, aln: pysam.AlignedSegment) -> bool:
        """
        Check if alignment should be filtered based on configuration.

        Returns:
            True if alignment should be filtered (excluded)
        """
        if aln.is_unmapped:
            return True
        if self.config.filter_duplicates and aln.is_duplicate:
            return True
        if self.config.filter_secondary and aln.is_secondary:
            return True
        if self.config.filter_supplementary and aln.is_supplementary:
            return True
        if self.config.filter_qc_failed and aln.is_qcfail:
            return True
        if aln.mapping_quality < self.config.min_mapping_quality:
            return True
        return False

    def fetch(self, contig: str, start: int, end: int) -> Iterator[pysam.AlignedSegment]:
        """Reads whose alignment starts inside [start, end) and pass the filters."""
        for aln in self._bam.fetch(contig, start, end):
            if aln.reference_start < start or aln.reference_start >= end:
                continue
            if self.should_filter_alignment(aln):
                continue
            yield aln

    def close(self):
        self._bam.close()


def check_single_sample(samples: list[str]) -> None:
    """Only one sample can be genotyped per run."""
    if len(samples) > 1:
        raise ValueError(
            f"Currently, we only support a single sample. Saw: {', '.join(samples)}."
        )


def check_sequence_dictionaries(
    variant_contigs: dict[str, int | None], read_contigs: dict[str, int]
) -> None:
    """
    Check that variants and reads use the same coordinate system.

    Dictionaries are compatible when every contig named in both has the same
    length in both. Contigs without a declared length in the VCF are not compared.
    """
    mismatched = [
        f"{name} ({length} vs {read_contigs[name]})"
        for name, length in variant_contigs.items()
        if name in read_contigs and length is not None and length != read_contigs[name]
    ]
    if mismatched:
        raise ValueError(
            "Variant sequence dictionary is not compatible with read dictionary: "
            f"contig lengths differ for {', '.join(mismatched)}."
        )


def check_variant_contigs(variants: list[DiscoveredVariant], read_contigs: dict[str, int]) -> None:
    """Every candidate locus must sit on a contig the reads were aligned to."""
    missing = sorted({v.chrom for v in variants} - set(read_contigs))
    if not missing:
        return

    normalized = {CoordinateKernel.normalize_chromosome(c) for c in read_contigs}
    hint = ""
    if any(CoordinateKernel.normalize_chromosome(c) in normalized for c in missing):
        hint = " Chromosome names differ only by a 'chr' prefix; rename one input to match."
    raise ValueError(
        f"Variants reference contigs absent from the reads: {', '.join(missing)}.{hint}"
    )
