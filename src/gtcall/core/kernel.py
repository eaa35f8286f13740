"""
Locus Kernel: coordinate conversion and allele classification.

Handles conversion from VCF (1-based) to the internal representation
(0-based, half-open [start, end)) and classifies candidate loci:

- SNP: one reference base, one alternate base.
- Insertion: one reference base (the anchor), longer alternate allele.
- Deletion: longer reference allele, one alternate base (the anchor).
- Complex: anything else with an alternate allele.
- Non-reference model: no alternate allele at all.
"""

from gtcall.models.core import DiscoveredVariant, VariantType


class CoordinateKernel:
    """
    Stateless utility for coordinate transformations and locus classification.
    """

    @staticmethod
    def classify(ref: str | None, alt: str | None) -> VariantType:
        if alt is None:
            return VariantType.NON_REF
        ref_len = len(ref or "")
        if ref_len == 1 and len(alt) == 1:
            return VariantType.SNP
        if ref_len == 1 and len(alt) > 1:
            return VariantType.INSERTION
        if ref_len > 1 and len(alt) == 1:
            return VariantType.DELETION
        return VariantType.COMPLEX

    @staticmethod
    def vcf_to_internal(
        chrom: str, pos: int, ref: str, alt: str, original_id: str | None = None
    ) -> DiscoveredVariant:
        """
        Convert VCF coordinates (1-based) to an internal DiscoveredVariant.

        Insertions and deletions keep the VCF anchor base, so the internal
        start is always the 0-based index of the first reference base.

        Args:
            chrom: Chromosome name
            pos: 1-based position from VCF
            ref: Reference allele
            alt: Alternate allele
            original_id: Optional VCF ID

        Returns:
            DiscoveredVariant covering the reference allele
        """
        start = pos - 1
        return DiscoveredVariant(
            chrom=chrom,
            start=start,
            end=start + len(ref),
            ref=ref,
            alt=alt,
            variant_type=CoordinateKernel.classify(ref, alt),
            original_id=original_id,
        )

    @staticmethod
    def normalize_chromosome(chrom: str) -> str:
        """
        Normalize chromosome name (remove 'chr' prefix).
        """
        if chrom.lower().startswith("chr"):
            return chrom[3:]
        return chrom


def deletion_length(variant: DiscoveredVariant) -> int:
    """Number of reference bases removed; alternate allele length counts as 0 if absent."""
    return len(variant.ref or "") - len(variant.alt or "")
