"""
Read-to-site disambiguation.

Given everything one read shows and the candidate loci it overlaps, decide
which single piece of evidence represents the read at each locus:

- SNPs and deletions look for a single observation matching the alternate allele.
- Insertions look for an observation matching the inserted tail.
- Reads fully matching the reference allele count as reference evidence.
- Anything else is nulled out and carries no weight for any hypothesis.

A read that supports the alternate allele of one locus and is nulled out at
an overlapping locus counts as "other allele" evidence at the latter, so it
never supports two competing alternate alleles.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

import pysam

from gtcall.models.core import DiscoveredVariant, VariantType
from gtcall.models.observation import AlleleObservation, SummarizedObservation

from .kernel import deletion_length
from .observer import observe_read

if TYPE_CHECKING:
    from gtcall.copy_number import CopyNumberMap

logger = logging.getLogger(__name__)

Observer = Callable[[pysam.AlignedSegment], Iterable[AlleleObservation]]
VariantEvidence = tuple[DiscoveredVariant, SummarizedObservation]


def intersect(
    variants: Sequence[DiscoveredVariant],
    observations: Sequence[AlleleObservation],
    score_all_sites: bool,
) -> list[tuple[DiscoveredVariant, list[AlleleObservation]]]:
    """
    Group a read's observations by the loci they overlap.

    When scoring all sites, observations overlapping no locus each get their
    own non-reference model locus.
    """
    if not score_all_sites:
        return [
            (variant, [o for o in observations if o.region.overlaps(variant)])
            for variant in variants
        ]

    if not variants:
        return [(DiscoveredVariant.non_ref(o.region), [o]) for o in observations]

    non_ref_sites: list[tuple[DiscoveredVariant, list[AlleleObservation]]] = []
    by_variant: list[list[AlleleObservation]] = [[] for _ in variants]
    for o in observations:
        hits = [idx for idx, variant in enumerate(variants) if variant.overlaps(o.region)]
        if not hits:
            non_ref_sites.append((DiscoveredVariant.non_ref(o.region), [o]))
        for idx in hits:
            by_variant[idx].append(o)

    return non_ref_sites + list(zip(variants, by_variant))


def _disambiguate_insertion(
    variant: DiscoveredVariant, observed: list[AlleleObservation]
) -> SummarizedObservation:
    ins_allele = variant.alt[1:]
    ins_observed = [o for o in observed if o.allele == ins_allele]

    if len(observed) == 2 and len(ins_observed) == 1:
        lead_base = next(o.allele for o in observed if o.allele != ins_allele)
        # an empty lead allele (a deletion next to the insertion) raises here
        # and drops the read
        if lead_base[0] == variant.alt[0]:
            return ins_observed[0].evidence
        return ins_observed[0].evidence.null_out()

    if all(o.evidence.is_ref for o in observed):
        return observed[0].evidence.as_ref()
    return observed[0].evidence.null_out()


def _disambiguate_substitution(
    variant: DiscoveredVariant, observed: list[AlleleObservation]
) -> SummarizedObservation:
    _, allele, evidence = observed[0]
    informative = sum(1 for o in observed if o.allele)

    if informative == 1 and allele == variant.alt:
        if variant.variant_type != VariantType.DELETION:
            return evidence

        deletions = [o.region.width for o in observed if not o.allele]
        if (
            len(deletions) == 1
            and len(observed) == 2
            and deletions[0] == deletion_length(variant)
        ):
            return evidence.as_alt()
        return evidence.null_out()

    if not evidence.is_ref or len(observed) != len(variant.ref or ""):
        return evidence.null_out()
    return evidence.as_ref()


def disambiguate(
    variant: DiscoveredVariant, observed: list[AlleleObservation]
) -> list[VariantEvidence]:
    """
    Pick the evidence a read contributes to a single locus.

    Returns:
        Nothing if no observation overlaps the locus; every observation for a
        non-reference model locus; otherwise exactly one piece of evidence.
    """
    if not observed:
        return []

    if variant.is_non_ref_model:
        return [
            (variant, o.evidence.as_ref() if o.evidence.is_ref else o.evidence)
            for o in observed
        ]

    if variant.variant_type == VariantType.INSERTION:
        return [(variant, _disambiguate_insertion(variant, observed))]
    return [(variant, _disambiguate_substitution(variant, observed))]


def suppress_overlapping_alts(evidence: list[VariantEvidence]) -> list[VariantEvidence]:
    """Downgrade nulled evidence to other-allele evidence if an overlapping locus got an alt call."""
    suppressed = []
    for variant, observation in evidence:
        if observation.is_non_ref and any(
            other.is_alt for other_variant, other in evidence if other_variant.overlaps(variant)
        ):
            observation = observation.other_alt()
        suppressed.append((variant, observation))
    return suppressed


def disambiguate_observations(
    variants: Sequence[DiscoveredVariant],
    observations: Sequence[AlleleObservation],
    score_all_sites: bool,
) -> list[VariantEvidence]:
    """Disambiguate all observations of one read against the loci it overlaps."""
    evidence = [
        pair
        for variant, observed in intersect(variants, observations, score_all_sites)
        for pair in disambiguate(variant, observed)
    ]
    return suppress_overlapping_alts(evidence)


def read_to_observations(
    read: pysam.AlignedSegment,
    variants: Sequence[DiscoveredVariant],
    copy_number: "CopyNumberMap",
    score_all_sites: bool,
    observer: Observer = observe_read,
) -> list[VariantEvidence]:
    """
    Score the loci covered by a read against that read.

    Any failure while processing the read is logged and the read contributes
    nothing; other reads are unaffected.

    Args:
        read: The read to use as evidence.
        variants: Candidate loci the read overlaps.
        copy_number: Genome-wide copy number lookup.
        score_all_sites: If True, also emit evidence for every position the
            read covers that is not a candidate locus.
        observer: Produces the read's allele observations.

    Returns:
        (locus, evidence) pairs with copy numbers attached.
    """
    if not variants and not score_all_sites:
        return []

    try:
        observations = list(observer(read))
        evidence = disambiguate_observations(variants, observations, score_all_sites)
        return [
            (variant, observation.add_copy_number(copy_number.ploidy_for(variant)))
            for variant, observation in evidence
        ]
    except Exception as e:
        logger.error("Processing read %s failed with exception %r. Skipping...", read.query_name, e)
        return []
