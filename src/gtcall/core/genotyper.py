"""
Biallelic genotyping of aggregated evidence.

Uses the genotyping model from:

  Li, Heng. "A statistical framework for SNP calling, mutation discovery,
  association mapping and population genetical parameter estimation from
  sequencing data." Bioinformatics 27.21 (2011): 2987-2993.

Assumes no prior in favor of/against the reference. Three two-allele
hypotheses compete at every site: alt/ref, alt/other-alt and other-alt/ref.
The hypothesis whose best genotype is most clearly separated from its
runner-up wins.
"""

import math

import numpy as np

from gtcall.models.core import DiscoveredVariant
from gtcall.models.observation import GenotypeAllele, GenotypeCall, Observation

TEN_DIV_LOG10 = 10.0 / math.log(10.0)

# log(k!) for k = 0..len-1, grown on demand
_LOG_FACTORIALS = np.zeros(2, dtype=np.float64)


def blend(curve_a: np.ndarray, curve_b: np.ndarray) -> np.ndarray:
    """
    Combine two single-allele dosage curves into one genotype curve.

    Entry ``i`` is the log likelihood of ``i`` copies of allele A and
    ``states - 1 - i`` copies of allele B.
    """
    curve_a = np.asarray(curve_a, dtype=np.float64)
    curve_b = np.asarray(curve_b, dtype=np.float64)
    if curve_a.shape != curve_b.shape or curve_a.ndim != 1:
        raise ValueError(
            f"Cannot blend curves of shapes {curve_a.shape} and {curve_b.shape}"
        )
    return curve_a + curve_b[::-1]


def state_and_quality(log_likelihoods: np.ndarray) -> tuple[int, float]:
    """
    Most likely genotype state and its phred-scaled quality.

    Ties for the maximum go to the first state. Quality is the gap between the
    best and second best log likelihood, converted to phred.

    Returns:
        (genotype state, quality)
    """
    if len(log_likelihoods) < 2:
        raise ValueError(f"Need at least two genotype states, got {len(log_likelihoods)}")

    # which of first two genotype likelihoods is higher?
    if log_likelihoods[0] >= log_likelihoods[1]:
        max_idx, max_ll, second_ll = 0, log_likelihoods[0], log_likelihoods[1]
    else:
        max_idx, max_ll, second_ll = 1, log_likelihoods[1], log_likelihoods[0]

    for idx in range(2, len(log_likelihoods)):
        value = log_likelihoods[idx]
        if value > max_ll:
            max_idx, max_ll, second_ll = idx, value, max_ll
        elif value > second_ll:
            second_ll = value

    return max_idx, float(TEN_DIV_LOG10 * (max_ll - second_ll))


def _check_shape(obs: Observation) -> None:
    states = obs.states
    for name in (
        "reference_log_likelihoods",
        "allele_log_likelihoods",
        "other_log_likelihoods",
        "non_ref_log_likelihoods",
    ):
        if len(getattr(obs, name)) != states:
            raise ValueError(
                f"{name} has {len(getattr(obs, name))} entries, expected {states}"
            )


def genotype_state_and_quality(obs: Observation) -> tuple[int, int, int, float]:
    """
    Call the genotype of an aggregated observation.

    Returns:
        (alt allele count, ref allele count, other-alt allele count, quality).
        The three counts always sum to the copy number.
    """
    _check_shape(obs)
    states = obs.states

    alt_ref_state, alt_ref_qual = state_and_quality(
        blend(obs.allele_log_likelihoods, obs.reference_log_likelihoods)
    )
    alt_other_state, alt_other_qual = state_and_quality(
        blend(obs.allele_log_likelihoods, obs.other_log_likelihoods)
    )
    other_ref_state, other_ref_qual = state_and_quality(
        blend(obs.other_log_likelihoods, obs.reference_log_likelihoods)
    )

    if alt_ref_qual >= alt_other_qual and alt_ref_qual >= other_ref_qual:
        return alt_ref_state, states - alt_ref_state - 1, 0, alt_ref_qual
    elif alt_other_qual >= other_ref_qual:
        return alt_other_state, 0, states - alt_other_state - 1, alt_other_qual
    else:
        return 0, states - other_ref_state - 1, other_ref_state, other_ref_qual


def log_factorial(n: int) -> float:
    """log(n!), tabulated by accumulating log(k) for k = 2..n."""
    global _LOG_FACTORIALS

    if n < 0:
        raise ValueError(f"Factorial of negative number {n}")
    table = _LOG_FACTORIALS
    if n >= len(table):
        size = max(n + 1, 2 * len(table))
        table = np.concatenate(
            ([0.0], np.cumsum(np.log(np.arange(1, size, dtype=np.float64))))
        )
        # publish only a complete table; concurrent callers keep their own
        _LOG_FACTORIALS = table
    return float(table[n])


def log_error_to_phred(log_error: float) -> float:
    """Natural log error probability to phred scale."""
    return -TEN_DIV_LOG10 * log_error


def fisher(other_fwd: int, other_rev: int, allele_fwd: int, allele_rev: int) -> float:
    """
    Fisher's exact test on strand bias observations.

    Args:
        other_fwd: Reads not supporting the allele, mapped on the forward strand.
        other_rev: Reads not supporting the allele, mapped on the reverse strand.
        allele_fwd: Reads supporting the allele, mapped on the forward strand.
        allele_rev: Reads supporting the allele, mapped on the reverse strand.

    Returns:
        Phred-scaled hypergeometric probability of the 2x2 table.
    """
    numerator = (
        log_factorial(other_fwd + other_rev)
        + log_factorial(other_fwd + allele_fwd)
        + log_factorial(allele_fwd + allele_rev)
        + log_factorial(other_rev + allele_rev)
    )
    denominator = (
        log_factorial(other_fwd)
        + log_factorial(other_rev)
        + log_factorial(allele_fwd)
        + log_factorial(allele_rev)
        + log_factorial(other_fwd + other_rev + allele_fwd + allele_rev)
    )
    return log_error_to_phred(numerator - denominator)


def rms_map_q(square_map_q: float, coverage: int) -> float:
    """Root mean square mapping quality; NaN when nothing covers the site."""
    if coverage <= 0:
        return math.nan
    return math.sqrt(square_map_q / coverage)


def observation_to_genotype(
    variant: DiscoveredVariant, obs: Observation, sample: str
) -> GenotypeCall:
    """
    Turn one aggregated observation into a genotype call.

    Args:
        variant: Locus the observation belongs to.
        obs: Aggregated evidence at the locus.
        sample: ID of the sample being genotyped.

    Returns:
        The called genotype.
    """
    alt, ref, other, qual = genotype_state_and_quality(obs)

    alleles = (
        [GenotypeAllele.ALT] * alt
        + [GenotypeAllele.REF] * ref
        + [GenotypeAllele.OTHER_ALT] * other
    )

    sb_components = [
        obs.other_forward_strand,
        obs.other_coverage - obs.other_forward_strand,
        obs.allele_forward_strand,
        obs.allele_coverage - obs.allele_forward_strand,
    ]

    genotype_likelihoods = blend(obs.allele_log_likelihoods, obs.reference_log_likelihoods)
    non_ref_likelihoods = blend(obs.non_ref_log_likelihoods, obs.reference_log_likelihoods)

    return GenotypeCall(
        variant=variant,
        sample_id=sample,
        alleles=alleles,
        genotype_likelihoods=genotype_likelihoods.tolist(),
        non_reference_likelihoods=non_ref_likelihoods.tolist(),
        strand_bias_components=sb_components,
        read_depth=obs.total_coverage,
        reference_read_depth=obs.other_coverage,
        alternate_read_depth=obs.allele_coverage,
        rms_map_q=rms_map_q(obs.square_map_q, obs.allele_coverage + obs.other_coverage),
        fisher_strand_bias_p_value=fisher(*sb_components),
        genotype_quality=int(qual),
    )
