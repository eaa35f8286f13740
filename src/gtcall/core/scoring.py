"""
Ploidy-aware evidence model.

Scores a single read's evidence at a locus into reference, allele, other-allele
and non-reference log-likelihood curves indexed by allele dosage. For a read
supporting an allele class with effective error ``e`` at copy number ``m``,
the likelihood of the read given ``g`` copies of that class is

    L(g) = (g * (1 - e) + (m - g) * e) / m

following Li (2011). The curve goes to the bucket the evidence supports; all
other buckets receive zeros, so that summing a bucket curve with a second
bucket's curve reversed gives the read's likelihood under a two-allele genotype.
"""

import math
from functools import lru_cache

import numpy as np

from gtcall.models.observation import Observation, SummarizedObservation

# errors above this carry no information about dosage
MAX_ERROR_PROBABILITY = 0.5
MIN_ERROR_PROBABILITY = 1e-10


def phred_to_error_probability(phred: float) -> float:
    return 10.0 ** (-phred / 10.0)


def effective_error_probability(quality: int | None, map_q: int) -> float:
    """
    Combine base and mapping quality into one error probability.

    A read is right only if it is both placed and sequenced correctly. A
    missing base quality (e.g. a deletion) only contributes mapping error.
    """
    success = 1.0 - phred_to_error_probability(map_q)
    if quality is not None:
        success *= 1.0 - phred_to_error_probability(quality)
    return min(max(1.0 - success, MIN_ERROR_PROBABILITY), MAX_ERROR_PROBABILITY)


@lru_cache(maxsize=65536)
def _likelihoods(copy_number: int, map_q: int, quality: int | None) -> tuple[float, ...]:
    error = effective_error_probability(quality, map_q)
    success = 1.0 - error
    return tuple(
        math.log((g * success + (copy_number - g) * error) / copy_number)
        for g in range(copy_number + 1)
    )


def likelihoods(copy_number: int, map_q: int, quality: int | None) -> np.ndarray:
    """
    Log likelihood of a supporting read for each dosage 0..copy_number.

    Curves are memoised per (copy number, mapping quality, base quality), the
    only inputs they depend on once qualities are clamped.
    """
    if copy_number < 1:
        raise ValueError(f"Copy number must be at least 1, got {copy_number}")
    return np.array(_likelihoods(copy_number, map_q, quality), dtype=np.float64)


def score_observation(
    observation: SummarizedObservation,
    max_quality: int = 93,
    max_map_q: int = 93,
) -> Observation:
    """
    Turn one read's evidence at a locus into an Observation.

    Args:
        observation: Evidence with its copy number attached.
        max_quality: Base qualities above this are clamped.
        max_map_q: Mapping qualities above this are clamped.

    Returns:
        Observation with a single read's worth of counts and curves.
    """
    copy_number = observation.copy_number
    quality = min(observation.quality, max_quality) if observation.quality is not None else None
    map_q = min(observation.map_q, max_map_q)

    curve = likelihoods(copy_number, map_q, quality)
    zeros = np.zeros(copy_number + 1, dtype=np.float64)
    forward = 1 if observation.forward_strand else 0

    reference = allele = other = non_ref = zeros
    allele_coverage = other_coverage = 0
    allele_forward = other_forward = 0

    if observation.is_ref:
        reference = curve
        other_coverage, other_forward = 1, forward
    elif observation.is_other:
        other = non_ref = curve
        other_coverage, other_forward = 1, forward
    elif observation.is_non_ref:
        # nulled out: no hypothesis bucket, no depth
        non_ref = curve
    else:
        allele = non_ref = curve
        allele_coverage, allele_forward = 1, forward

    counted = allele_coverage + other_coverage
    return Observation(
        allele_forward_strand=allele_forward,
        other_forward_strand=other_forward,
        square_map_q=float(map_q * map_q) if counted else 0.0,
        reference_log_likelihoods=reference.copy(),
        allele_log_likelihoods=allele.copy(),
        other_log_likelihoods=other.copy(),
        non_ref_log_likelihoods=non_ref.copy(),
        allele_coverage=allele_coverage,
        other_coverage=other_coverage,
        copy_number=copy_number,
        total_coverage=1,
        is_ref=observation.is_ref,
    )
