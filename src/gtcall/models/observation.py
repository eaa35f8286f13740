"""
Evidence containers for genotyping.

A read contributes one ``SummarizedObservation`` per locus it covers. After
scoring, every contribution becomes an ``Observation`` holding per-dosage
log-likelihood curves; observations for the same locus are summed into a
single aggregated ``Observation`` which is then genotyped into a
``GenotypeCall``.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple

import numpy as np
from pydantic import BaseModel, Field

from .core import DiscoveredVariant, ReferenceRegion


@dataclass(frozen=True)
class SummarizedObservation:
    """What a single read shows at a single position.

    Exactly one of the following holds: the evidence supports the reference
    (``is_ref``), an allele other than the one being tested (``is_other``),
    nothing in particular (``is_non_ref``, a nulled out observation), or the
    tested alternate allele (none of the flags set).
    """

    is_ref: bool
    forward_strand: bool
    quality: int | None
    map_q: int
    is_other: bool = False
    is_non_ref: bool = False
    copy_number: int = -1

    @property
    def is_alt(self) -> bool:
        return not (self.is_ref or self.is_other or self.is_non_ref)

    def null_out(self) -> "SummarizedObservation":
        return replace(self, is_ref=False, is_other=False, is_non_ref=True)

    def other_alt(self) -> "SummarizedObservation":
        return replace(self, is_ref=False, is_other=True, is_non_ref=False)

    def as_ref(self) -> "SummarizedObservation":
        return replace(self, is_ref=True, is_other=False, is_non_ref=False)

    def as_alt(self) -> "SummarizedObservation":
        return replace(self, is_ref=False, is_other=False, is_non_ref=False)

    def add_copy_number(self, copy_number: int) -> "SummarizedObservation":
        return replace(self, copy_number=copy_number)


class AlleleObservation(NamedTuple):
    """A (region, allele, evidence) triple emitted while walking one read."""

    region: ReferenceRegion
    allele: str
    evidence: SummarizedObservation


def _check_curve(name: str, curve: np.ndarray, states: int) -> None:
    if curve.shape != (states,):
        raise ValueError(
            f"{name} log likelihoods have shape {curve.shape}, expected ({states},) "
            f"for copy number {states - 1}"
        )


@dataclass
class Observation:
    """Evidence for one locus, from one read or summed over many reads.

    Each log-likelihood curve has ``copy_number + 1`` entries; entry ``i`` is
    the log likelihood of the evidence if ``i`` of ``copy_number`` copies carry
    the respective allele class.
    """

    allele_forward_strand: int
    other_forward_strand: int
    square_map_q: float
    reference_log_likelihoods: np.ndarray
    allele_log_likelihoods: np.ndarray
    other_log_likelihoods: np.ndarray
    non_ref_log_likelihoods: np.ndarray
    allele_coverage: int
    other_coverage: int
    copy_number: int
    total_coverage: int = 1
    is_ref: bool = True

    def __post_init__(self) -> None:
        states = self.copy_number + 1
        if states < 2:
            raise ValueError(f"Copy number must be at least 1, got {self.copy_number}")
        _check_curve("Reference", self.reference_log_likelihoods, states)
        _check_curve("Allele", self.allele_log_likelihoods, states)
        _check_curve("Other", self.other_log_likelihoods, states)
        _check_curve("Non-reference", self.non_ref_log_likelihoods, states)

    @property
    def states(self) -> int:
        return self.copy_number + 1

    def merge(self, other: "Observation") -> "Observation":
        """Sum two observations of the same locus.

        Counts and curves are summed; ``copy_number`` and ``is_ref`` are taken
        from ``self``.
        """
        if other.copy_number != self.copy_number:
            raise ValueError(
                f"Cannot merge observations with copy numbers {self.copy_number} "
                f"and {other.copy_number}"
            )
        return Observation(
            allele_forward_strand=self.allele_forward_strand + other.allele_forward_strand,
            other_forward_strand=self.other_forward_strand + other.other_forward_strand,
            square_map_q=self.square_map_q + other.square_map_q,
            reference_log_likelihoods=self.reference_log_likelihoods + other.reference_log_likelihoods,
            allele_log_likelihoods=self.allele_log_likelihoods + other.allele_log_likelihoods,
            other_log_likelihoods=self.other_log_likelihoods + other.other_log_likelihoods,
            non_ref_log_likelihoods=self.non_ref_log_likelihoods + other.non_ref_log_likelihoods,
            allele_coverage=self.allele_coverage + other.allele_coverage,
            other_coverage=self.other_coverage + other.other_coverage,
            total_coverage=self.total_coverage + other.total_coverage,
            is_ref=self.is_ref,
            copy_number=self.copy_number,
        )


class GenotypeAllele(str, Enum):
    """Allele tokens of a genotype call."""
    REF = "REF"
    ALT = "ALT"
    OTHER_ALT = "OTHER_ALT"


class GenotypeCall(BaseModel):
    """
    Final call for one locus in one sample.
    """
    variant: DiscoveredVariant
    sample_id: str
    alleles: list[GenotypeAllele]
    genotype_likelihoods: list[float]
    non_reference_likelihoods: list[float]
    strand_bias_components: list[int] = Field(min_length=4, max_length=4)
    read_depth: int
    reference_read_depth: int
    alternate_read_depth: int
    rms_map_q: float
    fisher_strand_bias_p_value: float
    genotype_quality: int
