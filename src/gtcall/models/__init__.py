"""
Data models for gtcall.

Provides Pydantic models for loci and configuration, and the evidence
containers used by the genotyping core.
"""

from .core import DiscoveredVariant, GtcallConfig, ReferenceRegion, VariantType
from .observation import (
    AlleleObservation,
    GenotypeAllele,
    GenotypeCall,
    Observation,
    SummarizedObservation,
)

__all__ = [
    "AlleleObservation",
    "DiscoveredVariant",
    "GenotypeAllele",
    "GenotypeCall",
    "GtcallConfig",
    "Observation",
    "ReferenceRegion",
    "SummarizedObservation",
    "VariantType",
]
