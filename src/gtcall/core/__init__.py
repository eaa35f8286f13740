"""
Core module for gtcall.

Provides locus classification, read observation, read-to-site
disambiguation, evidence scoring, site aggregation and genotyping.
"""

from .kernel import CoordinateKernel
from .join import RegionIndex

__all__ = ["CoordinateKernel", "RegionIndex"]
