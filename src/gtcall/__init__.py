"""
gtcall - Biallelic genotype calling from aligned reads.

This package provides a command-line interface and Python API for calling
genotypes at candidate loci (or every covered site) in a single sample using
the biallelic model of Li (2011).

Example usage:
    $ gtcall call -b sample.bam -v candidates.vcf -o calls.vcf
"""

__version__ = "0.3.0"

from .copy_number import CopyNumberMap
from .models.core import DiscoveredVariant, GtcallConfig, ReferenceRegion, VariantType
from .models.observation import GenotypeAllele, GenotypeCall
from .pipeline import Pipeline

__all__ = [
    "__version__",
    "CopyNumberMap",
    "DiscoveredVariant",
    "GenotypeAllele",
    "GenotypeCall",
    "GtcallConfig",
    "Pipeline",
    "ReferenceRegion",
    "VariantType",
]
