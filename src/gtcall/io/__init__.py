"""
I/O module for gtcall.

Provides readers for candidate loci and alignments, and a VCF writer for
genotype calls.
"""

from .input import (
    AlignmentReader,
    VariantReader,
    VcfReader,
    check_sequence_dictionaries,
    check_single_sample,
    check_variant_contigs,
)
from .output import OutputWriter, VcfWriter

__all__ = [
    "AlignmentReader",
    "OutputWriter",
    "VariantReader",
    "VcfReader",
    "VcfWriter",
    "check_sequence_dictionaries",
    "check_single_sample",
    "check_variant_contigs",
]
