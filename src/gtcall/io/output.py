"""
Output Writers: serialising genotype calls.

Writes one VCF record per called locus with the genotype, its quality,
depths, strand bias components and likelihoods.
"""

import math
from pathlib import Path

import pysam

from ..models.core import DiscoveredVariant
from ..models.observation import GenotypeAllele, GenotypeCall

NON_REF_ALLELE = "<NON_REF>"
LOG10_E = 1.0 / math.log(10.0)

GT_CODES = {
    GenotypeAllele.ALT: "1",
    GenotypeAllele.REF: "0",
    GenotypeAllele.OTHER_ALT: ".",
}


def _format_float(value: float, precision: int = 2) -> str:
    if not math.isfinite(value):
        return "."
    return f"{value:.{precision}f}"


def _format_likelihoods(values: list[float]) -> str:
    # natural log to log10, as VCF GL expects
    return ",".join(_format_float(v * LOG10_E) for v in values)


class OutputWriter:
    """Abstract base class for output writers."""

    def write(self, call: GenotypeCall):
        raise NotImplementedError

    def close(self):
        pass


class VcfWriter(OutputWriter):
    """Writes genotype calls to a VCF file."""

    def __init__(
        self,
        path: Path,
        sample_name: str = "SAMPLE",
        contigs: dict[str, int] | None = None,
        reference: pysam.FastaFile | None = None,
    ):
        self.path = path
        self.sample_name = sample_name
        self.contigs = contigs or {}
        self.reference = reference
        self.file = open(path, "w")
        self._headers_written = False

    def _write_header(self):
        headers = [
            "##fileformat=VCFv4.2",
            "##source=gtcall",
        ]
        headers.extend(
            f"##contig=<ID={name},length={length}>" for name, length in self.contigs.items()
        )
        headers.extend([
            '##ALT=<ID=NON_REF,Description="Any allele other than the reference at a site scored without a candidate allele">',
            '##INFO=<ID=DP,Number=1,Type=Integer,Description="Total depth">',
            '##INFO=<ID=MQ,Number=1,Type=Float,Description="RMS mapping quality">',
            '##INFO=<ID=FS,Number=1,Type=Float,Description="Phred-scaled Fisher exact test strand bias probability">',
            '##INFO=<ID=NONREF,Number=0,Type=Flag,Description="Site scored without a candidate allele">',
            '##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">',
            '##FORMAT=<ID=GQ,Number=1,Type=Integer,Description="Genotype quality">',
            '##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read depth">',
            '##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths for the ref and alt alleles">',
            '##FORMAT=<ID=SB,Number=4,Type=Integer,Description="Strand bias components: other forward, other reverse, allele forward, allele reverse">',
            '##FORMAT=<ID=GL,Number=G,Type=Float,Description="Genotype log10 likelihoods by alternate allele dosage">',
            '##FORMAT=<ID=NRL,Number=.,Type=Float,Description="Non-reference log10 likelihoods by non-reference allele dosage">',
            f"#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\t{self.sample_name}",
        ])
        self.file.write("\n".join(headers) + "\n")
        self._headers_written = True

    def _reference_allele(self, variant: DiscoveredVariant) -> str:
        if variant.ref:
            return variant.ref
        if self.reference is not None:
            return self.reference.fetch(variant.chrom, variant.start, variant.start + 1).upper()
        return "N"

    def write(self, call: GenotypeCall):
        if not self._headers_written:
            self._write_header()

        variant = call.variant
        non_ref = variant.is_non_ref_model

        info = [f"DP={call.read_depth}"]
        if math.isfinite(call.rms_map_q):
            info.append(f"MQ={call.rms_map_q:.2f}")
        info.append(f"FS={_format_float(call.fisher_strand_bias_p_value, 3)}")
        if non_ref:
            info.append("NONREF")

        gt = "/".join(GT_CODES[a] for a in call.alleles) or "."
        sample_data = ":".join([
            gt,
            str(call.genotype_quality),
            str(call.read_depth),
            f"{call.reference_read_depth},{call.alternate_read_depth}",
            ",".join(str(c) for c in call.strand_bias_components),
            _format_likelihoods(call.genotype_likelihoods),
            _format_likelihoods(call.non_reference_likelihoods),
        ])

        row = [
            variant.chrom,
            str(variant.start + 1),  # VCF POS is 1-based
            variant.original_id or ".",
            self._reference_allele(variant),
            NON_REF_ALLELE if non_ref else variant.alt,
            str(call.genotype_quality),
            ".",
            ";".join(info),
            "GT:GQ:DP:AD:SB:GL:NRL",
            sample_data,
        ]
        self.file.write("\t".join(row) + "\n")

    def close(self):
        # an empty call set still yields a valid VCF
        if not self._headers_written:
            self._write_header()
        self.file.close()
