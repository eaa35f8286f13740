"""Pytest configuration and fixtures."""

import sys
import tempfile
from collections.abc import Generator
from pathlib import Path

import pysam
import pytest

# Add src directory to path so tests use local code, not installed package
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

# chr1[i] == "ACGT"[i % 4]
CHR1 = "ACGT" * 50
CHR2 = "TTGCA" * 20
CONTIGS = {"chr1": len(CHR1), "chr2": len(CHR2)}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def chr1_sequence() -> str:
    return CHR1


@pytest.fixture
def header() -> pysam.AlignmentHeader:
    return pysam.AlignmentHeader.from_dict(_header_dict(["NA12878"]))


def _header_dict(samples: list[str]) -> dict:
    return {
        "HD": {"VN": "1.6", "SO": "coordinate"},
        "SQ": [{"SN": name, "LN": length} for name, length in CONTIGS.items()],
        "RG": [{"ID": f"rg{idx}", "SM": sample} for idx, sample in enumerate(samples)],
    }


@pytest.fixture
def sample_fasta(temp_dir: Path) -> Path:
    """Reference FASTA with a .fai index."""
    fasta = temp_dir / "reference.fa"
    with open(fasta, "w") as f:
        f.write(f">chr1\n{CHR1}\n>chr2\n{CHR2}\n")
    pysam.faidx(str(fasta))
    return fasta


@pytest.fixture
def make_read(header: pysam.AlignmentHeader):
    """Factory for AlignedSegments with sensible defaults."""

    def _make_read(
        name: str,
        start: int,
        seq: str,
        cigar: list[tuple[int, int]] | None = None,
        contig: str = "chr1",
        reverse: bool = False,
        mapq: int = 60,
        quals: list[int] | None = None,
        flag: int = 0,
        md: str | None = None,
    ) -> pysam.AlignedSegment:
        a = pysam.AlignedSegment(header)
        a.query_name = name
        a.query_sequence = seq
        a.flag = flag | (16 if reverse else 0)
        a.reference_id = header.get_tid(contig)
        a.reference_start = start
        a.mapping_quality = mapq
        a.cigartuples = cigar if cigar is not None else [(0, len(seq))]
        a.query_qualities = quals if quals else [30] * len(seq)
        if md is not None:
            a.set_tag("MD", md)
        return a

    return _make_read


@pytest.fixture
def build_bam(temp_dir: Path):
    """Factory writing reads to a sorted, indexed BAM. Returns the BAM path."""

    def _build_bam(
        reads: list[pysam.AlignedSegment],
        samples: list[str] | None = None,
        filename: str = "sample.bam",
    ) -> Path:
        unsorted = temp_dir / f"unsorted.{filename}"
        header = _header_dict(["NA12878"] if samples is None else samples)
        with pysam.AlignmentFile(str(unsorted), "wb", header=header) as outf:
            for read in reads:
                outf.write(read)
        bam_path = temp_dir / filename
        pysam.sort("-o", str(bam_path), str(unsorted))
        pysam.index(str(bam_path))
        return bam_path

    return _build_bam


@pytest.fixture
def write_vcf(temp_dir: Path):
    """Factory writing a sites-only VCF of (chrom, pos, id, ref, alt) records."""

    def _write_vcf(
        records: list[tuple[str, int, str, str, str]],
        contigs: dict[str, int | None] | None = None,
        filename: str = "variants.vcf",
    ) -> Path:
        contigs = CONTIGS if contigs is None else contigs
        vcf_path = temp_dir / filename
        with open(vcf_path, "w") as f:
            f.write("##fileformat=VCFv4.2\n")
            for name, length in contigs.items():
                if length is None:
                    f.write(f"##contig=<ID={name}>\n")
                else:
                    f.write(f"##contig=<ID={name},length={length}>\n")
            f.write("#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n")
            for chrom, pos, vid, ref, alt in records:
                f.write(f"{chrom}\t{pos}\t{vid}\t{ref}\t{alt}\t.\t.\t.\n")
        return vcf_path

    return _write_vcf
