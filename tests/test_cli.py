"""Tests for CLI module."""

from typer.testing import CliRunner

from gtcall import __version__
from gtcall.cli import app

runner = CliRunner()


def test_cli_version():
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "py-gtcall" in result.stdout
    assert __version__ in result.stdout


def test_cli_help():
    """Test help command."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "biallelic genotype calling" in result.stdout
    assert "call" in result.stdout


def test_cli_missing_required_args():
    """Test CLI with missing required arguments."""
    result = runner.invoke(app, ["call"])
    assert result.exit_code != 0


def test_cli_missing_bam(temp_dir):
    """A BAM that does not exist is reported and exits with an error."""
    result = runner.invoke(
        app,
        [
            "call",
            "--bam",
            str(temp_dir / "nonexistent.bam"),
            "--score-all-sites",
            "--output",
            str(temp_dir / "calls.vcf"),
        ],
    )
    assert result.exit_code == 1


def test_cli_requires_loci_source(make_read, build_bam, chr1_sequence, temp_dir):
    """Without a variant file, --score-all-sites is required."""
    bam = build_bam([make_read("r1", 20, chr1_sequence[20:40])])
    result = runner.invoke(app, ["call", "--bam", str(bam), "--output", str(temp_dir / "calls.vcf")])
    assert result.exit_code == 1


def test_cli_call(make_read, build_bam, write_vcf, sample_fasta, chr1_sequence, temp_dir):
    """Genotype a SNP end to end."""
    alt = chr1_sequence[20:30] + "A" + chr1_sequence[31:40]
    bam = build_bam([
        make_read("r1", 20, alt),
        make_read("r2", 20, alt, reverse=True),
        make_read("r3", 20, chr1_sequence[20:40]),
    ])
    vcf = write_vcf([("chr1", 31, "snp1", "G", "A")])
    output = temp_dir / "calls.vcf"
    log_file = temp_dir / "gtcall.log"

    result = runner.invoke(
        app,
        [
            "call",
            "-b", str(bam),
            "-v", str(vcf),
            "-f", str(sample_fasta),
            "-o", str(output),
            "--threads", "2",
            "--backend", "threading",
            "--log-file", str(log_file),
        ],
    )

    assert result.exit_code == 0, result.output
    data = [line.split("\t") for line in output.read_text().splitlines() if not line.startswith("#")]
    assert len(data) == 1
    assert data[0][:5] == ["chr1", "31", "snp1", "G", "A"]
    assert log_file.exists()


def test_cli_filter_qc_failed(make_read, build_bam, write_vcf, sample_fasta, chr1_sequence, temp_dir):
    """QC-failed reads are counted unless --filter-qc-failed is given."""
    alt = chr1_sequence[20:30] + "A" + chr1_sequence[31:40]
    bam = build_bam([
        make_read("r1", 20, chr1_sequence[20:40]),
        make_read("qcfail", 20, alt, flag=512),
    ])
    vcf = write_vcf([("chr1", 31, "snp1", "G", "A")])

    depths = []
    for flag in ["--no-filter-qc-failed", "--filter-qc-failed"]:
        output = temp_dir / f"calls{len(depths)}.vcf"
        result = runner.invoke(
            app,
            ["call", "-b", str(bam), "-v", str(vcf), "-f", str(sample_fasta), "-o", str(output), flag],
        )
        assert result.exit_code == 0, result.output
        [row] = [line.split("\t") for line in output.read_text().splitlines() if not line.startswith("#")]
        depths.append(row[7].split(";")[0])

    assert depths == ["DP=2", "DP=1"]


def test_cli_rejects_unknown_backend(make_read, build_bam, chr1_sequence, temp_dir):
    bam = build_bam([make_read("r1", 20, chr1_sequence[20:40])])
    result = runner.invoke(
        app,
        [
            "call",
            "--bam", str(bam),
            "--score-all-sites",
            "--backend", "ray",
            "--output", str(temp_dir / "calls.vcf"),
        ],
    )
    assert result.exit_code == 1
