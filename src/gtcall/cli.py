"""
CLI Entry Point: Exposes the gtcall functionality via command line.
"""

from pathlib import Path

import typer

from . import __version__
from .models.core import GtcallConfig
from .utils.logging import console, setup_logging

app = typer.Typer(help="gtcall: biallelic genotype calling from aligned reads")


@app.callback()
def main():
    """
    gtcall: biallelic genotype calling from aligned reads
    """
    pass


@app.command()
def version():
    """Show the installed version."""
    typer.echo(f"py-gtcall {__version__}")


@app.command()
def call(
    bam_file: Path = typer.Option(..., "--bam", "-b", help="Indexed BAM/CRAM file of a single sample"),
    output_file: Path = typer.Option(..., "--output", "-o", help="Path of the VCF to write"),
    variant_file: Path | None = typer.Option(
        None, "--variants", "-v", help="VCF of candidate loci to genotype"
    ),
    reference: Path | None = typer.Option(
        None, "--fasta", "-f", help="Reference FASTA (needed for reads without MD tags and for CRAM)"
    ),
    copy_number_file: Path | None = typer.Option(
        None, "--copy-number", help="BED file of per-region ploidy overrides"
    ),
    ploidy: int = typer.Option(2, "--ploidy", help="Base ploidy of the sample"),
    score_all_sites: bool = typer.Option(
        False, "--score-all-sites", help="Score every covered position (gVCF style)"
    ),
    max_base_quality: int = typer.Option(93, "--max-base-quality", help="Clamp base qualities above this"),
    max_mapq: int = typer.Option(93, "--max-mapq", help="Clamp mapping qualities above this"),
    min_mapq: int = typer.Option(0, "--min-mapq", help="Minimum mapping quality"),
    filter_duplicates: bool = typer.Option(True, help="Filter duplicate reads"),
    filter_secondary: bool = typer.Option(False, help="Filter secondary alignments"),
    filter_supplementary: bool = typer.Option(False, help="Filter supplementary alignments"),
    filter_qc_failed: bool = typer.Option(False, help="Filter reads failing platform QC"),
    sample_name: str | None = typer.Option(
        None, "--sample-name", help="Sample id to report (defaults to the read group sample)"
    ),
    threads: int = typer.Option(1, "--threads", "-t", help="Number of parallel workers"),
    backend: str = typer.Option("loky", "--backend", help="Parallel backend: loky or threading"),
    window_size: int = typer.Option(1_000_000, "--window-size", help="Bases per unit of parallel work"),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose debug logging"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """
    Genotype candidate loci (or every covered site) in one sample.
    """
    setup_logging(verbose=verbose, log_file=str(log_file) if log_file else None)

    try:
        config = GtcallConfig(
            bam_file=bam_file,
            output_file=output_file,
            variant_file=variant_file,
            reference_fasta=reference,
            copy_number_file=copy_number_file,
            base_ploidy=ploidy,
            score_all_sites=score_all_sites,
            max_base_quality=max_base_quality,
            max_mapping_quality=max_mapq,
            min_mapping_quality=min_mapq,
            filter_duplicates=filter_duplicates,
            filter_secondary=filter_secondary,
            filter_supplementary=filter_supplementary,
            filter_qc_failed=filter_qc_failed,
            sample_name=sample_name,
            threads=threads,
            backend=backend,
            window_size=window_size,
        )

        from .pipeline import Pipeline

        Pipeline(config).run()

    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
