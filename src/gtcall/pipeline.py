"""
Pipeline Orchestrator: Manages the execution flow of gtcall.

This module handles:
1. Reading candidate loci from a VCF.
2. Checking run preconditions (single sample, compatible sequence dictionaries).
3. Observing reads window by window and summing evidence per locus in parallel.
4. Genotyping every aggregated locus.
5. Writing the calls to a VCF.
"""

from functools import partial, reduce
from typing import NamedTuple

import pysam

from .copy_number import CopyNumberMap
from .core.aggregate import SiteAggregator
from .core.disambiguate import read_to_observations
from .core.genotyper import observation_to_genotype
from .core.join import index_variants, join_reads_and_variants
from .core.observer import observe_read
from .io.input import (
    AlignmentReader,
    VcfReader,
    check_sequence_dictionaries,
    check_single_sample,
    check_variant_contigs,
)
from .io.output import VcfWriter
from .models.core import DiscoveredVariant, GtcallConfig
from .models.observation import GenotypeCall
from .parallel import ParallelProcessor
from .utils.logging import console, get_logger, log_call, timed

logger = get_logger(__name__)


class Window(NamedTuple):
    """A slice of a contig; owns the reads whose alignment starts inside it."""

    contig: str
    start: int
    end: int


@log_call()
def process_window(
    task: tuple[Window, list[DiscoveredVariant]],
    config: GtcallConfig,
    copy_number: CopyNumberMap,
) -> SiteAggregator:
    """
    Observe all reads starting in a window and aggregate their evidence.

    Opens its own file handles so windows can run in separate workers.
    """
    window, variants = task
    reader = AlignmentReader(config.bam_file, config, reference=config.reference_fasta)
    fasta = pysam.FastaFile(str(config.reference_fasta)) if config.reference_fasta else None
    observer = partial(observe_read, reference=fasta)
    aggregator = SiteAggregator(config.max_base_quality, config.max_mapping_quality)

    try:
        reads = reader.fetch(window.contig, window.start, window.end)
        for read, overlapping in join_reads_and_variants(reads, index_variants(variants)):
            aggregator.add_evidence(
                read_to_observations(
                    read, overlapping, copy_number, config.score_all_sites, observer=observer
                )
            )
    finally:
        reader.close()
        if fasta is not None:
            fasta.close()

    logger.debug(
        "Window %s:%d-%d produced %d sites", window.contig, window.start, window.end, len(aggregator)
    )
    return aggregator


class Pipeline:
    def __init__(self, config: GtcallConfig):
        self.config = config
        self.console = console

    def run(self) -> list[GenotypeCall]:
        """Execute the pipeline."""
        self.console.print("[bold blue]Starting gtcall pipeline[/bold blue]")

        # 1. Load candidate loci
        with timed("Loading variants", logger):
            variants, variant_contigs = self._load_variants()
        self.console.print(f"Loaded [bold]{len(variants)}[/bold] candidate loci.")

        # 2. Validate inputs before touching any reads
        reader = AlignmentReader(self.config.bam_file, self.config, reference=self.config.reference_fasta)
        try:
            samples = reader.samples
            read_contigs = reader.contigs
        finally:
            reader.close()

        check_single_sample(samples)
        check_sequence_dictionaries(variant_contigs, read_contigs)
        check_variant_contigs(variants, read_contigs)
        sample = self._resolve_sample(samples)
        copy_number = self._load_copy_number()

        # 3. Observe and aggregate
        tasks = self._tasks(read_contigs, variants)
        if not tasks:
            self.console.print("[bold yellow]No candidate loci to genotype.[/bold yellow]")

        processor = ParallelProcessor(
            n_jobs=self.config.threads, backend=self.config.backend, console=self.console
        )
        with timed("Observing reads", logger):
            partials = processor.map(
                partial(process_window, config=self.config, copy_number=copy_number),
                tasks,
                description=f"Observing reads for {sample}",
            )
        sites = reduce(
            SiteAggregator.merge,
            partials,
            SiteAggregator(self.config.max_base_quality, self.config.max_mapping_quality),
        )
        self.console.print(f"Aggregated evidence at [bold]{len(sites)}[/bold] sites.")

        # 4. Genotype
        contig_order = {name: idx for idx, name in enumerate(read_contigs)}
        with timed("Genotyping", logger):
            calls = [
                observation_to_genotype(variant, observation, sample)
                for variant, observation in sorted(
                    sites.items(),
                    key=lambda site: (
                        contig_order.get(site[0].chrom, len(contig_order)),
                        site[0].start,
                        site[0].end,
                        site[0].alt or "",
                    ),
                )
            ]

        # 5. Write output
        self._write_output(sample, read_contigs, calls)
        self.console.print(
            f"[bold green]Wrote {len(calls)} genotype calls to {self.config.output_file}[/bold green]"
        )
        return calls

    def _load_variants(self) -> tuple[list[DiscoveredVariant], dict[str, int | None]]:
        if self.config.variant_file is None:
            return [], {}

        reader = VcfReader(self.config.variant_file)
        try:
            variants = list(reader)
            contigs = reader.contigs
        finally:
            reader.close()
        return variants, contigs

    def _resolve_sample(self, samples: list[str]) -> str:
        if samples:
            if self.config.sample_name and self.config.sample_name != samples[0]:
                logger.warning(
                    "Sample name %s overrides read group sample %s",
                    self.config.sample_name, samples[0],
                )
                return self.config.sample_name
            return samples[0]
        return self.config.sample_name or self.config.bam_file.stem

    def _load_copy_number(self) -> CopyNumberMap:
        if self.config.copy_number_file is None:
            return CopyNumberMap(self.config.base_ploidy)
        return CopyNumberMap.from_bed(self.config.copy_number_file, self.config.base_ploidy)

    def _tasks(
        self, read_contigs: dict[str, int], variants: list[DiscoveredVariant]
    ) -> list[tuple[Window, list[DiscoveredVariant]]]:
        """Split contigs into windows, pairing each with its contig's candidate loci."""
        by_contig: dict[str, list[DiscoveredVariant]] = {}
        for variant in variants:
            by_contig.setdefault(variant.chrom, []).append(variant)

        size = self.config.window_size
        tasks = []
        for contig, length in read_contigs.items():
            if contig not in by_contig and not self.config.score_all_sites:
                continue
            contig_variants = by_contig.get(contig, [])
            for start in range(0, length, size):
                tasks.append((Window(contig, start, min(start + size, length)), contig_variants))
        return tasks

    def _write_output(
        self, sample: str, contigs: dict[str, int], calls: list[GenotypeCall]
    ) -> None:
        fasta = (
            pysam.FastaFile(str(self.config.reference_fasta))
            if self.config.reference_fasta
            else None
        )
        writer = VcfWriter(self.config.output_file, sample_name=sample, contigs=contigs, reference=fasta)
        try:
            for call in calls:
                writer.write(call)
        finally:
            writer.close()
            if fasta is not None:
                fasta.close()
