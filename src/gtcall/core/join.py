"""
Region index: overlap lookups of genomic regions.

Used to pair each read with the candidate loci it overlaps, and to find the
copy-number overrides covering a read.
"""

import bisect
from collections.abc import Iterable, Iterator
from typing import Generic, TypeVar

import pysam

from gtcall.models.core import DiscoveredVariant, ReferenceRegion

from .observer import read_region

T = TypeVar("T")


class RegionIndex(Generic[T]):
    """
    Static interval index over (region, payload) pairs.

    Regions are kept sorted by start per contig. A query binary-searches the
    starts and scans back no further than the widest stored region.
    """

    def __init__(self, entries: Iterable[tuple[ReferenceRegion, T]] = ()):
        by_contig: dict[str, list[tuple[int, int, int, T]]] = {}
        for order, (region, payload) in enumerate(entries):
            by_contig.setdefault(region.chrom, []).append(
                (region.start, order, region.end, payload)
            )

        self._starts: dict[str, list[int]] = {}
        self._entries: dict[str, list[tuple[ReferenceRegion, T]]] = {}
        self._max_width: dict[str, int] = {}
        for chrom, rows in by_contig.items():
            rows.sort(key=lambda row: (row[0], row[1]))
            self._starts[chrom] = [row[0] for row in rows]
            self._entries[chrom] = [
                (ReferenceRegion(chrom=chrom, start=start, end=end), payload)
                for start, _, end, payload in rows
            ]
            self._max_width[chrom] = max(end - start for start, _, end, _ in rows)

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._entries.values())

    def overlapping(self, region: ReferenceRegion) -> list[tuple[ReferenceRegion, T]]:
        """All stored (region, payload) pairs overlapping ``region``, sorted by start."""
        starts = self._starts.get(region.chrom)
        if not starts:
            return []

        entries = self._entries[region.chrom]
        lo = bisect.bisect_left(starts, region.start - self._max_width[region.chrom] + 1)
        hi = bisect.bisect_left(starts, region.end)
        # zero width query regions (and zero width entries) never overlap anything
        return [entry for entry in entries[lo:hi] if entry[0].overlaps(region)]


def index_variants(variants: Iterable[DiscoveredVariant]) -> RegionIndex[DiscoveredVariant]:
    return RegionIndex((v.region, v) for v in variants)


def join_reads_and_variants(
    reads: Iterable[pysam.AlignedSegment],
    variants: RegionIndex[DiscoveredVariant],
) -> Iterator[tuple[pysam.AlignedSegment, list[DiscoveredVariant]]]:
    """Pair every mapped read with the candidate loci its alignment overlaps."""
    for read in reads:
        if read.is_unmapped or read.reference_end is None:
            continue
        yield read, [variant for _, variant in variants.overlapping(read_region(read))]
