"""
Read observer: turns one aligned read into per-position allele observations.

Walks the CIGAR once and emits, in reference order:

- one observation per aligned base (M/=/X), carrying the read base;
- one observation per insertion, anchored on the preceding reference base and
  carrying the inserted bases;
- one observation per deletion, with an empty allele spanning the deleted bases.
"""

from collections.abc import Iterator

import pysam

from gtcall.models.core import ReferenceRegion
from gtcall.models.observation import AlleleObservation, SummarizedObservation

# CIGAR operations
MATCH, INS, DEL, REF_SKIP, SOFT_CLIP, HARD_CLIP, PAD, EQUAL, DIFF = range(9)


def read_region(read: pysam.AlignedSegment) -> ReferenceRegion:
    """Reference span covered by an aligned read."""
    return ReferenceRegion(
        chrom=read.reference_name, start=read.reference_start, end=read.reference_end
    )


def _reference_sequence(
    read: pysam.AlignedSegment, reference: pysam.FastaFile | None
) -> str:
    """Reference bases under the read, indexed from ``read.reference_start``."""
    if reference is not None:
        return reference.fetch(
            read.reference_name, read.reference_start, read.reference_end
        ).upper()

    if not read.has_tag("MD"):
        raise ValueError(
            f"Read {read.query_name} has no MD tag and no reference sequence was supplied"
        )

    bases = ["N"] * (read.reference_end - read.reference_start)
    for _, ref_pos, ref_base in read.get_aligned_pairs(with_seq=True):
        if ref_pos is not None and ref_base is not None:
            bases[ref_pos - read.reference_start] = ref_base.upper()
    return "".join(bases)


def observe_read(
    read: pysam.AlignedSegment, reference: pysam.FastaFile | None = None
) -> Iterator[AlleleObservation]:
    """
    Lazily observe a read.

    Args:
        read: Aligned read.
        reference: Optional reference FASTA. Without it, the read's MD tag is used.

    Yields:
        AlleleObservation for every aligned base, insertion and deletion.
    """
    if read.is_unmapped or read.cigartuples is None:
        return

    chrom = read.reference_name
    forward = not read.is_reverse
    map_q = read.mapping_quality
    seq = read.query_sequence
    quals = read.query_qualities
    ref_seq = _reference_sequence(read, reference)
    ref_offset = read.reference_start

    query_pos = 0
    ref_pos = read.reference_start

    for op, length in read.cigartuples:
        if op in (MATCH, EQUAL, DIFF):
            for i in range(length):
                base = seq[query_pos + i].upper()
                yield AlleleObservation(
                    ReferenceRegion(chrom=chrom, start=ref_pos + i, end=ref_pos + i + 1),
                    base,
                    SummarizedObservation(
                        is_ref=base == ref_seq[ref_pos + i - ref_offset],
                        forward_strand=forward,
                        quality=int(quals[query_pos + i]) if quals is not None else None,
                        map_q=map_q,
                    ),
                )
            query_pos += length
            ref_pos += length

        elif op == INS:
            # no anchor base before the start of the contig
            if ref_pos > 0:
                inserted_quals = quals[query_pos : query_pos + length] if quals is not None else None
                yield AlleleObservation(
                    ReferenceRegion(chrom=chrom, start=ref_pos - 1, end=ref_pos),
                    seq[query_pos : query_pos + length].upper(),
                    SummarizedObservation(
                        is_ref=False,
                        forward_strand=forward,
                        quality=int(min(inserted_quals)) if inserted_quals is not None else None,
                        map_q=map_q,
                    ),
                )
            query_pos += length

        elif op == DEL:
            yield AlleleObservation(
                ReferenceRegion(chrom=chrom, start=ref_pos, end=ref_pos + length),
                "",
                SummarizedObservation(
                    is_ref=False, forward_strand=forward, quality=None, map_q=map_q
                ),
            )
            ref_pos += length

        elif op == REF_SKIP:
            ref_pos += length

        elif op == SOFT_CLIP:
            query_pos += length
