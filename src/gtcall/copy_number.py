"""Copy number (local ploidy) lookups across the genome."""

import csv
import logging
from collections.abc import Iterable
from pathlib import Path

from .core.join import RegionIndex
from .models.core import DiscoveredVariant, ReferenceRegion

logger = logging.getLogger(__name__)


class CopyNumberMap:
    """
    Base ploidy plus region-specific ploidy overrides.

    Shared read-only by every worker; nothing here mutates after construction.
    """

    def __init__(
        self,
        base_ploidy: int,
        overrides: Iterable[tuple[ReferenceRegion, int]] = (),
    ):
        if base_ploidy < 1:
            raise ValueError(f"Base ploidy must be at least 1, got {base_ploidy}")

        overrides = list(overrides)
        for region, ploidy in overrides:
            if ploidy < 1:
                raise ValueError(
                    f"Ploidy must be at least 1, got {ploidy} for "
                    f"{region.chrom}:{region.start}-{region.end}"
                )

        self.base_ploidy = base_ploidy
        self._overrides = RegionIndex(overrides)
        ploidies = [base_ploidy] + [ploidy for _, ploidy in overrides]
        self.min_ploidy = min(ploidies)
        self.max_ploidy = max(ploidies)

    def __len__(self) -> int:
        return len(self._overrides)

    def overlapping_overrides(self, region: ReferenceRegion) -> list[tuple[ReferenceRegion, int]]:
        """Ploidy overrides overlapping a region, sorted by start."""
        return self._overrides.overlapping(region)

    def ploidy_for(self, variant: DiscoveredVariant) -> int:
        """
        Ploidy at a locus: the first override overlapping the locus, else the
        base ploidy.

        Depends only on the locus, so every read covering it agrees.
        """
        for _, ploidy in self.overlapping_overrides(variant.region):
            return ploidy
        return self.base_ploidy

    @classmethod
    def from_bed(cls, path: Path, base_ploidy: int) -> "CopyNumberMap":
        """
        Load ploidy overrides from a BED file.

        Each row is ``contig start end ploidy`` (0-based, half-open). If the
        fourth column is a feature name, the ploidy is read from the fifth
        (score) column instead.
        """
        overrides: list[tuple[ReferenceRegion, int]] = []
        with open(path) as f:
            reader = csv.reader(f, delimiter="\t")
            for line_no, row in enumerate(reader, start=1):
                if not row or row[0].startswith(("#", "track", "browser")):
                    continue
                if len(row) < 4:
                    raise ValueError(f"{path}:{line_no}: expected at least 4 columns, got {len(row)}")

                ploidy_field = row[3]
                if not ploidy_field.lstrip("-").isdigit() and len(row) > 4:
                    ploidy_field = row[4]
                try:
                    ploidy = int(ploidy_field)
                    region = ReferenceRegion(chrom=row[0], start=int(row[1]), end=int(row[2]))
                except ValueError as e:
                    raise ValueError(f"{path}:{line_no}: malformed copy number row: {e}") from e
                overrides.append((region, ploidy))

        logger.info("Loaded %d copy number overrides from %s", len(overrides), path)
        return cls(base_ploidy, overrides)
