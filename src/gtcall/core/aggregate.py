"""
Site aggregation: sums per-read evidence into one record per locus.

Records are keyed by (contig, start, reference allele, alternate allele).
Every summed field is combined with addition, so partial aggregates built
by different workers can be merged in any order.
"""

from collections.abc import Iterable, Iterator

from gtcall.models.core import DiscoveredVariant
from gtcall.models.observation import Observation, SummarizedObservation

from .scoring import score_observation

SiteKey = tuple[str, int, str | None, str | None]


class SiteAggregator:
    """Reduction of per-read Observations keyed by locus."""

    def __init__(self, max_quality: int = 93, max_map_q: int = 93):
        self.max_quality = max_quality
        self.max_map_q = max_map_q
        self._sites: dict[SiteKey, tuple[DiscoveredVariant, Observation]] = {}

    def __len__(self) -> int:
        return len(self._sites)

    def __contains__(self, key: SiteKey) -> bool:
        return key in self._sites

    def __getitem__(self, key: SiteKey) -> Observation:
        return self._sites[key][1]

    def add(self, variant: DiscoveredVariant, observation: Observation) -> None:
        """Fold one observation into the record for its locus."""
        key = variant.key
        existing = self._sites.get(key)
        if existing is None:
            self._sites[key] = (variant, observation)
        else:
            first_variant, aggregated = existing
            self._sites[key] = (first_variant, aggregated.merge(observation))

    def add_evidence(self, evidence: Iterable[tuple[DiscoveredVariant, SummarizedObservation]]) -> None:
        """Score and fold in (locus, evidence) pairs from the disambiguator."""
        for variant, observation in evidence:
            self.add(variant, score_observation(observation, self.max_quality, self.max_map_q))

    def merge(self, other: "SiteAggregator") -> "SiteAggregator":
        """Fold another partial aggregate into this one and return self."""
        for variant, observation in other._sites.values():
            self.add(variant, observation)
        return self

    def items(self) -> Iterator[tuple[DiscoveredVariant, Observation]]:
        return iter(self._sites.values())


def aggregate(
    observations: Iterable[tuple[DiscoveredVariant, Observation]],
) -> SiteAggregator:
    """Sum already scored observations by locus."""
    aggregator = SiteAggregator()
    for variant, observation in observations:
        aggregator.add(variant, observation)
    return aggregator
