"""Shared holder-analysis helpers and multi-provider holder service.

Each holder provider reports a ranked holder list in its own shape;
the helpers here turn that list into the combined concentration
figures the risk engine consumes, so every provider computes them the
same way.
"""

import logging
import math
from typing import Iterable, Mapping

from ...core.address import TokenAddress
from ...core.models import HolderAnalysis, HolderEntry
from ...core.types import HOLDER_SOURCES, DataQuality, DataSource
from ..base import HolderProvider

logger = logging.getLogger(__name__)


def is_measured(holder: HolderEntry) -> bool:
    return not holder.is_estimated and holder.percentage is not None


def has_measured_percentages(holders: Iterable[HolderEntry]) -> bool:
    """Whether at least one holder carries a measured share of supply."""
    return any(is_measured(h) for h in holders)


def combined_percentages(holders: Iterable[HolderEntry]) -> tuple[float, float, float]:
    """
    Top-3/10/20 combined percentage of supply.

    Only holders whose balance is measured (not estimated) count. When
    every holder is estimated all three figures are 0; callers must set
    `percentages_estimated` so 0% is not read as "well distributed".
    """
    measured = [h for h in holders if is_measured(h)]

    def total(entries: list[HolderEntry]) -> float:
        return round(sum(h.percentage for h in entries if math.isfinite(h.percentage)), 2)

    return total(measured[:3]), total(measured[:10]), total(measured[:20])


def estimate_total_holders(top_holder_pct: float) -> int | None:
    """
    Rough total-holder estimate from the top holder's share of supply.

    Known-weak estimator: it inverts the top holder's percentage and
    scales by a bracket factor, which overstates the holder count for
    low concentrations. Returns None when the share is not positive.
    """
    if top_holder_pct <= 0:
        return None
    if top_holder_pct > 50:
        return math.floor(100 / top_holder_pct) * 10
    if top_holder_pct > 20:
        return math.floor(100 / top_holder_pct) * 50
    return math.floor(100 / top_holder_pct) * 100


def estimate_dev_wallets(
    holders: Iterable[HolderEntry],
    large_holder_weight: float,
    count_contracts: bool = False,
) -> int:
    """Heuristic dev-wallet count: a share of >1% holders, plus contracts if asked."""
    entries = list(holders)
    large = sum(1 for h in entries if (h.percentage or 0) > 1)
    estimate = math.floor(large * large_holder_weight)
    if count_contracts:
        estimate += sum(1 for h in entries if h.is_contract)
    return estimate


def percent_of_supply(amount: float | None, supply: float | None) -> float | None:
    if amount is None or not supply or supply <= 0:
        return None
    return round(amount / supply * 100, 2)


def _is_usable(analysis: HolderAnalysis) -> bool:
    return analysis.has_data and analysis.data_quality in (DataQuality.HIGH, DataQuality.PARTIAL)


_QUALITY_RANK = {
    DataQuality.HIGH: 3,
    DataQuality.PARTIAL: 2,
    DataQuality.LIMITED: 1,
    DataQuality.ERROR: 0,
}


class HolderAnalyzer:
    """Runs the chain's holder providers in order until one yields usable data."""

    def __init__(
        self,
        providers: Mapping[DataSource, HolderProvider],
        routing: Mapping | None = None,
    ):
        """
        Initialize holder analyzer.

        Args:
            providers: Configured holder providers by source
            routing: Chain -> ordered holder sources (defaults to HOLDER_SOURCES)
        """
        self.providers = dict(providers)
        self.routing = routing or HOLDER_SOURCES

    def providers_for(self, token: TokenAddress) -> list[HolderProvider]:
        order = self.routing.get(token.chain, ())
        return [self.providers[source] for source in order if source in self.providers]

    async def analyze(self, token: TokenAddress) -> HolderAnalysis:
        """
        Holder analysis from the first provider with usable data.

        Falls back to the best degraded analysis seen; never raises for
        provider failures.
        """
        candidates = self.providers_for(token)
        if not candidates:
            logger.warning(f"No holder provider configured for {token.chain.value}")
            return HolderAnalysis.failed(
                f"No holder provider configured for {token.chain.display_name}",
                DataSource.UNKNOWN.display_name,
                quality=DataQuality.LIMITED,
            )

        best: HolderAnalysis | None = None
        for provider in candidates:
            analysis = await provider.analyze(token)
            if _is_usable(analysis):
                logger.info(
                    f"Holder analysis for {token} from {analysis.data_source}: "
                    f"{analysis.total_holders} holders, top10 {analysis.top10_pct}%"
                )
                return analysis

            logger.warning(
                f"{analysis.data_source} holder data unusable for {token} "
                f"({analysis.data_quality.value}: {analysis.error}), trying next provider"
            )
            if best is None or _QUALITY_RANK[analysis.data_quality] > _QUALITY_RANK[best.data_quality]:
                best = analysis

        return best
