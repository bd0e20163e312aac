"""Risk & metrics engine.

Additive-score heuristics over the canonical record and holder
analysis. These are fixed rules, not learned models:

- Safety score: base 50 plus market, age, social, holder and lifecycle
  bonuses, clamped to 0-100
- Concentration ("rug") risk: 0 plus dev-wallet, top-10, scarcity and
  dominance penalties, clamped to 0-100
- Bundler estimate: dev-wallet ratio scaled by bracket
- Distribution class and risk level label
"""

import logging

from ..core.coerce import clamp, round_half_up
from ..core.models import CanonicalTokenRecord, HolderAnalysis, RiskAssessment
from ..core.types import Distribution, RiskLevel

logger = logging.getLogger(__name__)

SAFETY_BASE = 50

# (threshold, bonus): first threshold exceeded wins
LIQUIDITY_TIERS = ((100_000, 15), (50_000, 12), (10_000, 8), (5_000, 4))
VOLUME_TIERS = ((500_000, 15), (100_000, 12), (10_000, 8), (1_000, 4))
HOLDER_COUNT_TIERS = ((10_000, 20), (5_000, 18), (2_000, 15), (1_000, 12), (500, 8), (200, 5), (100, 3))

SOCIAL_BONUS = 8
AGE_48H_MINUTES, AGE_48H_BONUS = 2880, 12
AGE_24H_MINUTES, AGE_24H_BONUS = 1440, 8
BONDING_PROGRESS_BONUS = 5
MIGRATED_BONUS = 10


def _tier_bonus(value: float | None, tiers: tuple[tuple[float, int], ...]) -> int:
    if value is None:
        return 0
    for threshold, bonus in tiers:
        if value > threshold:
            return bonus
    return 0


def top10_adjustment(top10_pct: float) -> int:
    """Bonus for low top-10 concentration, penalty for high."""
    if top10_pct < 10:
        return 20
    if top10_pct < 20:
        return 15
    if top10_pct < 30:
        return 10
    if top10_pct < 50:
        return 5
    if top10_pct > 80:
        return -25
    if top10_pct > 60:
        return -15
    return 0


def measured_top10(holders: HolderAnalysis) -> float | None:
    """Top-10 share of supply, or None when no holder share was measured."""
    if holders.percentages_estimated:
        return None
    return holders.top10_pct


def calc_safety_score(record: CanonicalTokenRecord, holders: HolderAnalysis | None) -> int:
    """
    Safety score (0-100).

    Holder-derived bonuses are skipped entirely when the holder
    analysis is absent, errored or reports zero holders.
    """
    market = record.market
    score = SAFETY_BASE

    score += _tier_bonus(market.liquidity, LIQUIDITY_TIERS)
    score += _tier_bonus(market.volume_24h, VOLUME_TIERS)

    if record.has_socials:
        score += SOCIAL_BONUS

    age = record.token_age_minutes
    if age is not None:
        if age > AGE_48H_MINUTES:
            score += AGE_48H_BONUS
        elif age > AGE_24H_MINUTES:
            score += AGE_24H_BONUS

    if holders is not None and holders.has_data:
        score += _tier_bonus(holders.total_holders, HOLDER_COUNT_TIERS)
        top10 = measured_top10(holders)
        if top10 is not None:
            score += top10_adjustment(top10)

    classification = record.classification
    if classification.in_bonding_ecosystem:
        if (classification.progress or 0) > 50:
            score += BONDING_PROGRESS_BONUS
        if classification.completed:
            score += MIGRATED_BONUS

    return int(clamp(score))


def calc_rug_risk(holders: HolderAnalysis | None) -> int | None:
    """Concentration / rug risk score (0-100), or None without holder data."""
    if holders is None or not holders.has_data:
        return None

    risk = 0

    dev_ratio = holders.dev_wallets / holders.total_holders
    if dev_ratio > 0.10:
        risk += 25
    elif dev_ratio > 0.05:
        risk += 15
    elif dev_ratio > 0.02:
        risk += 10

    top10 = measured_top10(holders)
    if top10 is not None:
        if top10 > 80:
            risk += 40
        elif top10 > 60:
            risk += 30
        elif top10 > 40:
            risk += 20
        elif top10 > 25:
            risk += 10
        elif top10 > 15:
            risk += 5

    total = holders.total_holders
    if total < 50:
        risk += 25
    elif total < 200:
        risk += 15
    elif total < 500:
        risk += 10
    elif total < 1000:
        risk += 5

    top_holder = holders.top_holder_pct
    if top_holder > 50:
        risk += 10
    elif top_holder > 25:
        risk += 5

    return int(clamp(risk))


def calc_bundler_estimate(holders: HolderAnalysis | None) -> int | None:
    """Bundler percentage estimated from the dev-wallet ratio."""
    if holders is None or not holders.has_data:
        return None

    dev_ratio_pct = holders.dev_wallets / holders.total_holders * 100

    if dev_ratio_pct > 15:
        estimate = min(60.0, dev_ratio_pct * 2.5)
    elif dev_ratio_pct > 10:
        estimate = min(40.0, dev_ratio_pct * 2)
    elif dev_ratio_pct > 5:
        estimate = min(25.0, dev_ratio_pct * 1.5)
    else:
        estimate = max(0.0, dev_ratio_pct)

    if holders.large_holder_count > 10:
        estimate += 5

    return round_half_up(min(100.0, estimate))


def classify_distribution(holders: HolderAnalysis | None) -> Distribution:
    """
    Ordered distribution classes; the first matching rule wins.

    Without a measured top-10 share only the holder-count rules apply,
    and the best class reachable is "Well Distributed".
    """
    if holders is None or not holders.has_data:
        return Distribution.UNKNOWN

    total = holders.total_holders
    top10 = measured_top10(holders)

    def above(threshold: float) -> bool:
        return top10 is not None and top10 > threshold

    if total < 50:
        return Distribution.VERY_CONCENTRATED
    if total < 200 or above(70):
        return Distribution.CONCENTRATED
    if total < 500 or above(50):
        return Distribution.MODERATELY_CONCENTRATED
    if total < 1500 or above(30):
        return Distribution.MODERATE
    if total < 5000 or above(20):
        return Distribution.FAIRLY_DISTRIBUTED
    if top10 is None or top10 > 10:
        return Distribution.WELL_DISTRIBUTED
    return Distribution.HIGHLY_DISTRIBUTED


def risk_level_for(rug_risk: int | None) -> RiskLevel:
    if rug_risk is None:
        return RiskLevel.UNKNOWN
    if rug_risk >= 80:
        return RiskLevel.VERY_HIGH
    if rug_risk >= 60:
        return RiskLevel.HIGH
    if rug_risk >= 40:
        return RiskLevel.MEDIUM
    if rug_risk >= 20:
        return RiskLevel.LOW
    return RiskLevel.VERY_LOW


class RiskEngine:
    """Derives a RiskAssessment from a canonical record and its holders."""

    def assess(
        self,
        record: CanonicalTokenRecord,
        holders: HolderAnalysis | None = None,
    ) -> RiskAssessment:
        """
        Compute all risk metrics.

        Args:
            record: Merged token record
            holders: Holder analysis (defaults to the one attached to the record)

        Returns:
            RiskAssessment; holder-derived values are None/Unknown when
            holder data is unusable
        """
        if holders is None:
            holders = record.holders

        rug_risk = calc_rug_risk(holders)
        assessment = RiskAssessment(
            safety_score=calc_safety_score(record, holders),
            rug_risk_pct=rug_risk,
            bundlers_pct=calc_bundler_estimate(holders),
            distribution=classify_distribution(holders),
            risk_level=risk_level_for(rug_risk),
            honeypot=False,
        )

        logger.debug(
            f"Risk for {record.contract}: safety={assessment.safety_score} "
            f"rug={assessment.rug_risk_pct} bundlers={assessment.bundlers_pct} "
            f"distribution={assessment.distribution.value}"
        )
        return assessment
