"""Calculator module - risk scoring and holder metrics."""

from .risk import (
    RiskEngine,
    calc_bundler_estimate,
    calc_rug_risk,
    calc_safety_score,
    classify_distribution,
    risk_level_for,
)

__all__ = [
    "RiskEngine",
    "calc_bundler_estimate",
    "calc_rug_risk",
    "calc_safety_score",
    "classify_distribution",
    "risk_level_for",
]
