"""Aggregation: precedence merge and pipeline orchestration."""

from .merge import merge_records, token_age_minutes
from .orchestrator import TokenIntelOrchestrator, build_orchestrator

__all__ = [
    "merge_records",
    "token_age_minutes",
    "TokenIntelOrchestrator",
    "build_orchestrator",
]
