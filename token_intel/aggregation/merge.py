"""Primary/secondary precedence merge and token age.

Precedence is the only conflict rule: the primary record wins every
field it defines, the secondary only fills what the primary left empty.
No averaging, no reconciliation.
"""

from datetime import datetime
from typing import Iterable

from ..core.models import MERGEABLE_FIELDS, ProviderRecord


def merge_records(primary: ProviderRecord, secondary: ProviderRecord | None = None) -> ProviderRecord:
    """
    Merge two provider records field by field.

    merged.field = primary.field ?? secondary.field ?? None

    The merged record keeps the primary's source and raw payload.
    """
    values = {}
    for field in MERGEABLE_FIELDS:
        value = getattr(primary, field)
        if value is None and secondary is not None:
            value = getattr(secondary, field)
        values[field] = value
    return ProviderRecord(source=primary.source, raw=primary.raw, **values)


def earliest_creation(records: Iterable[ProviderRecord | None]) -> datetime | None:
    """Earliest token-creation event reported by any of the records."""
    observed = [r.created_at for r in records if r is not None and r.created_at is not None]
    return min(observed) if observed else None


def token_age_minutes(
    merged: ProviderRecord,
    sources: Iterable[ProviderRecord | None],
    now: datetime,
) -> int | None:
    """
    Token age in whole minutes.

    Uses the pair/pool creation time when known, else the earliest
    creation event any provider reported, else None. Never guessed.
    """
    created = merged.pair_created_at or earliest_creation(sources)
    if created is None:
        return None
    minutes = int((now - created).total_seconds() // 60)
    return max(0, minutes)
