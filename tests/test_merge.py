"""Tests for the precedence merge and token age."""

from datetime import timedelta

from token_intel.aggregation.merge import earliest_creation, merge_records, token_age_minutes
from token_intel.core.models import ProviderRecord
from token_intel.core.types import DataSource

from conftest import FIXED_NOW


class TestMergeRecords:
    """Tests for merge_records."""

    def test_primary_wins_conflicts(self, dex_record, bonding_record):
        """Defined primary fields are never replaced."""
        merged = merge_records(dex_record, bonding_record)

        assert merged.market_cap == 1_500_000_000.0
        assert merged.name == "Bonk"
        assert merged.source == DataSource.DEXSCREENER

    def test_secondary_fills_gaps(self, dex_record, bonding_record):
        merged = merge_records(dex_record, bonding_record)

        assert merged.bonding_progress == 45.0
        assert merged.created_at == bonding_record.created_at
        assert merged.trades_24h == 120

    def test_zero_is_not_a_gap(self, bonding_record):
        """A reported zero is kept over the secondary's value."""
        primary = ProviderRecord(source=DataSource.DEXSCREENER, liquidity=0.0)
        secondary = bonding_record.model_copy(update={"liquidity": 500.0})

        merged = merge_records(primary, secondary)

        assert merged.liquidity == 0.0

    def test_no_secondary(self, bonding_record):
        merged = merge_records(bonding_record)

        assert merged == bonding_record

    def test_absent_everywhere_stays_absent(self, dex_record, bonding_record):
        merged = merge_records(dex_record, bonding_record)
        assert merged.volume_5m is None


class TestTokenAge:
    """Tests for token age derivation."""

    def test_pair_creation_preferred(self, dex_record, bonding_record):
        merged = merge_records(dex_record, bonding_record)

        assert token_age_minutes(merged, [dex_record, bonding_record], FIXED_NOW) == 4000

    def test_falls_back_to_earliest_creation(self, bonding_record):
        """Without a pair, the earliest creation event any source reported is used."""
        later = ProviderRecord(source=DataSource.DEXSCREENER, created_at=FIXED_NOW - timedelta(minutes=30))

        assert earliest_creation([later, bonding_record, None]) == bonding_record.created_at
        assert token_age_minutes(bonding_record, [later, bonding_record], FIXED_NOW) == 90

    def test_unknown_age_is_none(self):
        record = ProviderRecord(source=DataSource.DEXSCREENER)
        assert token_age_minutes(record, [record], FIXED_NOW) is None

    def test_partial_minutes_floor(self):
        record = ProviderRecord(
            source=DataSource.DEXSCREENER,
            pair_created_at=FIXED_NOW - timedelta(minutes=10, seconds=59),
        )
        assert token_age_minutes(record, [record], FIXED_NOW) == 10

    def test_clock_skew_clamps_to_zero(self):
        record = ProviderRecord(source=DataSource.DEXSCREENER, pair_created_at=FIXED_NOW + timedelta(minutes=5))
        assert token_age_minutes(record, [record], FIXED_NOW) == 0
