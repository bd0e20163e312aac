"""Tests for the lifecycle classifier."""

from token_intel.classifier import TokenClassifier
from token_intel.core.models import ProviderRecord
from token_intel.core.types import DataSource, LifecycleState, TokenType
from token_intel.providers.base import ProviderResult


def found(record) -> ProviderResult:
    return ProviderResult.ok(record)


class TestTokenClassifier:
    """Tests for TokenClassifier."""

    def test_on_curve_is_prelaunch(self, solana_token, bonding_record):
        """An incomplete curve makes the bonding provider primary."""
        result = TokenClassifier().classify(solana_token, found(bonding_record))

        assert result.state == LifecycleState.PRELAUNCH_BONDING
        assert result.primary_source == DataSource.PUMPFUN
        assert result.secondary_source is None
        assert result.progress == 45.0
        assert result.completed is False
        assert result.override_applied is False
        assert result.token_type == TokenType.PRELAUNCH_BONDING
        assert result.migration_status == "Pre-migration"

    def test_completed_curve_is_graduated(self, solana_token, bonding_record):
        """A completed curve hands primary to the DEX and keeps the curve as secondary."""
        record = bonding_record.model_copy(update={"bonding_progress": 100.0, "bonding_completed": True})

        result = TokenClassifier().classify(solana_token, found(record))

        assert result.state == LifecycleState.GRADUATED_OR_REGULAR
        assert result.primary_source == DataSource.DEXSCREENER
        assert result.secondary_source == DataSource.PUMPFUN
        assert result.completed is True
        assert result.bonding_record == record
        assert result.token_type == TokenType.GRADUATED
        assert result.migration_status == "Graduated"

    def test_missing_progress_defaults_from_completion(self, solana_token, bonding_record):
        record = bonding_record.model_copy(update={"bonding_progress": None, "bonding_completed": True})

        result = TokenClassifier().classify(solana_token, found(record))

        assert result.progress == 100.0
        assert result.state == LifecycleState.GRADUATED_OR_REGULAR

    def test_record_without_curve_state_is_regular(self, bsc_token):
        """Trades alone do not put a token on the curve."""
        record = ProviderRecord(source=DataSource.FOURMEME, name="Tether USD", symbol="USDT", volume_24h=9_000_000.0)

        result = TokenClassifier().classify(bsc_token, found(record))

        assert result.state == LifecycleState.GRADUATED_OR_REGULAR
        assert result.primary_source == DataSource.DEXSCREENER
        assert result.bonding_record is None
        assert result.token_type == TokenType.REGULAR

    def test_suspicious_progress_is_overridden(self, solana_token, bonding_record):
        """97% progress with $40k liquidity is treated as not bonded."""
        record = bonding_record.model_copy(update={"bonding_progress": 97.0, "liquidity": 40_000.0})

        result = TokenClassifier().classify(solana_token, found(record))

        assert result.state == LifecycleState.PRELAUNCH_BONDING
        assert result.progress == 0.0
        assert result.completed is False
        assert result.override_applied is True
        assert result.bonding_record.bonding_progress == 0.0

    def test_zero_liquidity_counts_as_reported(self, solana_token, bonding_record):
        record = bonding_record.model_copy(update={"bonding_progress": 99.0, "liquidity": 0.0})

        result = TokenClassifier().classify(solana_token, found(record))

        assert result.override_applied is True

    def test_liquidity_hint_used_when_curve_reports_none(self, solana_token, bonding_record):
        """DEX liquidity stands in when the bonding provider has none."""
        record = bonding_record.model_copy(update={"bonding_progress": 96.0})

        hinted = TokenClassifier().classify(solana_token, found(record), liquidity_hint=40_000.0)
        unhinted = TokenClassifier().classify(solana_token, found(record))

        assert hinted.override_applied is True
        assert unhinted.override_applied is False
        assert unhinted.progress == 96.0

    def test_deep_liquidity_is_not_suspicious(self, solana_token, bonding_record):
        record = bonding_record.model_copy(update={"bonding_progress": 97.0, "liquidity": 250_000.0})

        result = TokenClassifier().classify(solana_token, found(record))

        assert result.override_applied is False
        assert result.progress == 97.0

    def test_not_found_is_regular(self, solana_token):
        """A token the curve platform has never seen trades on the DEX."""
        result = TokenClassifier().classify(solana_token, ProviderResult.not_found(DataSource.PUMPFUN))

        assert result.state == LifecycleState.GRADUATED_OR_REGULAR
        assert result.primary_source == DataSource.DEXSCREENER
        assert result.secondary_source is None
        assert result.token_type == TokenType.REGULAR
        assert result.migration_status == "N/A"

    def test_unavailable_curve_provider_is_unknown(self, solana_token):
        """A failing curve provider never looks like "not a bonding token"."""
        failed = ProviderResult.unavailable(DataSource.PUMPFUN, "HTTP 503")

        result = TokenClassifier().classify(solana_token, failed)

        assert result.state == LifecycleState.UNKNOWN
        assert result.primary_source == DataSource.DEXSCREENER
        assert result.bonding_source == DataSource.PUMPFUN
        assert result.token_type == TokenType.UNKNOWN

    def test_chain_without_curve_platform(self, bsc_token):
        result = TokenClassifier().classify(bsc_token, None)

        assert result.state == LifecycleState.GRADUATED_OR_REGULAR
        assert result.primary_source == DataSource.DEXSCREENER
        assert result.bonding_source is None
