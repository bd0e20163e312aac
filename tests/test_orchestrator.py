"""Tests for the analysis orchestrator."""

import json
from datetime import timedelta

import httpx
import pytest

from token_intel.aggregation.orchestrator import TokenIntelOrchestrator, build_orchestrator
from token_intel.calculator.risk import RiskEngine
from token_intel.core.config import APIConfig
from token_intel.core.exceptions import InvalidAddressError
from token_intel.core.models import ProviderRecord
from token_intel.core.types import Chain, DataSource, TokenType
from token_intel.output.response import NotFoundReport, PrebondReport, TokenReport
from token_intel.providers.base import ProviderResult
from token_intel.providers.bonding.fourmeme import FourMemeProvider
from token_intel.providers.bonding.pumpfun import PumpFunProvider
from token_intel.providers.dex.dexscreener import DexScreenerProvider

from conftest import (
    BSC_TOKEN,
    FIXED_NOW,
    SOLANA_MINT,
    FakeHolderAnalyzer,
    FakeMarketProvider,
    RecordingRiskEngine,
    mock_client,
)


def make_orchestrator(dex=None, pumpfun=None, holders=None, risk_engine=None, now=lambda: FIXED_NOW):
    dex = dex or FakeMarketProvider(DataSource.DEXSCREENER)
    pumpfun = pumpfun or FakeMarketProvider(DataSource.PUMPFUN)
    return TokenIntelOrchestrator(
        dex_provider=dex,
        bonding_providers={Chain.SOLANA: pumpfun},
        holder_analyzer=holders,
        risk_engine=risk_engine,
        now=now,
    )


@pytest.fixture
def graduated_record(bonding_record):
    return bonding_record.model_copy(update={"bonding_progress": 100.0, "bonding_completed": True})


class TestTokenIntelOrchestrator:
    """Tests for TokenIntelOrchestrator.analyze."""

    async def test_graduated_token(self, dex_record, graduated_record, healthy_holders):
        """DEX is primary; the curve only fills gaps."""
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_record))
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.ok(graduated_record))
        orchestrator = make_orchestrator(dex, pumpfun, FakeHolderAnalyzer(healthy_holders))

        report = await orchestrator.analyze(SOLANA_MINT, "solana")

        assert isinstance(report, TokenReport)
        assert report.token_name == "Bonk"
        assert report.market_cap == 1_500_000_000.0
        assert report.token_type == TokenType.GRADUATED
        assert report.migration_status == "Graduated"
        assert report.is_bonding_token is True
        assert report.bonding_curve_progress == 100.0
        assert report.token_age_minutes == 4000
        assert report.vol_liq_ratio == 240
        assert report.txns24h == 5400
        assert report.safety_score == 100
        assert report.holders.total == 12_000
        assert report.data_sources.primary == "DexScreener"
        assert report.data_sources.secondary == "Pump.fun"
        assert report.data_sources.available == ["DexScreener", "Pump.fun"]
        assert report.analyzed_at == FIXED_NOW

    async def test_prelaunch_uses_curve_as_primary(self, bonding_record):
        """An on-curve token ignores the DEX entirely."""
        dex_pair = ProviderRecord(source=DataSource.DEXSCREENER, name="Impostor", market_cap=9_000_000.0)
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_pair))
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.ok(bonding_record))

        report = await make_orchestrator(dex, pumpfun).analyze(SOLANA_MINT, "solana")

        assert isinstance(report, TokenReport)
        assert report.token_name == "Curve Coin"
        assert report.market_cap == 30_000.0
        assert report.token_type == TokenType.PRELAUNCH_BONDING
        assert report.bonding_curve_progress == 45.0
        assert report.token_age_minutes == 90
        assert report.data_sources.primary == "Pump.fun"
        assert report.data_sources.secondary is None

    async def test_not_found_even_with_secondary_data(self, graduated_record):
        """A missing primary is NotFound, never a partial report from the secondary."""
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.not_found(DataSource.DEXSCREENER))
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.ok(graduated_record))

        report = await make_orchestrator(dex, pumpfun).analyze(SOLANA_MINT, "solana")

        assert isinstance(report, NotFoundReport)
        payload = report.to_payload()
        assert payload["tokenName"] == "Unknown Token"
        assert payload["symbol"] == "UNKNOWN"
        assert payload["contract"] == SOLANA_MINT
        assert payload["chain"] == "Solana"
        assert "safetyScore" not in payload

    async def test_unavailable_everywhere_is_not_found(self):
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.unavailable(DataSource.DEXSCREENER, "HTTP 502"))
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.unavailable(DataSource.PUMPFUN, "HTTP 503"))

        report = await make_orchestrator(dex, pumpfun).analyze(SOLANA_MINT, "solana")

        assert isinstance(report, NotFoundReport)

    async def test_unknown_lifecycle_falls_back_to_dex(self, dex_record):
        """A failing curve provider still yields a DEX-backed report."""
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_record))
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.unavailable(DataSource.PUMPFUN, "timeout"))

        report = await make_orchestrator(dex, pumpfun).analyze(SOLANA_MINT, "solana")

        assert isinstance(report, TokenReport)
        assert report.token_type == TokenType.UNKNOWN
        assert report.data_sources.primary == "DexScreener"

    async def test_prebond_short_circuits_risk(self):
        """A token with no market data skips the risk engine."""
        empty_curve = ProviderRecord(
            source=DataSource.PUMPFUN,
            name="Fresh",
            symbol="FRSH",
            price=0.0,
            market_cap=0.0,
            liquidity=0.0,
            trades_24h=0,
            bonding_progress=0.0,
            bonding_completed=False,
        )
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.ok(empty_curve))
        risk = RecordingRiskEngine(RiskEngine())

        report = await make_orchestrator(pumpfun=pumpfun, risk_engine=risk).analyze(SOLANA_MINT, "solana")

        assert isinstance(report, PrebondReport)
        assert risk.calls == 0
        payload = report.to_payload()
        assert payload["isPrebond"] is True
        assert payload["prebondReason"] == "No liquidity/market data (likely pre-bonded)."
        assert payload["tokenName"] == "Fresh"
        assert payload["chain"] == "Solana"

    async def test_priced_token_with_trades_is_not_prebond(self, bonding_record):
        risk = RecordingRiskEngine(RiskEngine())
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.ok(bonding_record))

        await make_orchestrator(pumpfun=pumpfun, risk_engine=risk).analyze(SOLANA_MINT, "solana")

        assert risk.calls == 1

    async def test_invalid_address_calls_no_provider(self):
        """Validation happens before any provider is contacted."""
        dex = FakeMarketProvider(DataSource.DEXSCREENER)
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN)
        holders = FakeHolderAnalyzer()
        orchestrator = make_orchestrator(dex, pumpfun, holders)

        with pytest.raises(InvalidAddressError):
            await orchestrator.analyze("0x" + "a" * 39, "bsc")

        assert dex.calls == []
        assert pumpfun.calls == []
        assert holders.calls == []

    async def test_holder_crash_degrades_report(self, dex_record):
        """An exploding holder service leaves the market report intact."""
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_record))
        holders = FakeHolderAnalyzer(error=RuntimeError("boom"))

        report = await make_orchestrator(dex, holders=holders).analyze(SOLANA_MINT, "solana")

        assert isinstance(report, TokenReport)
        assert report.holders.total is None
        assert report.holders.error == "Holder analysis failed: RuntimeError"
        assert report.rug_risk_pct is None
        assert report.liquidity == 250_000.0

    async def test_chain_without_curve_platform(self, dex_record):
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_record))
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN)

        report = await make_orchestrator(dex, pumpfun).analyze(BSC_TOKEN, "bsc")

        assert isinstance(report, TokenReport)
        assert report.chain == "BNB"
        assert report.token_type == TokenType.REGULAR
        assert pumpfun.calls == []

    async def test_bsc_token_without_curve_event_is_regular(self, dex_record):
        """A BSC token Bitquery knows only from transfers keeps the DEX as primary."""

        def bitquery(request: httpx.Request) -> httpx.Response:
            query = json.loads(request.content)["query"]
            if "Transfers" in query:
                transfers = [
                    {"Transfer": {"Currency": {"Name": "Tether USD"}}, "Block": {"Time": "2020-09-01T00:00:00Z"}}
                ]
                return httpx.Response(200, json={"data": {"EVM": {"Transfers": transfers}}})
            return httpx.Response(200, json={"data": {"EVM": {}}})

        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_record))
        fourmeme = FourMemeProvider("bq-key", client=mock_client(bitquery), now=lambda: FIXED_NOW)
        orchestrator = TokenIntelOrchestrator(
            dex_provider=dex,
            bonding_providers={Chain.BSC: fourmeme},
            now=lambda: FIXED_NOW,
        )

        report = await orchestrator.analyze(BSC_TOKEN, "bsc")

        assert isinstance(report, TokenReport)
        assert report.token_type == TokenType.REGULAR
        assert report.is_bonding_token is False
        assert report.liquidity == 250_000.0
        assert report.data_sources.primary == "DexScreener"
        assert report.data_sources.available == ["DexScreener"]

    async def test_repeat_analysis_is_stable(self, dex_record, graduated_record, healthy_holders):
        """Two runs over the same provider data differ only in their timestamp."""
        ticks = iter([FIXED_NOW, FIXED_NOW, FIXED_NOW + timedelta(seconds=30), FIXED_NOW + timedelta(seconds=30)])
        dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_record))
        pumpfun = FakeMarketProvider(DataSource.PUMPFUN, ProviderResult.ok(graduated_record))
        orchestrator = make_orchestrator(dex, pumpfun, FakeHolderAnalyzer(healthy_holders), now=lambda: next(ticks))

        first = (await orchestrator.analyze(SOLANA_MINT, "solana")).to_payload()
        second = (await orchestrator.analyze(SOLANA_MINT, "solana")).to_payload()

        assert first.pop("analyzedAt") != second.pop("analyzedAt")
        assert first == second


class TestBuildOrchestrator:
    """Tests for configuration wiring."""

    def test_minimal_config(self):
        orchestrator = build_orchestrator(APIConfig(moralis_api_key="m"))

        assert isinstance(orchestrator.dex_provider, DexScreenerProvider)
        assert isinstance(orchestrator.bonding_providers[Chain.SOLANA], PumpFunProvider)
        assert Chain.BSC not in orchestrator.bonding_providers
        assert list(orchestrator.holder_analyzer.providers) == [DataSource.MORALIS]

    def test_full_config(self):
        config = APIConfig(
            helius_api_key="h",
            moralis_api_key="m",
            etherscan_api_key="e",
            bitquery_api_key="b",
            request_timeout=4.0,
        )

        orchestrator = build_orchestrator(config)

        assert isinstance(orchestrator.bonding_providers[Chain.BSC], FourMemeProvider)
        assert set(orchestrator.holder_analyzer.providers) == {
            DataSource.HELIUS,
            DataSource.MORALIS,
            DataSource.EXPLORER,
        }
        assert orchestrator.dex_provider.timeout == 4.0
