"""Pytest configuration and fixtures for token intelligence tests."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from token_intel.core.address import TokenAddress
from token_intel.core.models import HolderAnalysis, HolderEntry, ProviderRecord
from token_intel.core.types import DataQuality, DataSource
from token_intel.providers.base import ProviderResult

SOLANA_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
BSC_TOKEN = "0x55d398326f99059fF775485246999027B3197955"

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeMarketProvider:
    """In-memory market provider that records every call."""

    def __init__(self, source: DataSource, result: ProviderResult | None = None):
        self.SOURCE = source
        self.result = result or ProviderResult.not_found(source)
        self.calls: list[TokenAddress] = []

    def is_available(self) -> bool:
        return True

    async def fetch(self, token: TokenAddress) -> ProviderResult:
        self.calls.append(token)
        return self.result


class FakeHolderAnalyzer:
    """Holder analyzer returning a canned analysis, or raising."""

    def __init__(self, analysis: HolderAnalysis | None = None, error: Exception | None = None):
        self.analysis = analysis
        self.error = error
        self.calls: list[TokenAddress] = []

    async def analyze(self, token: TokenAddress) -> HolderAnalysis:
        self.calls.append(token)
        if self.error is not None:
            raise self.error
        return self.analysis


class RecordingRiskEngine:
    """Wraps a risk engine and counts invocations."""

    def __init__(self, engine):
        self.engine = engine
        self.calls = 0

    def assess(self, record, holders=None):
        self.calls += 1
        return self.engine.assess(record, holders)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient answering every request through `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def solana_token() -> TokenAddress:
    return TokenAddress.parse(SOLANA_MINT, "solana")


@pytest.fixture
def bsc_token() -> TokenAddress:
    return TokenAddress.parse(BSC_TOKEN, "bsc")


@pytest.fixture
def dex_record() -> ProviderRecord:
    """A liquid, established DEX pair."""
    return ProviderRecord(
        source=DataSource.DEXSCREENER,
        name="Bonk",
        symbol="BONK",
        price=0.00002,
        market_cap=1_500_000_000.0,
        fdv=1_800_000_000.0,
        liquidity=250_000.0,
        volume_24h=600_000.0,
        price_change_24h=-3.2,
        txns_24h=5400,
        buys_24h=3000,
        sells_24h=2400,
        pair_address="pairAddr111",
        dex_id="raydium",
        pair_created_at=FIXED_NOW - timedelta(minutes=4000),
        socials={"x": "https://x.com/bonk_inu"},
    )


@pytest.fixture
def bonding_record() -> ProviderRecord:
    """A Pump.fun coin halfway up its curve."""
    return ProviderRecord(
        source=DataSource.PUMPFUN,
        name="Curve Coin",
        symbol="CURVE",
        market_cap=30_000.0,
        price=0.00003,
        trades_24h=120,
        bonding_progress=45.0,
        bonding_completed=False,
        created_at=FIXED_NOW - timedelta(minutes=90),
        socials={"x": "https://x.com/curvecoin"},
    )


@pytest.fixture
def holder_entries() -> list[HolderEntry]:
    return [
        HolderEntry(address=f"holder{i}", balance=1000.0 - i, percentage=pct)
        for i, pct in enumerate([2.0, 1.5, 1.0, 0.9, 0.8, 0.7, 0.5, 0.3, 0.2, 0.1])
    ]


@pytest.fixture
def healthy_holders(holder_entries: list[HolderEntry]) -> HolderAnalysis:
    """12,000 holders with 8% top-10 concentration."""
    return HolderAnalysis(
        total_holders=12_000,
        top_holders=holder_entries,
        top3_pct=4.5,
        top10_pct=8.0,
        top20_pct=8.0,
        dev_wallets=1,
        data_quality=DataQuality.HIGH,
        data_source="Helius",
    )


@pytest.fixture
def failed_holders() -> HolderAnalysis:
    return HolderAnalysis.failed("Helius timed out after 10.0s", "Helius")


@pytest.fixture
def json_response() -> Callable[..., httpx.Response]:
    def build(payload: Any, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return build
