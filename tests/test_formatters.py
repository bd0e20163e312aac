"""Tests for response payloads and output formatters."""

import json

import pytest

from token_intel.calculator.risk import RiskEngine
from token_intel.core.models import CanonicalTokenRecord, ClassificationResult, ProviderRecord, TokenNotFoundRecord
from token_intel.core.types import Chain, DataSource, LifecycleState
from token_intel.output.formatters import JSONFormatter, TableFormatter, get_formatter
from token_intel.output.response import ResponseFormatter, camel_alias

from conftest import FIXED_NOW, SOLANA_MINT


def canonical(market: ProviderRecord, holders=None) -> CanonicalTokenRecord:
    return CanonicalTokenRecord(
        contract=SOLANA_MINT,
        chain=Chain.SOLANA,
        name=market.name,
        symbol=market.symbol,
        classification=ClassificationResult(
            state=LifecycleState.GRADUATED_OR_REGULAR,
            primary_source=market.source,
        ),
        data_source_primary=market.source,
        sources_available=[market.source],
        market=market,
        token_age_minutes=4000,
        holders=holders,
    )


@pytest.fixture
def report(dex_record, healthy_holders):
    record = canonical(dex_record, healthy_holders)
    risk = RiskEngine().assess(record)
    return ResponseFormatter().format_report(record, risk, FIXED_NOW)


class TestResponseFormatter:
    """Tests for ResponseFormatter."""

    def test_camel_alias(self):
        assert camel_alias("volume24h") == "volume24h"
        assert camel_alias("top3_pct") == "top3Pct"
        assert camel_alias("price_change24h") == "priceChange24h"

    def test_payload_uses_wire_names(self, report):
        payload = report.to_payload()

        assert payload["tokenName"] == "Bonk"
        assert payload["volume24h"] == 600_000.0
        assert payload["volLiqRatio"] == 240
        assert payload["trades24h"] == 5400
        assert payload["links"] == {"x": "https://x.com/bonk_inu"}
        assert payload["holders"]["top3Pct"] == 4.5
        assert payload["holders"]["devWalletCount"] == 1
        assert payload["holders"]["distribution"] == "Highly Distributed"
        assert payload["dataSources"] == {"primary": "DexScreener", "secondary": None, "available": ["DexScreener"]}
        assert payload["tokenType"] == "regular"
        assert payload["honeypot"] is False
        assert payload["buyTaxPct"] is None

    def test_market_cap_falls_back_to_fdv(self, dex_record):
        record = canonical(dex_record.model_copy(update={"market_cap": None}))
        report = ResponseFormatter().format_report(record, RiskEngine().assess(record), FIXED_NOW)

        assert report.market_cap == 1_800_000_000.0

    def test_zero_liquidity_has_no_ratio(self, dex_record):
        record = canonical(dex_record.model_copy(update={"liquidity": 0.0}))
        report = ResponseFormatter().format_report(record, RiskEngine().assess(record), FIXED_NOW)

        assert report.vol_liq_ratio is None

    def test_missing_holders_section(self, dex_record):
        record = canonical(dex_record)
        report = ResponseFormatter().format_report(record, RiskEngine().assess(record), FIXED_NOW)

        assert report.holders.total is None
        assert report.holders.top10_pct is None
        assert report.holders.error == "Holder analysis unavailable"

    def test_prebond_rule(self):
        """No liquidity and no market cap, plus no price or no trades."""
        formatter = ResponseFormatter()
        base = ProviderRecord(source=DataSource.PUMPFUN, price=0.00001, txns_24h=0)

        assert formatter.is_prebond(canonical(base))
        assert not formatter.is_prebond(canonical(base.model_copy(update={"txns_24h": 12})))
        assert not formatter.is_prebond(canonical(base.model_copy(update={"fdv": 5_000.0})))
        assert not formatter.is_prebond(canonical(base.model_copy(update={"liquidity": 10.0})))


class TestOutputFormatters:
    """Tests for JSON and table output."""

    def test_json_matches_payload(self, report):
        assert json.loads(JSONFormatter().format(report)) == report.to_payload()

    def test_table_render(self, report):
        output = TableFormatter(force_terminal=False).format(report)

        assert "BONK" in output
        assert "Safety Score" in output
        assert "$250,000.00" in output
        assert "2d 18h" in output
        assert "holder0" in output

    def test_not_found_panel(self):
        record = TokenNotFoundRecord(contract=SOLANA_MINT, chain=Chain.SOLANA)
        output = TableFormatter(force_terminal=False).format(ResponseFormatter().format_not_found(record))

        assert "Token Not Found" in output

    def test_get_formatter(self):
        assert isinstance(get_formatter("json"), JSONFormatter)
        assert isinstance(get_formatter("table"), TableFormatter)
        with pytest.raises(ValueError):
            get_formatter("yaml")
