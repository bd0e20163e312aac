"""External response contract.

Maps a canonical record, its risk assessment and holder analysis into
the stable camelCase payload served by the API. Three variants exist:
the full TokenReport, the NotFoundReport and the PrebondReport.
"""

import logging
from datetime import datetime
from typing import Union

from pydantic import BaseModel, Field

from ..core.coerce import round_half_up
from ..core.models import (
    CanonicalTokenRecord,
    HolderAnalysis,
    HolderEntry,
    RiskAssessment,
    TokenNotFoundRecord,
)
from ..core.types import DataQuality, Distribution, RiskLevel, TokenType

logger = logging.getLogger(__name__)

UNKNOWN_TOKEN_NAME = "Unknown Token"
UNKNOWN_SYMBOL = "UNKNOWN"
PREBOND_REASON = "No liquidity/market data (likely pre-bonded)."


def camel_alias(name: str) -> str:
    """snake_case -> camelCase, keeping digit runs intact (volume_24h -> volume24h)."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class ResponseModel(BaseModel):
    """Base for response payloads: frozen, camelCase on the wire."""

    model_config = {
        "frozen": True,
        "alias_generator": camel_alias,
        "populate_by_name": True,
    }

    def to_payload(self) -> dict:
        """JSON-compatible dict using wire names."""
        return self.model_dump(mode="json", by_alias=True)


class HolderReport(ResponseModel):
    address: str
    balance: float | None = None
    percentage: float | None = None
    usd_value: float | None = None
    is_contract: bool = False
    is_estimated: bool = False


class HoldersReport(ResponseModel):
    total: int | None = None
    top_holders: list[HolderReport] = Field(default_factory=list)
    top3: list[HolderReport] = Field(default_factory=list)
    top3_pct: float | None = None
    top10_pct: float | None = None
    top20_pct: float | None = None
    dev_wallet_count: int | None = None
    distribution: Distribution = Distribution.UNKNOWN
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    data_quality: DataQuality = DataQuality.LIMITED
    is_estimated: bool = False
    data_source: str | None = None
    api_limitation: str | None = None
    error: str | None = None


class DataSourcesReport(ResponseModel):
    primary: str
    secondary: str | None = None
    available: list[str] = Field(default_factory=list)


class TokenReport(ResponseModel):
    """Full analysis payload."""

    token_name: str
    symbol: str
    contract: str
    chain: str
    token_type: TokenType
    migration_status: str
    is_bonding_token: bool = False
    bonding_curve_progress: float | None = None
    bonding_override_applied: bool = False

    # Market
    price: float | None = None
    market_cap: float | None = None
    fdv: float | None = None
    liquidity: float | None = None
    volume24h: float | None = None
    price_change24h: float | None = None
    vol_liq_ratio: int | None = None
    trades24h: int | None = None
    txns24h: int | None = None
    buyers24h: int | None = None
    sellers24h: int | None = None
    pair_address: str | None = None
    dex_id: str | None = None
    image_url: str | None = None
    token_age_minutes: int | None = None
    links: dict[str, str] = Field(default_factory=dict)

    holders: HoldersReport

    # Risk
    safety_score: int
    rug_risk_pct: int | None = None
    bundlers_pct: int | None = None
    honeypot: bool = False
    buy_tax_pct: float | None = None
    sell_tax_pct: float | None = None
    lp_lock_pct: float | None = None

    data_sources: DataSourcesReport
    analyzed_at: datetime


class NotFoundReport(ResponseModel):
    """Token unknown to every primary-capable provider."""

    error: str
    token_name: str = UNKNOWN_TOKEN_NAME
    symbol: str = UNKNOWN_SYMBOL
    contract: str
    chain: str


class PrebondReport(ResponseModel):
    """Identity-only payload for tokens with no market data yet."""

    is_prebond: bool = True
    prebond_reason: str = PREBOND_REASON
    token_name: str
    symbol: str
    contract: str
    chain: str
    analyzed_at: datetime


AnalysisReport = Union[TokenReport, NotFoundReport, PrebondReport]


def _zeroish(value: float | int | None) -> bool:
    return value is None or value == 0


class ResponseFormatter:
    """Builds response payloads from pipeline results."""

    @staticmethod
    def is_prebond(record: CanonicalTokenRecord) -> bool:
        """
        True when the merged record carries no market data at all.

        No liquidity, no market cap, and either no price or no
        transactions. Such a record must never reach the risk engine.
        """
        market = record.market
        txns = market.txns_24h if market.txns_24h is not None else market.trades_24h
        return (
            _zeroish(market.liquidity)
            and _zeroish(record.market_cap)
            and (_zeroish(market.price) or _zeroish(txns))
        )

    def format_not_found(self, record: TokenNotFoundRecord) -> NotFoundReport:
        return NotFoundReport(
            error=record.error,
            contract=record.contract,
            chain=record.chain.display_name,
        )

    def format_prebond(self, record: CanonicalTokenRecord, analyzed_at: datetime) -> PrebondReport:
        logger.info(f"Pre-bond short-circuit for {record.contract} on {record.chain.value}")
        return PrebondReport(
            token_name=record.name or UNKNOWN_TOKEN_NAME,
            symbol=record.symbol or UNKNOWN_SYMBOL,
            contract=record.contract,
            chain=record.chain.display_name,
            analyzed_at=analyzed_at,
        )

    def format_holders(self, holders: HolderAnalysis | None, risk: RiskAssessment) -> HoldersReport:
        """
        Holder section of the report.

        Counts and percentages are null when the analysis is missing or
        unusable; quality and source are still reported. Top-N
        percentages are also null when no holder share was measured.
        """
        if holders is None:
            return HoldersReport(error="Holder analysis unavailable")

        if not holders.has_data:
            return HoldersReport(
                data_quality=holders.data_quality,
                is_estimated=holders.is_estimated,
                data_source=holders.data_source,
                api_limitation=holders.api_limitation,
                error=holders.error,
            )

        top = [self._holder(h) for h in holders.top_holders]
        measured = not holders.percentages_estimated
        return HoldersReport(
            total=holders.total_holders,
            top_holders=top,
            top3=top[:3],
            top3_pct=holders.top3_pct if measured else None,
            top10_pct=holders.top10_pct if measured else None,
            top20_pct=holders.top20_pct if measured else None,
            dev_wallet_count=holders.dev_wallets,
            distribution=risk.distribution,
            risk_level=risk.risk_level,
            data_quality=holders.data_quality,
            is_estimated=holders.is_estimated,
            data_source=holders.data_source,
            api_limitation=holders.api_limitation,
        )

    @staticmethod
    def _holder(entry: HolderEntry) -> HolderReport:
        return HolderReport(
            address=entry.address,
            balance=entry.balance,
            percentage=entry.percentage,
            usd_value=entry.usd_value,
            is_contract=entry.is_contract,
            is_estimated=entry.is_estimated,
        )

    def format_report(
        self,
        record: CanonicalTokenRecord,
        risk: RiskAssessment,
        analyzed_at: datetime,
    ) -> TokenReport:
        """
        Full report for a found, non-pre-bond token.

        Args:
            record: Merged canonical record (holders attached)
            risk: Risk assessment computed for the record
            analyzed_at: Analysis timestamp

        Returns:
            TokenReport
        """
        market = record.market
        classification = record.classification

        vol_liq_ratio = None
        if market.volume_24h is not None and market.liquidity:
            vol_liq_ratio = round_half_up(market.volume_24h / market.liquidity * 100)

        trades = market.trades_24h if market.trades_24h is not None else market.txns_24h

        return TokenReport(
            token_name=record.name or UNKNOWN_TOKEN_NAME,
            symbol=record.symbol or UNKNOWN_SYMBOL,
            contract=record.contract,
            chain=record.chain.display_name,
            token_type=classification.token_type,
            migration_status=classification.migration_status,
            is_bonding_token=classification.in_bonding_ecosystem,
            bonding_curve_progress=classification.progress,
            bonding_override_applied=classification.override_applied,
            price=market.price,
            market_cap=record.market_cap,
            fdv=market.fdv,
            liquidity=market.liquidity,
            volume24h=market.volume_24h,
            price_change24h=market.price_change_24h,
            vol_liq_ratio=vol_liq_ratio,
            trades24h=trades,
            txns24h=market.txns_24h,
            buyers24h=market.buyers_24h,
            sellers24h=market.sellers_24h,
            pair_address=market.pair_address,
            dex_id=market.dex_id,
            image_url=market.image_url,
            token_age_minutes=record.token_age_minutes,
            links=dict(market.socials or {}),
            holders=self.format_holders(record.holders, risk),
            safety_score=risk.safety_score,
            rug_risk_pct=risk.rug_risk_pct,
            bundlers_pct=risk.bundlers_pct,
            honeypot=risk.honeypot,
            data_sources=DataSourcesReport(
                primary=record.data_source_primary.display_name,
                secondary=record.data_source_secondary.display_name if record.data_source_secondary else None,
                available=[s.display_name for s in record.sources_available],
            ),
            analyzed_at=analyzed_at,
        )
