"""Pydantic data models for the token intelligence engine.

All data structures are immutable (frozen) after creation to ensure
data integrity throughout the pipeline.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .types import (
    Chain,
    DataQuality,
    DataSource,
    Distribution,
    LifecycleState,
    Percentage,
    RiskLevel,
    TokenType,
    USDAmount,
)


class ProviderRecord(BaseModel):
    """Normalised output of one provider call.

    Every numeric field is optional: None means the provider did not
    report it, never zero.
    """

    source: DataSource

    # Identity
    name: str | None = None
    symbol: str | None = None

    # Market data
    price: USDAmount | None = None
    market_cap: USDAmount | None = None
    fdv: USDAmount | None = None
    liquidity: USDAmount | None = None

    # Volume windows
    volume_24h: USDAmount | None = None
    volume_6h: USDAmount | None = None
    volume_1h: USDAmount | None = None
    volume_5m: USDAmount | None = None

    # Price change windows (percent)
    price_change_24h: float | None = None
    price_change_6h: float | None = None
    price_change_1h: float | None = None

    # Trading activity
    txns_24h: int | None = None
    buys_24h: int | None = None
    sells_24h: int | None = None
    trades_24h: int | None = None
    trades_1h: int | None = None
    buyers_24h: int | None = None
    sellers_24h: int | None = None

    # Pair / pool
    pair_address: str | None = None
    dex_id: str | None = None
    pair_created_at: datetime | None = None
    created_at: datetime | None = None

    # Bonding curve
    bonding_progress: Percentage | None = None
    bonding_completed: bool | None = None
    last_event_time: datetime | None = None
    creator: str | None = None

    # Links
    socials: dict[str, str] | None = None
    image_url: str | None = None

    # Raw provider payload, retained for diagnostics only
    raw: dict[str, Any] | None = Field(default=None, exclude=True)

    model_config = {"frozen": True}

    @field_validator("bonding_progress")
    @classmethod
    def validate_progress(cls, v: Percentage | None) -> Percentage | None:
        if v is not None and (v < 0 or v > 100):
            raise ValueError(f"Bonding progress must be 0-100, got {v}")
        return v


# Fields combined by the precedence merge. Source and raw payload are
# provenance, not token data.
MERGEABLE_FIELDS: tuple[str, ...] = tuple(
    name for name in ProviderRecord.model_fields if name not in ("source", "raw")
)


class ClassificationResult(BaseModel):
    """Outcome of lifecycle classification and provider role assignment."""

    state: LifecycleState
    primary_source: DataSource
    secondary_source: DataSource | None = None
    bonding_source: DataSource | None = None
    progress: Percentage | None = None
    completed: bool | None = None
    override_applied: bool = False
    bonding_record: ProviderRecord | None = None

    model_config = {"frozen": True}

    @property
    def in_bonding_ecosystem(self) -> bool:
        """Whether the token was found on a bonding-curve launch platform."""
        return self.bonding_record is not None

    @property
    def token_type(self) -> TokenType:
        if self.state == LifecycleState.PRELAUNCH_BONDING:
            return TokenType.PRELAUNCH_BONDING
        if self.state == LifecycleState.UNKNOWN:
            return TokenType.UNKNOWN
        if self.in_bonding_ecosystem:
            return TokenType.GRADUATED
        return TokenType.REGULAR

    @property
    def migration_status(self) -> str:
        if not self.in_bonding_ecosystem:
            return "N/A"
        if self.state == LifecycleState.PRELAUNCH_BONDING:
            return "Pre-migration"
        return "Graduated"


class HolderEntry(BaseModel):
    """One ranked token holder."""

    address: str
    balance: float | None = None
    balance_raw: str | None = None
    percentage: Percentage | None = None
    usd_value: USDAmount | None = None
    is_contract: bool = False
    is_estimated: bool = False

    model_config = {"frozen": True}


class HolderAnalysis(BaseModel):
    """Holder distribution for a token, independent of market data."""

    total_holders: int = 0
    is_estimated: bool = False
    top_holders: list[HolderEntry] = Field(default_factory=list)
    top3_pct: Percentage = 0.0
    top10_pct: Percentage = 0.0
    top20_pct: Percentage = 0.0
    # No holder share was measured; the top-N figures are placeholders
    percentages_estimated: bool = False
    dev_wallets: int = 0
    total_supply: float | None = None
    data_quality: DataQuality = DataQuality.LIMITED
    data_source: str = DataSource.UNKNOWN.display_name
    error: str | None = None
    api_limitation: str | None = None

    model_config = {"frozen": True}

    @property
    def has_data(self) -> bool:
        """True when holder-derived metrics can be trusted for scoring."""
        return self.error is None and self.total_holders > 0

    @property
    def top_holder_pct(self) -> Percentage:
        if not self.top_holders:
            return 0.0
        return self.top_holders[0].percentage or 0.0

    @property
    def large_holder_count(self) -> int:
        """Holders individually above 1% of supply."""
        return sum(1 for h in self.top_holders if (h.percentage or 0) > 1)

    @classmethod
    def failed(
        cls,
        error: str,
        data_source: str,
        quality: DataQuality = DataQuality.ERROR,
    ) -> "HolderAnalysis":
        return cls(error=error, data_source=data_source, data_quality=quality)


class CanonicalTokenRecord(BaseModel):
    """Merged view of a token built from primary and secondary providers."""

    contract: str
    chain: Chain
    name: str | None = None
    symbol: str | None = None

    classification: ClassificationResult
    data_source_primary: DataSource
    data_source_secondary: DataSource | None = None
    sources_available: list[DataSource] = Field(default_factory=list)

    # Merged provider fields
    market: ProviderRecord
    token_age_minutes: int | None = None

    holders: HolderAnalysis | None = None

    model_config = {"frozen": True}

    @property
    def lifecycle(self) -> LifecycleState:
        return self.classification.state

    @property
    def market_cap(self) -> USDAmount | None:
        """Reported market cap, falling back to FDV when absent."""
        if self.market.market_cap is not None:
            return self.market.market_cap
        return self.market.fdv

    @property
    def has_socials(self) -> bool:
        return bool(self.market.socials)


class TokenNotFoundRecord(BaseModel):
    """Explicit not-found variant: identity fields only."""

    contract: str
    chain: Chain
    error: str = "Token not found on supported platforms"
    sources_checked: list[DataSource] = Field(default_factory=list)
    holders: HolderAnalysis | None = None

    model_config = {"frozen": True}


class RiskAssessment(BaseModel):
    """Derived risk metrics. Recomputed on every request."""

    safety_score: int
    rug_risk_pct: int | None = None
    bundlers_pct: int | None = None
    distribution: Distribution = Distribution.UNKNOWN
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    honeypot: bool = False

    model_config = {"frozen": True}

    @field_validator("safety_score", "rug_risk_pct", "bundlers_pct")
    @classmethod
    def validate_range(cls, v: int | None) -> int | None:
        if v is not None and (v < 0 or v > 100):
            raise ValueError(f"Score must be 0-100, got {v}")
        return v
