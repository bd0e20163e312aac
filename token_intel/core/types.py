"""Type definitions and enums for the token intelligence engine."""

from enum import Enum
from typing import Literal


class ChainFamily(str, Enum):
    """Address grammar family of a chain."""

    EVM = "evm"
    SOLANA = "solana"


class Chain(str, Enum):
    """Supported chains."""

    SOLANA = "solana"
    BSC = "bsc"
    ETHEREUM = "ethereum"
    BASE = "base"

    @property
    def family(self) -> ChainFamily:
        """Address grammar family for this chain."""
        if self is Chain.SOLANA:
            return ChainFamily.SOLANA
        return ChainFamily.EVM

    @property
    def display_name(self) -> str:
        """Human-readable chain name."""
        names = {
            Chain.SOLANA: "Solana",
            Chain.BSC: "BNB",
            Chain.ETHEREUM: "Ethereum",
            Chain.BASE: "Base",
        }
        return names.get(self, self.value)

    @classmethod
    def parse(cls, value: "str | Chain") -> "Chain":
        """Resolve a chain from its value or a common alias."""
        if isinstance(value, Chain):
            return value
        key = (value or "").strip().lower()
        aliases = {
            "sol": cls.SOLANA,
            "solana-mainnet": cls.SOLANA,
            "bnb": cls.BSC,
            "binance": cls.BSC,
            "eth": cls.ETHEREUM,
            "ether": cls.ETHEREUM,
        }
        if key in aliases:
            return aliases[key]
        return cls(key)


class DataSource(str, Enum):
    """Data source identifiers."""

    DEXSCREENER = "dexscreener"
    PUMPFUN = "pumpfun"
    FOURMEME = "fourmeme"
    HELIUS = "helius"
    MORALIS = "moralis"
    EXPLORER = "explorer"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        names = {
            DataSource.DEXSCREENER: "DexScreener",
            DataSource.PUMPFUN: "Pump.fun",
            DataSource.FOURMEME: "Four.meme",
            DataSource.HELIUS: "Helius",
            DataSource.MORALIS: "Moralis",
            DataSource.EXPLORER: "Etherscan",
        }
        return names.get(self, self.value)


class FetchStatus(str, Enum):
    """Outcome of a single provider call."""

    OK = "ok"                    # Provider returned data
    NOT_FOUND = "not_found"      # Provider authoritatively has nothing
    UNAVAILABLE = "unavailable"  # Transient failure, timeout or rate limit


class LifecycleState(str, Enum):
    """Lifecycle stage of a token."""

    PRELAUNCH_BONDING = "prelaunch_bonding"
    GRADUATED_OR_REGULAR = "graduated_or_regular"
    UNKNOWN = "unknown"


class TokenType(str, Enum):
    """Token type exposed in the response contract."""

    PRELAUNCH_BONDING = "prelaunch-bonding"
    GRADUATED = "graduated"
    REGULAR = "regular"
    UNKNOWN = "unknown"


class DataQuality(str, Enum):
    """Quality of a holder analysis."""

    HIGH = "High"
    PARTIAL = "Partial"
    LIMITED = "Limited"
    ERROR = "Error"


class Distribution(str, Enum):
    """Holder distribution classification."""

    VERY_CONCENTRATED = "Very Concentrated"
    CONCENTRATED = "Concentrated"
    MODERATELY_CONCENTRATED = "Moderately Concentrated"
    MODERATE = "Moderate"
    FAIRLY_DISTRIBUTED = "Fairly Distributed"
    WELL_DISTRIBUTED = "Well Distributed"
    HIGHLY_DISTRIBUTED = "Highly Distributed"
    UNKNOWN = "Unknown"


class RiskLevel(str, Enum):
    """Risk level label derived from the concentration score."""

    VERY_HIGH = "Very High"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    VERY_LOW = "Very Low"
    UNKNOWN = "Unknown"


# Per-chain provider routing. Order matters for holder providers: the
# first one that yields usable data wins.
DEX_CHAIN_IDS: dict[Chain, str] = {
    Chain.SOLANA: "solana",
    Chain.BSC: "bsc",
    Chain.ETHEREUM: "ethereum",
    Chain.BASE: "base",
}


HOLDER_SOURCES: dict[Chain, tuple[DataSource, ...]] = {
    Chain.SOLANA: (DataSource.HELIUS, DataSource.MORALIS),
    Chain.BSC: (DataSource.MORALIS, DataSource.EXPLORER),
    Chain.ETHEREUM: (DataSource.MORALIS, DataSource.EXPLORER),
    Chain.BASE: (DataSource.MORALIS, DataSource.EXPLORER),
}

# Type aliases for common patterns
Percentage = float  # 0-100 scale
USDAmount = float

OutputFormatType = Literal["json", "table"]
