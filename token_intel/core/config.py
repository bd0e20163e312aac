"""Configuration management for API keys and settings.

Loads configuration from environment variables or .env file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected an integer, got {raw!r}")


def _env_key(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class APIConfig:
    """API configuration for all data providers."""

    # Helius (Solana RPC - supply and largest holders)
    helius_api_key: Optional[str] = None

    # Moralis (multi-chain holder lists and stats)
    moralis_api_key: Optional[str] = None

    # Etherscan v2 multichain explorer (EVM holder fallback)
    etherscan_api_key: Optional[str] = None

    # Bitquery (Four.meme bonding curve on BSC)
    bitquery_api_key: Optional[str] = None

    # Total time bound for a single provider call, in seconds
    request_timeout: float = 10.0

    # How many top holders to request from holder providers
    holder_limit: int = 20

    default_chain: str = "solana"

    @classmethod
    def from_env(cls) -> "APIConfig":
        """Load configuration from environment variables."""
        return cls(
            helius_api_key=_env_key("HELIUS_API_KEY"),
            moralis_api_key=_env_key("MORALIS_API_KEY"),
            etherscan_api_key=_env_key("ETHERSCAN_API_KEY"),
            bitquery_api_key=_env_key("BITQUERY_API_KEY"),
            request_timeout=_env_float("TOKEN_INTEL_TIMEOUT", 10.0),
            holder_limit=_env_int("TOKEN_INTEL_HOLDER_LIMIT", 20),
            default_chain=os.getenv("TOKEN_INTEL_DEFAULT_CHAIN", "solana"),
        )

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "APIConfig":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the project root.

        Returns:
            APIConfig instance with loaded values
        """
        from dotenv import load_dotenv

        if env_file:
            load_dotenv(env_file)
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        return cls.from_env()

    def validate(self) -> "APIConfig":
        """
        Check the configuration is usable before serving requests.

        Raises:
            ConfigurationError: if no holder provider is configured or
                the timeout is not positive
        """
        if self.request_timeout <= 0:
            raise ConfigurationError(
                "TOKEN_INTEL_TIMEOUT", "request timeout must be positive"
            )
        if self.holder_limit <= 0:
            raise ConfigurationError(
                "TOKEN_INTEL_HOLDER_LIMIT", "holder limit must be positive"
            )
        if not (self.helius_api_key or self.moralis_api_key or self.etherscan_api_key):
            raise ConfigurationError(
                "HELIUS_API_KEY",
                "at least one holder provider key (HELIUS_API_KEY, "
                "MORALIS_API_KEY or ETHERSCAN_API_KEY) is required",
            )
        return self

    def has_helius(self) -> bool:
        """Check if Helius API key is configured."""
        return bool(self.helius_api_key)

    def has_moralis(self) -> bool:
        """Check if Moralis API key is configured."""
        return bool(self.moralis_api_key)

    def has_etherscan(self) -> bool:
        """Check if Etherscan API key is configured."""
        return bool(self.etherscan_api_key)

    def has_bitquery(self) -> bool:
        """Check if Bitquery API key is configured."""
        return bool(self.bitquery_api_key)

    def get_available_sources(self) -> list[str]:
        """Get list of configured data sources."""
        # No API key needed
        sources = ["dexscreener", "pumpfun"]

        if self.bitquery_api_key:
            sources.append("fourmeme")
        if self.helius_api_key:
            sources.append("helius")
        if self.moralis_api_key:
            sources.append("moralis")
        if self.etherscan_api_key:
            sources.append("explorer")

        return sources
