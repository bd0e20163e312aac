"""Helius holder provider (Solana RPC).

Uses the standard Solana JSON-RPC methods served by Helius:
- getTokenSupply: raw supply and decimals
- getTokenLargestAccounts: up to 20 largest token accounts

The RPC has no holder-count method, so the total is estimated from the
top account's share of supply and flagged as such.
"""

import asyncio
import logging
from typing import Any

import httpx

from ...core.address import TokenAddress
from ...core.coerce import to_float, to_int, to_str
from ...core.exceptions import ConfigurationError
from ...core.models import HolderAnalysis, HolderEntry
from ...core.types import DataQuality, DataSource
from ..base import DEFAULT_TIMEOUT, HolderProvider
from .analyzer import (
    combined_percentages,
    estimate_dev_wallets,
    estimate_total_holders,
    has_measured_percentages,
)

logger = logging.getLogger(__name__)


class HeliusHolderProvider(HolderProvider):
    """Helius RPC provider for Solana token supply and largest holders."""

    SOURCE = DataSource.HELIUS
    RPC_URL = "https://mainnet.helius-rpc.com/"

    DEV_WALLET_WEIGHT = 0.5

    def __init__(
        self,
        api_key: str | None,
        rpc_url: str | None = None,
        holder_limit: int = 20,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize Helius provider.

        Raises:
            ConfigurationError: if no API key is given
        """
        if not api_key:
            raise ConfigurationError("HELIUS_API_KEY", "Helius provider requires an API key")
        super().__init__(holder_limit=holder_limit, timeout=timeout, client=client)
        self.api_key = api_key
        self.rpc_url = rpc_url or self.RPC_URL

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        """Call a JSON-RPC method. Returns None when the node answers with an error object."""
        payload = await self._request_json(
            "POST",
            self.rpc_url,
            endpoint=method,
            params={"api-key": self.api_key},
            json={"jsonrpc": "2.0", "id": f"token-intel-{method}", "method": method, "params": params},
            headers={"Content-Type": "application/json"},
        )
        if not isinstance(payload, dict):
            return None
        if payload.get("error"):
            logger.warning(f"[helius] {method} RPC error: {payload['error']}")
            return None
        return payload.get("result")

    async def get_token_supply(self, mint: str) -> dict[str, Any] | None:
        """Returns {amount, decimals, uiAmount} or None."""
        result = await self._rpc("getTokenSupply", [mint])
        value = result.get("value") if isinstance(result, dict) else None
        return value if isinstance(value, dict) else None

    async def get_largest_accounts(self, mint: str) -> list[dict[str, Any]]:
        """Returns the largest token accounts as [{address, amount, ...}]."""
        result = await self._rpc("getTokenLargestAccounts", [mint, {"commitment": "finalized"}])
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, list):
            return []
        return value[: self.holder_limit]

    async def _analyze(self, token: TokenAddress) -> HolderAnalysis:
        supply, accounts = await asyncio.gather(
            self.get_token_supply(token.address),
            self.get_largest_accounts(token.address),
        )

        total_supply = to_float(supply.get("amount")) if supply else None
        decimals = to_int(supply.get("decimals")) if supply else None

        if not total_supply or decimals is None or not accounts:
            return self._insufficient("Insufficient holder data from Helius")

        holders = []
        for account in accounts:
            raw_amount = to_float(account.get("amount"))
            if raw_amount is None:
                continue
            holders.append(
                HolderEntry(
                    address=to_str(account.get("address")) or "unknown",
                    balance=round(raw_amount / 10**decimals, 2),
                    balance_raw=to_str(account.get("amount")),
                    percentage=round(raw_amount / total_supply * 100, 2),
                )
            )

        if not holders:
            return self._insufficient("Helius returned no parseable holder balances")

        top3, top10, top20 = combined_percentages(holders)
        estimated_total = estimate_total_holders(holders[0].percentage or 0.0)

        return HolderAnalysis(
            total_holders=estimated_total if estimated_total is not None else len(holders),
            is_estimated=True,
            top_holders=holders,
            top3_pct=top3,
            top10_pct=top10,
            top20_pct=top20,
            percentages_estimated=not has_measured_percentages(holders),
            dev_wallets=estimate_dev_wallets(holders, self.DEV_WALLET_WEIGHT),
            total_supply=total_supply / 10**decimals,
            data_quality=DataQuality.HIGH,
            data_source=self.SOURCE.display_name,
        )
