"""Moralis holder provider (multi-chain).

Provides:
- Ranked holder list with balances and supply percentages
- Holder count / stats

EVM and Solana endpoints answer with different shapes for the same
logical fields; both are normalised into HolderEntry.
"""

import asyncio
import logging
from typing import Any

import httpx

from ...core.address import TokenAddress
from ...core.coerce import pick, pick_float, to_bool, to_float, to_int, to_str
from ...core.exceptions import ConfigurationError, DataSourceError
from ...core.models import HolderAnalysis, HolderEntry
from ...core.types import Chain, ChainFamily, DataQuality, DataSource
from ..base import DEFAULT_TIMEOUT, HolderProvider
from .analyzer import combined_percentages, estimate_dev_wallets, has_measured_percentages

logger = logging.getLogger(__name__)

# Chain -> Moralis chain identifier
MORALIS_CHAINS = {
    Chain.SOLANA: "mainnet",
    Chain.BSC: "0x38",
    Chain.ETHEREUM: "0x1",
    Chain.BASE: "0x2105",
}


class MoralisHolderProvider(HolderProvider):
    """Moralis provider for holder lists and holder statistics."""

    SOURCE = DataSource.MORALIS
    EVM_BASE_URL = "https://deep-index.moralis.io/api/v2.2"
    SOLANA_BASE_URL = "https://deep-index.moralis.io/api/v2"

    EVM_DEV_WALLET_WEIGHT = 0.6
    SOLANA_DEV_WALLET_WEIGHT = 0.4
    OWNERS_PAGE_SIZE = 100

    def __init__(
        self,
        api_key: str | None,
        holder_limit: int = 20,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize Moralis provider.

        Raises:
            ConfigurationError: if no API key is given
        """
        if not api_key:
            raise ConfigurationError("MORALIS_API_KEY", "Moralis provider requires an API key")
        super().__init__(holder_limit=holder_limit, timeout=timeout, client=client)
        self.api_key = api_key

    def is_available(self) -> bool:
        return bool(self.api_key)

    @property
    def _headers(self) -> dict[str, str]:
        return {"accept": "application/json", "X-API-Key": self.api_key}

    async def get_holders(self, token: TokenAddress) -> list[dict[str, Any]] | None:
        """Raw holder list, largest first."""
        chain = MORALIS_CHAINS[token.chain]
        if token.chain.family == ChainFamily.SOLANA:
            endpoint = f"/token/{chain}/{token.address}/owners"
            url = f"{self.SOLANA_BASE_URL}{endpoint}"
            params = {"limit": self.OWNERS_PAGE_SIZE}
        else:
            endpoint = f"/erc20/{token.address}/owners"
            url = f"{self.EVM_BASE_URL}{endpoint}"
            params = {"chain": chain, "limit": self.OWNERS_PAGE_SIZE, "order": "DESC"}

        data = await self._request_json("GET", url, endpoint=endpoint, params=params, headers=self._headers)
        if data is None:
            return None
        result = data.get("result") if isinstance(data, dict) else data
        return result if isinstance(result, list) else []

    async def get_holder_stats(self, token: TokenAddress) -> dict[str, Any] | None:
        """Holder statistics (EVM) or token metadata carrying a holder count (Solana)."""
        chain = MORALIS_CHAINS[token.chain]
        if token.chain.family == ChainFamily.SOLANA:
            endpoint = f"/token/{chain}/{token.address}/metadata"
            url = f"{self.SOLANA_BASE_URL}{endpoint}"
            params = None
        else:
            endpoint = f"/erc20/{token.address}/holders"
            url = f"{self.EVM_BASE_URL}{endpoint}"
            params = {"chain": chain}

        data = await self._request_json("GET", url, endpoint=endpoint, params=params, headers=self._headers)
        return data if isinstance(data, dict) else None

    def parse_holder(self, holder: dict[str, Any], chain: Chain) -> HolderEntry:
        """Normalise one holder row from either the EVM or the Solana shape."""
        label = (to_str(holder.get("owner_address_label")) or "").lower()
        is_contract = bool(to_bool(holder.get("is_contract"))) or "contract" in label
        if chain.family == ChainFamily.SOLANA:
            is_contract = False

        return HolderEntry(
            address=to_str(pick(holder, "owner_address", "owner", "address")) or "unknown",
            balance=pick_float(holder, "balance_formatted", "amount_formatted", "amount", "balance"),
            balance_raw=to_str(pick(holder, "balance", "amount")),
            percentage=pick_float(holder, "percentage_relative_to_total_supply", "percentage", "share"),
            usd_value=pick_float(holder, "usd_value", "value_usd"),
            is_contract=is_contract,
        )

    async def _analyze(self, token: TokenAddress) -> HolderAnalysis:
        holders_outcome, stats_outcome = await asyncio.gather(
            self.get_holders(token),
            self.get_holder_stats(token),
            return_exceptions=True,
        )

        failures = [o for o in (holders_outcome, stats_outcome) if isinstance(o, BaseException)]
        for failure in failures:
            if not isinstance(failure, DataSourceError):
                raise failure
        if len(failures) == 2:
            raise failures[0]

        raw_holders = None if isinstance(holders_outcome, BaseException) else holders_outcome
        stats = None if isinstance(stats_outcome, BaseException) else stats_outcome

        if not raw_holders and not stats:
            return self._insufficient("No holder data available from Moralis")

        holders = [self.parse_holder(h, token.chain) for h in (raw_holders or []) if isinstance(h, dict)]

        if token.chain.family == ChainFamily.SOLANA:
            reported_count = to_int(pick(stats, "holders", "holderCount")) if stats else None
        else:
            reported_count = to_int(pick(stats, "totalHolders", "total_holders")) if stats else None

        holder_count = reported_count if reported_count else len(holders)
        top3, top10, top20 = combined_percentages(holders)

        if token.chain.family == ChainFamily.SOLANA:
            dev_wallets = estimate_dev_wallets(holders, self.SOLANA_DEV_WALLET_WEIGHT)
        else:
            dev_wallets = estimate_dev_wallets(holders, self.EVM_DEV_WALLET_WEIGHT, count_contracts=True)

        if holder_count > 0 and holders:
            quality = DataQuality.HIGH
        elif holder_count > 0:
            quality = DataQuality.PARTIAL
        else:
            quality = DataQuality.LIMITED

        return HolderAnalysis(
            total_holders=holder_count,
            is_estimated=not reported_count,
            top_holders=holders[: self.holder_limit],
            top3_pct=top3,
            top10_pct=top10,
            top20_pct=top20,
            percentages_estimated=not has_measured_percentages(holders),
            dev_wallets=dev_wallets,
            total_supply=to_float(pick(stats, "totalSupply", "total_supply")) if stats else None,
            data_quality=quality,
            data_source=self.SOURCE.display_name,
        )
