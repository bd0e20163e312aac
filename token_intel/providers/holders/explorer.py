"""Block-explorer holder provider (Etherscan v2 multichain API).

Holder endpoints on the explorer are tiered by subscription:
- tokenholdercount / tokenholderlist: Pro only
- topholders: free, but only on some chains

Top holders are fetched through a fallback chain
topholders -> tokenholderlist -> recent transfers. A tier is skipped
only when the explorer definitively refuses it (NOTOK, missing/invalid
key, Pro-only); network errors, rate limits and timeouts end the chain.
The transfer tier yields addresses without balances, flagged estimated.
"""

import asyncio
import logging
from typing import Any

import httpx

from ...core.address import TokenAddress
from ...core.coerce import pick, to_float, to_int, to_str
from ...core.exceptions import ConfigurationError, DataSourceError, ProviderUnsupportedError, RateLimitError
from ...core.models import HolderAnalysis, HolderEntry
from ...core.types import Chain, DataQuality, DataSource
from ..base import DEFAULT_TIMEOUT, HolderProvider
from .analyzer import combined_percentages, has_measured_percentages, percent_of_supply

logger = logging.getLogger(__name__)

EXPLORER_CHAIN_IDS = {
    Chain.ETHEREUM: 1,
    Chain.BSC: 56,
    Chain.BASE: 8453,
}

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

UNSUPPORTED_MARKERS = (
    "notok",
    "missing/invalid api key",
    "invalid api key",
    "api pro",
    "pro endpoint",
    "not supported",
    "upgrade",
)
RATE_LIMIT_MARKERS = ("rate limit", "too many")
EMPTY_MARKERS = ("no transactions found", "no token holders found", "no records found")

TRANSFER_HOLDER_SAMPLE = 10
ESTIMATED_HOLDERS_PER_KNOWN = 10


class ExplorerHolderProvider(HolderProvider):
    """Etherscan v2 provider for EVM holder counts, top holders and supply."""

    SOURCE = DataSource.EXPLORER
    BASE_URL = "https://api.etherscan.io/v2/api"

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None = None,
        holder_limit: int = 20,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize explorer provider.

        Raises:
            ConfigurationError: if no API key is given
        """
        if not api_key:
            raise ConfigurationError("ETHERSCAN_API_KEY", "Explorer provider requires an Etherscan API key")
        super().__init__(holder_limit=holder_limit, timeout=timeout, client=client)
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _call(self, chain: Chain, module: str, action: str, **params: Any) -> Any:
        """
        Call one explorer action and unwrap its `result`.

        Returns [] for an authoritative empty answer.

        Raises:
            ProviderUnsupportedError: the tier is refused for this key/chain
            RateLimitError: the explorer reports a rate limit
            DataSourceError: any other failure
        """
        if chain not in EXPLORER_CHAIN_IDS:
            raise ProviderUnsupportedError("explorer", f"chain {chain.value} not supported", endpoint=action)

        query = {
            "chainid": EXPLORER_CHAIN_IDS[chain],
            "module": module,
            "action": action,
            "apikey": self.api_key,
            **params,
        }
        data = await self._request_json("GET", self.base_url, endpoint=action, params=query)
        if not isinstance(data, dict):
            raise DataSourceError("explorer", "unexpected response shape", endpoint=action)

        if str(data.get("status")) == "1":
            return data.get("result")

        message = to_str(data.get("message")) or ""
        result = data.get("result")
        detail = f"{message} {result if isinstance(result, str) else ''}".strip()
        lowered = detail.lower()

        if any(marker in lowered for marker in EMPTY_MARKERS):
            return []
        if any(marker in lowered for marker in RATE_LIMIT_MARKERS):
            raise RateLimitError("explorer", endpoint=action)
        if any(marker in lowered for marker in UNSUPPORTED_MARKERS):
            raise ProviderUnsupportedError("explorer", detail or "endpoint refused", endpoint=action)
        raise DataSourceError("explorer", detail or "request failed", endpoint=action)

    async def get_holder_count(self, token: TokenAddress) -> int | None:
        """Holder count (Pro tier). None when the tier is refused or failing."""
        try:
            result = await self._call(
                token.chain, "token", "tokenholdercount", contractaddress=token.address
            )
        except ProviderUnsupportedError as e:
            logger.warning(f"[explorer] holder count unavailable on this plan: {e.message}")
            return None
        except DataSourceError as e:
            logger.warning(f"[explorer] holder count failed: {e.message}")
            return None
        return to_int(result)

    async def get_total_supply(self, token: TokenAddress) -> float | None:
        """Raw total supply, or None."""
        try:
            result = await self._call(
                token.chain, "stats", "tokensupply", contractaddress=token.address
            )
        except DataSourceError as e:
            logger.warning(f"[explorer] total supply failed: {e.message}")
            return None
        return to_float(result)

    async def get_top_holders(self, token: TokenAddress) -> list[HolderEntry]:
        """
        Top holders through the tier chain.

        Raises:
            DataSourceError: on a transient failure in any tier
        """
        offset = min(self.holder_limit, 1000)
        tiers = (
            ("topholders", {"offset": offset}),
            ("tokenholderlist", {"page": 1, "offset": offset}),
        )
        for action, params in tiers:
            try:
                result = await self._call(
                    token.chain, "token", action, contractaddress=token.address, **params
                )
            except ProviderUnsupportedError as e:
                logger.warning(f"[explorer] {action} refused ({e.message}), trying next tier")
                continue
            if isinstance(result, list) and result:
                return [self.parse_holder(row) for row in result if isinstance(row, dict)]
            logger.debug(f"[explorer] {action} returned no holders, trying next tier")

        logger.warning(f"[explorer] holder endpoints exhausted for {token}, analysing transfers")
        return await self.get_holders_from_transfers(token)

    async def get_holders_from_transfers(self, token: TokenAddress) -> list[HolderEntry]:
        """Last resort: addresses seen in recent transfers, balances unknown."""
        try:
            result = await self._call(
                token.chain,
                "account",
                "tokentx",
                contractaddress=token.address,
                page=1,
                offset=100,
                sort="desc",
            )
        except ProviderUnsupportedError as e:
            logger.warning(f"[explorer] transfer analysis refused: {e.message}")
            return []

        seen: list[str] = []
        for tx in result or []:
            if not isinstance(tx, dict):
                continue
            for key in ("to", "from"):
                address = to_str(tx.get(key))
                if address and address.lower() != ZERO_ADDRESS and address not in seen:
                    seen.append(address)

        logger.info(f"[explorer] {len(seen)} unique addresses from recent transfers of {token}")
        return [
            HolderEntry(address=address, is_estimated=True)
            for address in seen[:TRANSFER_HOLDER_SAMPLE]
        ]

    def parse_holder(self, row: dict[str, Any]) -> HolderEntry:
        quantity = pick(row, "TokenHolderQuantity", "quantity", "balance")
        return HolderEntry(
            address=to_str(pick(row, "TokenHolderAddress", "address")) or "unknown",
            balance=to_float(quantity),
            balance_raw=to_str(quantity),
        )

    async def _analyze(self, token: TokenAddress) -> HolderAnalysis:
        holder_count, top_holders, total_supply = await asyncio.gather(
            self.get_holder_count(token),
            self.get_top_holders(token),
            self.get_total_supply(token),
        )

        holders = [
            h.model_copy(update={"percentage": percent_of_supply(h.balance, total_supply)})
            if not h.is_estimated
            else h
            for h in top_holders
        ]
        measured = [h for h in holders if not h.is_estimated and h.balance]

        top3, top10, top20 = combined_percentages(measured) if total_supply else (0.0, 0.0, 0.0)

        dev_wallets = sum(
            1
            for index, holder in enumerate(measured)
            if total_supply and (index < 5 or (holder.percentage or 0) > 1)
        )

        estimated_count = holder_count
        if not holder_count and holders:
            estimated_count = len(holders) * ESTIMATED_HOLDERS_PER_KNOWN
            logger.info(
                f"[explorer] estimated {estimated_count} holders from {len(holders)} known holders"
            )

        if holder_count and measured:
            quality = DataQuality.HIGH
        elif holders:
            quality = DataQuality.PARTIAL
        else:
            quality = DataQuality.LIMITED

        return HolderAnalysis(
            total_holders=estimated_count or 0,
            is_estimated=not holder_count or any(h.is_estimated for h in holders),
            top_holders=holders[: self.holder_limit],
            top3_pct=top3,
            top10_pct=top10,
            top20_pct=top20,
            percentages_estimated=not has_measured_percentages(holders),
            dev_wallets=dev_wallets,
            total_supply=total_supply,
            data_quality=quality,
            data_source=self.SOURCE.display_name,
            api_limitation=None if holder_count else "Holder count requires API Pro subscription",
        )
