"""DexScreener pool/pair data provider.

Provides:
- Price, market cap, FDV and USD liquidity of the deepest pair
- Volume, price change and transaction counts over several windows
- Pair creation time, social links and image

API documentation: https://docs.dexscreener.com/api/reference
Public API, no key, ~300 req/min.
"""

import logging
from typing import Any

import httpx

from ...core.address import TokenAddress
from ...core.coerce import pick, pick_float, to_datetime, to_int, to_str
from ...core.models import ProviderRecord
from ...core.types import DEX_CHAIN_IDS, DataSource
from ..base import DEFAULT_TIMEOUT, MarketDataProvider

logger = logging.getLogger(__name__)

# Social platform names as reported by DexScreener -> response link key
SOCIAL_KEYS = {
    "twitter": "x",
    "x": "x",
    "telegram": "tg",
    "discord": "discord",
}

SOCIAL_URL_PREFIXES = {
    "x": "https://x.com/",
    "tg": "https://t.me/",
    "discord": "https://discord.gg/",
}


def select_main_pair(pairs: list[dict[str, Any]], chain_id: str | None = None) -> dict[str, Any] | None:
    """
    Pick the pair with the deepest USD liquidity.

    When a chain id is given only pairs on that chain are eligible, so
    an address with pairs elsewhere only yields None. Pairs without a
    liquidity figure rank last but are still eligible.
    """
    candidates = [p for p in pairs if isinstance(p, dict)]
    if chain_id:
        candidates = [p for p in candidates if (to_str(p.get("chainId")) or chain_id) == chain_id]
    if not candidates:
        return None
    return max(candidates, key=lambda p: pick_float(p, "liquidity.usd") or -1.0)


def extract_social_links(info: Any) -> dict[str, str] | None:
    """Normalise `info.socials` and `info.websites` into a link map."""
    if not isinstance(info, dict):
        return None

    links: dict[str, str] = {}

    for item in info.get("socials") or []:
        if not isinstance(item, dict):
            continue
        platform = (to_str(pick(item, "type", "platform")) or "").lower()
        key = SOCIAL_KEYS.get(platform)
        if not key or key in links:
            continue
        url = to_str(item.get("url"))
        handle = to_str(item.get("handle"))
        if url:
            links[key] = url
        elif handle:
            links[key] = SOCIAL_URL_PREFIXES[key] + handle.lstrip("@")

    websites = info.get("websites") or []
    for site in websites:
        url = to_str(site.get("url")) if isinstance(site, dict) else to_str(site)
        if url:
            links["website"] = url
            break

    return links or None


class DexScreenerProvider(MarketDataProvider):
    """DexScreener provider for DEX pool/pair market data."""

    SOURCE = DataSource.DEXSCREENER
    BASE_URL = "https://api.dexscreener.com"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    def is_available(self) -> bool:
        """Public API, always configured."""
        return True

    async def get_pairs(self, token: TokenAddress) -> list[dict[str, Any]] | None:
        """
        Get all pairs for a token.

        Tries the chain-scoped tokens endpoint first and falls back to
        the legacy search-by-token endpoint when the first answers 404.

        Returns:
            List of raw pair objects, or None if no tier knows the token
        """
        chain_id = DEX_CHAIN_IDS[token.chain]

        endpoint = f"/tokens/v1/{chain_id}/{token.address}"
        data = await self._request_json(
            "GET",
            f"{self.base_url}{endpoint}",
            endpoint=endpoint,
            headers={"Accept": "application/json"},
        )

        if data is None:
            logger.debug(f"[dexscreener] {endpoint} returned 404, trying legacy endpoint")
            endpoint = f"/latest/dex/tokens/{token.address}"
            data = await self._request_json(
                "GET",
                f"{self.base_url}{endpoint}",
                endpoint=endpoint,
                headers={"Accept": "application/json"},
            )

        # v1 answers with a bare list, the legacy endpoint with {"pairs": [...]}
        if isinstance(data, dict):
            data = data.get("pairs")
        if not isinstance(data, list) or not data:
            return None
        return data

    async def _fetch(self, token: TokenAddress) -> ProviderRecord | None:
        pairs = await self.get_pairs(token)
        if not pairs:
            return None

        chain_id = DEX_CHAIN_IDS[token.chain]
        pair = select_main_pair(pairs, chain_id)
        if pair is None:
            logger.info(f"[dexscreener] {len(pairs)} pairs for {token.address}, none on {chain_id}")
            return None

        logger.debug(
            f"[dexscreener] {len(pairs)} pairs for {token}, using "
            f"{pair.get('dexId')} {pair.get('pairAddress')}"
        )
        return self.parse_pair(pair)

    def parse_pair(self, pair: dict[str, Any]) -> ProviderRecord:
        """Normalise one DexScreener pair object."""
        buys = to_int(pick(pair, "txns.h24.buys"))
        sells = to_int(pick(pair, "txns.h24.sells"))
        txns = None
        if buys is not None or sells is not None:
            txns = (buys or 0) + (sells or 0)

        return ProviderRecord(
            source=self.SOURCE,
            name=to_str(pick(pair, "baseToken.name")),
            symbol=to_str(pick(pair, "baseToken.symbol")),
            price=pick_float(pair, "priceUsd"),
            market_cap=pick_float(pair, "marketCap"),
            fdv=pick_float(pair, "fdv"),
            liquidity=pick_float(pair, "liquidity.usd"),
            volume_24h=pick_float(pair, "volume.h24"),
            volume_6h=pick_float(pair, "volume.h6"),
            volume_1h=pick_float(pair, "volume.h1"),
            volume_5m=pick_float(pair, "volume.m5"),
            price_change_24h=pick_float(pair, "priceChange.h24"),
            price_change_6h=pick_float(pair, "priceChange.h6"),
            price_change_1h=pick_float(pair, "priceChange.h1"),
            txns_24h=txns,
            buys_24h=buys,
            sells_24h=sells,
            pair_address=to_str(pair.get("pairAddress")),
            dex_id=to_str(pair.get("dexId")),
            pair_created_at=to_datetime(pair.get("pairCreatedAt")),
            socials=extract_social_links(pair.get("info")),
            image_url=to_str(pick(pair, "info.imageUrl")),
            raw=pair,
        )
