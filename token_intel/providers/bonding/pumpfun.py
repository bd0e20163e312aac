"""Pump.fun bonding-curve provider (Solana).

Pump.fun has no official public API; the frontend API used by its web
app answers `/coins/{mint}` for tokens launched on the platform and
fails in assorted ways for everything else.
"""

import logging
from typing import Any

import httpx

from ...core.address import TokenAddress
from ...core.coerce import clamp, pick, pick_float, to_bool, to_datetime, to_float, to_int, to_str
from ...core.exceptions import DataSourceError, RateLimitError
from ...core.models import ProviderRecord
from ...core.types import DataSource
from ..base import DEFAULT_TIMEOUT, MarketDataProvider

logger = logging.getLogger(__name__)

# Tokens (6 decimals) sold through the curve before graduation
CURVE_TOKEN_ALLOCATION = 793_100_000 * 10**6


def compute_progress(coin: dict[str, Any]) -> float | None:
    """
    Bonding-curve progress (0-100) from a Pump.fun coin payload.

    Uses an explicit progress figure when present, 100 for completed
    coins, and otherwise derives it from the remaining real token
    reserves.
    """
    explicit = pick_float(coin, "progress", "bonding_curve_progress")
    if explicit is not None:
        return clamp(explicit)

    if to_bool(coin.get("complete")):
        return 100.0

    reserves = to_float(coin.get("real_token_reserves"))
    if reserves is None:
        return None
    return clamp(100.0 - reserves * 100.0 / CURVE_TOKEN_ALLOCATION)


class PumpFunProvider(MarketDataProvider):
    """Pump.fun provider for bonding-curve progress and launch metadata."""

    SOURCE = DataSource.PUMPFUN
    BASE_URL = "https://frontend-api.pump.fun"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    def is_available(self) -> bool:
        return True

    async def get_coin(self, mint: str) -> dict[str, Any] | None:
        """Get the raw coin payload, or None if Pump.fun does not know the mint."""
        endpoint = f"/coins/{mint}"
        try:
            data = await self._request_json(
                "GET",
                f"{self.base_url}{endpoint}",
                endpoint=endpoint,
                headers={"Accept": "application/json", "User-Agent": "Mozilla/5.0"},
            )
        except RateLimitError:
            raise
        except DataSourceError as e:
            # 5xx is transient; other errors mean "not a Pump.fun token"
            if e.status_code is None or e.status_code >= 500:
                raise
            logger.debug(f"[pumpfun] {endpoint} rejected: {e.message}")
            return None

        if not isinstance(data, dict) or not pick(data, "mint", "address", "name"):
            return None
        return data

    async def _fetch(self, token: TokenAddress) -> ProviderRecord | None:
        coin = await self.get_coin(token.address)
        if coin is None:
            return None
        return self.parse_coin(coin)

    def parse_coin(self, coin: dict[str, Any]) -> ProviderRecord:
        """Normalise a Pump.fun coin payload."""
        progress = compute_progress(coin)
        graduated = bool(pick(coin, "raydium_pool", "pump_swap_pool")) or bool(
            to_bool(coin.get("complete"))
        )
        if progress is not None and progress >= 100:
            graduated = True

        socials: dict[str, str] = {}
        twitter = to_str(coin.get("twitter"))
        telegram = to_str(coin.get("telegram"))
        website = to_str(coin.get("website"))
        if twitter:
            socials["x"] = twitter
        if telegram:
            socials["tg"] = telegram
        if website:
            socials["website"] = website

        return ProviderRecord(
            source=self.SOURCE,
            name=to_str(coin.get("name")),
            symbol=to_str(coin.get("symbol")),
            price=pick_float(coin, "price_usd", "price_per_token"),
            market_cap=pick_float(coin, "usd_market_cap", "market_cap"),
            liquidity=pick_float(coin, "liquidity_usd", "usd_liquidity"),
            volume_24h=pick_float(coin, "volume_24h"),
            trades_24h=to_int(coin.get("txn_count_24h")),
            buyers_24h=to_int(coin.get("buyer_count_24h")),
            sellers_24h=to_int(coin.get("seller_count_24h")),
            created_at=to_datetime(pick(coin, "created_timestamp", "created_at")),
            last_event_time=to_datetime(pick(coin, "last_trade_timestamp", "last_reply")),
            bonding_progress=progress,
            bonding_completed=graduated,
            creator=to_str(coin.get("creator")),
            socials=socials or None,
            image_url=to_str(coin.get("image_uri")),
            raw=coin,
        )
