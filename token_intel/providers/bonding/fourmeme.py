"""Four.meme bonding-curve provider (BSC), via Bitquery GraphQL.

Bonding progress is read from the latest LiquidityAdded event emitted
by the Four.meme proxy contract for the token:

    progress = 100 - ((balance - 200M) * 100 / 800M)

where balance is the token amount in the event (18 decimals).
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx

from ...core.address import TokenAddress
from ...core.coerce import clamp, dig, pick, to_datetime, to_float, to_int, to_str
from ...core.exceptions import ConfigurationError, DataSourceError
from ...core.models import ProviderRecord
from ...core.types import DataSource
from ..base import DEFAULT_TIMEOUT, MarketDataProvider

logger = logging.getLogger(__name__)

FOUR_MEME_PROXY_ADDRESS = "0x5c952063c7fc8610ffdb798152d69f0b9550762b"
TOKEN_DECIMALS = 18
CURVE_FLOOR_TOKENS = 200_000_000
CURVE_RANGE_TOKENS = 800_000_000

BONDING_CURVE_QUERY = """
query($token: String!, $proxyAddress: String!) {
  EVM(dataset: realtime, network: bsc) {
    Events(
      limit: {count: 1}
      orderBy: {descending: Block_Number}
      where: {
        LogHeader: {Address: {is: $proxyAddress}}
        Log: {Signature: {Name: {is: "LiquidityAdded"}}}
        Arguments: {includes: {Name: {is: "token1"}, Value: {Address: {is: $token}}}}
      }
    ) {
      Block { Time Number }
      Arguments {
        Name
        Value {
          ... on EVM_ABI_Integer_Value_Arg { integer }
          ... on EVM_ABI_BigInt_Value_Arg { bigInteger }
        }
      }
    }
  }
}
"""

TRADE_METRICS_QUERY = """
query($currency: String!, $time_24hr_ago: DateTime!, $time_1hr_ago: DateTime!, $time_5min_ago: DateTime!) {
  EVM(network: bsc) {
    DEXTradeByTokens(
      where: {
        Trade: {Currency: {SmartContract: {is: $currency}}, Success: true}
        Block: {Time: {since: $time_24hr_ago}}
      }
    ) {
      Trade {
        Currency { Name Symbol SmartContract }
        PriceInUSD(maximum: Block_Number)
      }
      volume_24hr: sum(of: Trade_Side_AmountInUSD)
      volume_1hr: sum(of: Trade_Side_AmountInUSD, if: {Block: {Time: {since: $time_1hr_ago}}})
      volume_5min: sum(of: Trade_Side_AmountInUSD, if: {Block: {Time: {since: $time_5min_ago}}})
      trades_24hr: count
      trades_1hr: count(if: {Block: {Time: {since: $time_1hr_ago}}})
    }
  }
}
"""

TOKEN_INFO_QUERY = """
query($token: String!) {
  EVM(network: bsc) {
    Transfers(
      where: {Transfer: {Currency: {SmartContract: {is: $token}}}}
      orderBy: {ascending: Block_Time}
      limit: {count: 1}
    ) {
      Transfer { Currency { SmartContract Name Symbol Decimals } }
      Block { Time }
    }
  }
}
"""


def progress_from_balance(balance_tokens: float) -> float:
    """Bonding-curve progress from the token balance left in the curve."""
    raw = 100.0 - ((balance_tokens - CURVE_FLOOR_TOKENS) * 100.0 / CURVE_RANGE_TOKENS)
    return clamp(raw)


class FourMemeProvider(MarketDataProvider):
    """Four.meme provider backed by Bitquery's GraphQL API."""

    SOURCE = DataSource.FOURMEME
    BASE_URL = "https://graphql.bitquery.io"

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        """
        Initialize Four.meme provider.

        Args:
            api_key: Bitquery API key (required)
            base_url: Override for the GraphQL endpoint
            timeout: Total time bound per call
            client: Optional shared HTTP client
            now: Clock used for trade-metric windows

        Raises:
            ConfigurationError: if no API key is given
        """
        if not api_key:
            raise ConfigurationError("BITQUERY_API_KEY", "Four.meme provider requires a Bitquery API key")
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self._now = now or (lambda: datetime.now(timezone.utc))

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _graphql(self, query: str, variables: dict[str, Any], endpoint: str) -> dict[str, Any]:
        result = await self._request_json(
            "POST",
            self.base_url,
            endpoint=endpoint,
            json={"query": query, "variables": variables},
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        if not isinstance(result, dict):
            raise DataSourceError("fourmeme", "empty GraphQL response", endpoint=endpoint)

        errors = result.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) and errors else {}
            message = first.get("message") if isinstance(first, dict) else None
            raise DataSourceError("fourmeme", f"GraphQL error: {message or 'Unknown error'}", endpoint=endpoint)

        return result

    async def get_bonding_curve(self, token_address: str) -> dict[str, Any] | None:
        """Progress, balance and event time from the latest LiquidityAdded event."""
        response = await self._graphql(
            BONDING_CURVE_QUERY,
            {"token": token_address, "proxyAddress": FOUR_MEME_PROXY_ADDRESS},
            endpoint="bonding_curve",
        )
        events = dig(response, "data.EVM.Events")
        if not events:
            return None

        event = events[0]
        token_balance = 0.0
        for arg in event.get("Arguments") or []:
            if arg.get("Name") in ("amount1", "tokenAmount"):
                token_balance = to_float(pick(arg, "Value.bigInteger", "Value.integer")) or 0.0

        balance = token_balance / 10**TOKEN_DECIMALS
        progress = progress_from_balance(balance)

        return {
            "balance": balance,
            "progress": progress,
            "completed": progress >= 100,
            "last_event_time": dig(event, "Block.Time"),
        }

    async def get_trade_metrics(self, token_address: str) -> dict[str, Any] | None:
        """24h/1h/5m USD volume and trade counts."""
        now = self._now()
        variables = {
            "currency": token_address,
            "time_24hr_ago": (now - timedelta(hours=24)).isoformat(),
            "time_1hr_ago": (now - timedelta(hours=1)).isoformat(),
            "time_5min_ago": (now - timedelta(minutes=5)).isoformat(),
        }
        response = await self._graphql(TRADE_METRICS_QUERY, variables, endpoint="trade_metrics")
        rows = dig(response, "data.EVM.DEXTradeByTokens")
        if not rows:
            return None
        return rows[0]

    async def get_token_info(self, token_address: str) -> dict[str, Any] | None:
        """Identity and creation time from the token's first transfer."""
        response = await self._graphql(TOKEN_INFO_QUERY, {"token": token_address}, endpoint="token_info")
        transfers = dig(response, "data.EVM.Transfers")
        if not transfers:
            return None
        return transfers[0]

    async def _fetch(self, token: TokenAddress) -> ProviderRecord | None:
        outcomes = await asyncio.gather(
            self.get_bonding_curve(token.address),
            self.get_trade_metrics(token.address),
            self.get_token_info(token.address),
            return_exceptions=True,
        )

        settled: list[dict[str, Any] | None] = []
        failures: list[DataSourceError | None] = []
        for outcome in outcomes:
            if isinstance(outcome, DataSourceError):
                failures.append(outcome)
                settled.append(None)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                failures.append(None)
                settled.append(outcome)

        bonding, metrics, info = settled
        bonding_failure = failures[0]
        if bonding is None:
            # Trades and transfers exist for any BEP-20 token; only a curve event marks a Four.meme token
            if bonding_failure is not None:
                raise bonding_failure
            return None

        for failure in failures:
            if failure is not None:
                logger.warning(f"[fourmeme] partial data for {token}: {failure.message}")

        return self.build_record(bonding, metrics, info)

    def build_record(
        self,
        bonding: dict[str, Any] | None,
        metrics: dict[str, Any] | None,
        info: dict[str, Any] | None,
    ) -> ProviderRecord:
        """
        Combine the three query results into one record.

        Liquidity is the USD value of the tokens still held by the curve,
        known only when the trade query reports a price.
        """
        identity = dig(metrics, "Trade.Currency") or dig(info, "Transfer.Currency") or {}
        price = to_float(dig(metrics, "Trade.PriceInUSD"))
        balance = bonding.get("balance") if bonding else None
        liquidity = max(0.0, balance * price) if balance is not None and price is not None else None

        return ProviderRecord(
            source=self.SOURCE,
            name=to_str(pick(identity, "Name")),
            symbol=to_str(pick(identity, "Symbol")),
            price=price,
            liquidity=liquidity,
            volume_24h=to_float(dig(metrics, "volume_24hr")),
            volume_1h=to_float(dig(metrics, "volume_1hr")),
            volume_5m=to_float(dig(metrics, "volume_5min")),
            trades_24h=to_int(dig(metrics, "trades_24hr")),
            trades_1h=to_int(dig(metrics, "trades_1hr")),
            created_at=to_datetime(dig(info, "Block.Time")),
            bonding_progress=bonding["progress"] if bonding else None,
            bonding_completed=bonding["completed"] if bonding else None,
            last_event_time=to_datetime(bonding["last_event_time"]) if bonding else None,
            raw={"bonding": bonding, "metrics": metrics, "info": info},
        )
