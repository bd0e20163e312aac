"""Base classes for data providers."""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, TypeVar

import httpx

from ..core.address import TokenAddress
from ..core.exceptions import DataSourceError, ProviderUnsupportedError, RateLimitError
from ..core.models import HolderAnalysis, ProviderRecord
from ..core.types import DataQuality, DataSource, FetchStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ProviderResult:
    """Result of one market-data provider call."""

    source: DataSource
    status: FetchStatus
    record: ProviderRecord | None = None
    error: str | None = None

    @classmethod
    def ok(cls, record: ProviderRecord) -> "ProviderResult":
        return cls(source=record.source, status=FetchStatus.OK, record=record)

    @classmethod
    def not_found(cls, source: DataSource) -> "ProviderResult":
        return cls(source=source, status=FetchStatus.NOT_FOUND)

    @classmethod
    def unavailable(cls, source: DataSource, error: str) -> "ProviderResult":
        return cls(source=source, status=FetchStatus.UNAVAILABLE, error=error)

    @property
    def found(self) -> bool:
        return self.status == FetchStatus.OK and self.record is not None


class BaseProvider(ABC):
    """Abstract base class for all data providers."""

    # Subclasses must define their data source
    SOURCE: DataSource = DataSource.UNKNOWN

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize provider.

        Args:
            timeout: Total time bound for one provider call, in seconds
            client: Optional shared HTTP client (tests inject a mock transport)
        """
        self.timeout = timeout
        self._client = client

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured."""

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        """Apply the provider's total time bound to a call."""
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Make a request and decode its JSON body.

        Returns None on 404. Raises RateLimitError on 429,
        ProviderUnsupportedError on 401/403 and DataSourceError on any
        other failure.
        """
        source = self.SOURCE.value
        logger.debug(f"[{source}] {method} {endpoint}")

        try:
            async with self._session() as client:
                response = await client.request(
                    method, url, params=params, json=json, headers=headers
                )
        except httpx.TimeoutException as e:
            raise DataSourceError(source, f"timeout: {e}", endpoint=endpoint)
        except httpx.RequestError as e:
            raise DataSourceError(source, str(e) or type(e).__name__, endpoint=endpoint)

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise RateLimitError(
                source,
                retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                endpoint=endpoint,
            )

        if response.status_code == 404:
            return None

        if response.status_code in (401, 403):
            raise ProviderUnsupportedError(
                source,
                f"HTTP {response.status_code}",
                endpoint=endpoint,
                status_code=response.status_code,
            )

        if response.status_code >= 400:
            raise DataSourceError(
                source,
                f"HTTP {response.status_code}",
                endpoint=endpoint,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise DataSourceError(
                source,
                "response was not JSON",
                endpoint=endpoint,
                status_code=response.status_code,
            )


class MarketDataProvider(BaseProvider):
    """Provider returning a ProviderRecord for a token.

    `fetch` never raises for provider failures: it returns a
    ProviderResult whose status distinguishes "no data" from
    "transiently unavailable".
    """

    async def fetch(self, token: TokenAddress) -> ProviderResult:
        source = self.SOURCE.value
        try:
            record = await self._bounded(self._fetch(token))
        except asyncio.TimeoutError:
            logger.warning(f"[{source}] timed out after {self.timeout:.1f}s for {token}")
            return ProviderResult.unavailable(self.SOURCE, f"timed out after {self.timeout:.1f}s")
        except DataSourceError as e:
            logger.warning(f"[{source}] unavailable for {token}: {e.message}")
            return ProviderResult.unavailable(self.SOURCE, e.message)

        if record is None:
            logger.info(f"[{source}] no data for {token}")
            return ProviderResult.not_found(self.SOURCE)
        return ProviderResult.ok(record)

    @abstractmethod
    async def _fetch(self, token: TokenAddress) -> ProviderRecord | None:
        """Fetch and normalise data; None means the provider has nothing."""


class HolderProvider(BaseProvider):
    """Provider producing a HolderAnalysis. Never raises for provider failures."""

    def __init__(
        self,
        holder_limit: int = 20,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self.holder_limit = holder_limit

    async def analyze(self, token: TokenAddress) -> HolderAnalysis:
        name = self.SOURCE.display_name
        try:
            return await self._bounded(self._analyze(token))
        except asyncio.TimeoutError:
            logger.warning(f"[{self.SOURCE.value}] holder analysis timed out for {token}")
            return HolderAnalysis.failed(f"{name} timed out after {self.timeout:.1f}s", name)
        except DataSourceError as e:
            logger.warning(f"[{self.SOURCE.value}] holder analysis failed for {token}: {e.message}")
            return HolderAnalysis.failed(e.message, name)

    @abstractmethod
    async def _analyze(self, token: TokenAddress) -> HolderAnalysis:
        """Build the holder analysis; may raise DataSourceError."""

    def _insufficient(self, reason: str) -> HolderAnalysis:
        logger.warning(f"[{self.SOURCE.value}] {reason}")
        return HolderAnalysis.failed(
            reason, self.SOURCE.display_name, quality=DataQuality.LIMITED
        )
