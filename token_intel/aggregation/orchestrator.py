"""Main orchestrator for the token intelligence pipeline.

Coordinates providers, classifier, merge, risk engine and formatter to
produce a response from a chain-qualified token address:

    validate -> [bonding probe || DEX fetch || holder analysis]
             -> classify -> merge -> risk -> format
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping

import httpx

from ..calculator.risk import RiskEngine
from ..classifier import TokenClassifier
from ..core.address import TokenAddress
from ..core.config import APIConfig
from ..core.models import CanonicalTokenRecord, HolderAnalysis, TokenNotFoundRecord
from ..core.types import Chain, DataSource, LifecycleState
from ..output.response import AnalysisReport, ResponseFormatter
from ..providers.base import HolderProvider, MarketDataProvider, ProviderResult
from ..providers.bonding.fourmeme import FourMemeProvider
from ..providers.bonding.pumpfun import PumpFunProvider
from ..providers.dex.dexscreener import DexScreenerProvider
from ..providers.holders.analyzer import HolderAnalyzer
from ..providers.holders.explorer import ExplorerHolderProvider
from ..providers.holders.helius import HeliusHolderProvider
from ..providers.holders.moralis import MoralisHolderProvider
from .merge import merge_records, token_age_minutes

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIntelOrchestrator:
    """Orchestrates the complete token analysis pipeline.

    Holds no per-request state: every call to `analyze` is independent,
    so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        dex_provider: MarketDataProvider,
        bonding_providers: Mapping[Chain, MarketDataProvider] | None = None,
        holder_analyzer: HolderAnalyzer | None = None,
        classifier: TokenClassifier | None = None,
        risk_engine: RiskEngine | None = None,
        formatter: ResponseFormatter | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the orchestrator with its collaborators.

        Args:
            dex_provider: General DEX/pool provider (primary for graduated tokens)
            bonding_providers: Bonding-curve provider per chain
            holder_analyzer: Holder analysis service (None disables holders)
            classifier: Lifecycle classifier
            risk_engine: Risk & metrics engine
            formatter: Response formatter
            now: Clock used for token age and analysis timestamps
        """
        self.dex_provider = dex_provider
        self.bonding_providers = dict(bonding_providers or {})
        self.holder_analyzer = holder_analyzer
        self.classifier = classifier or TokenClassifier(general_source=dex_provider.SOURCE)
        self.risk_engine = risk_engine or RiskEngine()
        self.formatter = formatter or ResponseFormatter()
        self._now = now or _utcnow

    async def analyze(self, address: str, chain: Chain | str) -> AnalysisReport:
        """
        Perform a complete token analysis.

        Args:
            address: Token contract / mint address
            chain: Chain identifier

        Returns:
            TokenReport, NotFoundReport or PrebondReport

        Raises:
            InvalidAddressError: if the address does not match the chain's
                grammar (no provider is called)
        """
        record = await self.build_record(address, chain)

        if isinstance(record, TokenNotFoundRecord):
            return self.formatter.format_not_found(record)

        analyzed_at = self._now()
        if self.formatter.is_prebond(record):
            return self.formatter.format_prebond(record, analyzed_at)

        risk = self.risk_engine.assess(record, record.holders)
        return self.formatter.format_report(record, risk, analyzed_at)

    async def build_record(
        self,
        address: str,
        chain: Chain | str,
    ) -> CanonicalTokenRecord | TokenNotFoundRecord:
        """
        Build the merged canonical record for a token.

        Market providers and holder analysis run concurrently. A holder
        failure degrades the record, it never fails it.

        Raises:
            InvalidAddressError: on a malformed address or unsupported chain
        """
        token = TokenAddress.parse(address, chain)
        logger.info(f"Analyzing {token} on {token.chain.value}")

        holder_task = asyncio.create_task(self._analyze_holders(token))
        try:
            record = await self._aggregate(token)
        except BaseException:
            holder_task.cancel()
            raise

        holders = await holder_task
        return record.model_copy(update={"holders": holders})

    async def _probe_bonding(self, token: TokenAddress) -> ProviderResult | None:
        provider = self.bonding_providers.get(token.chain)
        if provider is None:
            return None
        return await provider.fetch(token)

    async def _analyze_holders(self, token: TokenAddress) -> HolderAnalysis | None:
        if self.holder_analyzer is None:
            return None
        try:
            return await self.holder_analyzer.analyze(token)
        except Exception as e:
            # Holder data never fails the token report
            logger.exception(f"Holder analysis crashed for {token}")
            return HolderAnalysis.failed(
                f"Holder analysis failed: {type(e).__name__}",
                DataSource.UNKNOWN.display_name,
            )

    async def _aggregate(self, token: TokenAddress) -> CanonicalTokenRecord | TokenNotFoundRecord:
        probe, dex = await asyncio.gather(
            self._probe_bonding(token),
            self.dex_provider.fetch(token),
        )

        classification = self.classifier.classify(
            token,
            probe,
            liquidity_hint=dex.record.liquidity if dex.found else None,
        )

        if classification.state == LifecycleState.PRELAUNCH_BONDING:
            primary = classification.bonding_record
            secondary = None
        else:
            primary = dex.record if dex.found else None
            secondary = classification.bonding_record

        if primary is None:
            checked = [dex.source] + ([probe.source] if probe is not None else [])
            logger.info(
                f"{token} not found by primary provider {classification.primary_source.value} "
                f"({dex.status.value})"
            )
            return TokenNotFoundRecord(
                contract=token.address,
                chain=token.chain,
                sources_checked=checked,
            )

        merged = merge_records(primary, secondary)
        age = token_age_minutes(merged, (primary, secondary), self._now())

        sources = [primary.source]
        if secondary is not None:
            sources.append(secondary.source)

        logger.debug(
            f"{token}: state={classification.state.value} primary={primary.source.value} "
            f"secondary={secondary.source.value if secondary else None}"
        )

        return CanonicalTokenRecord(
            contract=token.address,
            chain=token.chain,
            name=merged.name,
            symbol=merged.symbol,
            classification=classification,
            data_source_primary=primary.source,
            data_source_secondary=secondary.source if secondary else None,
            sources_available=sources,
            market=merged,
            token_age_minutes=age,
        )


def build_orchestrator(
    config: APIConfig,
    client: httpx.AsyncClient | None = None,
) -> TokenIntelOrchestrator:
    """
    Wire an orchestrator from configuration.

    Only providers whose credentials are configured are created; each
    skipped provider is logged once here, at startup.

    Args:
        config: Validated API configuration
        client: Optional shared HTTP client for every provider

    Returns:
        TokenIntelOrchestrator
    """
    timeout = config.request_timeout
    limit = config.holder_limit

    dex = DexScreenerProvider(timeout=timeout, client=client)

    bonding: dict[Chain, MarketDataProvider] = {
        Chain.SOLANA: PumpFunProvider(timeout=timeout, client=client),
    }
    if config.has_bitquery():
        bonding[Chain.BSC] = FourMemeProvider(config.bitquery_api_key, timeout=timeout, client=client)
    else:
        logger.warning("BITQUERY_API_KEY not set - Four.meme bonding data disabled on bsc")

    holders: dict[DataSource, HolderProvider] = {}
    if config.has_helius():
        holders[DataSource.HELIUS] = HeliusHolderProvider(
            config.helius_api_key, holder_limit=limit, timeout=timeout, client=client
        )
    else:
        logger.warning("HELIUS_API_KEY not set - Solana holders fall back to Moralis")
    if config.has_moralis():
        holders[DataSource.MORALIS] = MoralisHolderProvider(
            config.moralis_api_key, holder_limit=limit, timeout=timeout, client=client
        )
    else:
        logger.warning("MORALIS_API_KEY not set - Moralis holder data disabled")
    if config.has_etherscan():
        holders[DataSource.EXPLORER] = ExplorerHolderProvider(
            config.etherscan_api_key, holder_limit=limit, timeout=timeout, client=client
        )
    else:
        logger.warning("ETHERSCAN_API_KEY not set - explorer holder fallback disabled")

    return TokenIntelOrchestrator(
        dex_provider=dex,
        bonding_providers=bonding,
        holder_analyzer=HolderAnalyzer(holders),
    )
