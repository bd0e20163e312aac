"""Token lifecycle classifier.

Decides whether a token is still on its bonding curve or trades on a
general DEX, and assigns the primary/secondary provider roles for the
merge that follows.
"""

import logging

from .core.address import TokenAddress
from .core.models import ClassificationResult
from .core.types import DataSource, FetchStatus, LifecycleState
from .providers.base import ProviderResult

logger = logging.getLogger(__name__)

# A near-complete curve with thin liquidity is an observed provider bug
# pattern, not a real near-graduation.
SUSPICIOUS_PROGRESS_PCT = 95.0
SUSPICIOUS_LIQUIDITY_USD = 100_000.0


class TokenClassifier:
    """Classifies a token's lifecycle stage from a bonding-curve probe."""

    def __init__(
        self,
        general_source: DataSource = DataSource.DEXSCREENER,
        suspicious_progress_pct: float = SUSPICIOUS_PROGRESS_PCT,
        suspicious_liquidity_usd: float = SUSPICIOUS_LIQUIDITY_USD,
    ):
        """
        Initialize classifier.

        Args:
            general_source: DEX/pool provider used for graduated and regular tokens
            suspicious_progress_pct: Progress at or above which liquidity is cross-checked
            suspicious_liquidity_usd: Liquidity below which such progress is distrusted
        """
        self.general_source = general_source
        self.suspicious_progress_pct = suspicious_progress_pct
        self.suspicious_liquidity_usd = suspicious_liquidity_usd

    def is_suspicious(self, progress: float, liquidity: float | None) -> bool:
        """High progress contradicted by low reported liquidity."""
        return (
            progress >= self.suspicious_progress_pct
            and liquidity is not None
            and liquidity < self.suspicious_liquidity_usd
        )

    def classify(
        self,
        token: TokenAddress,
        early_probe: ProviderResult | None,
        liquidity_hint: float | None = None,
    ) -> ClassificationResult:
        """
        Classify a token from its bonding-curve probe.

        Args:
            token: Validated token address
            early_probe: Bonding-curve provider result, or None when the
                chain has no bonding-curve platform
            liquidity_hint: USD liquidity from another provider, used when
                the bonding provider reports none

        Returns:
            ClassificationResult with lifecycle state and provider roles
        """
        if early_probe is None:
            return ClassificationResult(
                state=LifecycleState.GRADUATED_OR_REGULAR,
                primary_source=self.general_source,
            )

        if early_probe.status == FetchStatus.UNAVAILABLE:
            logger.warning(
                f"Bonding probe {early_probe.source.value} unavailable for {token} ({early_probe.error}), "
                f"falling back to {self.general_source.value}"
            )
            return ClassificationResult(
                state=LifecycleState.UNKNOWN,
                primary_source=self.general_source,
                bonding_source=early_probe.source,
            )

        if not early_probe.found:
            return ClassificationResult(
                state=LifecycleState.GRADUATED_OR_REGULAR,
                primary_source=self.general_source,
            )

        record = early_probe.record
        if record.bonding_progress is None and record.bonding_completed is None:
            logger.debug(f"{record.source.value} record for {token} has no curve state, not a bonding token")
            return ClassificationResult(
                state=LifecycleState.GRADUATED_OR_REGULAR,
                primary_source=self.general_source,
            )

        completed = bool(record.bonding_completed)
        progress = record.bonding_progress
        if progress is None:
            progress = 100.0 if completed else 0.0

        liquidity = record.liquidity if record.liquidity is not None else liquidity_hint
        override = False
        if self.is_suspicious(progress, liquidity):
            logger.info(
                f"Suspicious bonding data for {token} from {record.source.value}: progress {progress:.1f}% "
                f"with ${liquidity:,.0f} liquidity, treating as pre-bond"
            )
            progress = 0.0
            completed = False
            override = True
            record = record.model_copy(update={"bonding_progress": 0.0, "bonding_completed": False})

        if not completed and progress < 100:
            return ClassificationResult(
                state=LifecycleState.PRELAUNCH_BONDING,
                primary_source=record.source,
                bonding_source=record.source,
                progress=progress,
                completed=False,
                override_applied=override,
                bonding_record=record,
            )

        return ClassificationResult(
            state=LifecycleState.GRADUATED_OR_REGULAR,
            primary_source=self.general_source,
            secondary_source=record.source,
            bonding_source=record.source,
            progress=progress,
            completed=True,
            bonding_record=record,
        )
