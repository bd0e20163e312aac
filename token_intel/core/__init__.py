"""Core module - data models, types, and exceptions."""

from .address import TokenAddress, is_valid_address
from .models import (
    CanonicalTokenRecord,
    ClassificationResult,
    HolderAnalysis,
    HolderEntry,
    ProviderRecord,
    RiskAssessment,
    TokenNotFoundRecord,
)
from .types import (
    Chain,
    ChainFamily,
    DataQuality,
    DataSource,
    Distribution,
    FetchStatus,
    LifecycleState,
    RiskLevel,
    TokenType,
)
from .exceptions import (
    TokenIntelError,
    DataSourceError,
    RateLimitError,
    ProviderUnsupportedError,
    ValidationError,
    InvalidAddressError,
    ConfigurationError,
)

__all__ = [
    # Models
    "TokenAddress",
    "is_valid_address",
    "CanonicalTokenRecord",
    "ClassificationResult",
    "HolderAnalysis",
    "HolderEntry",
    "ProviderRecord",
    "RiskAssessment",
    "TokenNotFoundRecord",
    # Types
    "Chain",
    "ChainFamily",
    "DataQuality",
    "DataSource",
    "Distribution",
    "FetchStatus",
    "LifecycleState",
    "RiskLevel",
    "TokenType",
    # Exceptions
    "TokenIntelError",
    "DataSourceError",
    "RateLimitError",
    "ProviderUnsupportedError",
    "ValidationError",
    "InvalidAddressError",
    "ConfigurationError",
]
