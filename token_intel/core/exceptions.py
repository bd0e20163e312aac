"""Custom exceptions for the token intelligence engine."""


class TokenIntelError(Exception):
    """Base exception for all token intelligence errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DataSourceError(TokenIntelError):
    """Raised when a data source fails or returns invalid data."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(
            full_message,
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitError(DataSourceError):
    """Raised when API rate limit is hit."""

    def __init__(
        self,
        source: str,
        retry_after_seconds: int | None = None,
        endpoint: str | None = None,
    ):
        message = "Rate limit exceeded"
        if retry_after_seconds:
            message += f", retry after {retry_after_seconds}s"
        super().__init__(source, message, endpoint=endpoint, status_code=429)
        self.retry_after_seconds = retry_after_seconds


class ProviderUnsupportedError(DataSourceError):
    """Raised when a provider tier definitively refuses a request.

    Unlike a transient failure, this signal means the next fallback
    tier may be attempted.
    """


class ValidationError(TokenIntelError):
    """Raised when data validation fails."""

    def __init__(self, field: str, value: str, reason: str):
        message = f"Validation failed for {field}={value}: {reason}"
        super().__init__(message, {"field": field, "value": value, "reason": reason})
        self.field = field
        self.value = value
        self.reason = reason


class InvalidAddressError(ValidationError):
    """Raised when a token address does not match its chain's grammar."""

    def __init__(self, address: str, chain: str, reason: str | None = None):
        super().__init__(
            "tokenAddress",
            address,
            reason or f"not a valid {chain} token address",
        )
        self.address = address
        self.chain = chain


class ConfigurationError(TokenIntelError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
