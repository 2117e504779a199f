"""Custom exception classes for the location/currency pipeline."""


class GeoCurrencyError(Exception):
    """Base exception for all geocurrency errors."""
    pass


class ConfigurationError(GeoCurrencyError):
    """Raised when there's a configuration error."""
    pass


class ValidationError(GeoCurrencyError):
    """Raised when data validation fails."""
    pass


class DataProviderError(GeoCurrencyError):
    """Base exception for external data provider errors."""

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class ProviderTimeout(DataProviderError):
    """Raised when a provider does not answer within its timeout."""
    pass


class ProviderHTTPError(DataProviderError):
    """Raised when a provider answers with a non-2xx status."""

    def __init__(self, message: str, provider: str = "unknown", status_code: int = 0):
        super().__init__(message, provider)
        self.status_code = status_code


class ProviderMalformedResponse(DataProviderError):
    """Raised when a provider body is not JSON or lacks the required fields."""
    pass


class AllProvidersExhausted(DataProviderError):
    """Raised when every provider of a cascade failed."""

    def __init__(self, message: str, errors=None, provider: str = "cascade"):
        super().__init__(message, provider)
        self.errors = list(errors or [])


class RateProviderExhausted(AllProvidersExhausted):
    """Raised when every exchange-rate source failed."""
    pass


class CacheError(GeoCurrencyError):
    """Raised when cache operations fail."""
    pass


class CacheReadError(CacheError):
    """Raised when a persisted cache entry cannot be decoded."""
    pass
