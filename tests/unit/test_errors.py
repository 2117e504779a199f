"""Tests for custom errors."""
from geocurrency.utils.errors import (
    AllProvidersExhausted,
    CacheError,
    CacheReadError,
    ConfigurationError,
    DataProviderError,
    GeoCurrencyError,
    ProviderHTTPError,
    ProviderMalformedResponse,
    ProviderTimeout,
    RateProviderExhausted,
    ValidationError,
)


def test_error_hierarchy():
    """Test error inheritance."""
    assert issubclass(ConfigurationError, GeoCurrencyError)
    assert issubclass(ValidationError, GeoCurrencyError)
    assert issubclass(DataProviderError, GeoCurrencyError)
    assert issubclass(CacheError, GeoCurrencyError)
    for cls in (ProviderTimeout, ProviderHTTPError, ProviderMalformedResponse, AllProvidersExhausted):
        assert issubclass(cls, DataProviderError)
    assert issubclass(RateProviderExhausted, AllProvidersExhausted)
    assert issubclass(CacheReadError, CacheError)


def test_error_messages():
    """Test error messages."""
    error = ConfigurationError("Test message")
    assert str(error) == "Test message"


def test_provider_attributes():
    err = ProviderHTTPError("ipapi.co: HTTP 429", "ipapi.co", 429)
    assert err.provider == "ipapi.co"
    assert err.status_code == 429

    exhausted = RateProviderExhausted("all failed", errors=["a: boom", "b: boom"])
    assert exhausted.errors == ["a: boom", "b: boom"]
    assert exhausted.provider == "cascade"
