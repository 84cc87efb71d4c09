"""Tests for custom errors."""
from ratedesk.utils.errors import (
    RateDeskError,
    ConfigurationError,
    DataProviderError,
    EmptyResult,
    MalformedResponse,
    NetworkFailure,
    ValidationFailure,
)


def test_error_hierarchy():
    """Test error inheritance."""
    assert issubclass(ConfigurationError, RateDeskError)
    assert issubclass(ValidationFailure, RateDeskError)
    assert issubclass(DataProviderError, RateDeskError)
    for error in (NetworkFailure, MalformedResponse, EmptyResult):
        assert issubclass(error, DataProviderError)


def test_validation_failure_is_not_a_provider_error():
    """Client-side validation never looks like an upstream failure."""
    assert not issubclass(ValidationFailure, DataProviderError)


def test_error_messages():
    """Test error messages."""
    error = NetworkFailure("HTTP 503 from /latest")
    assert str(error) == "HTTP 503 from /latest"
