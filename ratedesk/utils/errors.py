"""Custom exception classes for RateDesk."""


class RateDeskError(Exception):
    """Base exception for all RateDesk errors."""
    pass


class ConfigurationError(RateDeskError):
    """Raised when there's a configuration error."""
    pass


class DataProviderError(RateDeskError):
    """Base exception for upstream rate API errors."""
    pass


class NetworkFailure(DataProviderError):
    """Raised when the upstream API cannot be reached or answers with an error status."""
    pass


class MalformedResponse(DataProviderError):
    """Raised when an upstream payload does not have the expected shape."""
    pass


class EmptyResult(DataProviderError):
    """Raised when a well-formed payload carries no usable entries."""
    pass


class ValidationFailure(RateDeskError):
    """Raised when user input fails client-side validation."""
    pass
