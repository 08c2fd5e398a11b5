"""Domain exceptions.

Hey future me - NONE of these ever reach a caller of the lookup pipeline! Provider adapters
raise them, and the chain / resolver / metadata service catch them at their boundary and turn
them into "no answer" (a null field plus a source tag). The only one that escapes is
ConfigurationError at construction time, because a chain with zero sources is a deploy bug.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    Example:
        raise ValidationError("LookupRequest.track_id cannot be empty")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration is missing, e.g. a BPM provider chain
    built with zero configured sources.
    """

    pass


class SourceUnavailableError(ConfigurationError):
    """A source has no credentials and must not be invoked."""

    def __init__(self, source: str) -> None:
        super().__init__(f"Source '{source}' is not configured")
        self.source = source


class ExternalServiceError(DomainException):
    """External service returned an error or could not be reached."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class SourceRequestFailedError(ExternalServiceError):
    """HTTP, network or timeout failure talking to a source."""

    pass


class SourceParseError(ExternalServiceError):
    """A source answered with a payload of unexpected shape."""

    pass


class RateLimitExceededError(ExternalServiceError):
    """A source kept answering 429 after all retries."""

    def __init__(
        self, message: str, source: str | None = None, retry_after: float | None = None
    ) -> None:
        super().__init__(message, source=source)
        self.retry_after = retry_after


class CacheUnavailableError(DomainException):
    """The persistent track cache store is misconfigured or erroring."""

    pass


class EnrichmentCancelledError(DomainException):
    """An enrichment run was superseded while work was in flight."""

    def __init__(self, message: str = "Enrichment run was cancelled") -> None:
        super().__init__(message)


__all__ = [
    "CacheUnavailableError",
    "ConfigurationError",
    "DomainException",
    "EnrichmentCancelledError",
    "ExternalServiceError",
    "RateLimitExceededError",
    "SourceParseError",
    "SourceRequestFailedError",
    "SourceUnavailableError",
    "ValidationError",
]
