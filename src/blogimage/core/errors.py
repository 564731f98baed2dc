"""Exception taxonomy for the image materialization pipeline.

Every exception raised inside the pipeline maps onto one :class:`ErrorKind`.
The orchestrator converts exceptions into outcome values at its boundary, so
none of these escape into the HTTP layer uncaught.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failed materialization, surfaced in outcomes."""

    NOT_CONFIGURED = "not-configured"
    PROVIDER_FAILURE = "provider-failure"
    EMPTY_IMAGE_DATA = "empty-image-data"
    WRITE_FAILURE = "write-failure"
    INVALID_INPUT = "invalid-input"


class BlogImageError(Exception):
    """Base exception for the blog image generator."""

    kind: ErrorKind = ErrorKind.PROVIDER_FAILURE
    retryable: bool = False


class InvalidInputError(BlogImageError):
    """Raised when a request is malformed. Always raised before any provider call."""

    kind = ErrorKind.INVALID_INPUT


class NotConfiguredError(BlogImageError):
    """Raised when a provider is missing its credential."""

    kind = ErrorKind.NOT_CONFIGURED

    def __init__(self, provider: str, hint: str = "") -> None:
        message = f"{provider} provider is not configured."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)
        self.provider = provider


class ProviderError(BlogImageError):
    """Raised by providers when an upstream call fails.

    Args:
        message: Human-readable description of the failure.
        provider: Name of the provider that failed.
        code: Short machine-readable failure code (e.g. ``API_ERROR``).
        retryable: Whether the failure is transient (rate limit, timeout,
            temporary unavailability). The pipeline reports this flag but
            never retries on its own.
    """

    kind = ErrorKind.PROVIDER_FAILURE

    def __init__(
        self,
        message: str,
        provider: str,
        code: str = "API_ERROR",
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.retryable = retryable


class EmptyImageDataError(ProviderError):
    """Raised when the provider responded without usable image content."""

    kind = ErrorKind.EMPTY_IMAGE_DATA

    def __init__(self, message: str, provider: str, code: str = "NO_IMAGE") -> None:
        super().__init__(message, provider, code=code, retryable=True)


class WriteFailureError(BlogImageError):
    """Raised when a generated image could not be persisted."""

    kind = ErrorKind.WRITE_FAILURE
