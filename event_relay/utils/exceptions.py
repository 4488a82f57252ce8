"""
Exception handling utilities.

Defines the relay error taxonomy and categorized exception types
for proper error handling.
"""

from typing import Any


class RelayError(Exception):
    """Base exception for relay errors."""
    pass


class ConfigurationError(RelayError):
    """Raised when environment or contract interface configuration is invalid."""
    pass


class ChainSubscriptionError(RelayError):
    """Raised when an event stream cannot be established or is lost."""

    def __init__(self, message: str, event_name: str | None = None) -> None:
        super().__init__(message)
        self.event_name = event_name


class TransportError(RelayError):
    """Raised when the downstream API cannot be reached for one attempt."""
    pass


class HttpStatusError(RelayError):
    """Raised when the downstream API answers with a non-2xx status."""

    def __init__(self, status: int, url: str | None = None) -> None:
        super().__init__(f"HTTP {status}" + (f" from {url}" if url else ""))
        self.status = status
        self.url = url


class RetriesExhausted(RelayError):
    """Raised when every delivery attempt for a request has failed."""

    def __init__(self, request: Any, attempts: list[Any]) -> None:
        super().__init__(
            f"{request.method} {request.url} failed after {len(attempts)} attempts"
        )
        self.request = request
        self.attempts = attempts


class PipelineTerminated(RelayError):
    """Raised when a relay pipeline stops consuming its event stream."""
    pass


# Exception categories based on handling strategy

# Retried by the executor, never escape the per-event boundary
RETRYABLE = (
    TransportError,
    HttpStatusError,
)

# Terminate the process
FATAL = (
    ConfigurationError,
    ChainSubscriptionError,
    PipelineTerminated,
)


def is_fatal(exc: BaseException) -> bool:
    """
    Check if exception must terminate the process.

    Args:
        exc: Exception to check

    Returns:
        True if exception is fatal
    """
    return isinstance(exc, FATAL)
