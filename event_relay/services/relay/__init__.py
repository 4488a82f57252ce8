"""
Relay services module.

Event to request mapping, delivery with bounded retry, and the
per-event-kind pipelines supervised by the dispatcher.
"""

from .dispatcher import RelayDispatcher
from .http_transport import HttpTransport
from .pipeline import RelayPipeline
from .request_builder import RelayRequest, build_relay_request
from .retry_executor import (
    AttemptOutcome,
    DeliveryResult,
    DeliveryState,
    RetryExecutor,
)


__all__ = [
    "AttemptOutcome",
    "DeliveryResult",
    "DeliveryState",
    "HttpTransport",
    "RelayDispatcher",
    "RelayPipeline",
    "RelayRequest",
    "RetryExecutor",
    "build_relay_request",
]
