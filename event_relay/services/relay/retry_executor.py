"""
Retry executor for relay requests.

Delivers one request with a bounded number of fixed-interval retries.
The attempt loop is an explicit state machine:

    ATTEMPTING(n) -> DELIVERED
    ATTEMPTING(n) -> ATTEMPTING(n + 1)   (n <= max_retries)
    ATTEMPTING(n) -> EXHAUSTED           (n == max_retries + 1)

The executor never logs. Callers observe attempts through ``on_attempt``.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from event_relay.config.constants import RELAY_MAX_RETRIES, RELAY_RETRY_DELAY_SECONDS
from event_relay.utils.exceptions import (
    RETRYABLE,
    HttpStatusError,
    RelayError,
    RetriesExhausted,
    TransportError,
)

from .request_builder import RelayRequest


class Transport(Protocol):
    """Anything able to send a RelayRequest and return a status code."""

    async def send(self, request: RelayRequest) -> int: ...


class DeliveryState(Enum):
    """Executor state."""

    ATTEMPTING = "attempting"
    DELIVERED = "delivered"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of a single delivery attempt."""

    succeeded: bool
    attempt_number: int
    http_status: int | None = None
    failure: RelayError | None = None

    @property
    def error(self) -> str | None:
        """Human readable failure reason."""
        return str(self.failure) if self.failure is not None else None

    @property
    def transport_error(self) -> bool:
        """True if the backend could not be reached at all."""
        return isinstance(self.failure, TransportError)


@dataclass
class DeliveryResult:
    """Terminal result of delivering one request."""

    request: RelayRequest
    state: DeliveryState
    attempts: list[AttemptOutcome] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return self.state is DeliveryState.DELIVERED

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def retries(self) -> int:
        return max(0, len(self.attempts) - 1)

    @property
    def last_outcome(self) -> AttemptOutcome | None:
        return self.attempts[-1] if self.attempts else None

    def raise_for_state(self) -> None:
        """
        Raise if the request was not delivered.

        Raises:
            RetriesExhausted: If the result is EXHAUSTED
        """
        if self.state is DeliveryState.EXHAUSTED:
            raise RetriesExhausted(self.request, self.attempts)


AttemptCallback = Callable[[AttemptOutcome, bool], Awaitable[Any] | Any]


class RetryExecutor:
    """
    Delivers relay requests with fixed-interval retry.

    Features:
    - 1 initial attempt + up to ``max_retries`` retries
    - Fixed delay between attempts (no backoff)
    - The identical request object is reused for every attempt
    """

    def __init__(
        self,
        transport: Transport,
        max_retries: int = RELAY_MAX_RETRIES,
        retry_delay: float = RELAY_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize executor.

        Args:
            transport: Transport used for every attempt
            max_retries: Retries after the initial attempt
            retry_delay: Seconds to wait between attempts
            sleep: Awaitable sleep function
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        self.transport = transport
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    async def _attempt(self, request: RelayRequest, attempt_number: int) -> AttemptOutcome:
        status = None
        try:
            status = await self.transport.send(request)
            if not 200 <= status < 300:
                raise HttpStatusError(status)
        except RETRYABLE as e:
            return AttemptOutcome(
                succeeded=False,
                attempt_number=attempt_number,
                http_status=status,
                failure=e,
            )
        return AttemptOutcome(
            succeeded=True,
            attempt_number=attempt_number,
            http_status=status,
        )

    async def execute(
        self,
        request: RelayRequest,
        on_attempt: AttemptCallback | None = None,
    ) -> DeliveryResult:
        """
        Deliver a request.

        Args:
            request: Request to deliver
            on_attempt: Called after every attempt with the outcome and
                whether another attempt will follow

        Returns:
            DeliveryResult in DELIVERED or EXHAUSTED state
        """
        result = DeliveryResult(request=request, state=DeliveryState.ATTEMPTING)
        attempt_number = 1

        while result.state is DeliveryState.ATTEMPTING:
            outcome = await self._attempt(request, attempt_number)
            result.attempts.append(outcome)

            if outcome.succeeded:
                result.state = DeliveryState.DELIVERED
            elif attempt_number >= self.max_attempts:
                result.state = DeliveryState.EXHAUSTED

            will_retry = result.state is DeliveryState.ATTEMPTING
            if on_attempt is not None:
                callback_result = on_attempt(outcome, will_retry)
                if inspect.isawaitable(callback_result):
                    await callback_result

            if will_retry:
                await self._sleep(self.retry_delay)
                attempt_number += 1

        return result
