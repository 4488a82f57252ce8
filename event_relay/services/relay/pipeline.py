"""
Relay pipeline.

Consumes one decoded event stream and relays every event to the backend
API before pulling the next one.
"""

from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass

from event_relay.models.events import (
    ChainEvent,
    EventKind,
    PollCreated,
    VoteCast,
    WithdrawCompleted,
)
from event_relay.utils.exceptions import PipelineTerminated, RetriesExhausted
from event_relay.utils.formatters import mask_address

from ..notifier import LoguruNotifier, Notifier
from .request_builder import build_relay_request
from .retry_executor import AttemptOutcome, DeliveryResult, RetryExecutor


@dataclass(frozen=True)
class _RelayMessages:
    """Log wording for one event kind."""

    received: Callable[[ChainEvent], str]
    subject: Callable[[ChainEvent], str]
    action: str
    done: str


def _poll_created_received(event: PollCreated) -> str:
    return (
        f"[VotingPollCreated] poll_hash={event.poll_hash}, version={event.version}, "
        f"candidates={len(event.candidate_counts)}"
    )


def _vote_cast_received(event: VoteCast) -> str:
    return (
        f"[VoteSucceeded] poll_hash={event.poll_hash}, voter={event.voter_address}, "
        f"selected={event.selected_option}, voter_hash={event.new_voter_hash}, "
        f"commit_token={event.commit_token}"
    )


def _withdraw_received(event: WithdrawCompleted) -> str:
    return (
        f"[WithdrawSucceeded] poll_hash={event.poll_hash}, voter={event.voter_address}, "
        f"principal={event.principal_amount}, reward={event.reward_amount}"
    )


_MESSAGES: dict[EventKind, _RelayMessages] = {
    EventKind.POLL_CREATED: _RelayMessages(
        received=_poll_created_received,
        subject=lambda e: f"poll {e.poll_hash}",
        action="activate",
        done="Activated",
    ),
    EventKind.VOTE_CAST: _RelayMessages(
        received=_vote_cast_received,
        subject=lambda e: f"poll {e.poll_hash} voter {mask_address(e.voter_address)}",
        action="update voter hash for",
        done="Updated voter hash for",
    ),
    EventKind.WITHDRAW_COMPLETED: _RelayMessages(
        received=_withdraw_received,
        subject=lambda e: f"poll {e.poll_hash} voter {mask_address(e.voter_address)}",
        action="report withdrawal for",
        done="Reported withdrawal for",
    ),
}


class RelayPipeline:
    """
    Sequential relay of one event kind.

    Event N+1 is not pulled from the stream until event N has been
    delivered or its retries are exhausted. Exhaustion drops the event
    and the pipeline moves on.
    """

    def __init__(
        self,
        kind: EventKind,
        events: AsyncIterable[ChainEvent],
        executor: RetryExecutor,
        api_base_url: str,
        notifier: Notifier | None = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            kind: Event kind handled by this pipeline
            events: Unbounded stream of decoded events of that kind
            executor: Retry executor owning this pipeline's transport
            api_base_url: Backend API base URL
            notifier: Log sink (defaults to loguru bound to the kind)
        """
        self.kind = kind
        self.events = events
        self.executor = executor
        self.api_base_url = api_base_url
        self.notifier = notifier or LoguruNotifier(kind.label)
        self._messages = _MESSAGES[kind]

        self.processed = 0
        self.delivered = 0
        self.exhausted = 0
        self.skipped = 0

    async def relay(self, event: ChainEvent) -> DeliveryResult | None:
        """
        Relay one event to completion.

        Args:
            event: Event of this pipeline's kind

        Returns:
            DeliveryResult, or None if the event could not be mapped

        Raises:
            TypeError: If the event belongs to another kind
        """
        if not isinstance(event, self.kind.event_type):
            raise TypeError(
                f"{self.kind.label} pipeline received {type(event).__name__}"
            )

        self.processed += 1
        self.notifier.info(self._messages.received(event))

        subject = self._messages.subject(event)
        try:
            request = build_relay_request(event, self.api_base_url)
        except ValueError as e:
            self.skipped += 1
            self.notifier.error(f"Skipping malformed event for {subject}: {e}")
            return None

        def on_attempt(outcome: AttemptOutcome, will_retry: bool) -> None:
            if outcome.succeeded:
                return
            if outcome.attempt_number == 1:
                message = f"Failed to {self._messages.action} {subject}: {outcome.error}"
            else:
                message = (
                    f"Retry {outcome.attempt_number - 1} failed for {subject}: "
                    f"{outcome.error}"
                )
            if will_retry:
                message += ". Retrying..."
            # Unreachable backend is an error, a non-2xx answer a warning
            if outcome.transport_error:
                self.notifier.error(message)
            else:
                self.notifier.warning(message)

        result = await self.executor.execute(request, on_attempt=on_attempt)

        if result.delivered:
            self.delivered += 1
            if result.retries:
                self.notifier.success(
                    f"{self._messages.done} {subject} after {result.retries} retries"
                )
            else:
                self.notifier.success(f"{self._messages.done} {subject} successfully")
            return result

        self.exhausted += 1
        try:
            result.raise_for_state()
        except RetriesExhausted as e:
            self.notifier.error(
                f"All retries failed for {subject} after {len(e.attempts)} "
                f"attempts: {result.last_outcome.error}. Event dropped."
            )
        return result

    async def run(self) -> None:
        """
        Relay events until the stream fails.

        Raises:
            ChainSubscriptionError: If the event stream fails
            PipelineTerminated: If the event stream ends
        """
        self.notifier.info(f"Listening for {self.kind.event_name} events...")
        async for event in self.events:
            await self.relay(event)
        raise PipelineTerminated(
            f"{self.kind.event_name} stream ended after {self.processed} events"
        )
