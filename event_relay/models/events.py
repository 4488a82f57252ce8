"""
Decoded contract events.

Immutable value objects produced by the chain client and consumed by
exactly one relay pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class PollCreated:
    """VotingPollCreated event."""

    version: int
    poll_hash: str
    voter_storage_location: str
    candidate_counts: tuple[int, ...]
    reward_contract_address: str
    block_number: int | None = field(default=None, compare=False)
    tx_hash: str | None = field(default=None, compare=False)
    log_index: int | None = field(default=None, compare=False)


@dataclass(frozen=True)
class VoteCast:
    """VoteSucceeded event."""

    poll_hash: str
    selected_option: int
    commit_token: int
    new_voter_hash: str
    voter_address: str
    block_number: int | None = field(default=None, compare=False)
    tx_hash: str | None = field(default=None, compare=False)
    log_index: int | None = field(default=None, compare=False)


@dataclass(frozen=True)
class WithdrawCompleted:
    """WithdrawSucceeded event."""

    poll_hash: str
    principal_amount: int
    reward_amount: int
    voter_address: str
    block_number: int | None = field(default=None, compare=False)
    tx_hash: str | None = field(default=None, compare=False)
    log_index: int | None = field(default=None, compare=False)


ChainEvent = PollCreated | VoteCast | WithdrawCompleted


class EventKind(Enum):
    """Event kinds relayed by the service, keyed by on-chain event name."""

    POLL_CREATED = "VotingPollCreated"
    VOTE_CAST = "VoteSucceeded"
    WITHDRAW_COMPLETED = "WithdrawSucceeded"

    @property
    def event_name(self) -> str:
        """Event name as declared in the contract ABI."""
        return self.value

    @property
    def event_type(self) -> type:
        """Dataclass produced for this kind."""
        return _EVENT_TYPES[self]

    @property
    def label(self) -> str:
        """Short lowercase name used in logs."""
        return self.name.lower()


_EVENT_TYPES: dict[EventKind, type] = {
    EventKind.POLL_CREATED: PollCreated,
    EventKind.VOTE_CAST: VoteCast,
    EventKind.WITHDRAW_COMPLETED: WithdrawCompleted,
}
