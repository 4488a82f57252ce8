"""Event models."""

from .events import ChainEvent, EventKind, PollCreated, VoteCast, WithdrawCompleted


__all__ = [
    "ChainEvent",
    "EventKind",
    "PollCreated",
    "VoteCast",
    "WithdrawCompleted",
]
