"""
Contract log decoders.

Convert web3 event data (``args`` plus log metadata) into event models
with canonical hex rendering of hashes and addresses.
"""

from collections.abc import Mapping
from typing import Any

from event_relay.config.constants import ZERO_ADDRESS
from event_relay.models.events import (
    ChainEvent,
    EventKind,
    PollCreated,
    VoteCast,
    WithdrawCompleted,
)
from event_relay.utils.formatters import format_address, format_hash


REWARD_CONTRACT_ARG = "syntheticRewardContract"


def _metadata(log: Mapping[str, Any]) -> dict[str, Any]:
    tx_hash = log.get("transactionHash")
    if isinstance(tx_hash, (bytes, bytearray)):
        tx_hash = format_hash(tx_hash)
    return {
        "block_number": log.get("blockNumber"),
        "tx_hash": tx_hash,
        "log_index": log.get("logIndex"),
    }


def decode_poll_created(
    log: Mapping[str, Any],
    reward_contract_address: str | None = None,
) -> PollCreated:
    """
    Decode VotingPollCreated.

    Args:
        log: Event data with ``args``
        reward_contract_address: Reward contract resolved by the caller;
            falls back to the ``syntheticRewardContract`` argument, then
            to the zero address

    Returns:
        PollCreated event
    """
    args = log["args"]
    reward = reward_contract_address or args.get(REWARD_CONTRACT_ARG) or ZERO_ADDRESS
    return PollCreated(
        version=int(args["version"]),
        poll_hash=format_hash(args["pollHash"]),
        voter_storage_location=format_hash(args["voterStorageHashLocation"]),
        candidate_counts=tuple(int(count) for count in args["candidateCount"]),
        reward_contract_address=format_address(reward),
        **_metadata(log),
    )


def decode_vote_cast(log: Mapping[str, Any]) -> VoteCast:
    """Decode VoteSucceeded."""
    args = log["args"]
    return VoteCast(
        poll_hash=format_hash(args["pollHash"]),
        selected_option=int(args["selected"]),
        commit_token=int(args["commitToken"]),
        new_voter_hash=format_hash(args["newPollVoterHash"]),
        voter_address=format_address(args["voter"]),
        **_metadata(log),
    )


def decode_withdraw_completed(log: Mapping[str, Any]) -> WithdrawCompleted:
    """Decode WithdrawSucceeded."""
    args = log["args"]
    return WithdrawCompleted(
        poll_hash=format_hash(args["pollHash"]),
        principal_amount=int(args["withdrawedToken"]),
        reward_amount=int(args["withdrawedReward"]),
        voter_address=format_address(args["voter"]),
        **_metadata(log),
    )


def decode_event(kind: EventKind, log: Mapping[str, Any]) -> ChainEvent:
    """
    Decode event data of the given kind.

    Raises:
        KeyError: If an expected argument is missing
        ValueError: If a hash or address is malformed
    """
    if kind is EventKind.POLL_CREATED:
        return decode_poll_created(log)
    if kind is EventKind.VOTE_CAST:
        return decode_vote_cast(log)
    if kind is EventKind.WITHDRAW_COMPLETED:
        return decode_withdraw_completed(log)
    raise TypeError(f"Unsupported event kind: {kind!r}")
