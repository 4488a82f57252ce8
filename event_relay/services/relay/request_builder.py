"""
Event to HTTP request mapping.

Each decoded contract event maps deterministically to exactly one
downstream API call:

| Event               | Method | Path                                  |
|---------------------|--------|---------------------------------------|
| VotingPollCreated   | POST   | /polls/activate                       |
| VoteSucceeded       | PUT    | /polls/{pollHash}/update-voter-hash   |
| WithdrawSucceeded   | PUT    | /rewards/claim                        |
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from event_relay.models.events import (
    ChainEvent,
    PollCreated,
    VoteCast,
    WithdrawCompleted,
)
from event_relay.utils.formatters import format_address, format_amount, format_hash


@dataclass(frozen=True)
class RelayRequest:
    """Outbound HTTP call derived from one event."""

    method: str
    url: str
    json_body: MappingProxyType

    def body(self) -> dict[str, Any]:
        """Return a JSON-serializable copy of the body."""
        return dict(self.json_body)


def _join(api_base_url: str, path: str) -> str:
    return f"{api_base_url.rstrip('/')}{path}"


def _request(method: str, url: str, body: dict[str, Any]) -> RelayRequest:
    return RelayRequest(method=method, url=url, json_body=MappingProxyType(body))


def build_poll_activation(event: PollCreated, api_base_url: str) -> RelayRequest:
    """POST /polls/activate"""
    return _request(
        "POST",
        _join(api_base_url, "/polls/activate"),
        {
            "pollHash": format_hash(event.poll_hash),
            "syntheticRewardContractAddress": format_address(
                event.reward_contract_address
            ),
        },
    )


def build_voter_hash_update(event: VoteCast, api_base_url: str) -> RelayRequest:
    """PUT /polls/{pollHash}/update-voter-hash"""
    poll_hash = format_hash(event.poll_hash)
    return _request(
        "PUT",
        _join(api_base_url, f"/polls/{poll_hash}/update-voter-hash"),
        {"voterHash": format_hash(event.new_voter_hash)},
    )


def build_reward_claim(event: WithdrawCompleted, api_base_url: str) -> RelayRequest:
    """PUT /rewards/claim"""
    return _request(
        "PUT",
        _join(api_base_url, "/rewards/claim"),
        {
            "pollHash": format_hash(event.poll_hash),
            "principalAmount": format_amount(event.principal_amount),
            "rewardAmount": format_amount(event.reward_amount),
            "voterWalletAddress": format_address(event.voter_address),
        },
    )


_BUILDERS = {
    PollCreated: build_poll_activation,
    VoteCast: build_voter_hash_update,
    WithdrawCompleted: build_reward_claim,
}


def build_relay_request(event: ChainEvent, api_base_url: str) -> RelayRequest:
    """
    Build the downstream request for an event.

    Args:
        event: Decoded contract event
        api_base_url: Base URL of the backend API

    Returns:
        RelayRequest for the event

    Raises:
        TypeError: If the event type is not relayed
    """
    builder = _BUILDERS.get(type(event))
    if builder is None:
        raise TypeError(f"No relay mapping for {type(event).__name__}")
    return builder(event, api_base_url)
