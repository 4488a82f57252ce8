"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings validation
os.environ.setdefault("RPC_URL", "http://127.0.0.1:8545")
os.environ.setdefault("CONTRACT_ADDR", "0x5FbDB2315678afecb367f032d93F642f64180aa3")
os.environ.setdefault("API_BASE_URL", "http://localhost:3000")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from loguru import logger
from unittest.mock import AsyncMock

from event_relay.models.events import PollCreated, VoteCast, WithdrawCompleted
from event_relay.utils.exceptions import TransportError


class FakeTransport:
    """Transport returning scripted statuses or raising scripted errors."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    async def send(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self):
        self.closed = True


class RecordingNotifier:
    """Notifier collecting (level, message) pairs."""

    def __init__(self):
        self.records = []

    def info(self, message):
        self.records.append(("info", message))

    def success(self, message):
        self.records.append(("success", message))

    def warning(self, message):
        self.records.append(("warning", message))

    def error(self, message):
        self.records.append(("error", message))

    def messages(self, level):
        return [message for lvl, message in self.records if lvl == level]


@pytest.fixture
def api_base_url():
    """Backend API base URL."""
    return "http://api.test"


@pytest.fixture
def no_sleep():
    """Sleep replacement recording requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def notifier():
    """Recording notifier."""
    return RecordingNotifier()


@pytest.fixture
def connection_refused():
    """Transport error as raised for a refused connection."""
    return TransportError("PUT http://api.test/rewards/claim failed: ClientConnectorError: Connection refused")


@pytest.fixture
def make_transport():
    """Factory for scripted transports."""
    return FakeTransport


@pytest.fixture
def poll_hash():
    """Sample poll hash (0xAA..AA)."""
    return "0x" + "aa" * 32


@pytest.fixture
def voter_hash():
    """Sample voter hash."""
    return "0x" + "bb" * 32


@pytest.fixture
def voter_address():
    """Sample voter address (checksummed)."""
    return "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"


@pytest.fixture
def reward_contract():
    """Sample synthetic reward contract address."""
    return "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


@pytest.fixture
def poll_created(poll_hash, reward_contract):
    """PollCreated event for poll 0xAA..AA."""
    return PollCreated(
        version=1,
        poll_hash=poll_hash,
        voter_storage_location="0x" + "cc" * 32,
        candidate_counts=(0, 0, 0),
        reward_contract_address=reward_contract.lower(),
        block_number=10,
        log_index=0,
    )


@pytest.fixture
def vote_cast(poll_hash, voter_hash, voter_address):
    """VoteCast event."""
    return VoteCast(
        poll_hash=poll_hash,
        selected_option=2,
        commit_token=10**18,
        new_voter_hash=voter_hash,
        voter_address=voter_address.lower(),
    )


@pytest.fixture
def withdraw_completed(poll_hash, voter_address):
    """WithdrawCompleted event with amounts beyond float precision."""
    return WithdrawCompleted(
        poll_hash=poll_hash,
        principal_amount=123456789012345678901234567890,
        reward_amount=500 * 10**18 + 1,
        voter_address=voter_address.lower(),
    )


@pytest.fixture
def captured_logs():
    """Collect loguru records emitted during the test."""
    records = []
    handler_id = logger.add(
        lambda message: records.append(message.record),
        level="DEBUG",
        format="{message}",
    )
    yield records
    logger.remove(handler_id)
