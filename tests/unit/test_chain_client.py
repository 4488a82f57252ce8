"""
Tests for the chain client event streams.

Uses an in-memory web3 stand-in:
- ``eth.block_number`` is an awaitable property fed from a script
- ``contract.events.<Name>().get_logs`` returns logs in the requested range
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from event_relay.config.constants import ZERO_ADDRESS
from event_relay.models.events import EventKind
from event_relay.services.chain.abi_loader import load_abi_from_file
from event_relay.services.chain.chain_client import ChainClient
from event_relay.utils.exceptions import ChainSubscriptionError


BUNDLED_ABI = Path(__file__).resolve().parents[2] / "abi" / "EntryPoint.json"
VOTER = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"
REWARD = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"

FLAT_POLL_DATA_ABI = {
    "type": "function",
    "name": "getPollData",
    "stateMutability": "view",
    "inputs": [{"name": "pollHash", "type": "bytes32"}],
    "outputs": [
        {"name": "syntheticRewardContract", "type": "address"},
        {"name": "candidateCount", "type": "uint256"},
    ],
}


def _without_poll_data(abi):
    return [entry for entry in abi if entry.get("name") != "getPollData"]


def _script_next(script):
    item = script.pop(0) if len(script) > 1 else script[0]
    if isinstance(item, BaseException):
        raise item
    return item


class FakeEth:
    def __init__(self, heads):
        self.heads = list(heads)

    async def _head(self):
        return _script_next(self.heads)

    @property
    def block_number(self):
        return self._head()


class FakeEvent:
    def __init__(self, source):
        self.source = source

    async def get_logs(self, from_block, to_block):
        self.source.calls.append((from_block, to_block))
        if self.source.failures:
            raise self.source.failures.pop(0)
        return [log for log in self.source.logs if from_block <= log["blockNumber"] <= to_block]


class FakeEvents:
    """``contract.events`` with per-name log sources."""

    def __init__(self):
        self.sources = {}

    def add(self, name, logs, failures=()):
        self.sources[name] = SimpleNamespace(logs=list(logs), calls=[], failures=list(failures))
        return self.sources[name]

    def __getattr__(self, name):
        try:
            source = self.__dict__["sources"][name]
        except KeyError:
            raise AttributeError(name) from None
        return lambda: FakeEvent(source)


class FakeFunctions:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def getPollData(self, poll_hash):
        self.calls.append(poll_hash)

        async def call():
            if isinstance(self.result, BaseException):
                raise self.result
            return self.result

        return SimpleNamespace(call=call)


def _vote_log(block, index=0, voter_hash=b"\xbb" * 32):
    return {
        "args": {
            "pollHash": b"\xaa" * 32,
            "selected": 1,
            "commitToken": 10,
            "newPollVoterHash": voter_hash,
            "voter": VOTER,
        },
        "blockNumber": block,
        "logIndex": index,
        "transactionHash": bytes([block % 256]) * 32,
    }


def _poll_log(block):
    return {
        "args": {
            "version": 1,
            "pollHash": b"\xaa" * 32,
            "voterStorageHashLocation": b"\xcc" * 32,
            "candidateCount": [0, 0],
        },
        "blockNumber": block,
        "logIndex": 0,
        "transactionHash": b"\x01" * 32,
    }


@pytest.fixture
def abi():
    return load_abi_from_file(BUNDLED_ABI)


@pytest.fixture
def events():
    return FakeEvents()


@pytest.fixture
def make_client(abi, events, no_sleep):
    def factory(heads, functions=None, contract_abi=None, **kwargs):
        web3 = SimpleNamespace(
            eth=FakeEth(heads),
            provider=SimpleNamespace(disconnect=AsyncMock()),
        )
        contract = SimpleNamespace(
            address="0x5FbDB2315678afecb367f032d93F642f64180aa3",
            events=events,
            functions=functions,
        )
        return ChainClient(
            web3,
            contract,
            contract_abi if contract_abi is not None else abi,
            sleep=no_sleep,
            **kwargs,
        )

    return factory


async def _take(stream, count):
    taken = []
    try:
        async for event in stream:
            taken.append(event)
            if len(taken) == count:
                break
    finally:
        await stream.aclose()
    return taken


class TestStreamEvents:
    """Polling, chunking and ordering."""

    @pytest.mark.asyncio
    async def test_replay_in_chunks_from_genesis(self, make_client, events):
        source = events.add("VoteSucceeded", [_vote_log(1), _vote_log(5), _vote_log(9)])
        client = make_client([9], chunk_size=4)

        taken = await _take(client.stream_events(EventKind.VOTE_CAST, 0), 3)

        assert [event.block_number for event in taken] == [1, 5, 9]
        assert source.calls == [(0, 3), (4, 7), (8, 9)]

    @pytest.mark.asyncio
    async def test_logs_ordered_by_block_and_index(self, make_client, events):
        hashes = [bytes([i]) * 32 for i in (1, 2, 3)]
        events.add(
            "VoteSucceeded",
            [
                _vote_log(4, 1, hashes[2]),
                _vote_log(2, 0, hashes[0]),
                _vote_log(4, 0, hashes[1]),
            ],
        )
        client = make_client([4])

        taken = await _take(client.stream_events(EventKind.VOTE_CAST, 0), 3)

        assert [event.new_voter_hash for event in taken] == ["0x" + h.hex() for h in hashes]

    @pytest.mark.asyncio
    async def test_latest_starts_at_head(self, make_client, events):
        source = events.add("VoteSucceeded", [_vote_log(3), _vote_log(50)])
        client = make_client([50])

        taken = await _take(client.stream_events(EventKind.VOTE_CAST, "latest"), 1)

        assert taken[0].block_number == 50
        assert source.calls[0][0] == 50

    @pytest.mark.asyncio
    async def test_new_blocks_picked_up(self, make_client, events, no_sleep):
        source = events.add("VoteSucceeded", [_vote_log(2), _vote_log(6)])
        client = make_client([3, 3, 6])

        taken = await _take(client.stream_events(EventKind.VOTE_CAST, 0), 2)

        assert [event.block_number for event in taken] == [2, 6]
        assert source.calls == [(0, 3), (4, 6)]
        no_sleep.assert_awaited_with(client.poll_interval)

    @pytest.mark.asyncio
    async def test_undecodable_log_skipped(self, make_client, events):
        broken = _vote_log(1)
        del broken["args"]["voter"]
        events.add("VoteSucceeded", [broken, _vote_log(2)])
        client = make_client([2])

        taken = await _take(client.stream_events(EventKind.VOTE_CAST, 0), 1)

        assert taken[0].block_number == 2


class TestStreamFailures:
    """Subscription establishment and loss."""

    @pytest.mark.asyncio
    async def test_event_missing_from_abi(self, make_client, events):
        events.add("VoteSucceeded", [])
        client = make_client([1], contract_abi=[])

        with pytest.raises(ChainSubscriptionError) as exc_info:
            await _take(client.stream_events(EventKind.VOTE_CAST, 0), 1)

        assert exc_info.value.event_name == "VoteSucceeded"

    @pytest.mark.asyncio
    async def test_head_unavailable_at_start(self, make_client, events):
        events.add("VoteSucceeded", [])
        client = make_client([ConnectionRefusedError("refused")])

        with pytest.raises(ChainSubscriptionError, match="Failed to create"):
            await _take(client.stream_events(EventKind.VOTE_CAST, 0), 1)

    @pytest.mark.asyncio
    async def test_transient_log_failure_tolerated(self, make_client, events):
        source = events.add("VoteSucceeded", [_vote_log(1)], failures=[TimeoutError()])
        client = make_client([1])

        taken = await _take(client.stream_events(EventKind.VOTE_CAST, 0), 1)

        assert taken[0].block_number == 1
        assert source.calls == [(0, 1), (0, 1)]

    @pytest.mark.asyncio
    async def test_consecutive_failures_lose_stream(self, make_client, events, no_sleep):
        events.add("VoteSucceeded", [])
        client = make_client([5, ValueError("bad response")], max_poll_failures=2)

        with pytest.raises(ChainSubscriptionError, match="3 consecutive"):
            await _take(client.stream_events(EventKind.VOTE_CAST, 0), 1)

        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_isolated_failures_on_idle_chain_tolerated(self, make_client, events):
        events.add("VoteSucceeded", [_vote_log(11)])
        heads = [10, 10] + [OSError("rpc hiccup"), 10] * 6 + [11]
        client = make_client(heads)

        taken = await _take(client.stream_events(EventKind.VOTE_CAST, 0), 1)

        assert taken[0].block_number == 11

    @pytest.mark.asyncio
    async def test_repeated_log_failures_lose_stream(self, make_client, events):
        source = events.add("VoteSucceeded", [], failures=[OSError("getLogs failed")] * 10)
        client = make_client([3], max_poll_failures=2)

        with pytest.raises(ChainSubscriptionError, match="3 consecutive"):
            await _take(client.stream_events(EventKind.VOTE_CAST, 0), 1)

        assert source.calls == [(0, 3)] * 3


class TestRewardContractResolution:
    """VotingPollCreated reward contract lookup."""

    @pytest.mark.asyncio
    async def test_resolved_from_bundled_poll_data(self, make_client, events):
        events.add("VotingPollCreated", [_poll_log(1)])
        functions = FakeFunctions(([0, 0], REWARD))
        client = make_client([1], functions=functions)

        taken = await _take(client.stream_events(EventKind.POLL_CREATED, 0), 1)

        assert taken[0].reward_contract_address == REWARD.lower()
        assert functions.calls == [b"\xaa" * 32]

    @pytest.mark.asyncio
    async def test_resolved_from_flat_outputs(self, make_client, events, abi):
        events.add("VotingPollCreated", [_poll_log(1)])
        functions = FakeFunctions((REWARD, 2))
        client = make_client(
            [1], functions=functions, contract_abi=_without_poll_data(abi) + [FLAT_POLL_DATA_ABI]
        )

        taken = await _take(client.stream_events(EventKind.POLL_CREATED, 0), 1)

        assert taken[0].reward_contract_address == REWARD.lower()

    @pytest.mark.asyncio
    async def test_lookup_failure_falls_back_to_zero(self, make_client, events, captured_logs):
        events.add("VotingPollCreated", [_poll_log(1)])
        functions = FakeFunctions(ValueError("execution reverted"))
        client = make_client([1], functions=functions)

        taken = await _take(client.stream_events(EventKind.POLL_CREATED, 0), 1)

        assert taken[0].reward_contract_address == ZERO_ADDRESS
        warnings = [r["message"] for r in captured_logs if r["level"].name == "WARNING"]
        assert warnings == [
            "Could not resolve reward contract for poll 0xaaaaaaaa...aaaaaa: execution reverted"
        ]

    @pytest.mark.asyncio
    async def test_no_lookup_without_poll_data_abi(self, make_client, events, abi):
        events.add("VotingPollCreated", [_poll_log(1)])
        functions = FakeFunctions(([0, 0], REWARD))
        client = make_client([1], functions=functions, contract_abi=_without_poll_data(abi))

        taken = await _take(client.stream_events(EventKind.POLL_CREATED, 0), 1)

        assert taken[0].reward_contract_address == ZERO_ADDRESS
        assert functions.calls == []


class TestConnection:
    """Startup probe and shutdown."""

    @pytest.mark.asyncio
    async def test_check_connection(self, make_client):
        client = make_client([42])

        assert await client.check_connection() == 42

    @pytest.mark.asyncio
    async def test_check_connection_failure(self, make_client):
        client = make_client([OSError("unreachable")])

        with pytest.raises(ChainSubscriptionError, match="unreachable"):
            await client.check_connection()

    @pytest.mark.asyncio
    async def test_close_disconnects_provider(self, make_client):
        client = make_client([1])

        await client.close()

        client.web3.provider.disconnect.assert_awaited_once()
