"""
Chain client.

Polls the RPC node for contract logs and yields decoded events, one
independent stream per event kind.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any, Literal

import aiohttp
from eth_utils import to_hex
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from event_relay.config.constants import (
    BLOCKCHAIN_LOG_CHUNK_SIZE,
    BLOCKCHAIN_MAX_POLL_FAILURES,
    BLOCKCHAIN_POLL_INTERVAL,
)
from event_relay.config.settings import Settings
from event_relay.models.events import ChainEvent, EventKind
from event_relay.utils.exceptions import ChainSubscriptionError
from event_relay.utils.formatters import mask_hash

from .abi_loader import find_event_abi, find_function_abi
from .decoders import REWARD_CONTRACT_ARG, decode_event, decode_poll_created


# Errors treated as a failed poll rather than a programming error
RPC_ERRORS = (
    Web3Exception,
    aiohttp.ClientError,
    TimeoutError,
    OSError,
    ValueError,
)

POLL_DATA_FUNCTION = "getPollData"


def _reward_contract_path(abi: list[dict[str, Any]]) -> tuple[int, ...] | None:
    """
    Locate ``syntheticRewardContract`` in the getPollData outputs.

    Returns:
        Index path into the call result, or None if not exposed
    """
    fn = find_function_abi(abi, POLL_DATA_FUNCTION)
    if fn is None:
        return None
    outputs = fn.get("outputs") or []
    for i, output in enumerate(outputs):
        if output.get("name") == REWARD_CONTRACT_ARG:
            return (i,) if len(outputs) > 1 else ()
    if len(outputs) == 1 and str(outputs[0].get("type", "")).startswith("tuple"):
        for j, component in enumerate(outputs[0].get("components") or []):
            if component.get("name") == REWARD_CONTRACT_ARG:
                return (j,)
    return None


class ChainClient:
    """
    Contract event source.

    Features:
    - One polling cursor per stream, no state shared between streams
    - Chunked eth_getLogs requests
    - Tolerates transient RPC failures, fails the stream after
      ``max_poll_failures`` consecutive errors
    """

    def __init__(
        self,
        web3: Any,
        contract: Any,
        abi: list[dict[str, Any]],
        poll_interval: float = BLOCKCHAIN_POLL_INTERVAL,
        chunk_size: int = BLOCKCHAIN_LOG_CHUNK_SIZE,
        max_poll_failures: int = BLOCKCHAIN_MAX_POLL_FAILURES,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize chain client.

        Args:
            web3: AsyncWeb3 instance
            contract: Contract bound to the EntryPoint address
            abi: Contract ABI
            poll_interval: Seconds between head polls
            chunk_size: Maximum blocks per log request
            max_poll_failures: Consecutive failures tolerated per stream
            sleep: Awaitable sleep function
        """
        self.web3 = web3
        self.contract = contract
        self.abi = abi
        self.poll_interval = poll_interval
        self.chunk_size = chunk_size
        self.max_poll_failures = max_poll_failures
        self._sleep = sleep
        self._reward_path = _reward_contract_path(abi)

    @classmethod
    def from_settings(cls, settings: Settings, abi: list[dict[str, Any]]) -> "ChainClient":
        """
        Create client connected to the configured RPC endpoint.

        Args:
            settings: Relay settings
            abi: Contract ABI

        Returns:
            ChainClient instance
        """
        web3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                settings.rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=settings.rpc_timeout)},
            )
        )
        contract = web3.eth.contract(address=settings.contract_addr, abi=abi)
        logger.debug(f"ChainClient initialized: contract={settings.contract_addr}")
        return cls(
            web3,
            contract,
            abi,
            poll_interval=settings.poll_interval,
            chunk_size=settings.log_chunk_size,
        )

    @property
    def address(self) -> str:
        return self.contract.address

    async def get_block_number(self) -> int:
        """Current head block."""
        return int(await self.web3.eth.block_number)

    async def check_connection(self) -> int:
        """
        Verify the RPC node is reachable.

        Returns:
            Current head block

        Raises:
            ChainSubscriptionError: If the node cannot be queried
        """
        try:
            head = await self.get_block_number()
        except RPC_ERRORS as e:
            raise ChainSubscriptionError(f"RPC node unreachable: {e}") from e
        logger.info(f"Connected to RPC node, head block {head}")
        return head

    async def _fetch_logs(self, kind: EventKind, from_block: int, to_block: int) -> list[Mapping[str, Any]]:
        event = getattr(self.contract.events, kind.event_name)()
        logs = await event.get_logs(from_block=from_block, to_block=to_block)
        return sorted(
            logs,
            key=lambda log: (log.get("blockNumber") or 0, log.get("logIndex") or 0),
        )

    async def _resolve_reward_contract(self, log: Mapping[str, Any]) -> str | None:
        """Look up the poll's reward contract when the event does not carry it."""
        if REWARD_CONTRACT_ARG in log["args"] or self._reward_path is None:
            return None
        poll_hash = log["args"]["pollHash"]
        try:
            value = await self.contract.functions.getPollData(poll_hash).call()
            for index in self._reward_path:
                value = value[index]
            return value
        except RPC_ERRORS as e:
            shown = to_hex(poll_hash) if isinstance(poll_hash, (bytes, bytearray)) else str(poll_hash)
            logger.warning(
                f"Could not resolve reward contract for poll {mask_hash(shown)}: {e}"
            )
            return None

    async def _decode(self, kind: EventKind, log: Mapping[str, Any]) -> ChainEvent:
        if kind is EventKind.POLL_CREATED:
            reward = await self._resolve_reward_contract(log)
            return decode_poll_created(log, reward_contract_address=reward)
        return decode_event(kind, log)

    def _record_failure(self, kind: EventKind, failures: int, error: BaseException) -> None:
        if failures > self.max_poll_failures:
            raise ChainSubscriptionError(
                f"{kind.event_name} stream lost after {failures} consecutive "
                f"poll failures: {error}",
                event_name=kind.event_name,
            ) from error
        logger.warning(
            f"{kind.event_name} poll failed ({failures}/{self.max_poll_failures}): "
            f"{error}. Retrying in {self.poll_interval}s..."
        )

    async def stream_events(
        self,
        kind: EventKind,
        from_block: int | Literal["latest"] = 0,
    ) -> AsyncIterator[ChainEvent]:
        """
        Stream decoded events of one kind.

        The stream is established on first iteration and never ends on
        its own.

        Args:
            kind: Event kind to stream
            from_block: First block to read, or "latest" for the head

        Yields:
            Decoded events in (block, log index) order

        Raises:
            ChainSubscriptionError: If the stream cannot be established
                or is lost
        """
        if find_event_abi(self.abi, kind.event_name) is None:
            raise ChainSubscriptionError(
                f"Event {kind.event_name} not found in contract ABI",
                event_name=kind.event_name,
            )
        try:
            head = await self.get_block_number()
        except RPC_ERRORS as e:
            raise ChainSubscriptionError(
                f"Failed to create {kind.event_name} stream: {e}",
                event_name=kind.event_name,
            ) from e

        cursor = head if from_block == "latest" else int(from_block)
        logger.info(f"Streaming {kind.event_name} events from block {cursor}")

        failures = 0
        while True:
            try:
                head = await self.get_block_number()
            except RPC_ERRORS as e:
                failures += 1
                self._record_failure(kind, failures, e)
                await self._sleep(self.poll_interval)
                continue

            if cursor > head:
                # Idle poll, nothing to fetch
                failures = 0

            while cursor <= head:
                chunk_end = min(cursor + self.chunk_size - 1, head)
                try:
                    logs = await self._fetch_logs(kind, cursor, chunk_end)
                except RPC_ERRORS as e:
                    failures += 1
                    self._record_failure(kind, failures, e)
                    break
                failures = 0

                for log in logs:
                    try:
                        event = await self._decode(kind, log)
                    except (KeyError, TypeError, ValueError) as e:
                        logger.error(
                            f"Skipping undecodable {kind.event_name} log "
                            f"(block={log.get('blockNumber')}, index={log.get('logIndex')}): {e}"
                        )
                        continue
                    yield event

                cursor = chunk_end + 1

            await self._sleep(self.poll_interval)

    async def close(self) -> None:
        """Release the RPC provider session."""
        await self.web3.provider.disconnect()
        logger.debug("RPC provider disconnected")
