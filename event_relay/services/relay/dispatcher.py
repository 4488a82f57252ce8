"""
Relay dispatcher.

Runs the three relay pipelines concurrently and stops the whole relay as
soon as any of them terminates.
"""

import asyncio
from collections.abc import AsyncIterable, Callable
from typing import Any, Literal

from loguru import logger

from event_relay.config.constants import HTTP_REQUEST_TIMEOUT
from event_relay.models.events import ChainEvent, EventKind
from event_relay.utils.exceptions import PipelineTerminated

from .http_transport import HttpTransport
from .pipeline import RelayPipeline
from .retry_executor import RetryExecutor


StreamFactory = Callable[[EventKind, int | Literal["latest"]], AsyncIterable[ChainEvent]]


class RelayDispatcher:
    """
    Supervises one pipeline per event kind.

    Pipelines share only read-only configuration. Each gets its own event
    stream and its own HTTP transport.
    """

    def __init__(
        self,
        stream_factory: StreamFactory,
        api_base_url: str,
        start_block: int | Literal["latest"] = 0,
        http_timeout: float = HTTP_REQUEST_TIMEOUT,
        transport_factory: Callable[[], Any] | None = None,
        executor_factory: Callable[[Any], RetryExecutor] = RetryExecutor,
        kinds: tuple[EventKind, ...] = tuple(EventKind),
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            stream_factory: Opens an event stream for a kind and start block
            api_base_url: Backend API base URL
            start_block: First block for every stream
            http_timeout: Per-attempt downstream timeout
            transport_factory: Creates one transport per pipeline
            executor_factory: Wraps a transport in a retry executor
            kinds: Event kinds to relay
        """
        self.stream_factory = stream_factory
        self.api_base_url = api_base_url
        self.start_block = start_block
        self.transport_factory = transport_factory or (
            lambda: HttpTransport(timeout=http_timeout)
        )
        self.executor_factory = executor_factory
        self.kinds = kinds
        self.pipelines: dict[EventKind, RelayPipeline] = {}
        self._transports: list[Any] = []

    def build_pipeline(self, kind: EventKind) -> RelayPipeline:
        """Create a pipeline with its own stream and transport."""
        transport = self.transport_factory()
        self._transports.append(transport)
        pipeline = RelayPipeline(
            kind=kind,
            events=self.stream_factory(kind, self.start_block),
            executor=self.executor_factory(transport),
            api_base_url=self.api_base_url,
        )
        self.pipelines[kind] = pipeline
        return pipeline

    async def _close_transports(self) -> None:
        for transport in self._transports:
            close = getattr(transport, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.warning(f"Error closing transport: {e}")
        self._transports.clear()

    async def run(self) -> None:
        """
        Run all pipelines until one terminates.

        Raises:
            ChainSubscriptionError: If an event stream fails
            PipelineTerminated: If a pipeline stops without error
        """
        tasks = {
            asyncio.create_task(self.build_pipeline(kind).run(), name=f"relay-{kind.label}"): kind
            for kind in self.kinds
        }
        logger.info(
            f"Relay dispatcher started {len(tasks)} pipelines: "
            f"{', '.join(kind.event_name for kind in tasks.values())}"
        )

        try:
            done, _pending = await asyncio.wait(
                tasks, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self._close_transports()

        # Report the first finished pipeline
        finished = next(iter(done))
        kind = tasks[finished]
        error = finished.exception()
        if error is None:
            error = PipelineTerminated(f"{kind.event_name} pipeline exited")
        logger.error(
            f"{kind.event_name} pipeline terminated: "
            f"{error.__class__.__name__}: {error}"
        )
        raise error
