"""
HTTP transport for relay requests.

Wraps one aiohttp client session. Each pipeline owns its own transport.
"""

import aiohttp
from loguru import logger

from event_relay.config.constants import HTTP_REQUEST_TIMEOUT
from event_relay.utils.exceptions import TransportError

from .request_builder import RelayRequest


class HttpTransport:
    """Sends relay requests to the backend API."""

    def __init__(self, timeout: float = HTTP_REQUEST_TIMEOUT) -> None:
        """
        Initialize transport.

        Args:
            timeout: Total timeout for one request in seconds
        """
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._session

    async def send(self, request: RelayRequest) -> int:
        """
        Send a request and return the response status.

        Args:
            request: Request to send

        Returns:
            HTTP status code

        Raises:
            TransportError: On connection errors and timeouts
        """
        session = await self._get_session()
        try:
            async with session.request(
                request.method,
                request.url,
                json=request.body(),
            ) as response:
                await response.read()
                return response.status
        except TimeoutError as e:
            raise TransportError(
                f"{request.method} {request.url} timed out after {self.timeout.total}s"
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(
                f"{request.method} {request.url} failed: {e.__class__.__name__}: {e}"
            ) from e

    async def close(self) -> None:
        """Close the underlying session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP transport session closed")
        self._session = None
