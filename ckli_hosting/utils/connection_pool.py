"""
HTTP connection pooling for hosting API requests.

One pool (one ``httpx.AsyncClient``) is owned by each hosting provider
instance and shared by all of its concurrent operations.
"""

import asyncio
from typing import Any

import httpx
import structlog

from ckli_hosting.exceptions import ConnectionPoolClosedError

log = structlog.get_logger(__name__)


class HTTPConnectionPool:
    """HTTP connection pool for one API base URL.

    The client is created lazily on first use. ``close()`` may be called any
    number of times; once closed the pool refuses new requests.
    """

    def __init__(
        self,
        base_url: str,
        max_connections: int = 10,
        max_keepalive_connections: int = 5,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self.timeout = timeout
        self.headers = headers or {}
        self.verify = verify
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._closed = False
        self._lock = asyncio.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    async def initialize(self) -> None:
        """Initialize the connection pool."""
        async with self._lock:
            if self._closed:
                raise ConnectionPoolClosedError(f"Connection pool for {self.base_url} is closed")

            if self._client is None:
                limits = httpx.Limits(
                    max_keepalive_connections=self.max_keepalive_connections,
                    max_connections=self.max_connections,
                    keepalive_expiry=30.0,
                )

                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    limits=limits,
                    timeout=self.timeout,
                    http2=True,  # Enable HTTP/2 for multiplexing
                    headers=self.headers,
                    verify=self.verify,
                    transport=self._transport,
                    # Environment proxies would bypass an injected transport
                    trust_env=self._transport is None,
                )

                log.debug(
                    "connection_pool_initialized",
                    base_url=self.base_url,
                    max_connections=self.max_connections,
                )

    async def close(self) -> None:
        """Close the connection pool."""
        async with self._lock:
            self._closed = True
            if self._client:
                await self._client.aclose()
                self._client = None
                log.debug("connection_pool_closed", base_url=self.base_url)

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request relative to the base URL.

        Args:
            method: HTTP verb
            path: Path relative to ``base_url`` (no leading slash)
            **kwargs: Forwarded to ``httpx.AsyncClient.request``

        Returns:
            The response, whatever its status code

        Raises:
            httpx.HTTPError: On transport failures and timeouts
            ConnectionPoolClosedError: If the pool has been closed, including
                by a concurrent ``close()``
        """
        client = self._client
        if client is None:
            await self.initialize()
            client = self._client
        if client is None or self._closed:
            raise ConnectionPoolClosedError(f"Connection pool for {self.base_url} is closed")

        try:
            return await client.request(method, path, **kwargs)
        except RuntimeError as e:
            # httpx refuses to send through a client that has been closed
            if self._closed:
                raise ConnectionPoolClosedError(f"Connection pool for {self.base_url} is closed") from e
            raise
