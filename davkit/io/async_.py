"""
Asynchronous I/O implementation using aiohttp library.
"""

import asyncio
import logging
import socket
import ssl
from typing import Optional, Union

import aiohttp

from davkit.lib import error
from davkit.lib.auth import mask_headers
from davkit.protocol.types import DAVRequest, DAVResponse

from .base import iter_causes

log = logging.getLogger(__name__)


def translate_exception(exc: BaseException, url: str) -> error.TransportError:
    """Map an aiohttp (or asyncio timeout) exception to a TransportError"""
    Kind = error.TransportErrorKind
    if isinstance(exc, aiohttp.ClientSSLError):
        kind = Kind.TLS
    elif isinstance(exc, asyncio.TimeoutError):
        kind = Kind.TIMEOUT
    elif isinstance(exc, aiohttp.ClientConnectorError):
        if any(
            isinstance(c, socket.gaierror) or type(c).__name__ == "ClientConnectorDNSError"
            for c in iter_causes(exc)
        ):
            kind = Kind.NAME_RESOLUTION
        else:
            kind = Kind.CANNOT_CONNECT
    elif isinstance(
        exc,
        (aiohttp.ServerDisconnectedError, aiohttp.ClientPayloadError, aiohttp.ClientOSError),
    ):
        kind = Kind.CONNECTION_LOST
    else:
        kind = Kind.OTHER
    return error.TransportError(url=url, reason=f"{kind.value}: {exc}", kind=kind)


class AsyncIO:
    """
    Asynchronous I/O shell using aiohttp library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  The aiohttp session (and its
    connection pool) is created on first use and shared by all
    requests, including concurrent ones.

    Example:
        async with AsyncIO() as io:
            request = protocol.list_request("/videos")
            response = await io.execute(request)
            entries = protocol.parse_listing(request, response)
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
        verify_ssl: Union[bool, str] = True,
    ):
        """
        Initialize the async I/O handler.

        Args:
            session: Existing aiohttp ClientSession to use (creates new if None)
            timeout: Request timeout in seconds
            verify_ssl: Verify SSL certificates, or path to a CA bundle
        """
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.verify_ssl = verify_ssl

    def _ssl(self) -> Union[bool, ssl.SSLContext]:
        if isinstance(self.verify_ssl, str):
            return ssl.create_default_context(cafile=self.verify_ssl)
        return self.verify_ssl

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(ssl=self._ssl())
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=connector,
            )
        return self._session

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute

        Returns:
            DAVResponse with status, headers, and body

        Raises:
            TransportError: if no HTTP response was received
        """
        session = await self._get_session()
        log.debug(
            "sending request - method=%s, url=%s, headers=%s",
            request.method.value,
            request.url,
            mask_headers(request.headers),
        )

        try:
            async with session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
            ) as response:
                body = await response.read()
                log.debug("server responded with %i %s", response.status, response.reason)
                return DAVResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body or b"",
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise translate_exception(err, request.url) from err

    async def close(self) -> None:
        """Close the session if we created it."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AsyncIO":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        await self.close()
