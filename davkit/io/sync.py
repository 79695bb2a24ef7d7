"""
Synchronous I/O implementation using the requests library.
"""

import http.client
import logging
import socket
from typing import Optional, Union

import requests
import urllib3.exceptions

from davkit.lib import error
from davkit.lib.auth import mask_headers
from davkit.protocol.types import DAVRequest, DAVResponse

from .base import iter_causes

log = logging.getLogger(__name__)

_DROPPED = (
    urllib3.exceptions.ProtocolError,
    http.client.RemoteDisconnected,
    http.client.IncompleteRead,
    ConnectionResetError,
    BrokenPipeError,
)


def translate_exception(exc: requests.exceptions.RequestException, url: str) -> error.TransportError:
    """Map a requests exception to a TransportError of the right kind"""
    Kind = error.TransportErrorKind
    if isinstance(exc, requests.exceptions.SSLError):
        kind = Kind.TLS
    elif isinstance(exc, requests.exceptions.Timeout):
        kind = Kind.TIMEOUT
    elif isinstance(exc, requests.exceptions.ChunkedEncodingError):
        kind = Kind.CONNECTION_LOST
    elif isinstance(exc, requests.exceptions.ConnectionError):
        causes = list(iter_causes(exc))
        if any(
            isinstance(c, socket.gaierror) or type(c).__name__ == "NameResolutionError"
            for c in causes
        ):
            kind = Kind.NAME_RESOLUTION
        elif any(isinstance(c, _DROPPED) for c in causes):
            kind = Kind.CONNECTION_LOST
        else:
            kind = Kind.CANNOT_CONNECT
    else:
        kind = Kind.OTHER
    return error.TransportError(url=url, reason=f"{kind.value}: {exc}", kind=kind)


class SyncIO:
    """
    Synchronous I/O shell using the requests library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  One session, and thereby one
    connection pool, is used for all requests.

    Example:
        io = SyncIO()
        request = protocol.list_request("/videos")
        response = io.execute(request)
        entries = protocol.parse_listing(request, response)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        verify: Union[bool, str] = True,
    ):
        """
        Initialize the sync I/O handler.

        Args:
            session: Existing requests Session to use (creates new if None)
            timeout: Request timeout in seconds
            verify: Verify SSL certificates, or path to a CA bundle
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute

        Returns:
            DAVResponse with status, headers, and body

        Raises:
            TransportError: if no HTTP response was received
        """
        log.debug(
            "sending request - method=%s, url=%s, headers=%s",
            request.method.value,
            request.url,
            mask_headers(request.headers),
        )
        try:
            response = self.session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout,
                verify=self.verify,
            )
            body = response.content
        except requests.exceptions.RequestException as err:
            raise translate_exception(err, request.url) from err
        log.debug("server responded with %i %s", response.status_code, response.reason)

        return DAVResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=body or b"",
        )

    def close(self) -> None:
        """Close the session if we created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        """Context manager entry."""
        return self

    def __exit__(self, *args) -> None:
        """Context manager exit."""
        self.close()
