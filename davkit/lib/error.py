#!/usr/bin/env python
import logging
import os
from collections import defaultdict
from enum import Enum
from typing import Dict
from typing import Optional

from davkit import __version__

## Environmental variables prepended with "PYTHON_DAVKIT" are used for debug purposes,
## environmental variables prepended with "WEBDAV_" are for connection parameters
## one of DEBUG_PDB, DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_DAVKIT_DEBUGMODE")
if not debugmode:
    if "dev" in __version__:
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("davkit")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def weirdness(*reasons):
    reason = " : ".join([str(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")
    if debugmode == "DEBUG_PDB":
        log.error(f"Dropping into debugger due to {reason}")
        import pdb

        pdb.set_trace()


def assert_(condition: object) -> None:
    try:
        assert condition
    except AssertionError:
        if debugmode == "PRODUCTION":
            log.error("Deviation from expectations found.", exc_info=True)
        elif debugmode == "DEBUG_PDB":
            log.error("Deviation from expectations found.  Dropping into debugger")
            import pdb

            pdb.set_trace()
        else:
            raise


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason
        super().__init__(url, reason)

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class TransportErrorKind(Enum):
    """Transport-level failure categories, independent of the HTTP library."""

    TIMEOUT = "timeout"
    CANNOT_CONNECT = "cannot connect to host"
    CONNECTION_LOST = "network connection lost"
    NAME_RESOLUTION = "host name could not be resolved"
    TLS = "secure connection failed"
    OTHER = "network error"


RETRYABLE_KINDS = frozenset(
    (
        TransportErrorKind.TIMEOUT,
        TransportErrorKind.CANNOT_CONNECT,
        TransportErrorKind.CONNECTION_LOST,
    )
)


class TransportError(DAVError):
    """
    The request never got an HTTP response.  ``kind`` tells what went
    wrong on the wire, the original library exception is chained as
    ``__cause__``.
    """

    kind: TransportErrorKind = TransportErrorKind.OTHER

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        kind: Optional[TransportErrorKind] = None,
    ) -> None:
        if kind is not None:
            self.kind = kind
        super().__init__(url, reason or self.kind.value)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


class ResponseError(DAVError):
    """
    The server answered with a status code outside the success set of
    the operation.  ``status`` holds the HTTP status code, ``body`` the
    raw response body for diagnostics.
    """

    status: Optional[int] = None
    body: bytes = b""

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        status: Optional[int] = None,
        body: Optional[bytes] = None,
    ) -> None:
        super().__init__(url, reason)
        if status is not None:
            self.status = status
        if body:
            self.body = body


class AuthorizationError(ResponseError):
    """
    The client encountered an HTTP 401 or 403 error and is passing it on
    to the user. The url property will contain the url in question,
    the reason property will contain the excuse the server sent.
    """

    pass


class NotFoundError(ResponseError):
    pass


class PropfindError(ResponseError):
    pass


class MkcolError(ResponseError):
    pass


class PutError(ResponseError):
    pass


class DeleteError(ResponseError):
    pass


class MoveError(ResponseError):
    pass


class DownloadError(ResponseError):
    pass


class ParseError(DAVError):
    """The server sent a body which is not well-formed XML."""

    pass


exception_by_method: Dict[str, type] = defaultdict(lambda: ResponseError)
for method in (
    "propfind",
    "mkcol",
    "put",
    "delete",
    "move",
):
    exception_by_method[method] = locals()[method[0].upper() + method[1:] + "Error"]
exception_by_method["get"] = DownloadError
