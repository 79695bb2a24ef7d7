"""
Data passed between the protocol layer and the I/O shells.

A DAVRequest says what should go on the wire, a DAVResponse holds what
came back.  Neither does any I/O.
"""

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus


class DAVMethod(Enum):
    """The HTTP methods the client issues."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    MKCOL = "MKCOL"
    MOVE = "MOVE"


@dataclass(frozen=True)
class DAVRequest:
    """
    One request, fully built: absolute URL, final headers and body.
    A new one is built for every call and never shared.

    Attributes:
        method: HTTP method
        url: Absolute URL, percent-encoded
        headers: Header name to value
        body: Raw request body, if any
    """

    method: DAVMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass(frozen=True)
class DAVResponse:
    """
    Status, headers and the complete body of a response.  Header names
    keep the case the server used; use header() to look them up.
    """

    status: int
    headers: dict[str, str]
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_multistatus(self) -> bool:
        return self.status == 207

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return default

    @property
    def reason(self) -> str:
        """Standard reason phrase of the status, e.g. "Multi-Status"."""
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return "Unknown"


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of an operation which either worked or did not, like MKCOL or
    DELETE.  HTTP-level failures end up here rather than as exceptions,
    with the status code and whatever the server said about it.

    The object is truthy if the operation succeeded.

    Attributes:
        ok: Whether the status was in the operation's success set
        status: HTTP status code
        reason: Human readable status, e.g. "404 Not Found"
        description: Error description from the server's XML body, if any
    """

    ok: bool
    status: int
    reason: str = ""
    description: str | None = None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def message(self) -> str:
        """Text suitable to show to an end user."""
        if self.description:
            return f"{self.reason}: {self.description}"
        return self.reason
