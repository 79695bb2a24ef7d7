"""
The interface the clients expect from an I/O shell.

An I/O shell executes a DAVRequest and returns the DAVResponse, whatever
the status code.  When no HTTP response arrives at all it raises
TransportError, with the library's own exception chained as the cause.
"""

from typing import Protocol, runtime_checkable

from davkit.protocol.types import DAVRequest, DAVResponse


@runtime_checkable
class SyncIOProtocol(Protocol):
    def execute(self, request: DAVRequest) -> DAVResponse: ...

    def close(self) -> None: ...


@runtime_checkable
class AsyncIOProtocol(Protocol):
    async def execute(self, request: DAVRequest) -> DAVResponse: ...

    async def close(self) -> None: ...


def iter_causes(exc: BaseException):
    """
    Walks an exception and everything it wraps: chained exceptions,
    exception arguments, and the ``reason``/``os_error`` attributes HTTP
    libraries use to carry the underlying socket error.
    """
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        stack.append(current.__cause__)
        stack.append(current.__context__)
        for attr in ("reason", "os_error"):
            value = getattr(current, attr, None)
            if isinstance(value, BaseException):
                stack.append(value)
        stack.extend(a for a in current.args if isinstance(a, BaseException))
