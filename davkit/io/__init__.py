"""
I/O layer for the WebDAV protocol.

This module provides sync and async implementations for executing
DAVRequest objects and returning DAVResponse objects.

The I/O layer is intentionally thin - it only handles HTTP transport,
and translating the HTTP library's exceptions into TransportError.
All protocol logic (XML building/parsing) is in davkit.protocol.

Example (sync):
    from davkit.protocol import WebDAVProtocol
    from davkit.io import SyncIO

    protocol = WebDAVProtocol(base_url="https://dav.example.com/dav")
    with SyncIO() as io:
        request = protocol.list_request("/videos")
        response = io.execute(request)
        entries = protocol.parse_listing(request, response)

Example (async):
    from davkit.protocol import WebDAVProtocol
    from davkit.io import AsyncIO

    protocol = WebDAVProtocol(base_url="https://dav.example.com/dav")
    async with AsyncIO() as io:
        request = protocol.list_request("/videos")
        response = await io.execute(request)
        entries = protocol.parse_listing(request, response)
"""

from .base import AsyncIOProtocol, SyncIOProtocol
from .sync import SyncIO
from .async_ import AsyncIO

__all__ = [
    # Protocols
    "SyncIOProtocol",
    "AsyncIOProtocol",
    # Implementations
    "SyncIO",
    "AsyncIO",
]
