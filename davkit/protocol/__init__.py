"""
Sans-I/O WebDAV protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and parses responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, OperationResult)
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Streaming parsers for XML response bodies
- operations: High-level WebDAVProtocol class combining builders and parsers

Example usage:

    from davkit.protocol import WebDAVProtocol

    protocol = WebDAVProtocol(base_url="https://dav.example.com/dav")

    # Build a request (no I/O)
    request = protocol.list_request("/videos")

    # Execute via your preferred I/O (sync, async, or mock)
    response = your_http_client.execute(request)

    # Parse response (no I/O)
    entries = protocol.parse_listing(request, response)
"""

from .types import (
    DAVMethod,
    DAVRequest,
    DAVResponse,
    OperationResult,
)
from .xml_builders import build_propfind_body
from .xml_parsers import (
    ErrorTarget,
    MultistatusTarget,
    PropertiesTarget,
    parse_directory_listing,
    parse_error_response,
    parse_properties,
)
from .operations import WebDAVProtocol

__all__ = [
    # Types
    "DAVMethod",
    "DAVRequest",
    "DAVResponse",
    "OperationResult",
    # XML Builders
    "build_propfind_body",
    # XML Parsers
    "ErrorTarget",
    "MultistatusTarget",
    "PropertiesTarget",
    "parse_directory_listing",
    "parse_error_response",
    "parse_properties",
    # Protocol
    "WebDAVProtocol",
]
