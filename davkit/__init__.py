#!/usr/bin/env python
import logging

__version__ = "1.0.0"

from .client import AsyncWebDAVClient
from .client import get_client
from .client import WebDAVClient
from .entry import DirectoryEntry
from .entry import EntryKind
from .profile import ServerProfile

## Silence notification of no default logging handler
log = logging.getLogger("davkit")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = [
    "__version__",
    "AsyncWebDAVClient",
    "DirectoryEntry",
    "EntryKind",
    "ServerProfile",
    "WebDAVClient",
    "get_client",
]
