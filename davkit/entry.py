#!/usr/bin/env python
"""
The DirectoryEntry model: one file or directory on a WebDAV server.

Entries are produced by the multi-status parser and are immutable.  They
can be exported to, and imported from, a portable record format (a dict,
or JSON text).  Importing is lenient, as the records may have been written
by other clients: dates and kinds are accepted in several wire formats,
and anything that cannot be understood is dropped rather than raised.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any
from typing import Callable
from typing import Optional
from typing import Sequence

log = logging.getLogger(__name__)


class EntryKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Any) -> "EntryKind":
        """
        Lenient conversion.  Strings are matched case-insensitively
        against the canonical names and a few common synonyms, integers
        are taken as an index into the enumeration.  Anything else
        yields UNKNOWN.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.UNKNOWN
        if isinstance(value, int):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            return cls.UNKNOWN
        if isinstance(value, str):
            return _KIND_SYNONYMS.get(value.strip().lower(), cls.UNKNOWN)
        return cls.UNKNOWN


_KIND_SYNONYMS = {
    "file": EntryKind.FILE,
    "document": EntryKind.FILE,
    "item": EntryKind.FILE,
    "directory": EntryKind.DIRECTORY,
    "dir": EntryKind.DIRECTORY,
    "folder": EntryKind.DIRECTORY,
    "collection": EntryKind.DIRECTORY,
    "unknown": EntryKind.UNKNOWN,
}


## Date decoders.  Each one takes a string and returns an aware UTC
## datetime, or raises ValueError.  They are tried in order.


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_rfc1123(value: str) -> datetime:
    """``Mon, 01 Jan 2024 00:00:00 GMT``, independent of the locale."""
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, IndexError) as err:
        ## older pythons raise TypeError instead of ValueError
        raise ValueError(value) from err
    if dt is None:
        raise ValueError(value)
    return _as_utc(dt)


def parse_utc_seconds(value: str) -> datetime:
    """``2024-01-01T00:00:00Z``"""
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)


def parse_utc_fractional(value: str) -> datetime:
    """
    ``2024-01-01T00:00:00.000Z``, with exactly three fractional digits,
    the precision format_date writes.
    """
    fraction = value.rpartition(".")[2]
    if len(fraction) != 4 or not fraction[:3].isdigit():
        raise ValueError(value)
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ").replace(
        tzinfo=timezone.utc
    )


def parse_iso8601(value: str) -> datetime:
    """Any ISO-8601 timestamp, fractional seconds and offsets included."""
    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"
    return _as_utc(datetime.fromisoformat(value))


## What servers put in getlastmodified and creationdate
DAV_DATE_DECODERS: Sequence[Callable[[str], datetime]] = (
    parse_rfc1123,
    parse_utc_seconds,
    parse_utc_fractional,
)

## What we accept when importing a record
RECORD_DATE_DECODERS: Sequence[Callable[[str], datetime]] = (
    parse_utc_fractional,
    parse_iso8601,
    parse_rfc1123,
    parse_utc_seconds,
)


def parse_date(
    value: Optional[str],
    decoders: Sequence[Callable[[str], datetime]] = DAV_DATE_DECODERS,
) -> Optional[datetime]:
    """
    Tries the decoders in order, the first one to succeed wins.  Returns
    None if the value is empty or none of them understands it.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    for decoder in decoders:
        try:
            return decoder(value)
        except ValueError:
            continue
    log.debug("could not parse date %r", value)
    return None


def decode_record_date(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            log.debug("timestamp out of range: %r", value)
            return None
    if isinstance(value, str):
        return parse_date(value, RECORD_DATE_DECODERS)
    return None


def format_date(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, i.e. ``2024-01-01T00:00:00.000Z``"""
    dt = _as_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + "%03dZ" % (dt.microsecond // 1000)


def name_from_path(path: str) -> str:
    """The last non-empty path segment, or "" for the root, "." and ".."."""
    segments = [s for s in path.split("/") if s]
    if not segments or segments[-1] in (".", ".."):
        return ""
    return segments[-1]


@dataclass(frozen=True, eq=False)
class DirectoryEntry:
    """
    One file or directory on the server.

    Two entries are equal when they have the same path, whatever the
    other fields say; a refreshed listing replaces entries by path.

    Attributes:
        name: Display name
        path: Server-relative, URL-decoded path
        kind: file, directory or unknown
        size: Length in bytes (never set for directories)
        modified_at: Last modification time (UTC)
        created_at: Creation time (UTC)
        content_type: MIME type
        etag: Entity tag, without the surrounding quotes
        id: Opaque identifier
    """

    name: str
    path: str
    kind: EntryKind = EntryKind.UNKNOWN
    size: Optional[int] = None
    modified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirectoryEntry):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def to_dict(self) -> dict:
        ret = {
            "id": str(self.id),
            "name": self.name,
            "path": self.path,
            "type": self.kind.value,
        }
        if self.size is not None:
            ret["size"] = self.size
        if self.content_type is not None:
            ret["contentType"] = self.content_type
        if self.etag is not None:
            ret["etag"] = self.etag
        if self.modified_at is not None:
            ret["modificationDate"] = format_date(self.modified_at)
        if self.created_at is not None:
            ret["creationDate"] = format_date(self.created_at)
        return ret

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_dict(cls, data: dict) -> "DirectoryEntry":
        """
        Builds an entry from a record.  Only ``path`` is mandatory
        (``KeyError`` if missing); the rest is decoded on a best-effort
        basis.
        """
        path = data["path"]
        if not isinstance(path, str):
            raise ValueError(f"path must be a string, got {path!r}")

        try:
            entry_id = uuid.UUID(str(data["id"]))
        except (KeyError, ValueError):
            entry_id = uuid.uuid4()

        name = data.get("name")
        if not isinstance(name, str) or not name:
            name = name_from_path(path)

        size = data.get("size")
        if isinstance(size, bool) or not isinstance(size, (int, float)):
            size = None
        else:
            size = int(size)

        content_type = data.get("contentType")
        etag = data.get("etag")

        return cls(
            id=entry_id,
            name=name,
            path=path,
            kind=EntryKind.from_value(data.get("type")),
            size=size,
            modified_at=decode_record_date(data.get("modificationDate")),
            created_at=decode_record_date(data.get("creationDate")),
            content_type=content_type if isinstance(content_type, str) else None,
            etag=etag if isinstance(etag, str) else None,
        )

    @classmethod
    def from_json(cls, text: str) -> "DirectoryEntry":
        return cls.from_dict(json.loads(text))
