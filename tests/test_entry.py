"""
Tests for the DirectoryEntry model and the lenient record decoding.
"""

import json
import uuid
from datetime import datetime, timezone

import pytest

from davkit.entry import (
    DirectoryEntry,
    EntryKind,
    decode_record_date,
    format_date,
    name_from_path,
    parse_date,
)


class TestEntryKind:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("file", EntryKind.FILE),
            ("Document", EntryKind.FILE),
            ("item", EntryKind.FILE),
            ("directory", EntryKind.DIRECTORY),
            ("DIR", EntryKind.DIRECTORY),
            ("folder", EntryKind.DIRECTORY),
            ("collection", EntryKind.DIRECTORY),
            ("symlink", EntryKind.UNKNOWN),
            (0, EntryKind.FILE),
            (1, EntryKind.DIRECTORY),
            (2, EntryKind.UNKNOWN),
            (17, EntryKind.UNKNOWN),
            (-1, EntryKind.UNKNOWN),
            (True, EntryKind.UNKNOWN),
            (None, EntryKind.UNKNOWN),
            (EntryKind.DIRECTORY, EntryKind.DIRECTORY),
        ],
    )
    def test_from_value(self, value, expected):
        assert EntryKind.from_value(value) is expected


class TestDates:
    def test_rfc1123(self):
        assert parse_date("Mon, 01 Jan 2024 12:30:00 GMT") == datetime(
            2024, 1, 1, 12, 30, tzinfo=timezone.utc
        )

    def test_utc_seconds(self):
        assert parse_date("2024-01-01T00:00:00Z") == datetime(
            2024, 1, 1, tzinfo=timezone.utc
        )

    def test_utc_fractional(self):
        assert parse_date("2024-01-01T00:00:00.250Z") == datetime(
            2024, 1, 1, 0, 0, 0, 250000, tzinfo=timezone.utc
        )

    def test_utc_fractional_needs_milliseconds(self):
        assert parse_date("2024-01-01T00:00:00.123456Z") is None
        assert parse_date("2024-01-01T00:00:00.1Z") is None
        ## records are more lenient, but keep the full value
        assert decode_record_date("2024-01-01T00:00:00.123456Z") == datetime(
            2024, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("garbage",["yesterday", "", "   ", None, "2024-13-45T99:00:00Z"])
    def test_garbage_is_absent(self, garbage):
        assert parse_date(garbage) is None

    def test_record_dates(self):
        expected = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert decode_record_date("2024-03-01T10:00:00.000Z") == expected
        assert decode_record_date("2024-03-01T11:00:00+01:00") == expected
        assert decode_record_date("Fri, 01 Mar 2024 10:00:00 GMT") == expected
        assert decode_record_date(expected.timestamp()) == expected
        assert decode_record_date(int(expected.timestamp())) == expected
        assert decode_record_date(True) is None
        assert decode_record_date({"date": "today"}) is None

    def test_format_date(self):
        dt = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
        assert format_date(dt) == "2024-01-02T03:04:05.678Z"


class TestNameFromPath:
    @pytest.mark.parametrize(
        "path,name",
        [
            ("/dav/Movies", "Movies"),
            ("/dav/Movies/", "Movies"),
            ("/dav//clip.mp4", "clip.mp4"),
            ("/", ""),
            ("", ""),
            ("/dav/.", ""),
            ("/dav/..", ""),
        ],
    )
    def test_name_from_path(self, path, name):
        assert name_from_path(path) == name


class TestDirectoryEntry:
    def test_immutable(self):
        entry = DirectoryEntry(name="a", path="/a")
        with pytest.raises(AttributeError):
            entry.name = "b"

    def test_equality_by_path(self):
        a = DirectoryEntry(name="a", path="/x", kind=EntryKind.FILE, size=1)
        b = DirectoryEntry(name="b", path="/x", kind=EntryKind.DIRECTORY)
        c = DirectoryEntry(name="a", path="/y", kind=EntryKind.FILE, size=1)
        assert a == b
        assert a != c
        assert len({a, b, c}) == 2
        assert a.id != b.id

    def test_is_directory(self):
        assert DirectoryEntry(name="d", path="/d", kind=EntryKind.DIRECTORY).is_directory
        assert not DirectoryEntry(name="f", path="/f", kind=EntryKind.FILE).is_directory

    def test_to_dict_omits_absent_fields(self):
        entry = DirectoryEntry(name="Movies", path="/dav/Movies", kind=EntryKind.DIRECTORY)
        data = entry.to_dict()
        assert data == {
            "id": str(entry.id),
            "name": "Movies",
            "path": "/dav/Movies",
            "type": "directory",
        }

    @pytest.mark.parametrize(
        "server_date",
        [
            "Mon, 01 Jan 2024 00:00:00 GMT",
            "2024-01-01T00:00:00Z",
            "2024-01-01T00:00:00.000Z",
            "2024-01-01T12:00:00.123Z",
        ],
    )
    def test_round_trip(self, server_date):
        entry = DirectoryEntry(
            name="clip.mp4",
            path="/dav/Movies/clip.mp4",
            kind=EntryKind.FILE,
            size=104857600,
            modified_at=parse_date(server_date),
            created_at=parse_date(server_date),
            content_type="video/mp4",
            etag="abc",
        )
        assert entry.modified_at is not None
        data = json.loads(entry.to_json())
        assert data["modificationDate"] == format_date(entry.modified_at)
        copy = DirectoryEntry.from_json(entry.to_json())
        assert copy == entry
        assert copy.id == entry.id
        assert copy.name == entry.name
        assert copy.kind is EntryKind.FILE
        assert copy.size == entry.size
        assert copy.modified_at == entry.modified_at
        assert copy.created_at == entry.created_at
        assert copy.content_type == "video/mp4"
        assert copy.etag == "abc"

    def test_from_dict_lenient(self):
        entry = DirectoryEntry.from_dict(
            {
                "id": "not-a-uuid",
                "path": "/dav/Shows/",
                "type": "folder",
                "size": "huge",
                "modificationDate": "last tuesday",
                "creationDate": 1704067200,
                "contentType": 42,
            }
        )
        assert isinstance(entry.id, uuid.UUID)
        assert entry.name == "Shows"
        assert entry.kind is EntryKind.DIRECTORY
        assert entry.size is None
        assert entry.modified_at is None
        assert entry.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert entry.content_type is None

    def test_from_dict_numeric_kind_and_float_size(self):
        entry = DirectoryEntry.from_dict({"path": "/a.txt", "type": 0, "size": 12.0})
        assert entry.kind is EntryKind.FILE
        assert entry.size == 12
        assert entry.name == "a.txt"

    def test_from_dict_bool_size_dropped(self):
        entry = DirectoryEntry.from_dict({"path": "/a.txt", "size": True})
        assert entry.size is None

    def test_from_dict_requires_path(self):
        with pytest.raises(KeyError):
            DirectoryEntry.from_dict({"name": "orphan"})
