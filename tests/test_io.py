"""
Tests for the I/O shells: translation of library exceptions into
TransportError kinds, and the request/response plumbing with mocked
sessions.
"""

import asyncio
import http.client
import socket
from unittest.mock import AsyncMock, MagicMock, Mock

import aiohttp
import pytest
import requests
import urllib3.exceptions

from davkit.io import AsyncIO, AsyncIOProtocol, SyncIO, SyncIOProtocol
from davkit.io import async_ as async_io
from davkit.io import sync as sync_io
from davkit.lib.error import TransportError, TransportErrorKind
from davkit.protocol import DAVMethod, DAVRequest

URL = "https://dav.example.com/dav"
Kind = TransportErrorKind


def _chained(outer, inner):
    try:
        try:
            raise inner
        except BaseException as err:
            raise outer from err
    except BaseException as err:
        return err


class TestSyncTranslation:
    def test_timeout(self):
        err = sync_io.translate_exception(requests.exceptions.ReadTimeout("slow"), URL)
        assert err.kind is Kind.TIMEOUT
        assert err.retryable
        assert err.url == URL

    def test_connect_timeout(self):
        exc = requests.exceptions.ConnectTimeout("slow")
        assert sync_io.translate_exception(exc, URL).kind is Kind.TIMEOUT

    def test_ssl(self):
        exc = requests.exceptions.SSLError("bad certificate")
        err = sync_io.translate_exception(exc, URL)
        assert err.kind is Kind.TLS
        assert not err.retryable

    def test_refused(self):
        exc = _chained(
            requests.exceptions.ConnectionError("refused"),
            ConnectionRefusedError(111, "Connection refused"),
        )
        assert sync_io.translate_exception(exc, URL).kind is Kind.CANNOT_CONNECT

    def test_name_resolution(self):
        exc = requests.exceptions.ConnectionError(
            socket.gaierror(-2, "Name or service not known")
        )
        err = sync_io.translate_exception(exc, URL)
        assert err.kind is Kind.NAME_RESOLUTION
        assert not err.retryable

    def test_connection_lost(self):
        exc = requests.exceptions.ConnectionError(
            urllib3.exceptions.ProtocolError(
                "Connection aborted.", http.client.RemoteDisconnected("closed")
            )
        )
        assert sync_io.translate_exception(exc, URL).kind is Kind.CONNECTION_LOST

    def test_chunked_encoding(self):
        exc = requests.exceptions.ChunkedEncodingError("truncated")
        assert sync_io.translate_exception(exc, URL).kind is Kind.CONNECTION_LOST

    def test_other(self):
        exc = requests.exceptions.InvalidURL("what")
        assert sync_io.translate_exception(exc, URL).kind is Kind.OTHER


class TestAsyncTranslation:
    def test_timeout(self):
        assert async_io.translate_exception(asyncio.TimeoutError(), URL).kind is Kind.TIMEOUT

    def test_disconnected(self):
        exc = aiohttp.ServerDisconnectedError()
        assert async_io.translate_exception(exc, URL).kind is Kind.CONNECTION_LOST

    def test_payload(self):
        exc = aiohttp.ClientPayloadError("truncated")
        assert async_io.translate_exception(exc, URL).kind is Kind.CONNECTION_LOST

    def test_other(self):
        exc = aiohttp.InvalidURL("what")
        assert async_io.translate_exception(exc, URL).kind is Kind.OTHER


class TestSyncIO:
    def test_implements_protocol(self):
        assert isinstance(SyncIO(), SyncIOProtocol)

    def test_execute(self):
        session = Mock()
        session.request.return_value = Mock(
            status_code=207, reason="Multi-Status", headers={"Content-Type": "text/xml"}, content=b"<x/>"
        )
        io = SyncIO(session=session, timeout=5.0, verify="/ca.pem")
        request = DAVRequest(
            method=DAVMethod.PROPFIND, url=URL, headers={"Depth": "1"}, body=b"<propfind/>"
        )
        response = io.execute(request)
        session.request.assert_called_once_with(
            method="PROPFIND",
            url=URL,
            headers={"Depth": "1"},
            data=b"<propfind/>",
            timeout=5.0,
            verify="/ca.pem",
        )
        assert response.status == 207
        assert response.body == b"<x/>"
        assert response.header("content-type") == "text/xml"

    def test_execute_translates_errors(self):
        session = Mock()
        session.request.side_effect = requests.exceptions.ConnectTimeout("slow")
        io = SyncIO(session=session)
        with pytest.raises(TransportError) as excinfo:
            io.execute(DAVRequest(method=DAVMethod.GET, url=URL))
        assert excinfo.value.kind is Kind.TIMEOUT
        assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectTimeout)

    def test_borrowed_session_not_closed(self):
        session = Mock()
        with SyncIO(session=session):
            pass
        session.close.assert_not_called()


class TestAsyncIO:
    def test_implements_protocol(self):
        assert isinstance(AsyncIO(), AsyncIOProtocol)

    @pytest.mark.asyncio
    async def test_execute(self):
        raw = Mock(status=201, reason="Created", headers={"ETag": '"1"'})
        raw.read = AsyncMock(return_value=b"")
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=raw)
        context.__aexit__ = AsyncMock(return_value=False)
        session = Mock()
        session.request = Mock(return_value=context)

        io = AsyncIO(session=session)
        response = await io.execute(DAVRequest(method=DAVMethod.PUT, url=URL, body=b"x"))
        session.request.assert_called_once_with(
            method="PUT", url=URL, headers={}, data=b"x"
        )
        assert response.status == 201
        assert response.body == b""

    @pytest.mark.asyncio
    async def test_execute_translates_errors(self):
        session = Mock()
        session.request = Mock(side_effect=aiohttp.ServerDisconnectedError())
        io = AsyncIO(session=session)
        with pytest.raises(TransportError) as excinfo:
            await io.execute(DAVRequest(method=DAVMethod.GET, url=URL))
        assert excinfo.value.kind is Kind.CONNECTION_LOST
