import pytest

from davkit.lib import error


class TestErrors:
    def test_str(self):
        err = error.NotFoundError(url="https://dav.example.com/a", reason="404 Not Found", status=404)
        assert str(err) == "NotFoundError at 'https://dav.example.com/a', reason 404 Not Found"
        assert err.status == 404
        assert err.body == b""

    def test_transport_error_default_reason(self):
        err = error.TransportError(kind=error.TransportErrorKind.TLS)
        assert err.reason == "secure connection failed"
        assert not err.retryable

    @pytest.mark.parametrize(
        "method,exc_class",
        [
            ("propfind", error.PropfindError),
            ("mkcol", error.MkcolError),
            ("put", error.PutError),
            ("delete", error.DeleteError),
            ("move", error.MoveError),
            ("get", error.DownloadError),
            ("options", error.ResponseError),
        ],
    )
    def test_exception_by_method(self, method, exc_class):
        assert error.exception_by_method[method] is exc_class

    def test_hierarchy(self):
        assert issubclass(error.AuthorizationError, error.ResponseError)
        assert issubclass(error.ParseError, error.DAVError)
        assert not issubclass(error.TransportError, error.ResponseError)

    def test_assert_in_production_logs(self, monkeypatch, caplog):
        monkeypatch.setattr(error, "debugmode", "PRODUCTION")
        error.assert_(False)
        assert "Deviation from expectations" in caplog.text

    def test_assert_in_development_raises(self, monkeypatch):
        monkeypatch.setattr(error, "debugmode", "DEVELOPMENT")
        with pytest.raises(AssertionError):
            error.assert_(False)

    def test_weirdness_logs(self, caplog):
        error.weirdness("response element without href", "/dav")
        assert "response element without href : /dav" in caplog.text
