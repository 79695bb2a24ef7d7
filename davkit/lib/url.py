#!/usr/bin/env python
import sys
from typing import Optional
from typing import Tuple
from typing import Union
from urllib.parse import quote
from urllib.parse import SplitResult
from urllib.parse import unquote
from urllib.parse import urlsplit
from urllib.parse import urlunsplit

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self

DEFAULT_PORTS = {"http": 80, "https": 443}


class URL:
    """
    Wraps the endpoint URL of a WebDAV server.  It's used internally
    in the library, end users should not need to know anything about
    this class.

    The base URL holds scheme, host, port and the root path of the
    WebDAV tree, i.e. "https://dav.example.com:8443/remote.php/dav".
    Paths given to the client operations are always relative to that
    root, so "/videos" and "videos" both refer to
    "https://dav.example.com:8443/remote.php/dav/videos".
    """

    def __init__(self, url: Union[str, SplitResult]) -> None:
        if isinstance(url, SplitResult):
            self.url_parsed = url
        else:
            self.url_parsed = urlsplit(url.strip())

    @classmethod
    def objectify(cls, url: Union[Self, str, SplitResult, None]) -> Optional["URL"]:
        if url is None or isinstance(url, URL):
            return url
        return URL(url)

    def __getattr__(self, attr: str):
        ## scheme, hostname, port, path, username, password ...
        if "url_parsed" not in vars(self):
            raise AttributeError(attr)
        return getattr(self.url_parsed, attr)

    def __str__(self) -> str:
        return urlunsplit(self.url_parsed)

    def __repr__(self) -> str:
        return "URL(%s)" % str(self)

    def __eq__(self, other: object) -> bool:
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def is_auth(self) -> bool:
        return self.username is not None

    def unauth(self) -> "URL":
        """Returns the URL without any user:password@ part"""
        if not self.is_auth():
            return self
        return URL(self.url_parsed._replace(netloc=self._hostport()))

    def credentials(self) -> Tuple[Optional[str], Optional[str]]:
        """user and password embedded in the URL, if any"""
        username = self.username
        password = self.password
        return (
            unquote(username) if username is not None else None,
            unquote(password) if password is not None else None,
        )

    def _hostport(self) -> str:
        host = self.hostname or ""
        if ":" in host:
            ## IPv6 literal
            host = "[%s]" % host
        if self.port:
            host = "%s:%i" % (host, self.port)
        return host

    def host_header(self) -> str:
        """
        Value for the Host header: the host name, with the port only
        when the URL gives one explicitly.
        """
        return self._hostport()

    def join(self, path: Optional[str]) -> "URL":
        """
        Appends a path to the root path of this URL.  A missing leading
        slash is added.  The path is taken as decoded, the way directory
        listings return it, and gets percent-encoded here; a "%" in it is
        a literal percent sign.
        """
        if not path:
            return self
        if not path.startswith("/"):
            path = "/" + path
        ret_path = self.path.rstrip("/") + quote(path)
        return URL(self.url_parsed._replace(path=ret_path, query="", fragment=""))

    def with_credentials(self, username: Optional[str], password: Optional[str]) -> "URL":
        """Embeds user:password@ in the URL (both get percent-encoded)"""
        if username is None or password is None:
            return self.unauth()
        netloc = "%s:%s@%s" % (
            quote(username, safe=""),
            quote(password, safe=""),
            self._hostport(),
        )
        return URL(self.url_parsed._replace(netloc=netloc))
