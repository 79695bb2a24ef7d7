"""
WebDAV protocol operations combining request building and response parsing.

This class provides a high-level interface to WebDAV operations while
remaining completely I/O-free.
"""

import logging
from typing import Container, Dict, List, Mapping, Optional

from davkit import __version__
from davkit.entry import DirectoryEntry
from davkit.lib import error
from davkit.lib.auth import build_basic_auth_header
from davkit.lib.url import URL

from .types import DAVMethod, DAVRequest, DAVResponse, OperationResult
from .xml_builders import build_propfind_body
from .xml_parsers import parse_directory_listing, parse_error_response, parse_properties

log = logging.getLogger(__name__)

USER_AGENT = "davkit/" + __version__

## Statuses counting as success, per method.  MKCOL answers 405 when
## the collection exists already, which is as good as creating it.
SUCCESS_2XX = range(200, 300)
MKCOL_SUCCESS = (201, 405)


def _merge_headers(*header_sets: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Later sets override earlier ones, header names compared case-insensitively"""
    merged: Dict[str, str] = {}
    for headers in header_sets:
        for name, value in (headers or {}).items():
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
    return merged


class WebDAVProtocol:
    """
    Sans-I/O WebDAV protocol handler.

    Builds requests and parses responses without doing any I/O.
    All HTTP communication is delegated to an external I/O implementation.

    Example:
        protocol = WebDAVProtocol(base_url="https://dav.example.com/remote.php/dav")

        # Build request
        request = protocol.list_request("/videos")

        # Execute with your I/O (not shown)
        response = io.execute(request)

        # Parse response
        entries = protocol.parse_listing(request, response)
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        huge_tree: bool = False,
    ):
        """
        Initialize the protocol handler.

        Args:
            base_url: Base URL of the WebDAV tree, scheme http or https.
              Credentials embedded in the URL are used if username and
              password are not given.
            username: Username for Basic authentication
            password: Password for Basic authentication
            headers: Extra headers for every request, these override the
              standard ones
            huge_tree: Allow parsing very large XML documents
        """
        url = URL.objectify(base_url)
        if url.scheme not in ("http", "https"):
            raise ValueError(f"Unsupported URL scheme {url.scheme!r} in {url.unauth()}")
        if not url.hostname:
            raise ValueError(f"No host name in {url.unauth()}")
        if url.is_auth() and username is None and password is None:
            username, password = url.credentials()
        self.url = url.unauth()
        self.username = username
        self.password = password
        self.headers = dict(headers or {})
        self.huge_tree = huge_tree
        self._auth_header = build_basic_auth_header(username, password)

    @property
    def base_url(self) -> str:
        return str(self.url)

    def _base_headers(self, url: URL) -> Dict[str, str]:
        """Return base headers for all requests."""
        headers = {
            "Accept": "*/*",
            "Accept-Encoding": "*/*",
            "User-Agent": USER_AGENT,
            "Host": url.host_header(),
        }
        if self._auth_header:
            headers["Authorization"] = self._auth_header
        return headers

    def resolve(self, path: str) -> URL:
        """The full URL of a path relative to the WebDAV root"""
        return self.url.join(path)

    def _request(
        self,
        method: DAVMethod,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> DAVRequest:
        url = self.resolve(path)
        return DAVRequest(
            method=method,
            url=str(url),
            headers=_merge_headers(self._base_headers(url), self.headers, headers),
            body=body,
        )

    # =========================================================================
    # Request builders
    # =========================================================================

    def propfind_request(
        self,
        path: str,
        depth: int = 0,
        props: Optional[List[str]] = None,
        with_body: bool = True,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DAVRequest:
        """
        Build a PROPFIND request.

        Args:
            path: Resource path
            depth: Depth header value, 0 or 1.  "infinity" is never
              used, as listings of large trees get unbounded.
            props: Property names to retrieve (None for the listing set)
            with_body: Whether to send a propfind body at all
            headers: Extra headers

        Returns:
            DAVRequest ready for execution
        """
        return self._request(
            DAVMethod.PROPFIND,
            path,
            headers=_merge_headers(
                {"Depth": str(depth), "Content-Type": "application/xml"}, headers
            ),
            body=build_propfind_body(props) if with_body else None,
        )

    def test_connection_request(self) -> DAVRequest:
        """PROPFIND with Depth 0 and no body against the root"""
        return self.propfind_request("", depth=0, with_body=False)

    def list_request(self, path: str) -> DAVRequest:
        return self.propfind_request(path, depth=1)

    def properties_request(self, path: str, props: Optional[List[str]] = None) -> DAVRequest:
        return self.propfind_request(path, depth=0, props=props)

    def mkcol_request(self, path: str) -> DAVRequest:
        return self._request(DAVMethod.MKCOL, path)

    def put_request(
        self,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> DAVRequest:
        """
        Build a PUT request.

        Args:
            path: Resource path
            data: Resource content
            content_type: Content-Type header, left out if not given
        """
        headers = {"Content-Type": content_type} if content_type else None
        return self._request(DAVMethod.PUT, path, headers=headers, body=data)

    def get_request(self, path: str) -> DAVRequest:
        return self._request(DAVMethod.GET, path)

    def delete_request(self, path: str) -> DAVRequest:
        return self._request(DAVMethod.DELETE, path)

    def move_request(self, path: str, destination: str, overwrite: bool = False) -> DAVRequest:
        """
        Build a MOVE request.

        Args:
            path: Resource path
            destination: New path, relative to the WebDAV root
            overwrite: Whether an existing resource at the destination
              may be replaced
        """
        return self._request(
            DAVMethod.MOVE,
            path,
            headers={
                "Destination": str(self.resolve(destination)),
                "Overwrite": "T" if overwrite else "F",
            },
        )

    def rename_request(self, path: str, new_name: str) -> DAVRequest:
        """MOVE to a new name within the same parent collection"""
        if not new_name or "/" in new_name or new_name in (".", ".."):
            raise ValueError(f"Invalid name {new_name!r}")
        trailing = "/" if path.endswith("/") else ""
        parent = path.rstrip("/").rpartition("/")[0]
        return self.move_request(path, f"{parent}/{new_name}{trailing}")

    # =========================================================================
    # Streaming
    # =========================================================================

    def stream_url(self, path: str) -> str:
        """
        URL of a remote file for media players and the like, with the
        credentials embedded as user:password@ when configured.
        """
        return str(self.resolve(path).with_credentials(self.username, self.password))

    def stream_headers(self) -> Dict[str, str]:
        """Headers to send along with a stream URL, for players that take headers"""
        if self._auth_header:
            return {"Authorization": self._auth_header}
        return {}

    # =========================================================================
    # Response interpretation
    # =========================================================================

    def describe(self, response: DAVResponse) -> Optional[str]:
        """The server's own description of an error, if it sent one"""
        if response.ok or not response.body:
            return None
        return parse_error_response(response.body)

    def result(
        self,
        response: DAVResponse,
        success: Container[int] = SUCCESS_2XX,
    ) -> OperationResult:
        """Map a response to an OperationResult, given the success statuses"""
        ok = response.status in success
        result = OperationResult(
            ok=ok,
            status=response.status,
            reason=f"{response.status} {response.reason}",
            description=None if ok else self.describe(response),
        )
        if not ok:
            log.info("request failed: %s", result.message)
        return result

    def raise_for_status(self, request: DAVRequest, response: DAVResponse) -> None:
        """Raises the matching ResponseError unless the status is 2xx"""
        if response.ok:
            return
        reason = f"{response.status} {response.reason}"
        description = self.describe(response)
        if description:
            reason = f"{reason}: {description}"
        if response.status in (401, 403):
            exc_class = error.AuthorizationError
        elif response.status == 404:
            exc_class = error.NotFoundError
        else:
            exc_class = error.exception_by_method[request.method.value.lower()]
        raise exc_class(
            url=request.url, reason=reason, status=response.status, body=response.body
        )

    def parse_listing(self, request: DAVRequest, response: DAVResponse) -> List[DirectoryEntry]:
        """
        Parse the response to a list_request.

        Raises:
            ResponseError: status not 2xx
            ParseError: body is not well-formed XML
        """
        self.raise_for_status(request, response)
        if not response.is_multistatus:
            error.weirdness("PROPFIND answered with status", response.status)
        content_type = response.header("Content-Type")
        if content_type and "xml" not in content_type.lower():
            error.weirdness("unexpected content type for a listing", content_type)
        try:
            return parse_directory_listing(response.body, huge_tree=self.huge_tree)
        except error.ParseError as err:
            err.url = request.url
            raise

    def parse_properties(self, request: DAVRequest, response: DAVResponse) -> Dict[str, str]:
        self.raise_for_status(request, response)
        try:
            return parse_properties(response.body, huge_tree=self.huge_tree)
        except error.ParseError as err:
            err.url = request.url
            raise

    def download_body(self, request: DAVRequest, response: DAVResponse) -> bytes:
        """The body of a GET response; an empty body counts as failure"""
        self.raise_for_status(request, response)
        if not response.body:
            raise error.DownloadError(
                url=request.url,
                reason=f"{response.status} {response.reason}: empty response body",
                status=response.status,
            )
        return response.body
