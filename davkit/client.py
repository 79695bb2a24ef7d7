"""
WebDAV clients built on the Sans-I/O protocol layer.

``WebDAVClient`` does blocking I/O with requests, ``AsyncWebDAVClient``
does the same operations as coroutines with aiohttp.  Both run every
exchange through the same pipeline:

    WebDAVProtocol builds the request
    -> RetryPolicy retries transient transport failures
    -> the I/O shell talks HTTP
    -> ChallengeHandler answers a 401 challenge, if it can
    -> WebDAVProtocol interprets the response

Operations which either work or not (create, upload, delete, rename,
test) return an OperationResult; HTTP failures are reported there, with
the status code, and are not raised.  Operations which return data
(listing, download, properties) raise a ResponseError subclass instead.
Transport failures (TransportError) and malformed XML (ParseError) are
raised by all of them.

``get_client`` builds a client from parameters, environment variables or
a configuration file.
"""

import logging
import json
import os
from typing import Dict, List, Mapping, Optional, Union

import requests

from davkit.entry import DirectoryEntry
from davkit.io import AsyncIO, SyncIO
from davkit.lib import error
from davkit.lib.auth import ChallengeHandler
from davkit.lib.retry import RetryPolicy
from davkit.protocol import DAVRequest, DAVResponse, OperationResult, WebDAVProtocol
from davkit.protocol.operations import MKCOL_SUCCESS

log = logging.getLogger("davkit")

## Parameters accepted by the client constructors, as they may appear
## in the environment or in configuration files
CONNKEYS = set(
    (
        "url",
        "username",
        "password",
        "timeout",
        "headers",
        "huge_tree",
        "trust_any_certificate",
        "ca_bundle",
        "max_retries",
        "retry_delay",
    )
)


class _ClientBase:
    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        trust_any_certificate: bool = False,
        ca_bundle: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        max_retries: int = 3,
        retry_delay: float = 0.1,
        huge_tree: bool = False,
    ) -> None:
        self.protocol = WebDAVProtocol(
            base_url=url,
            username=username,
            password=password,
            headers=headers,
            huge_tree=huge_tree,
        )
        self.auth = ChallengeHandler(
            username=self.protocol.username,
            password=self.protocol.password,
            trust_any_certificate=trust_any_certificate,
            ca_bundle=ca_bundle,
        )
        self.retry_policy = RetryPolicy(max_retries=max_retries, base_delay=retry_delay)
        self.timeout = timeout
        if self.auth.has_credentials:
            log.debug(
                "client for %s, user %s, password of %i characters",
                self.protocol.url,
                self.protocol.username,
                len(self.protocol.password),
            )
        else:
            log.debug("client for %s, no credentials", self.protocol.url)

    @property
    def url(self) -> str:
        return self.protocol.base_url

    def stream_url(self, path: str) -> str:
        """
        Authenticated URL of a remote file, for media players and other
        consumers which fetch the file on their own.
        """
        return self.protocol.stream_url(path)

    def stream_headers(self) -> Dict[str, str]:
        """Authentication headers to pass along with stream_url"""
        return self.protocol.stream_headers()

    def _connection_result(self, response: DAVResponse) -> OperationResult:
        result = self.protocol.result(response)
        if response.status == 401:
            challenge = response.header("WWW-Authenticate")
            log.warning(
                "server returned 401, check the credentials%s",
                f" (server asks for: {challenge})" if challenge else "",
            )
        elif response.status == 404:
            log.warning("server returned 404, check the URL path %s", self.protocol.url.path)
        return result


class WebDAVClient(_ClientBase):
    """
    Synchronous WebDAV client.

    The calls block the calling thread until the exchange, retries
    included, is done.  Use AsyncWebDAVClient where that is a problem.

    Example:
        with WebDAVClient(
            url="https://dav.example.com/remote.php/dav",
            username="user",
            password="pass",
        ) as client:
            for entry in client.list_contents("/videos"):
                print(entry.name, entry.kind.value, entry.size)
    """

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        trust_any_certificate: bool = False,
        ca_bundle: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        max_retries: int = 3,
        retry_delay: float = 0.1,
        huge_tree: bool = False,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            url: Base URL of the WebDAV tree
            username: Username for authentication
            password: Password for authentication
            timeout: Request timeout in seconds
            trust_any_certificate: Skip TLS certificate verification
            ca_bundle: CA bundle to verify the server certificate against
            headers: Extra headers for every request
            max_retries: Retries for transient network failures
            retry_delay: Delay before the first retry, in seconds
            huge_tree: Allow parsing very large XML documents
            session: requests Session to use instead of a private one
        """
        super().__init__(
            url,
            username=username,
            password=password,
            timeout=timeout,
            trust_any_certificate=trust_any_certificate,
            ca_bundle=ca_bundle,
            headers=headers,
            max_retries=max_retries,
            retry_delay=retry_delay,
            huge_tree=huge_tree,
        )
        self.io = SyncIO(session=session, timeout=timeout, verify=self.auth.verify)

    def close(self) -> None:
        """Close the HTTP session."""
        self.io.close()

    def __enter__(self) -> "WebDAVClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _execute(self, request: DAVRequest) -> DAVResponse:
        """Execute a request, with retries and challenge handling."""
        response = self.retry_policy.run(lambda: self.io.execute(request))
        answer = self.auth.answer(request, response)
        if answer is not None:
            response = self.retry_policy.run(lambda: self.io.execute(answer))
        return response

    # High-level operations

    def test_connection(self) -> OperationResult:
        """
        Check that the server answers a PROPFIND on the root.

        Returns:
            OperationResult, truthy on a 2xx status.  Authentication
            failures and wrong paths give a falsy result with the
            status code.
        """
        response = self._execute(self.protocol.test_connection_request())
        return self._connection_result(response)

    def list_contents(self, path: str = "") -> List[DirectoryEntry]:
        """
        List a directory (PROPFIND, Depth 1).

        Args:
            path: Directory path relative to the WebDAV root

        Returns:
            The entries, in the order the server sent them.  Most servers
            include the directory itself.
        """
        request = self.protocol.list_request(path)
        return self.protocol.parse_listing(request, self._execute(request))

    def fetch_properties(self, path: str = "", props: Optional[List[str]] = None) -> Dict[str, str]:
        """
        Get the properties of one resource (PROPFIND, Depth 0).

        Returns:
            Dict of property name (without namespace) to text value
        """
        request = self.protocol.properties_request(path, props)
        return self.protocol.parse_properties(request, self._execute(request))

    def create_directory(self, path: str) -> OperationResult:
        """MKCOL.  A directory which exists already counts as success."""
        response = self._execute(self.protocol.mkcol_request(path))
        return self.protocol.result(response, MKCOL_SUCCESS)

    def upload_file(
        self,
        data: Union[str, bytes],
        path: str,
        content_type: Optional[str] = None,
    ) -> OperationResult:
        """
        PUT a file.

        Args:
            data: File content, str is encoded as UTF-8
            path: Destination path
            content_type: Content-Type to declare
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        response = self._execute(self.protocol.put_request(path, data, content_type))
        return self.protocol.result(response)

    def download_file(self, path: str) -> bytes:
        """GET a file.  Raises a ResponseError unless a non-empty 2xx body arrives."""
        request = self.protocol.get_request(path)
        return self.protocol.download_body(request, self._execute(request))

    def delete_item(self, path: str) -> OperationResult:
        """DELETE a file or a directory (with everything in it)."""
        response = self._execute(self.protocol.delete_request(path))
        return self.protocol.result(response)

    def rename_item(self, path: str, new_name: str) -> OperationResult:
        """MOVE a file or directory to a new name in the same directory."""
        response = self._execute(self.protocol.rename_request(path, new_name))
        return self.protocol.result(response)


class AsyncWebDAVClient(_ClientBase):
    """
    Asynchronous WebDAV client.

    Every operation is a coroutine doing one exchange (plus retries).
    Wrap calls in tasks to run them concurrently or to be able to cancel
    them; nothing is ordered between concurrent calls.  Retry delays are
    asyncio timers and never hold up other exchanges.

    Example:
        async with AsyncWebDAVClient(
            url="https://dav.example.com/remote.php/dav",
            username="user",
            password="pass",
        ) as client:
            entries = await client.list_contents("/videos")
    """

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        trust_any_certificate: bool = False,
        ca_bundle: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        max_retries: int = 3,
        retry_delay: float = 0.1,
        huge_tree: bool = False,
        session=None,
    ):
        """
        Initialize the client.  See WebDAVClient for the arguments;
        ``session`` is an aiohttp ClientSession here.
        """
        super().__init__(
            url,
            username=username,
            password=password,
            timeout=timeout,
            trust_any_certificate=trust_any_certificate,
            ca_bundle=ca_bundle,
            headers=headers,
            max_retries=max_retries,
            retry_delay=retry_delay,
            huge_tree=huge_tree,
        )
        self.io = AsyncIO(session=session, timeout=timeout, verify_ssl=self.auth.verify)

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.io.close()

    async def __aenter__(self) -> "AsyncWebDAVClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def _execute(self, request: DAVRequest) -> DAVResponse:
        """Execute a request, with retries and challenge handling."""
        response = await self.retry_policy.run_async(lambda: self.io.execute(request))
        answer = self.auth.answer(request, response)
        if answer is not None:
            response = await self.retry_policy.run_async(lambda: self.io.execute(answer))
        return response

    # High-level operations (async versions)

    async def test_connection(self) -> OperationResult:
        """Check that the server answers a PROPFIND on the root."""
        response = await self._execute(self.protocol.test_connection_request())
        return self._connection_result(response)

    async def list_contents(self, path: str = "") -> List[DirectoryEntry]:
        """List a directory (PROPFIND, Depth 1)."""
        request = self.protocol.list_request(path)
        return self.protocol.parse_listing(request, await self._execute(request))

    async def fetch_properties(
        self, path: str = "", props: Optional[List[str]] = None
    ) -> Dict[str, str]:
        """Get the properties of one resource (PROPFIND, Depth 0)."""
        request = self.protocol.properties_request(path, props)
        return self.protocol.parse_properties(request, await self._execute(request))

    async def create_directory(self, path: str) -> OperationResult:
        """MKCOL.  A directory which exists already counts as success."""
        response = await self._execute(self.protocol.mkcol_request(path))
        return self.protocol.result(response, MKCOL_SUCCESS)

    async def upload_file(
        self,
        data: Union[str, bytes],
        path: str,
        content_type: Optional[str] = None,
    ) -> OperationResult:
        """PUT a file."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        response = await self._execute(self.protocol.put_request(path, data, content_type))
        return self.protocol.result(response)

    async def download_file(self, path: str) -> bytes:
        """GET a file."""
        request = self.protocol.get_request(path)
        return self.protocol.download_body(request, await self._execute(request))

    async def delete_item(self, path: str) -> OperationResult:
        """DELETE a file or a directory."""
        response = await self._execute(self.protocol.delete_request(path))
        return self.protocol.result(response)

    async def rename_item(self, path: str, new_name: str) -> OperationResult:
        """MOVE a file or directory to a new name in the same directory."""
        response = await self._execute(self.protocol.rename_request(path, new_name))
        return self.protocol.result(response)


def _coerce(conf: dict) -> dict:
    """Configuration values may come as strings; convert the known ones"""
    ret = {}
    for key, value in conf.items():
        if key not in CONNKEYS:
            error.weirdness(f"unknown connection parameter {key}")
            continue
        if isinstance(value, str):
            if key in ("timeout", "retry_delay"):
                value = float(value)
            elif key == "max_retries":
                value = int(value)
            elif key in ("huge_tree", "trust_any_certificate"):
                value = value.strip().lower() in ("1", "true", "yes", "on")
            elif key == "headers":
                ## a JSON object, like '{"X-Trace": "1"}'
                value = json.loads(value)
                if not isinstance(value, dict):
                    raise ValueError(f"headers must be a JSON object, not {value!r}")
        ret[key] = value
    return ret


def get_client(
    check_config_file: bool = True,
    config_file: Optional[str] = None,
    config_section: Optional[str] = None,
    environment: bool = True,
    asynchronous: bool = False,
    **config_data,
) -> Union[WebDAVClient, AsyncWebDAVClient, None]:
    """
    This function will yield a client object.  It will not try to
    connect.  It will read configuration from various sources, in this
    order:

    * Data from the parameters given
    * Environment variables prepended with `WEBDAV_`, like `WEBDAV_URL`, `WEBDAV_USERNAME`, `WEBDAV_PASSWORD`.
    * Environment variables `WEBDAV_CONFIG_FILE` and `WEBDAV_CONFIG_SECTION`
    * Configuration file, keys prepended with `webdav_`, like `webdav_url`, `webdav_user`, `webdav_pass`.

    Returns None if no configuration was found.
    """
    client_class = AsyncWebDAVClient if asynchronous else WebDAVClient
    if config_data:
        return client_class(**_coerce(config_data))

    if environment:
        conf = {}
        for conf_key in (
            x
            for x in os.environ
            if x.startswith("WEBDAV_") and not x.startswith("WEBDAV_CONFIG")
        ):
            conf[conf_key[7:].lower()] = os.environ[conf_key]
        if conf:
            return client_class(**_coerce(conf))
        if not config_file:
            config_file = os.environ.get("WEBDAV_CONFIG_FILE")
        if not config_section:
            config_section = os.environ.get("WEBDAV_CONFIG_SECTION")

    if check_config_file:
        from . import config

        if not config_section:
            config_section = "default"

        cfg = config.read_config(config_file)
        if cfg:
            section = config.config_section(cfg, config_section)
            conn_params = {}
            for k in section:
                if k.startswith("webdav_") and section[k]:
                    key = k[7:]
                    if key == "pass":
                        key = "password"
                    if key == "user":
                        key = "username"
                    conn_params[key] = section[k]
            if conn_params:
                return client_class(**_coerce(conn_params))
    return None
