"""
Saved server connections.

A ServerProfile is what an application keeps around between runs to
reconnect to a server: a name, the URL and the credentials.  Profiles
serialize to plain dicts (and JSON), so they can be stored wherever the
application keeps its settings.

The password is stored base64-encoded.  This is obfuscation against
casual reading of a settings file and nothing more; anybody holding the
file can decode it.
"""

import base64
import binascii
import json
import logging
import uuid
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Dict
from typing import Optional

from davkit.client import AsyncWebDAVClient
from davkit.client import WebDAVClient
from davkit.protocol import OperationResult

log = logging.getLogger(__name__)


def _encode_password(password: str) -> str:
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


def _decode_password(encoded: str) -> str:
    try:
        return base64.b64decode(encoded.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return ""


@dataclass(eq=False)
class ServerProfile:
    name: str
    server_url: str
    username: str = ""
    encoded_password: str = ""
    use_ssl: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    ## runtime state, never serialized
    is_connected: bool = False

    @classmethod
    def create(
        cls,
        name: str,
        server_url: str,
        username: str = "",
        password: str = "",
        use_ssl: bool = False,
    ) -> "ServerProfile":
        """New profile, taking the password in clear text"""
        return cls(
            name=name,
            server_url=server_url,
            username=username,
            encoded_password=_encode_password(password),
            use_ssl=use_ssl,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServerProfile):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def password(self) -> str:
        """The decoded password, or an empty string if it can't be decoded"""
        return _decode_password(self.encoded_password)

    def set_password(self, password: str) -> None:
        self.encoded_password = _encode_password(password)

    @property
    def display_url(self) -> str:
        """
        The server URL with a scheme.  URLs saved without one get
        https:// or http:// depending on use_ssl.
        """
        if "://" in self.server_url:
            return self.server_url
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.server_url}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "serverURL": self.server_url,
            "username": self.username,
            "password": self.encoded_password,
            "usessl": self.use_ssl,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerProfile":
        """
        Build a profile from a stored record.  The password in the
        record is expected to be base64-encoded, as written by to_dict.

        Raises:
            KeyError: name or serverURL missing
        """
        try:
            profile_id = uuid.UUID(str(data["id"]))
        except (KeyError, ValueError):
            profile_id = uuid.uuid4()
        return cls(
            name=data["name"],
            server_url=data["serverURL"],
            username=data.get("username") or "",
            encoded_password=data.get("password") or "",
            use_ssl=bool(data.get("usessl", False)),
            id=profile_id,
        )

    @classmethod
    def from_json(cls, text: str) -> "ServerProfile":
        return cls.from_dict(json.loads(text))

    def _client_args(self) -> Dict[str, Any]:
        ## empty credentials mean no credentials
        return {
            "url": self.display_url,
            "username": self.username or None,
            "password": self.password or None,
        }

    def create_client(self, **kwargs) -> WebDAVClient:
        """A synchronous client for this server; kwargs go to WebDAVClient"""
        return WebDAVClient(**self._client_args(), **kwargs)

    def create_async_client(self, **kwargs) -> AsyncWebDAVClient:
        return AsyncWebDAVClient(**self._client_args(), **kwargs)

    def test_connection(self, client: Optional[WebDAVClient] = None) -> OperationResult:
        """
        Test the connection and record the outcome in is_connected.
        Transport failures count as not connected and are re-raised.
        """
        own_client = client is None
        if own_client:
            client = self.create_client()
        try:
            result = client.test_connection()
        except Exception:
            self.is_connected = False
            raise
        finally:
            if own_client:
                client.close()
        self.is_connected = result.ok
        log.debug("profile %s connected: %s", self.name, self.is_connected)
        return result
