"""
Authentication and server trust handling.

The credentials are sent eagerly, with the first request, so in the
normal case the server never needs to challenge.  The ChallengeHandler
covers the remaining cases: it decides how TLS certificates are
verified, and it answers HTTP Basic challenges for requests that went
out without the configured credential.
"""

from __future__ import annotations

import base64
import logging
from typing import Mapping

from davkit.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


def extract_auth_types(header: str) -> set[str]:
    """
    Extract authentication types from WWW-Authenticate header.

    Parses the WWW-Authenticate header value and extracts the
    authentication scheme names (e.g., "basic", "digest", "bearer").

    Args:
        header: WWW-Authenticate header value from server response.

    Returns:
        Set of lowercase auth type strings.

    Example:
        >>> extract_auth_types('Basic realm="test", Digest realm="test"')
        {'basic', 'digest'}

    Reference:
        https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/WWW-Authenticate#syntax
    """
    return {h.split()[0] for h in header.lower().split(",") if h.strip()}


def build_basic_auth_header(username: str | None, password: str | None) -> str | None:
    """``Basic base64(user:pass)``, or None unless both are given"""
    if username is None or password is None:
        return None
    credentials = f"{username}:{password}"
    encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def mask_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of the headers which is safe to log"""
    return {
        k: ("***" if k.lower() == "authorization" else v) for k, v in headers.items()
    }


class ChallengeHandler:
    """
    Answers the challenges a server may raise during one exchange.

    The handler holds nothing but the credentials it was created with,
    so one instance can be shared by all concurrent exchanges towards
    the same endpoint.

    Args:
        username: Username for HTTP Basic
        password: Password for HTTP Basic
        trust_any_certificate: Accept whatever certificate the server
          presents, self-signed ones included.  TLS then gives no
          protection against an active attacker.
        ca_bundle: Path of a CA bundle to verify the server against,
          instead of the system store.
    """

    def __init__(
        self,
        username: str | None = None,
        password: str | None = None,
        trust_any_certificate: bool = False,
        ca_bundle: str | None = None,
    ) -> None:
        self._username = username
        self._password = password
        self._auth_header = build_basic_auth_header(username, password)
        self.trust_any_certificate = trust_any_certificate
        self.ca_bundle = ca_bundle
        if trust_any_certificate:
            log.warning(
                "TLS certificate verification is disabled, any server certificate will be accepted"
            )

    @property
    def has_credentials(self) -> bool:
        return self._auth_header is not None

    @property
    def auth_header(self) -> str | None:
        return self._auth_header

    @property
    def verify(self) -> bool | str:
        """The server trust decision, in the form HTTP libraries take it"""
        if self.trust_any_certificate:
            return False
        if self.ca_bundle:
            return self.ca_bundle
        return True

    def answer(self, request: DAVRequest, response: DAVResponse) -> DAVRequest | None:
        """
        Returns the request to re-issue in answer to a 401 challenge, or
        None for default handling (the 401 goes back to the caller).
        """
        if response.status != 401:
            return None
        challenge = response.header("WWW-Authenticate")
        if not challenge:
            return None
        auth_types = extract_auth_types(challenge)
        log.debug("server requests authentication: %s", ", ".join(sorted(auth_types)))
        if "basic" not in auth_types:
            return None
        if not self.has_credentials:
            log.debug("basic authentication requested, but no credentials are configured")
            return None
        sent = {k.lower(): v for k, v in request.headers.items()}.get("authorization")
        if sent == self._auth_header:
            ## The credentials were sent already, and rejected
            return None
        log.debug("answering basic challenge as user %s", self._username)
        headers = {
            k: v for k, v in request.headers.items() if k.lower() != "authorization"
        }
        headers["Authorization"] = self._auth_header
        return DAVRequest(
            method=request.method,
            url=request.url,
            headers=headers,
            body=request.body,
        )
