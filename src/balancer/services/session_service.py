"""Session cookie issuing for the balancer.

Sessions are stateless: the cookie value `t-<team>` is signed with the shared
cookie secret and verified by the front door when routing to the team's
instance. There is no server-side session store, so logout only replaces the
cookie with an expired one.

The signature format is the cookie-parser one the front door understands:
    s:<value>.<base64(HMAC-SHA256(secret, value)) without padding>
URL-encoded in the Set-Cookie header.

Configuration via CookieConfig (COOKIE_ env prefix).
"""

import base64
import hashlib
import hmac
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal
from urllib.parse import quote, unquote

from starlette.responses import Response

from balancer.app.config import CookieConfig

_EXPIRED = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True)
class SessionCookie:
    """A Set-Cookie instruction produced by SessionIssuer."""

    key: str
    value: str
    secure: bool
    expires: datetime | None = None
    httponly: bool = True
    samesite: Literal["strict"] = "strict"

    def apply(self, response: Response) -> None:
        """Attach the cookie to a response."""
        response.set_cookie(
            key=self.key,
            value=self.value,
            httponly=self.httponly,
            samesite=self.samesite,
            secure=self.secure,
            path="/",
            expires=self.expires,
        )


class SessionIssuer:
    """Creates and invalidates the signed team identity cookie."""

    def __init__(self, config: CookieConfig) -> None:
        self._name = config.name
        self._secret = config.secret.encode()
        self._secure = config.secure

    @property
    def cookie_name(self) -> str:
        return self._name

    def _signature(self, value: str) -> str:
        digest = hmac.new(self._secret, value.encode(), hashlib.sha256).digest()
        return base64.b64encode(digest).decode().rstrip("=")

    def sign(self, value: str) -> str:
        """Sign a value and URL-encode it for the cookie header."""
        return quote(f"s:{value}.{self._signature(value)}", safe="")

    def unsign(self, raw: str) -> str | None:
        """Return the signed value, or None if the signature does not match."""
        decoded = unquote(raw)
        if not decoded.startswith("s:"):
            return None

        value, sep, signature = decoded[2:].rpartition(".")
        if not sep:
            return None

        expected = self._signature(value)
        if not hmac.compare_digest(expected.encode(), signature.encode()):
            return None
        return value

    def issue(self, team: str) -> SessionCookie:
        """Issue a session cookie binding the caller to a team."""
        return SessionCookie(
            key=self._name,
            value=self.sign(f"t-{team}"),
            secure=self._secure,
        )

    def revoke(self) -> SessionCookie:
        """Issue an already-expired cookie so the client drops its session."""
        return SessionCookie(
            key=self._name,
            value="",
            secure=self._secure,
            expires=_EXPIRED,
        )
