"""
Session Types

A request is either on the demo account or carries some other bearer
token. Callers dispatch on the variant with ``match``; the token string is
compared exactly once, in ``resolve_session``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from cardiorisk.utils import AuthenticationError


@dataclass(frozen=True)
class DemoSession:
    """The built-in demo account; served from the in-memory store."""
    kind: str = field(default="demo", init=False)


@dataclass(frozen=True)
class AuthenticatedSession:
    """Any other bearer token; served by the remote backend."""
    token: str
    kind: str = field(default="authenticated", init=False)


Session = Union[DemoSession, AuthenticatedSession]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    def to_dict(self) -> Dict[str, str]:
        return {"access_token": self.access_token, "refresh_token": self.refresh_token}


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_session(token: Optional[str], demo_access_token: str) -> Session:
    """
    Classify a bearer token.

    Raises:
        AuthenticationError: if no token was supplied.
    """
    if not token:
        raise AuthenticationError("Unauthorized")
    if token == demo_access_token:
        return DemoSession()
    return AuthenticatedSession(token=token)


def describe(session: Session) -> Dict[str, Any]:
    match session:
        case DemoSession():
            return {"kind": "demo"}
        case AuthenticatedSession(token=token):
            return {"kind": "authenticated", "token_suffix": token[-4:]}
    raise TypeError(f"Unknown session type: {type(session).__name__}")
