"""
Sessions and Sign-in
"""
from .session import (
    AuthenticatedSession,
    DemoSession,
    Session,
    TokenPair,
    describe,
    parse_bearer,
    resolve_session,
)
from .storage import SessionStorage
from .manager import SessionManager, SignInResult

__all__ = [
    "AuthenticatedSession",
    "DemoSession",
    "Session",
    "TokenPair",
    "describe",
    "parse_bearer",
    "resolve_session",
    "SessionStorage",
    "SessionManager",
    "SignInResult",
]
