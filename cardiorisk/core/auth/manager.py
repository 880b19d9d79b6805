"""
Session Manager

Owns the demo workspace: signs the demo account in and out, persists the
demo token pair, restores it on startup, and hands each session the
repository that serves it.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cardiorisk.config import Settings
from cardiorisk.core.store import (
    InMemoryPatientRepository,
    PassThroughRepository,
    PatientRepository,
    seed_demo_data,
)
from cardiorisk.utils import AuthenticationError, BackendError, get_logger
from .session import AuthenticatedSession, DemoSession, Session, TokenPair
from .storage import SessionStorage

logger = get_logger(__name__)


@dataclass
class SignInResult:
    session: Session
    tokens: TokenPair
    user: Dict[str, Any] = field(default_factory=dict)
    user_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session": self.tokens.to_dict(),
            "user": self.user,
            "user_data": self.user_data,
        }


class SessionManager:
    """
    Demo session lifecycle plus session → repository dispatch.

    Args:
        settings: Demo credentials, token pair and storage key.
        storage: Where the demo token pair is remembered across restarts.
        repository: The demo store; a fresh one is created if omitted.
        rng: Generator for demo data jitter; defaults to one seeded
             from ``settings.demo_seed``.
    """

    def __init__(
        self,
        settings: Settings,
        storage: Optional[SessionStorage] = None,
        repository: Optional[InMemoryPatientRepository] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings
        self.storage = storage or SessionStorage(settings.session_file)
        self.demo_repository = repository or InMemoryPatientRepository(
            user_id=settings.demo_user_id
        )
        self._rng = rng
        self._demo_active = False

    @property
    def demo_active(self) -> bool:
        return self._demo_active

    @property
    def demo_tokens(self) -> TokenPair:
        return TokenPair(
            access_token=self.settings.demo_access_token,
            refresh_token=self.settings.demo_refresh_token,
        )

    def _new_rng(self) -> random.Random:
        if self._rng is not None:
            return self._rng
        return random.Random(self.settings.demo_seed)

    # ------------------------------------------------------------------
    # Demo workspace
    # ------------------------------------------------------------------

    async def activate_demo(self) -> None:
        """Mark the demo session active, loading demo data on first use."""
        if self.demo_repository.is_empty():
            await seed_demo_data(self.demo_repository, rng=self._new_rng())
        self._demo_active = True

    async def restore(self) -> Optional[Session]:
        """Re-activate a persisted demo session, if one was stored."""
        blob = self.storage.get(self.settings.session_key)
        if not isinstance(blob, dict):
            return None
        if blob.get("access_token") != self.settings.demo_access_token:
            logger.warning("Discarding stored session with unknown token")
            self.storage.remove(self.settings.session_key)
            return None
        await self.activate_demo()
        logger.info("Restored demo session from local storage")
        return DemoSession()

    # ------------------------------------------------------------------
    # Sign in / up / out
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> SignInResult:
        if email == self.settings.demo_email and password == self.settings.demo_password:
            await self.activate_demo()
            tokens = self.demo_tokens
            self.storage.set(self.settings.session_key, tokens.to_dict())
            logger.info(f"Demo sign-in for {email}")
            return SignInResult(
                session=DemoSession(),
                tokens=tokens,
                user={
                    "id": self.settings.demo_user_id,
                    "email": self.settings.demo_email,
                    "user_metadata": {
                        "hospital_name": self.settings.hospital_name,
                        "location": self.settings.hospital_location,
                        "patient_id": self.settings.demo_patient_id,
                    },
                },
                user_data={
                    "hospital_name": self.settings.hospital_name,
                    "location": self.settings.hospital_location,
                    "email": self.settings.demo_email,
                    "patient_id": self.settings.demo_patient_id,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                },
            )

        logger.warning(f"Sign-in rejected for {email}")
        raise AuthenticationError(
            "Sign in failed",
            details={"reason": "Only the demo account is available without a backend"},
        )

    async def sign_up(self, email: str, password: str, hospital_name: str, location: str) -> Dict[str, Any]:
        if email == self.settings.demo_email:
            raise AuthenticationError("Demo account cannot be registered")
        raise BackendError("Registration failed: backend is not configured", operation="sign_up")

    async def sign_out(self) -> None:
        """End the demo session, dropping demo data and the stored token pair."""
        self._demo_active = False
        await self.demo_repository.clear()
        self.storage.remove(self.settings.session_key)
        logger.info("Signed out; demo session cleared")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def repository_for(self, session: Session) -> PatientRepository:
        match session:
            case DemoSession():
                if not self._demo_active:
                    raise AuthenticationError("Demo session is not active; sign in again")
                return self.demo_repository
            case AuthenticatedSession():
                return PassThroughRepository()
        raise AuthenticationError(f"Unsupported session type: {type(session).__name__}")
