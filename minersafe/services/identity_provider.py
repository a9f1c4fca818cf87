"""
Identity Provider Adapter.

Thin wrapper over the Supabase ``auth`` namespace.  Translates SDK
objects (``gotrue`` ``User`` / ``Session``) into the package's own
``Identity`` / ``AuthSession`` models so that no other module touches
SDK types.

Errors raised by the SDK (``AuthApiError`` and friends) propagate
unchanged; ``SessionFacade`` and ``SignupOrchestrator`` classify them.
"""

from __future__ import annotations

from typing import Callable, Optional

from minersafe.database import DatabaseManager
from minersafe.logger import StructuredLogger
from minersafe.models.auth_models import AuthSession, Identity
from minersafe.services.base_service import BaseService

SessionListener = Callable[[Optional[AuthSession]], None]
Unsubscribe = Callable[[], None]


def identity_from_sdk(user: object) -> Optional[Identity]:
    """Build an ``Identity`` from a gotrue ``User`` (``None`` passes through)."""
    if user is None:
        return None
    return Identity(
        id=str(getattr(user, "id")),
        email=getattr(user, "email", None),
        user_metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


def session_from_sdk(session: object) -> Optional[AuthSession]:
    """Build an ``AuthSession`` from a gotrue ``Session``."""
    if session is None:
        return None
    identity = identity_from_sdk(getattr(session, "user", None))
    if identity is None:
        return None
    return AuthSession(
        identity=identity,
        access_token=getattr(session, "access_token", None),
        refresh_token=getattr(session, "refresh_token", None),
        expires_at=getattr(session, "expires_at", None),
    )


class IdentityProvider(BaseService):
    """Supabase-backed identity provider.

    Parameters
    ----------
    db:
        Database manager exposing the user-facing Supabase client.
    logger:
        Structured logger.
    """

    RESEND_TYPE: str = "signup"

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._db: DatabaseManager = db

    def get_current_session(self) -> Optional[AuthSession]:
        """Return the persisted session, or ``None`` when signed out."""
        return session_from_sdk(self._db.supabase.auth.get_session())

    def on_session_change(self, listener: SessionListener) -> Unsubscribe:
        """Subscribe *listener* to session changes.

        The listener receives the new ``AuthSession`` (or ``None`` after
        sign-out) for every provider event.  Returns a callable that
        removes the subscription.
        """

        def _relay(event: object, session: object) -> None:
            self._logger.debug("Auth state change: %s", event)
            listener(session_from_sdk(session))

        subscription = self._db.supabase.auth.on_auth_state_change(_relay)
        return subscription.unsubscribe

    def sign_in_with_password(self, email: str, password: str) -> Optional[Identity]:
        """Authenticate with email + password; returns the signed-in identity."""
        response = self._db.supabase.auth.sign_in_with_password({
            "email": email,
            "password": password,
        })
        return identity_from_sdk(response.user)

    def sign_out(self) -> None:
        """Invalidate the provider session."""
        self._db.supabase.auth.sign_out()

    def resend_confirmation(self, email: str) -> None:
        """Re-send the sign-up confirmation email to *email*."""
        self._db.supabase.auth.resend({"type": self.RESEND_TYPE, "email": email})

    def get_current_identity(self) -> Optional[Identity]:
        """Fetch the full identity (with metadata) from the provider."""
        response = self._db.supabase.auth.get_user()
        if response is None:
            return None
        return identity_from_sdk(response.user)
