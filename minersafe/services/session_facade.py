"""
Session Facade.

The single entry point the rest of the application uses for
authentication: sign-in, sign-up, sign-out and resending the sign-up
confirmation email.  Composes the identity provider, the session store,
the sign-up orchestrator and the audit logger.

Every method returns an ``AuthResult`` (``sign_out`` returns ``None``)
and never raises; the UI branches on ``result.error``.
"""

from __future__ import annotations

from types import TracebackType
from typing import Callable, Optional, Union

from minersafe.auth import SessionStore, StateListener
from minersafe.logger import StructuredLogger
from minersafe.models.audit_models import ActivityRecord
from minersafe.models.auth_models import (
    AuthResult,
    Identity,
    SessionState,
)
from minersafe.models.enums import ActivityStatus, ActivityType, UserRole
from minersafe.models.profile import Profile
from minersafe.services.audit_logger import AuditLogger
from minersafe.services.base_service import BaseService
from minersafe.services.identity_provider import IdentityProvider
from minersafe.services.signup_orchestrator import SignupOrchestrator
from minersafe.utils.errors import auth_error_from_exception


class SessionFacade(BaseService):
    """Centralised authentication entry point.

    Parameters
    ----------
    identity_provider:
        Supabase-backed identity provider.
    session:
        Owner of the process-local session state.
    orchestrator:
        Runs the privileged sign-up sequence.
    audit:
        Fire-and-forget audit trail.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        session: SessionStore,
        orchestrator: SignupOrchestrator,
        audit: AuditLogger,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._identity_provider = identity_provider
        self._session = session
        self._orchestrator = orchestrator
        self._audit = audit

    # ==================================================================
    # Lifecycle (delegates to the session store)
    # ==================================================================

    def start(self) -> None:
        self._session.start()

    def close(self) -> None:
        """Unsubscribe from the provider, then drain and stop the audit writer.

        Audit writes issued after ``close()`` run inline.
        """
        self._session.close()
        self._audit.close()

    def __enter__(self) -> "SessionFacade":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    # ==================================================================
    # Read-only state
    # ==================================================================

    @property
    def user(self) -> Optional[Identity]:
        return self._session.identity

    @property
    def profile(self) -> Optional[Profile]:
        return self._session.profile

    @property
    def loading(self) -> bool:
        return self._session.loading

    @property
    def state(self) -> SessionState:
        return self._session.state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Observe session state; returns the unsubscribe callable."""
        return self._session.subscribe(listener)

    def recent_activity(self, limit: int = 10) -> list[ActivityRecord]:
        """Latest auth events of the signed-in user (``[]`` when signed out)."""
        identity = self._session.identity
        if identity is None:
            return []
        return self._audit.recent_activity(identity.id, limit=limit)

    # ==================================================================
    # Sign-in
    # ==================================================================

    def sign_in(self, email: str, password: str) -> AuthResult:
        """Authenticate with the identity provider.

        Profile reconciliation is not triggered here: the provider's
        session-change event drives it through the ``SessionStore``.
        """
        try:
            identity = self._identity_provider.sign_in_with_password(email, password)
        except Exception as exc:
            error = auth_error_from_exception(exc)
            self._logger.warning(
                "Sign-in failed for %s: %s", email, error.message,
                extra={"event": "LOGIN_FAILED", "error_code": str(error.code)},
            )
            self._audit.log_activity(email, ActivityType.LOGIN, ActivityStatus.FAILED)
            return AuthResult(error=error)

        if identity is not None:
            self._audit.log_activity(
                email, ActivityType.LOGIN, ActivityStatus.SUCCESS, user_id=identity.id,
            )
            self._logger.info(
                "User authenticated: %s", email,
                extra={"event": "LOGIN", "email": email, "user_id": identity.id},
            )
        return AuthResult.success()

    # ==================================================================
    # Sign-up
    # ==================================================================

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        role: Union[UserRole, str],
        rfid: Optional[str] = None,
    ) -> AuthResult:
        """Create an account and sign in; see ``SignupOrchestrator``."""
        return self._orchestrator.sign_up(email, password, full_name, role, rfid)

    # ==================================================================
    # Sign-out
    # ==================================================================

    def sign_out(self) -> None:
        """Log the logout, invalidate the provider session, drop the profile.

        The audit row is written first because the held identity is
        needed to attribute it.  With no identity held nothing is logged.
        """
        identity = self._session.identity
        if identity is not None and identity.email:
            self._audit.log_activity(
                identity.email,
                ActivityType.LOGOUT,
                ActivityStatus.SUCCESS,
                user_id=identity.id,
            )

        try:
            self._identity_provider.sign_out()
        except Exception as exc:
            self._logger.warning("Server-side sign_out failed: %s", exc)

        self._session.clear_profile()

        if identity is not None:
            self._logger.info(
                "User logged out: %s", identity.email,
                extra={"event": "LOGOUT", "user_id": identity.id},
            )

    # ==================================================================
    # Confirmation email
    # ==================================================================

    def resend_confirmation(self, email: str) -> AuthResult:
        """Ask the provider to re-send the sign-up confirmation email."""
        try:
            self._identity_provider.resend_confirmation(email)
        except Exception as exc:
            error = auth_error_from_exception(exc)
            self._logger.warning(
                "Resend confirmation failed for %s: %s", email, error.message,
            )
            return AuthResult(error=error)
        return AuthResult.success()

