"""
Sign-up Orchestration Service.

Runs one sign-up call as a small state machine::

    attempted → provisioning → {exists | created}
              → {sign-in-failed | sign-in-ok}
              → terminal (success | failed | exists)

1. A ``SignupAttempt(attempted)`` row is written before any network call,
   so the intent survives a crash mid-flow.
2. The privileged endpoint creates the account with the service-role key.
3. A 409 / 422 reply, or an "already registered" style error, is
   classified ``exists``: not fatal, the flow continues to sign-in.
4. Any other failure is terminal (``failed``).
5. On ``created`` or ``exists`` the user is signed in with the same
   credentials, which both validates the account and opens the session.
6. A failed sign-in ends as ``exists`` (tell the user to sign in) or
   ``failed``.
7. A successful sign-in ends as ``success`` and reconciles the profile.

The attempted → terminal pair is a write-ahead intent log made of two
independent appends; the remote step is not transactional with the
local store, so no transaction wraps them.

Signing up twice with the same credentials never creates a second
account: the second call takes the ``exists`` branch and still ends in a
usable session.
"""

from __future__ import annotations

import re
from functools import partial
from typing import Optional, Union

from minersafe.auth import SessionStore
from minersafe.logger import StructuredLogger
from minersafe.models.auth_models import (
    DEFAULT_SIGNUP_ERROR,
    EXISTING_ACCOUNT_MESSAGE,
    AuthErrorCode,
    AuthResult,
    ProvisioningRequest,
    ProvisioningResponse,
    ValidationResult,
)
from minersafe.models.enums import (
    ActivityStatus,
    ActivityType,
    ProvisioningOutcome,
    SignupStatus,
    UserRole,
)
from minersafe.services.audit_logger import AuditLogger
from minersafe.services.base_service import BaseService
from minersafe.services.identity_provider import IdentityProvider
from minersafe.services.signup_client import SignupEndpointClient
from minersafe.utils.errors import (
    auth_error_from_exception,
    error_message,
    matches_account_exists,
)

_EMAIL_RE: re.Pattern[str] = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def classify_provisioning_response(response: ProvisioningResponse) -> ProvisioningOutcome:
    """Map an endpoint reply to ``created`` / ``exists`` / ``failed``."""
    if matches_account_exists(response.error, response.status_code):
        return ProvisioningOutcome.EXISTS
    if response.ok or 200 <= response.status_code < 300:
        return ProvisioningOutcome.CREATED
    return ProvisioningOutcome.FAILED


class SignupOrchestrator(BaseService):
    """Privileged account creation followed by sign-in and reconciliation.

    Parameters
    ----------
    endpoint:
        Client for the server-side sign-up endpoint.
    identity_provider:
        Used for the immediate sign-in.
    audit:
        Fire-and-forget audit trail.
    session:
        Receives the reconciled profile on success.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        endpoint: SignupEndpointClient,
        identity_provider: IdentityProvider,
        audit: AuditLogger,
        session: SessionStore,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._endpoint = endpoint
        self._identity_provider = identity_provider
        self._audit = audit
        self._session = session

    # ==================================================================
    # Validation
    # ==================================================================

    @staticmethod
    def validate(email: str, password: str, role: Union[UserRole, str]) -> ValidationResult:
        """Check the inputs that would make the remote call pointless."""
        if not email or not email.strip():
            return ValidationResult(is_valid=False, error_message="Email address is required.")
        if not _EMAIL_RE.match(email.strip()):
            return ValidationResult(
                is_valid=False, error_message="Please enter a valid email address.",
            )
        if not password:
            return ValidationResult(is_valid=False, error_message="Password is required.")
        if role not in tuple(UserRole):
            return ValidationResult(
                is_valid=False,
                error_message=f"Role must be one of: {', '.join(UserRole)}.",
            )
        return ValidationResult(is_valid=True)

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
        """Create the account (or find it existing), then sign in.

        Never raises; failures come back as ``AuthResult.error``.
        """
        check = self.validate(email, password, role)
        if not check.is_valid:
            return AuthResult.failure(
                AuthErrorCode.VALIDATION_ERROR, check.error_message or "Invalid input.",
            )

        email = email.strip().lower()
        role = UserRole(role)
        # Only miners carry a device tag.
        rfid = rfid.strip() if role == UserRole.MINER and rfid and rfid.strip() else None

        record = partial(
            self._audit.log_signup_attempt,
            email=email,
            full_name=full_name,
            role=role,
            rfid=rfid,
        )
        record(status=SignupStatus.ATTEMPTED)

        try:
            return self._provision_and_sign_in(
                email, password, full_name, role, rfid, record,
            )
        except Exception as exc:
            self._logger.error(
                "Sign-up for %s failed unexpectedly: %s", email, exc,
                exc_info=True,
                extra={"event": "SIGNUP_FAILED", "email": email},
            )
            self._audit.log_activity(email, ActivityType.SIGNUP, ActivityStatus.FAILED)
            record(status=SignupStatus.FAILED, error_message=error_message(exc))
            return AuthResult(error=auth_error_from_exception(exc))

    # ------------------------------------------------------------------
    # Private implementation
    # ------------------------------------------------------------------

    def _provision_and_sign_in(
        self,
        email: str,
        password: str,
        full_name: str,
        role: UserRole,
        rfid: Optional[str],
        record: partial,
    ) -> AuthResult:
        response = self._endpoint.create_account(ProvisioningRequest(
            email=email,
            password=password,
            full_name=full_name,
            role=role,
            rfid=rfid,
        ))
        outcome = classify_provisioning_response(response)

        if outcome == ProvisioningOutcome.FAILED:
            message = response.error or DEFAULT_SIGNUP_ERROR
            self._logger.warning(
                "Account creation rejected for %s (%d): %s",
                email,
                response.status_code,
                message,
                extra={"event": "SIGNUP_FAILED", "email": email},
            )
            self._audit.log_activity(email, ActivityType.SIGNUP, ActivityStatus.FAILED)
            record(status=SignupStatus.FAILED, error_message=message)
            return AuthResult.failure(
                AuthErrorCode.ACCOUNT_CREATION_FAILED, message, status=response.status_code,
            )

        exists = outcome == ProvisioningOutcome.EXISTS
        if exists:
            self._logger.info(
                "Account for %s already exists; signing in.", email,
                extra={"event": "SIGNUP_EXISTS", "email": email},
            )

        try:
            identity = self._identity_provider.sign_in_with_password(email, password)
            if identity is None:
                raise RuntimeError("Sign-in returned no user.")
        except Exception as exc:
            self._logger.warning(
                "Post-sign-up sign-in failed for %s: %s", email, exc,
                extra={"event": "SIGNUP_SIGNIN_FAILED", "email": email},
            )
            self._audit.log_activity(email, ActivityType.SIGNUP, ActivityStatus.FAILED)
            record(
                status=SignupStatus.EXISTS if exists else SignupStatus.FAILED,
                error_message=error_message(exc),
            )
            if exists:
                return AuthResult.failure(
                    AuthErrorCode.EMAIL_ALREADY_EXISTS,
                    EXISTING_ACCOUNT_MESSAGE,
                    status=response.status_code,
                )
            return AuthResult(error=auth_error_from_exception(exc))

        self._audit.log_activity(
            email, ActivityType.SIGNUP, ActivityStatus.SUCCESS, user_id=identity.id,
        )
        record(status=SignupStatus.SUCCESS, user_id=identity.id)
        self._session.refresh_profile(identity.id)

        self._logger.info(
            "User signed up: %s (role: %s)", email, role,
            extra={"event": "SIGNUP", "email": email, "user_id": identity.id},
        )
        return AuthResult.success()
