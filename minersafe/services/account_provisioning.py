"""
Account Provisioning Service (server side).

Creates confirmed Supabase accounts with the service-role key on behalf
of the sign-up endpoint.  This is the only code that touches elevated
credentials; it runs in the server process and is never wired into a
client.

Reply contract (consumed by ``SignupEndpointClient``):

=====  ==========================================
200    ``{"ok": true}``: account created
400    missing fields or provider rejection
409    ``{"ok": false, "error": "EMAIL_EXISTS"}``
500    server not configured / unexpected failure
=====  ==========================================
"""

from __future__ import annotations

from typing import Optional

from minersafe.database import DatabaseManager
from minersafe.logger import StructuredLogger
from minersafe.models.auth_models import ProvisioningRequest, ProvisioningResponse
from minersafe.models.enums import UserRole
from minersafe.models.profile import Profile
from minersafe.repositories.profile_repository import ProfileRepository
from minersafe.services.base_service import BaseService
from minersafe.utils.audit import log_audit_event
from minersafe.utils.errors import (
    error_code,
    error_message,
    error_status,
    matches_account_exists,
)

EMAIL_EXISTS: str = "EMAIL_EXISTS"
MISSING_CREDENTIALS: str = "Email and password are required."
NOT_CONFIGURED: str = "Server not configured for sign-up."


class AccountProvisioningService(BaseService):
    """Privileged account creation.

    Parameters
    ----------
    db:
        Database manager holding the service-role client.
    profile_repo:
        Profile repository bound to the service-role client.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        db: DatabaseManager,
        profile_repo: ProfileRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._db = db
        self._profile_repo = profile_repo

    def create_account(self, request: ProvisioningRequest) -> ProvisioningResponse:
        """Create the account described by *request*.  Never raises."""
        if not request.email or not request.password:
            return ProvisioningResponse(status_code=400, error=MISSING_CREDENTIALS)

        if not self._db.has_admin:
            self._logger.error("Sign-up requested but no service-role key is configured.")
            return ProvisioningResponse(status_code=500, error=NOT_CONFIGURED)

        try:
            return self._create(request)
        except Exception as exc:
            self._logger.error(
                "Unexpected sign-up failure for %s: %s", request.email, exc,
                exc_info=True,
            )
            return ProvisioningResponse(
                status_code=500, error=error_message(exc) or "Unknown error",
            )

    # ------------------------------------------------------------------
    # Private implementation
    # ------------------------------------------------------------------

    def _create(self, request: ProvisioningRequest) -> ProvisioningResponse:
        try:
            result = self._db.admin.auth.admin.create_user({
                "email": request.email,
                "password": request.password,
                "email_confirm": True,
                "user_metadata": request.metadata(),
            })
        except Exception as exc:
            return self._rejected(request, exc)

        user = getattr(result, "user", None)
        user_id: Optional[str] = str(user.id) if user is not None else None

        log_audit_event(
            logger=self._logger,
            action="SIGNUP_PROVISIONED",
            entity_type="Identity",
            entity_id=user_id or request.email,
            user_id=user_id,
            details={"email": request.email, "role": request.metadata()["role"]},
        )

        if user_id is not None:
            self._seed_profile(user_id, request)

        return ProvisioningResponse(status_code=200, ok=True)

    def _rejected(self, request: ProvisioningRequest, exc: Exception) -> ProvisioningResponse:
        message = error_message(exc)
        exists = (
            error_code(exc) == "email_exists"
            or matches_account_exists(message, error_status(exc))
        )

        log_audit_event(
            logger=self._logger,
            action="SIGNUP_EXISTS" if exists else "SIGNUP_REJECTED",
            entity_type="Identity",
            entity_id=request.email,
            details={"email": request.email, "error": message},
        )

        if exists:
            return ProvisioningResponse(status_code=409, error=EMAIL_EXISTS)
        return ProvisioningResponse(status_code=400, error=message)

    def _seed_profile(self, user_id: str, request: ProvisioningRequest) -> None:
        """Upsert the profile row for a new account; failures are logged only."""
        try:
            self._profile_repo.upsert(Profile(
                id=user_id,
                email=request.email,
                full_name=request.full_name or "",
                role=request.role or UserRole.MINER,
                rfid=request.rfid,
            ))
        except Exception as exc:
            self._logger.warning(
                "Profile seed for %s failed (non-fatal): %s", user_id, exc,
            )
