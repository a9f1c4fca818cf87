"""
Authentication Pipeline Models.

Pydantic models and enumerations for the contracts between the session
layer, the identity provider and the privileged sign-up endpoint.

Every public ``SessionFacade`` operation returns an ``AuthResult`` whose
``error`` is either ``None`` or a structured ``AuthError``.  Callers
branch on the presence of ``error``; nothing raises past the facade.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from minersafe.models.enums import UserRole
from minersafe.models.profile import Profile


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Categories of user-visible authentication errors."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_ALREADY_EXISTS = "email_already_exists"
    ACCOUNT_CREATION_FAILED = "account_creation_failed"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    PROVIDER_ERROR = "provider_error"
    UNKNOWN_ERROR = "unknown_error"


# Phrasings the account-creation step uses for an already-registered email.
# Matched case-insensitively.  A bare "exists" is deliberately not listed:
# it also appears in unrelated errors ("relation ... does not exist").
ACCOUNT_EXISTS_PATTERNS: tuple[str, ...] = (
    r"EMAIL_EXISTS",
    r"email_exists",
    r"already.*registered",
    r"already.*exists",
)

# HTTP statuses the sign-up endpoint uses for "account already exists".
ACCOUNT_EXISTS_STATUSES: frozenset[int] = frozenset({409, 422})

DEFAULT_SIGNUP_ERROR: str = "Failed to create account"
EXISTING_ACCOUNT_MESSAGE: str = (
    "Account already exists. Please sign in with your password."
)


class AuthError(BaseModel):
    """A user-visible failure.

    Attributes
    ----------
    code:
        Structured error category.
    message:
        Human-readable text.  Provider messages are kept verbatim.
    status:
        HTTP status of the failing call, when one is known.
    """

    code: AuthErrorCode
    message: str
    status: Optional[int] = None

    def __str__(self) -> str:
        return self.message


class AuthResult(BaseModel):
    """Uniform ``{error}`` result of a facade operation."""

    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        """``True`` when the operation completed without error."""
        return self.error is None

    @classmethod
    def success(cls) -> "AuthResult":
        return cls()

    @classmethod
    def failure(
        cls,
        code: AuthErrorCode,
        message: str,
        status: Optional[int] = None,
    ) -> "AuthResult":
        return cls(error=AuthError(code=code, message=message, status=status))


class ValidationResult(BaseModel):
    """Result of a single client-side field validation check."""

    is_valid: bool
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Identity provider objects
# ---------------------------------------------------------------------------

class Identity(BaseModel):
    """The provider-owned principal.  Read-only to this package.

    ``user_metadata`` holds ``full_name``, ``role`` and ``rfid`` as they
    were supplied when the account was created.
    """

    id: str
    email: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class AuthSession(BaseModel):
    """An active provider session."""

    identity: Identity
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


class SessionState(BaseModel):
    """Immutable snapshot of the process-local session.

    Handed to ``SessionStore`` observers after every mutation.
    """

    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    loading: bool = True

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Privileged sign-up endpoint wire contract
# ---------------------------------------------------------------------------

class ProvisioningRequest(BaseModel):
    """Body of ``POST /api/auth/sign-up``.

    ``rfid`` is dropped unless ``role`` is ``miner``.
    """

    email: str = ""
    password: str = ""
    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    rfid: Optional[str] = None

    @model_validator(mode="after")
    def _rfid_only_for_miners(self) -> "ProvisioningRequest":
        if self.role != UserRole.MINER:
            self.rfid = None
        return self

    def metadata(self) -> dict[str, Optional[str]]:
        """``user_metadata`` stored on the created identity."""
        return {
            "full_name": self.full_name,
            "role": str(self.role) if self.role is not None else None,
            "rfid": self.rfid,
        }


class ProvisioningResponse(BaseModel):
    """Response of the sign-up endpoint: ``{ok, error}`` plus HTTP status."""

    status_code: int
    ok: bool = False
    error: Optional[str] = None

    def body(self) -> dict[str, Any]:
        """JSON body as sent over the wire."""
        if self.ok:
            return {"ok": True}
        return {"ok": False, "error": self.error}
