"""
Data Models Package.

Re-exports all Pydantic models:
    from minersafe.models import Profile, SignupAttempt, ActivityRecord
    from minersafe.models import UserRole, SignupStatus, ActivityType, ActivityStatus
    from minersafe.models import AuthResult, AuthError, Identity, SessionState
"""

from __future__ import annotations

from minersafe.models.enums import (
    ActivityStatus,
    ActivityType,
    ProvisioningOutcome,
    SignupStatus,
    UserRole,
)
from minersafe.models.profile import Profile
from minersafe.models.audit_models import ActivityRecord, SignupAttempt
from minersafe.models.auth_models import (
    AuthError,
    AuthErrorCode,
    AuthResult,
    AuthSession,
    Identity,
    ProvisioningRequest,
    ProvisioningResponse,
    SessionState,
    ValidationResult,
)

__all__ = [
    "ActivityRecord",
    "ActivityStatus",
    "ActivityType",
    "AuthError",
    "AuthErrorCode",
    "AuthResult",
    "AuthSession",
    "Identity",
    "Profile",
    "ProvisioningOutcome",
    "ProvisioningRequest",
    "ProvisioningResponse",
    "SessionState",
    "SignupAttempt",
    "SignupStatus",
    "UserRole",
    "ValidationResult",
]
