"""
Audit Trail Models.

Append-only rows written by ``AuditLogger``:

- ``SignupAttempt`` → ``user_signups``
- ``ActivityRecord`` → ``user_activity_log``

``created_at`` is assigned by the database; it is only populated on
records read back from Supabase.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from minersafe.models.enums import (
    ActivityStatus,
    ActivityType,
    SignupStatus,
    UserRole,
)


class SignupAttempt(BaseModel):
    """One phase transition of a sign-up attempt."""

    email: str
    full_name: str
    role: UserRole
    rfid: Optional[str] = None
    status: SignupStatus
    user_id: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    def to_row(self) -> dict[str, Optional[str]]:
        row: dict[str, Optional[str]] = {
            "email": self.email,
            "full_name": self.full_name,
            "role": str(self.role),
            "rfid": self.rfid or None,
            "status": str(self.status),
            "user_id": self.user_id or None,
        }
        # Older deployments of user_signups have no error_message column.
        if self.error_message:
            row["error_message"] = self.error_message
        return row


class ActivityRecord(BaseModel):
    """A single login / signup / logout event.

    ``user_id`` is ``None`` when the attempt failed before an identity
    existed.  ``ip_address`` is never known on the client and stays
    ``None``.
    """

    id: Optional[str] = None
    user_id: Optional[str] = None
    email: str = ""
    activity_type: ActivityType
    status: ActivityStatus
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    def to_row(self) -> dict[str, Optional[str]]:
        return {
            "user_id": self.user_id or None,
            "email": self.email,
            "activity_type": str(self.activity_type),
            "status": str(self.status),
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
        }
