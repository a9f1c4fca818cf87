"""
Structured Audit Logging Utility.

Every authentication state change is also written to the application
log as a single structured JSON object, independent of whether the
Supabase audit tables accepted the row.  Provides a Pydantic-validated
model and one function for consistent entries.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from minersafe.logger import StructuredLogger

__all__ = ["AuditEvent", "log_audit_event"]

# Flat scalars only; nested structures do not belong in an audit line.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit log line.

    ``user_id`` is ``None`` for events that happened before an identity
    existed (failed sign-in, rejected sign-up).
    """

    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    user_id: Optional[str] = None
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: str,
    user_id: Optional[str] = None,
    details: Optional[dict[str, DetailValue]] = None,
) -> AuditEvent:
    """Emit a structured JSON audit line via *logger* and return the event.

    Args:
        logger: The logger instance to write to.
        action: What happened (e.g. ``"LOGIN"``, ``"SIGNUP_PROVISIONED"``,
            ``"PROFILE_CREATE"``).
        entity_type: Type of entity affected (``"Identity"``, ``"Profile"``,
            ``"SignupAttempt"``).
        entity_id: Key of the affected entity (user id or email).
        user_id: ID of the acting user, when known.
        details: Optional additional context.
    """
    event = AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        details=details or {},
    )
    logger.info("AUDIT: %s", json.dumps(event.model_dump(), default=str))
    return event
