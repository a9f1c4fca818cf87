"""Shared utility functions and models for the MinerSafe identity core.

Convenience re-exports so consumers can import directly from
``minersafe.utils`` while full module imports keep working.
"""

from minersafe.utils.audit import AuditEvent, log_audit_event
from minersafe.utils.errors import (
    auth_error_from_exception,
    error_code,
    error_message,
    error_status,
    is_missing_relation,
    matches_account_exists,
)

__all__ = [
    "auth_error_from_exception",
    "AuditEvent",
    "error_code",
    "error_message",
    "error_status",
    "is_missing_relation",
    "log_audit_event",
    "matches_account_exists",
]
