"""
Shared Enumerations for MinerSafe Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents, so rows read
back from Supabase (plain strings) compare cleanly against them.
"""

from __future__ import annotations
from enum import StrEnum


class UserRole(StrEnum):
    """Application roles.  Mutually exclusive and fixed at creation.

    Only ``MINER`` accounts carry an RFID device tag.
    """

    ADMIN = "admin"
    MINER = "miner"


class SignupStatus(StrEnum):
    """Phase of a sign-up attempt as recorded in ``user_signups``.

    An attempt normally produces two rows: ``ATTEMPTED`` followed by one
    terminal status.
    """

    ATTEMPTED = "attempted"
    SUCCESS = "success"
    FAILED = "failed"
    EXISTS = "exists"


class ActivityType(StrEnum):
    """Kind of authentication event recorded in ``user_activity_log``."""

    SIGNUP = "signup"
    LOGIN = "login"
    LOGOUT = "logout"


class ActivityStatus(StrEnum):
    """Outcome of an authentication event."""

    SUCCESS = "success"
    FAILED = "failed"


class ProvisioningOutcome(StrEnum):
    """Classification of the privileged account-creation response."""

    CREATED = "created"
    EXISTS = "exists"
    FAILED = "failed"
