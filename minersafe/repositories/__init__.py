"""
Repository Layer Package.

Data-access abstractions over Supabase PostgREST.  All table access flows
through repositories; services never call ``db.supabase.table()`` directly.

Usage:
    from minersafe.repositories.profile_repository import ProfileRepository
    from minersafe.repositories.audit_repository import ActivityLogRepository
"""

from minersafe.repositories.base_repository import BaseRepository
from minersafe.repositories.profile_repository import ProfileRepository
from minersafe.repositories.audit_repository import (
    ActivityLogRepository,
    SignupAttemptRepository,
)

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "SignupAttemptRepository",
    "ActivityLogRepository",
]
