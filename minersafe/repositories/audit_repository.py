"""
Audit Repositories.

Append-only access to the two audit tables:

- ``user_signups``: one row per sign-up phase transition
- ``user_activity_log``: one row per login / signup / logout event

Neither repository offers update or delete.
"""

from __future__ import annotations

from minersafe.models.audit_models import ActivityRecord, SignupAttempt
from minersafe.repositories.base_repository import BaseRepository


class SignupAttemptRepository(BaseRepository):
    """Writes ``SignupAttempt`` rows."""

    TABLE = "user_signups"

    def insert(self, attempt: SignupAttempt) -> None:
        self._table().insert(attempt.to_row()).execute()


class ActivityLogRepository(BaseRepository):
    """Writes and lists ``ActivityRecord`` rows."""

    TABLE = "user_activity_log"

    _RECENT_COLUMNS: str = "id, user_id, email, activity_type, status, user_agent, created_at"

    def insert(self, record: ActivityRecord) -> None:
        self._table().insert(record.to_row()).execute()

    def recent_for_user(self, user_id: str, limit: int = 10) -> list[ActivityRecord]:
        """Return the newest *limit* events for *user_id*, newest first."""
        response = (
            self._table()
            .select(self._RECENT_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [ActivityRecord(**row) for row in (response.data or [])]
