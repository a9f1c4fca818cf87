"""
Audit Logger Service.

Appends immutable records of authentication attempts to the Supabase
audit tables (``user_activity_log``, ``user_signups``) and mirrors each
one as a structured JSON audit line.

Writes are fire-and-forget: a failed insert is logged locally and never
reaches the caller, so an unavailable audit store can neither block nor
fail sign-in, sign-up or sign-out.  By default rows are written on one
background worker thread, which keeps program order between writes
issued by the same caller.  ``flush()`` waits for pending writes.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from minersafe.logger import StructuredLogger
from minersafe.models.audit_models import ActivityRecord, SignupAttempt
from minersafe.models.enums import (
    ActivityStatus,
    ActivityType,
    SignupStatus,
    UserRole,
)
from minersafe.repositories.audit_repository import (
    ActivityLogRepository,
    SignupAttemptRepository,
)
from minersafe.services.base_service import BaseService
from minersafe.utils.audit import log_audit_event


class AuditLogger(BaseService):
    """Fire-and-forget writer for the authentication audit trail.

    Parameters
    ----------
    activity_repo:
        Repository for ``user_activity_log``.
    signup_repo:
        Repository for ``user_signups``.
    logger:
        Structured logger.
    user_agent:
        Client metadata stored on every activity row.
    background:
        Write on a single worker thread (``True``) or inline (``False``).
    """

    def __init__(
        self,
        activity_repo: ActivityLogRepository,
        signup_repo: SignupAttemptRepository,
        logger: StructuredLogger,
        user_agent: Optional[str] = None,
        background: bool = True,
    ) -> None:
        super().__init__(logger)
        self._activity_repo = activity_repo
        self._signup_repo = signup_repo
        self._user_agent: Optional[str] = user_agent
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="AuditWriter")
            if background
            else None
        )

    # ------------------------------------------------------------------
    # Appends
    # ------------------------------------------------------------------

    def log_activity(
        self,
        email: str,
        activity_type: ActivityType,
        status: ActivityStatus,
        user_id: Optional[str] = None,
    ) -> None:
        """Append an ``ActivityRecord``.  Never raises."""
        try:
            record = ActivityRecord(
                user_id=user_id,
                email=email,
                activity_type=activity_type,
                status=status,
                user_agent=self._user_agent,
            )
            log_audit_event(
                logger=self._logger,
                action=f"{record.activity_type}_{record.status}".upper(),
                entity_type="Identity",
                entity_id=user_id or email,
                user_id=user_id,
                details={"email": email},
            )
        except Exception as exc:
            self._logger.error("Error logging activity: %s", exc)
            return

        self._dispatch(
            "activity", lambda: self._activity_repo.insert(record),
        )

    def log_signup_attempt(
        self,
        email: str,
        full_name: str,
        role: UserRole,
        status: SignupStatus,
        rfid: Optional[str] = None,
        user_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Append a ``SignupAttempt`` phase row.  Never raises."""
        try:
            attempt = SignupAttempt(
                email=email,
                full_name=full_name,
                role=role,
                rfid=rfid,
                status=status,
                user_id=user_id,
                error_message=error_message,
            )
            log_audit_event(
                logger=self._logger,
                action=f"SIGNUP_{attempt.status}".upper(),
                entity_type="SignupAttempt",
                entity_id=email,
                user_id=user_id,
                details={"role": str(attempt.role), "rfid": rfid},
            )
        except Exception as exc:
            self._logger.error("Error logging signup attempt: %s", exc)
            return

        self._dispatch(
            "signup attempt", lambda: self._signup_repo.insert(attempt),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def recent_activity(self, user_id: str, limit: int = 10) -> list[ActivityRecord]:
        """Newest-first activity for *user_id*; ``[]`` when unavailable."""
        try:
            return self._activity_repo.recent_for_user(user_id, limit=limit)
        except Exception as exc:
            self._logger.error("Error loading activity logs: %s", exc)
            return []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Block until every write submitted so far has finished."""
        if self._executor is None:
            return
        try:
            marker: Future[None] = self._executor.submit(lambda: None)
        except RuntimeError:
            return
        marker.result()

    def close(self) -> None:
        """Drain pending writes and stop the worker.  Idempotent."""
        if self._executor is None:
            return
        self._executor.shutdown(wait=True)
        self._executor = None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _dispatch(self, label: str, write: Callable[[], None]) -> None:
        if self._executor is not None:
            try:
                self._executor.submit(self._guarded, label, write)
                return
            except RuntimeError:
                # Executor already shut down; fall through to inline.
                pass
        self._guarded(label, write)

    def _guarded(self, label: str, write: Callable[[], None]) -> None:
        try:
            write()
        except Exception as exc:
            self._logger.warning("Audit %s write failed: %s", label, exc)
