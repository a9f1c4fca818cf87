"""
Audit logger tests: fire-and-forget appends and background writes.

Run with: pytest tests/test_audit_logger.py -v
"""

import threading

import pytest

from minersafe.models.enums import ActivityStatus, ActivityType, SignupStatus, UserRole
from minersafe.services.audit_logger import AuditLogger


@pytest.fixture
def background_audit(activity_repo, signup_repo, logger):
    audit = AuditLogger(activity_repo, signup_repo, logger, user_agent="ua", background=True)
    yield audit
    audit.close()


class TestInlineWrites:

    def test_activity_row_fields(self, audit, activity_repo):
        audit.log_activity("a@b.co", ActivityType.LOGIN, ActivityStatus.SUCCESS, user_id="u1")

        row = activity_repo.rows[0].to_row()
        assert row == {
            "user_id": "u1",
            "email": "a@b.co",
            "activity_type": "login",
            "status": "success",
            "ip_address": None,
            "user_agent": "pytest-agent",
        }

    def test_signup_row_omits_empty_error_message(self, audit, signup_repo):
        audit.log_signup_attempt("m@x.io", "Ana", UserRole.MINER, SignupStatus.ATTEMPTED, rfid="TAG1")

        row = signup_repo.rows[0].to_row()
        assert row["status"] == "attempted"
        assert row["role"] == "miner"
        assert row["rfid"] == "TAG1"
        assert "error_message" not in row

    def test_signup_row_keeps_error_message(self, audit, signup_repo):
        audit.log_signup_attempt(
            "a@b.co", "Ana", UserRole.ADMIN, SignupStatus.FAILED, error_message="nope",
        )
        assert signup_repo.rows[0].to_row()["error_message"] == "nope"

    def test_insert_failure_is_swallowed(self, audit, activity_repo, signup_repo):
        activity_repo.fail = True
        signup_repo.fail = True

        audit.log_activity("a@b.co", ActivityType.LOGOUT, ActivityStatus.SUCCESS)
        audit.log_signup_attempt("a@b.co", "Ana", UserRole.ADMIN, SignupStatus.ATTEMPTED)

        assert activity_repo.rows == []
        assert signup_repo.rows == []

    def test_invalid_record_is_swallowed(self, audit, signup_repo):
        audit.log_signup_attempt("a@b.co", "Ana", "boss", SignupStatus.ATTEMPTED)
        assert signup_repo.rows == []

    def test_recent_activity_failure_returns_empty(self, audit, activity_repo):
        activity_repo.fail = True
        assert audit.recent_activity("u1") == []


class TestBackgroundWrites:

    def test_flush_waits_for_pending_writes(self, background_audit, activity_repo):
        for _ in range(5):
            background_audit.log_activity("a@b.co", ActivityType.LOGIN, ActivityStatus.FAILED)

        background_audit.flush()

        assert len(activity_repo.rows) == 5

    def test_writes_keep_submission_order(self, background_audit, signup_repo):
        background_audit.log_signup_attempt("a@b.co", "Ana", UserRole.ADMIN, SignupStatus.ATTEMPTED)
        background_audit.log_signup_attempt("a@b.co", "Ana", UserRole.ADMIN, SignupStatus.SUCCESS)

        background_audit.flush()

        assert signup_repo.statuses() == ["attempted", "success"]

    def test_slow_store_does_not_block_caller(self, background_audit, activity_repo):
        release = threading.Event()
        original_insert = activity_repo.insert

        def slow_insert(record):
            release.wait(timeout=5)
            original_insert(record)

        activity_repo.insert = slow_insert

        background_audit.log_activity("a@b.co", ActivityType.LOGIN, ActivityStatus.SUCCESS)
        assert activity_repo.rows == []

        release.set()
        background_audit.flush()
        assert len(activity_repo.rows) == 1

    def test_write_after_close_runs_inline(self, background_audit, activity_repo):
        background_audit.close()
        background_audit.close()

        background_audit.log_activity("a@b.co", ActivityType.LOGIN, ActivityStatus.SUCCESS)

        assert len(activity_repo.rows) == 1
