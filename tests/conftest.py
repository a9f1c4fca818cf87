"""Shared fixtures and in-memory doubles for the identity core tests.

The doubles mirror the public surface of the Supabase-backed classes
(``IdentityProvider``, the repositories, ``SignupEndpointClient``) so
services can be exercised end to end without a network.
"""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from minersafe.auth import SessionStore
from minersafe.logger import StructuredLogger
from minersafe.models.audit_models import ActivityRecord, SignupAttempt
from minersafe.models.auth_models import (
    AuthSession,
    Identity,
    ProvisioningRequest,
    ProvisioningResponse,
)
from minersafe.models.profile import Profile
from minersafe.services.audit_logger import AuditLogger
from minersafe.services.profile_reconciler import ProfileReconciler
from minersafe.services.session_facade import SessionFacade
from minersafe.services.signup_orchestrator import SignupOrchestrator

# Console logging only while testing.
os.environ.setdefault("LOG_FILE", "")


# ---------------------------------------------------------------------------
# SDK-shaped errors
# ---------------------------------------------------------------------------

class FakeAuthError(Exception):
    """Shaped like gotrue ``AuthApiError``."""

    def __init__(self, message: str, status: Optional[int] = 400, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class FakeAPIError(Exception):
    """Shaped like postgrest ``APIError``."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


def missing_table_error(table: str = "user_profiles") -> FakeAPIError:
    return FakeAPIError(f'relation "public.{table}" does not exist', code="42P01")


# ---------------------------------------------------------------------------
# Identity provider double
# ---------------------------------------------------------------------------

class FakeIdentityProvider:
    """In-memory identity provider that pushes session events synchronously."""

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, Identity]] = {}
        self.current: Optional[AuthSession] = None
        self.listeners: list = []
        self.sign_in_calls: list[str] = []
        self.sign_out_calls: int = 0
        self.resent: list[str] = []
        self.resend_error: Optional[Exception] = None
        self.sign_out_error: Optional[Exception] = None
        self.identity_override: Optional[Identity] = None

    def register(self, email: str, password: str, metadata: Optional[dict[str, Any]] = None) -> Identity:
        identity = Identity(id=str(uuid.uuid4()), email=email, user_metadata=metadata or {})
        self.accounts[email] = (password, identity)
        return identity

    def emit(self, session: Optional[AuthSession]) -> None:
        # The SDK stores the new session before notifying listeners.
        self.current = session
        for listener in list(self.listeners):
            listener(session)

    # -- IdentityProvider surface ------------------------------------------

    def get_current_session(self) -> Optional[AuthSession]:
        return self.current

    def on_session_change(self, listener):
        self.listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return _unsubscribe

    def sign_in_with_password(self, email: str, password: str) -> Optional[Identity]:
        self.sign_in_calls.append(email)
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise FakeAuthError("Invalid login credentials", status=400, code="invalid_credentials")
        self.current = AuthSession(identity=account[1], access_token="access", refresh_token="refresh")
        self.emit(self.current)
        return account[1]

    def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.current = None
        self.emit(None)

    def resend_confirmation(self, email: str) -> None:
        if self.resend_error is not None:
            raise self.resend_error
        self.resent.append(email)

    def get_current_identity(self) -> Optional[Identity]:
        if self.identity_override is not None:
            return self.identity_override
        return self.current.identity if self.current else None


# ---------------------------------------------------------------------------
# Repository doubles
# ---------------------------------------------------------------------------

class InMemoryProfileRepository:
    TABLE = "user_profiles"

    def __init__(self) -> None:
        self.rows: dict[str, Profile] = {}
        self.missing_table: bool = False
        self.get_error: Optional[Exception] = None
        self.upsert_error: Optional[Exception] = None
        self.upserts: int = 0
        self.drop_after_upsert: bool = False

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        if self.missing_table:
            raise missing_table_error()
        if self.get_error is not None:
            raise self.get_error
        return self.rows.get(user_id)

    def upsert(self, profile: Profile) -> None:
        if self.missing_table:
            raise missing_table_error()
        if self.upsert_error is not None:
            raise self.upsert_error
        self.upserts += 1
        if self.drop_after_upsert:
            return
        now = datetime.now(timezone.utc)
        existing = self.rows.get(profile.id)
        self.rows[profile.id] = profile.model_copy(update={
            "created_at": existing.created_at if existing else now,
            "updated_at": now,
        })


class InMemorySignupAttemptRepository:
    TABLE = "user_signups"

    def __init__(self) -> None:
        self.rows: list[SignupAttempt] = []
        self.fail: bool = False

    def insert(self, attempt: SignupAttempt) -> None:
        if self.fail:
            raise FakeAPIError("insert failed", code="XX000")
        self.rows.append(attempt)

    def statuses(self, email: Optional[str] = None) -> list[str]:
        return [str(row.status) for row in self.rows if email is None or row.email == email]


class InMemoryActivityLogRepository:
    TABLE = "user_activity_log"

    def __init__(self) -> None:
        self.rows: list[ActivityRecord] = []
        self.fail: bool = False

    def insert(self, record: ActivityRecord) -> None:
        if self.fail:
            raise FakeAPIError("insert failed", code="XX000")
        self.rows.append(record)

    def recent_for_user(self, user_id: str, limit: int = 10) -> list[ActivityRecord]:
        if self.fail:
            raise FakeAPIError("select failed", code="XX000")
        matching = [row for row in self.rows if row.user_id == user_id]
        return list(reversed(matching))[:limit]


# ---------------------------------------------------------------------------
# Sign-up endpoint double
# ---------------------------------------------------------------------------

class FakeSignupEndpoint:
    """Behaves like the privileged endpoint, backed by ``FakeIdentityProvider``."""

    def __init__(self, provider: FakeIdentityProvider) -> None:
        self._provider = provider
        self.requests: list[ProvisioningRequest] = []
        self.forced: Optional[ProvisioningResponse] = None
        self.error: Optional[Exception] = None

    def create_account(self, request: ProvisioningRequest) -> ProvisioningResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.forced is not None:
            return self.forced
        if request.email in self._provider.accounts:
            return ProvisioningResponse(status_code=409, error="EMAIL_EXISTS")
        self._provider.register(
            request.email,
            request.password,
            {k: v for k, v in request.metadata().items() if v is not None},
        )
        return ProvisioningResponse(status_code=200, ok=True)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="minersafe.tests", log_file="")


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def profile_repo() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def signup_repo() -> InMemorySignupAttemptRepository:
    return InMemorySignupAttemptRepository()


@pytest.fixture
def activity_repo() -> InMemoryActivityLogRepository:
    return InMemoryActivityLogRepository()


@pytest.fixture
def audit(activity_repo, signup_repo, logger) -> AuditLogger:
    return AuditLogger(
        activity_repo=activity_repo,
        signup_repo=signup_repo,
        logger=logger,
        user_agent="pytest-agent",
        background=False,
    )


@pytest.fixture
def reconciler(profile_repo, provider, logger) -> ProfileReconciler:
    return ProfileReconciler(repo=profile_repo, identity_provider=provider, logger=logger)


@pytest.fixture
def store(provider, reconciler, logger) -> SessionStore:
    session_store = SessionStore(identity_provider=provider, reconciler=reconciler, logger=logger)
    yield session_store
    session_store.close()


@pytest.fixture
def endpoint(provider) -> FakeSignupEndpoint:
    return FakeSignupEndpoint(provider)


@pytest.fixture
def orchestrator(endpoint, provider, audit, store, logger) -> SignupOrchestrator:
    return SignupOrchestrator(
        endpoint=endpoint,
        identity_provider=provider,
        audit=audit,
        session=store,
        logger=logger,
    )


@pytest.fixture
def facade(provider, store, orchestrator, audit, logger) -> SessionFacade:
    session_facade = SessionFacade(
        identity_provider=provider,
        session=store,
        orchestrator=orchestrator,
        audit=audit,
        logger=logger,
    )
    session_facade.start()
    yield session_facade
    session_facade.close()
