"""
Business Logic Services Package.

The ``create_services()`` factory wires every repository and client-side
service together and returns a typed dict; the application layer only
needs ``session_facade`` from it.  ``create_provisioning_service()`` wires
the server-side sign-up path, which needs the service-role client.
"""

from __future__ import annotations

from typing import TypedDict

from minersafe.auth import SessionStore
from minersafe.config import AppConfig
from minersafe.database import DatabaseManager
from minersafe.logger import get_logger
from minersafe.repositories.audit_repository import (
    ActivityLogRepository,
    SignupAttemptRepository,
)
from minersafe.repositories.profile_repository import ProfileRepository
from minersafe.services.account_provisioning import AccountProvisioningService
from minersafe.services.audit_logger import AuditLogger
from minersafe.services.identity_provider import IdentityProvider
from minersafe.services.profile_reconciler import ProfileReconciler
from minersafe.services.session_facade import SessionFacade
from minersafe.services.signup_client import SignupEndpointClient
from minersafe.services.signup_orchestrator import SignupOrchestrator


class ServiceContainer(TypedDict):
    """Typed container for the client-side services."""

    identity_provider: IdentityProvider
    audit_logger: AuditLogger
    profile_reconciler: ProfileReconciler
    session_store: SessionStore
    signup_orchestrator: SignupOrchestrator
    session_facade: SessionFacade


def create_services(db: DatabaseManager, config: AppConfig) -> ServiceContainer:
    """
    Wire all client-side repositories and services together.

    This is the single composition root for the session layer.  The
    caller starts the returned ``session_facade`` (or uses it as a
    context manager) to restore the session and follow provider events.

    Args:
        db: DatabaseManager with the user-facing Supabase client.
        config: Application configuration.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    profile_repo = ProfileRepository(db=db, logger=logger)
    activity_repo = ActivityLogRepository(db=db, logger=logger)
    signup_repo = SignupAttemptRepository(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Leaf services
    # ------------------------------------------------------------------
    identity_provider = IdentityProvider(db=db, logger=logger)
    audit_logger = AuditLogger(
        activity_repo=activity_repo,
        signup_repo=signup_repo,
        logger=get_logger("audit"),
        user_agent=config.CLIENT_USER_AGENT,
        background=config.AUDIT_BACKGROUND_WRITES,
    )
    profile_reconciler = ProfileReconciler(
        repo=profile_repo,
        identity_provider=identity_provider,
        logger=logger,
    )
    signup_client = SignupEndpointClient(
        endpoint_url=config.SIGNUP_ENDPOINT_URL,
        logger=logger,
    )

    # ------------------------------------------------------------------
    # 3. Session state + orchestration
    # ------------------------------------------------------------------
    session_store = SessionStore(
        identity_provider=identity_provider,
        reconciler=profile_reconciler,
        logger=get_logger("session"),
    )
    signup_orchestrator = SignupOrchestrator(
        endpoint=signup_client,
        identity_provider=identity_provider,
        audit=audit_logger,
        session=session_store,
        logger=logger,
    )
    session_facade = SessionFacade(
        identity_provider=identity_provider,
        session=session_store,
        orchestrator=signup_orchestrator,
        audit=audit_logger,
        logger=logger,
    )

    return ServiceContainer(
        identity_provider=identity_provider,
        audit_logger=audit_logger,
        profile_reconciler=profile_reconciler,
        session_store=session_store,
        signup_orchestrator=signup_orchestrator,
        session_facade=session_facade,
    )


def create_provisioning_service(db: DatabaseManager) -> AccountProvisioningService:
    """Wire the server-side sign-up path on the service-role client."""
    logger = get_logger("provisioning")
    return AccountProvisioningService(
        db=db,
        profile_repo=ProfileRepository(db=db, logger=logger, privileged=True),
        logger=logger,
    )
