"""
Profile Reconciliation Service.

Loads the ``user_profiles`` row for an authenticated identity, creating
it lazily from the identity's ``user_metadata`` when it does not exist.

Reconciliation strategy:
    - Look the row up by the identity UUID (one row per identity).
    - Missing row: derive a profile from metadata and upsert on ``id``.
    - Re-read after the upsert to pick up server-assigned timestamps.
    - A profiles table that has not been provisioned yet is not an
      error: the user simply has no profile until it exists.

``reconcile()`` never raises.  Every failure ends in ``None`` plus a
logged diagnostic, so the session layer can always clear its loading
state.
"""

from __future__ import annotations

from typing import Optional

from minersafe.logger import StructuredLogger
from minersafe.models.auth_models import Identity
from minersafe.models.enums import UserRole
from minersafe.models.profile import Profile
from minersafe.repositories.profile_repository import ProfileRepository
from minersafe.services.base_service import BaseService
from minersafe.services.identity_provider import IdentityProvider
from minersafe.utils.audit import log_audit_event
from minersafe.utils.errors import is_missing_relation

DEFAULT_FULL_NAME: str = "User"
DEFAULT_ROLE: UserRole = UserRole.ADMIN


def derive_profile(identity: Identity) -> Profile:
    """Build the initial profile for *identity* from its metadata.

    Defaults: ``full_name`` "User", ``role`` admin, no RFID tag.
    Unknown role strings fall back to the default role.  A tag in the
    metadata of a non-miner identity is discarded by ``Profile``.
    """
    metadata = identity.user_metadata
    raw_role = metadata.get("role")
    try:
        role = UserRole(raw_role) if raw_role else DEFAULT_ROLE
    except ValueError:
        role = DEFAULT_ROLE
    return Profile(
        id=identity.id,
        email=identity.email or "",
        full_name=metadata.get("full_name") or DEFAULT_FULL_NAME,
        role=role,
        rfid=metadata.get("rfid") or None,
    )


class ProfileReconciler(BaseService):
    """Keeps ``user_profiles`` in step with the identity provider.

    Parameters
    ----------
    repo:
        Profile repository.
    identity_provider:
        Source of the full identity (with metadata) for lazy creation.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        repo: ProfileRepository,
        identity_provider: IdentityProvider,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._identity_provider = identity_provider

    def reconcile(self, user_id: str) -> Optional[Profile]:
        """Load, or lazily create, the profile for *user_id*.

        Returns:
            The stored profile, the derived profile when the post-upsert
            read comes back empty, or ``None`` when the profile cannot be
            loaded or created.
        """
        try:
            return self._reconcile(user_id)
        except Exception as exc:
            self._logger.error(
                "Error loading profile for %s: %s", user_id, exc, exc_info=True,
            )
            return None

    # ------------------------------------------------------------------
    # Private implementation
    # ------------------------------------------------------------------

    def _reconcile(self, user_id: str) -> Optional[Profile]:
        try:
            existing = self._repo.get_by_id(user_id)
        except Exception as exc:
            if is_missing_relation(exc, self._repo.TABLE):
                self._logger.warning(
                    "%s table missing. Skipping profile load until table exists.",
                    self._repo.TABLE,
                )
                return None
            raise

        if existing is not None:
            return existing

        return self._provision(user_id)

    def _provision(self, user_id: str) -> Optional[Profile]:
        identity = self._identity_provider.get_current_identity()
        if identity is None or identity.id != user_id:
            self._logger.warning(
                "No provider identity for %s; profile not created.", user_id,
            )
            return None

        derived = derive_profile(identity)

        try:
            self._repo.upsert(derived)
        except Exception as exc:
            if is_missing_relation(exc, self._repo.TABLE):
                self._logger.warning(
                    "%s table missing during upsert. Skipping profile creation.",
                    self._repo.TABLE,
                )
            else:
                self._logger.error("Error creating profile for %s: %s", user_id, exc)
            return None

        log_audit_event(
            logger=self._logger,
            action="PROFILE_CREATE",
            entity_type="Profile",
            entity_id=user_id,
            user_id=user_id,
            details={"email": derived.email, "role": str(derived.role)},
        )

        try:
            stored = self._repo.get_by_id(user_id)
        except Exception as exc:
            self._logger.warning(
                "Re-read of new profile %s failed; using derived record: %s",
                user_id,
                exc,
            )
            return derived

        return stored or derived
