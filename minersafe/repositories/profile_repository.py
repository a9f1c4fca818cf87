"""
Profile Repository.

Data access for the ``user_profiles`` table.  One row per identity,
keyed by the Supabase user UUID.
"""

from __future__ import annotations

from typing import Optional

from minersafe.models.profile import Profile
from minersafe.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository):
    """Data access layer for ``Profile`` rows.

    **No ``delete()`` method.**  Profiles are never removed by the
    identity core; the audit tables reference them by user id.
    """

    TABLE = "user_profiles"

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        """Fetch the profile for *user_id*; ``None`` when no row exists.

        Raises:
            postgrest.exceptions.APIError: On any data-store failure,
                including the table not existing yet.
        """
        row = self._fetch_one("id", user_id)
        return Profile(**row) if row else None

    def upsert(self, profile: Profile) -> None:
        """Insert *profile*, replacing an existing row with the same id.

        Raises:
            postgrest.exceptions.APIError: On any data-store failure.
        """
        (
            self._table()
            .upsert(profile.to_row(), on_conflict="id")
            .execute()
        )
        self._logger.info("Profile upserted: %s", profile.id)
