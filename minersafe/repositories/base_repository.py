"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference
- Logger reference
- Table-scoped query builder on the right Supabase client
- ``maybe_single`` handling across postgrest-py versions
"""

from __future__ import annotations

from typing import Any, Optional

from supabase import Client as SupabaseClient

from minersafe.database import DatabaseManager
from minersafe.logger import StructuredLogger
from minersafe.utils.errors import error_code

Row = dict[str, Any]


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__.

    Repositories do not swallow data-store errors: callers such as the
    ``ProfileReconciler`` need to tell a missing table apart from other
    failures, so SDK exceptions propagate unchanged.

    Parameters
    ----------
    db:
        Initialised ``DatabaseManager``.
    logger:
        Structured logger.
    privileged:
        Route queries through the service-role client (server side).
    """

    TABLE: str = ""

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        privileged: bool = False,
    ) -> None:
        self._db = db
        self._logger = logger
        self._privileged = privileged

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client this repository queries through."""
        return self._db.admin if self._privileged else self._db.supabase

    def _table(self):
        return self.supabase.table(self.TABLE)

    def _fetch_one(self, column: str, value: str) -> Optional[Row]:
        """Return the single row where *column* equals *value*, or ``None``.

        ``maybe_single().execute()`` returns ``None`` for zero rows on
        current postgrest-py, and older releases raise an ``APIError``
        with code ``204`` instead; both mean "no row".
        """
        try:
            response = (
                self._table()
                .select("*")
                .eq(column, value)
                .maybe_single()
                .execute()
            )
        except Exception as exc:
            if error_code(exc) == "204":
                return None
            raise
        if response is None or not response.data:
            return None
        return response.data
