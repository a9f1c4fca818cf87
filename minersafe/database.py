"""
Supabase Client Management.

Holds the two Supabase clients used by the identity core:

- **Client (anon key)**: the user-facing client.  Its ``auth`` namespace
  owns the signed-in session; its PostgREST namespace reads and writes
  ``user_profiles`` and the audit tables under row-level security.

- **Admin (service-role key)**: server-side only.  Used by the
  privileged sign-up endpoint to create confirmed accounts.  A client
  process is configured without the service-role key, so ``admin`` raises
  there.

This module only manages *connections*; it contains no query logic.
Data access goes through the repositories, identity operations through
``IdentityProvider``.

Usage (dependency injection at startup)::

    from minersafe.database import DatabaseManager
    from minersafe.logger import StructuredLogger

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

from typing import Optional

from supabase import create_client, Client as SupabaseClient

from minersafe.logger import StructuredLogger


def _build_client(
    url: str,
    key: str,
    label: str,
    logger: StructuredLogger,
) -> Optional[SupabaseClient]:
    """Create a Supabase client, logging (not raising) on bad credentials."""
    if not url or not key:
        logger.warning("Supabase %s credentials not configured.", label)
        return None
    try:
        client = create_client(url, key)
    except (ValueError, TypeError) as exc:
        logger.warning("Supabase %s credential format error: %s", label, exc)
        return None
    except Exception as exc:
        logger.error(
            "Unexpected Supabase %s initialization failure: %s",
            label,
            exc,
            exc_info=True,
        )
        return None
    logger.info("Supabase %s client initialized.", label)
    return client


class DatabaseManager:
    """Owns the Supabase client(s), fully configured at construction time.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The anonymous (publishable) key.
    logger:
        A ``StructuredLogger`` instance.
    service_role_key:
        The elevated service-role key.  Pass it only in the server
        process that hosts the sign-up endpoint.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
        service_role_key: str = "",
    ) -> None:
        self._logger: StructuredLogger = logger
        self._supabase: Optional[SupabaseClient] = _build_client(
            supabase_url, supabase_key, "anon", logger,
        )
        self._admin: Optional[SupabaseClient] = None
        if service_role_key:
            self._admin = _build_client(
                supabase_url, service_role_key, "service-role", logger,
            )

    @property
    def supabase(self) -> SupabaseClient:
        """Return the user-facing Supabase client.

        Raises
        ------
        RuntimeError
            If the client was not initialised.
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        return self._supabase

    @property
    def admin(self) -> SupabaseClient:
        """Return the service-role client (server process only).

        Raises
        ------
        RuntimeError
            If no service-role key was configured.
        """
        if self._admin is None:
            raise RuntimeError(
                "Supabase service-role client is not initialised. "
                "Privileged operations are unavailable in this process."
            )
        return self._admin

    @property
    def has_admin(self) -> bool:
        """``True`` when the service-role client is available."""
        return self._admin is not None
