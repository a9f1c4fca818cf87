"""
Authentication & Session State.

Provides the injectable ``SessionStore``: the single owner of the
process-local session (current identity, reconciled profile, loading
flag).  Everything else reads it through properties or an observer
subscription.

Usage::

    from minersafe.auth import SessionStore

    with SessionStore(identity_provider, reconciler, logger) as store:
        unsubscribe = store.subscribe(lambda state: render(state))
        ...
    # leaving the block unsubscribes from the provider

Threading
---------
Supabase may deliver auth events on its own threads.  State is guarded
by an ``RLock``; provider events are handled one at a time under a
second lock, each re-running reconciliation.  Events are not coalesced
and the last write wins.
"""

from __future__ import annotations

import threading
from types import TracebackType
from typing import TYPE_CHECKING, Callable, Optional

from minersafe.logger import StructuredLogger
from minersafe.models.auth_models import AuthSession, Identity, SessionState
from minersafe.models.profile import Profile

if TYPE_CHECKING:
    from minersafe.services.identity_provider import IdentityProvider, Unsubscribe
    from minersafe.services.profile_reconciler import ProfileReconciler

StateListener = Callable[[SessionState], None]


class SessionStore:
    """Injectable holder for the authenticated identity and its profile.

    Parameters
    ----------
    identity_provider:
        Source of the existing session and of session-change events.
    reconciler:
        Loads or lazily creates the profile for an identity.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        reconciler: ProfileReconciler,
        logger: StructuredLogger,
    ) -> None:
        self._identity_provider = identity_provider
        self._reconciler = reconciler
        self._logger = logger

        self._lock: threading.RLock = threading.RLock()
        self._event_lock: threading.RLock = threading.RLock()

        self._identity: Optional[Identity] = None
        self._profile: Optional[Profile] = None
        self._loading: bool = True

        self._listeners: dict[int, StateListener] = {}
        self._next_listener_id: int = 0
        self._provider_unsubscribe: Optional[Unsubscribe] = None
        self._closed: bool = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Restore any existing session, then follow provider events.

        ``loading`` stays ``True`` until the restored identity's profile
        has been reconciled, or turns ``False`` at once when there is no
        session.  Calling ``start()`` on a running store is a no-op.
        """
        with self._lock:
            if self._provider_unsubscribe is not None:
                return
            self._closed = False

        with self._event_lock:
            session: Optional[AuthSession] = None
            try:
                session = self._identity_provider.get_current_session()
            except Exception as exc:
                self._logger.error("Could not restore session: %s", exc)

            if session is not None:
                self._set_identity(session.identity)
                self.refresh_profile(session.identity.id)
            else:
                self._set_identity(None)
                self._set_loading(False)

        try:
            unsubscribe = self._identity_provider.on_session_change(
                self._handle_session_change,
            )
        except Exception as exc:
            self._logger.error("Could not subscribe to session changes: %s", exc)
            return

        with self._lock:
            self._provider_unsubscribe = unsubscribe

    def close(self) -> None:
        """Unsubscribe from the provider.  Safe to call more than once.

        Events that are still in flight after ``close()`` are ignored.
        """
        with self._lock:
            unsubscribe = self._provider_unsubscribe
            self._provider_unsubscribe = None
            self._closed = True

        if unsubscribe is None:
            return
        try:
            unsubscribe()
        except Exception as exc:
            self._logger.warning("Provider unsubscribe failed: %s", exc)
        else:
            self._logger.debug("Session store unsubscribed from provider.")

    def __enter__(self) -> "SessionStore":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def identity(self) -> Optional[Identity]:
        with self._lock:
            return self._identity

    @property
    def profile(self) -> Optional[Profile]:
        with self._lock:
            return self._profile

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._loading

    @property
    def is_authenticated(self) -> bool:
        """``True`` when an identity is held."""
        with self._lock:
            return self._identity is not None

    @property
    def state(self) -> SessionState:
        """Immutable snapshot of the current state."""
        with self._lock:
            return SessionState(
                identity=self._identity,
                profile=self._profile,
                loading=self._loading,
            )

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with a fresh snapshot after every mutation.

        Returns a callable that removes the listener.
        """
        with self._lock:
            listener_id = self._next_listener_id
            self._next_listener_id += 1
            self._listeners[listener_id] = listener

        def _unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(listener_id, None)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def refresh_profile(self, user_id: str) -> Optional[Profile]:
        """Reconcile the profile for *user_id* and store the result.

        ``loading`` is cleared afterwards whatever happens.
        """
        profile: Optional[Profile] = None
        try:
            profile = self._reconciler.reconcile(user_id)
        finally:
            with self._lock:
                self._profile = profile
                self._loading = False
            self._notify()
        return profile

    def clear_profile(self) -> None:
        with self._lock:
            self._profile = None
        self._notify()

    def _handle_session_change(self, session: Optional[AuthSession]) -> None:
        """Provider callback: replace the held identity with *session*'s."""
        with self._event_lock:
            with self._lock:
                if self._closed:
                    return

            if session is not None:
                self._set_identity(session.identity)
                self.refresh_profile(session.identity.id)
                return

            with self._lock:
                self._identity = None
                self._profile = None
                self._loading = False
            self._notify()

    def _set_identity(self, identity: Optional[Identity]) -> None:
        with self._lock:
            self._identity = identity
        self._notify()

    def _set_loading(self, loading: bool) -> None:
        with self._lock:
            self._loading = loading
        self._notify()

    def _notify(self) -> None:
        with self._lock:
            snapshot = SessionState(
                identity=self._identity,
                profile=self._profile,
                loading=self._loading,
            )
            listeners = list(self._listeners.values())

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as exc:
                self._logger.error(
                    "Session listener failed: %s", exc, exc_info=True,
                )
