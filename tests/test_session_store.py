"""
Session store tests.

Covers session restore on start, provider-driven state changes, observer
notifications and unsubscribe-on-close.

Run with: pytest tests/test_session_store.py -v
"""

from minersafe.auth import SessionStore
from minersafe.models.auth_models import AuthSession, Identity
from minersafe.models.enums import UserRole
from minersafe.models.profile import Profile


def _session(user_id="u1", email="a@b.co", **metadata):
    return AuthSession(identity=Identity(id=user_id, email=email, user_metadata=metadata))


class TestStart:
    """Initial session restore."""

    def test_loading_before_start(self, store):
        assert store.loading is True
        assert store.identity is None

    def test_start_without_session_clears_loading(self, store):
        store.start()

        assert store.loading is False
        assert store.identity is None
        assert store.profile is None
        assert store.is_authenticated is False

    def test_start_with_session_reconciles_profile(self, store, provider, profile_repo):
        provider.current = _session(full_name="Ana", role="miner", rfid="TAG1")

        store.start()

        assert store.identity.id == "u1"
        assert store.profile is not None
        assert store.profile.role == UserRole.MINER
        assert store.loading is False
        assert "u1" in profile_repo.rows

    def test_loading_stays_true_until_profile_reconciled(self, store, provider):
        provider.current = _session()
        seen = []
        store.subscribe(seen.append)

        store.start()

        first = seen[0]
        assert first.identity is not None
        assert first.profile is None
        assert first.loading is True
        assert seen[-1].loading is False
        assert seen[-1].profile is not None

    def test_start_subscribes_once(self, store, provider):
        store.start()
        store.start()
        assert len(provider.listeners) == 1

    def test_missing_profile_table_still_clears_loading(self, store, provider, profile_repo):
        profile_repo.missing_table = True
        provider.current = _session()

        store.start()

        assert store.identity is not None
        assert store.profile is None
        assert store.loading is False

    def test_context_manager_starts_and_closes(self, provider, reconciler, logger):
        with SessionStore(provider, reconciler, logger) as store:
            assert len(provider.listeners) == 1
            assert store.loading is False
        assert provider.listeners == []


class TestSessionEvents:
    """Provider session-change events."""

    def test_sign_in_event_sets_identity_and_profile(self, store, provider):
        store.start()

        provider.emit(_session(user_id="u2", email="m@x.io", role="miner"))

        assert store.identity.id == "u2"
        assert store.profile.role == UserRole.MINER

    def test_sign_out_event_clears_state(self, store, provider, profile_repo):
        profile_repo.rows["u1"] = Profile(
            id="u1", email="a@b.co", full_name="Ana", role=UserRole.ADMIN,
        )
        provider.current = _session()
        store.start()

        provider.emit(None)

        assert store.identity is None
        assert store.profile is None
        assert store.loading is False

    def test_last_event_wins(self, store, provider, profile_repo):
        for uid in ("u1", "u2"):
            profile_repo.rows[uid] = Profile(
                id=uid, email=f"{uid}@b.co", full_name=uid, role=UserRole.ADMIN,
            )
        store.start()

        provider.emit(_session(user_id="u1"))
        provider.emit(_session(user_id="u2"))

        assert store.identity.id == "u2"
        assert store.profile.id == "u2"

    def test_close_unsubscribes_from_provider(self, store, provider):
        store.start()
        store.close()

        assert provider.listeners == []
        provider.emit(_session())
        assert store.identity is None

    def test_event_after_close_is_ignored(self, store):
        store.start()
        store.close()

        store._handle_session_change(_session())

        assert store.identity is None

    def test_close_is_idempotent(self, store):
        store.start()
        store.close()
        store.close()


class TestObservers:
    """subscribe / unsubscribe and listener isolation."""

    def test_unsubscribe_stops_notifications(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        store.start()
        count = len(seen)

        unsubscribe()
        store.clear_profile()

        assert len(seen) == count

    def test_failing_listener_does_not_break_others(self, store):
        def broken(_state):
            raise RuntimeError("listener bug")

        seen = []
        store.subscribe(broken)
        store.subscribe(seen.append)

        store.start()

        assert seen
        assert store.loading is False

    def test_state_snapshot_is_frozen(self, store):
        store.start()
        state = store.state
        assert state.loading is False
        assert state.identity is None


class TestProfileMutations:
    """refresh_profile / clear_profile."""

    def test_refresh_profile_stores_result(self, store, provider):
        provider.current = _session(full_name="Bo")
        profile = store.refresh_profile("u1")

        assert profile is not None
        assert store.profile == profile
        assert store.loading is False

    def test_clear_profile_keeps_identity(self, store, provider):
        provider.current = _session()
        store.start()

        store.clear_profile()

        assert store.profile is None
        assert store.identity is not None
