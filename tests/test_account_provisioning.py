"""
Server-side account provisioning tests.

Run with: pytest tests/test_account_provisioning.py -v
"""

from unittest.mock import MagicMock

import pytest

from minersafe.models.auth_models import ProvisioningRequest
from minersafe.models.enums import UserRole
from minersafe.services.account_provisioning import (
    EMAIL_EXISTS,
    MISSING_CREDENTIALS,
    NOT_CONFIGURED,
    AccountProvisioningService,
)

from tests.conftest import FakeAuthError


@pytest.fixture
def admin_db():
    db = MagicMock()
    db.has_admin = True
    db.admin.auth.admin.create_user.return_value = MagicMock(user=MagicMock(id="new-user"))
    return db


@pytest.fixture
def service(admin_db, profile_repo, logger):
    return AccountProvisioningService(admin_db, profile_repo, logger)


def _request(**overrides):
    fields = {
        "email": "m@x.io",
        "password": "secret1",
        "full_name": "Ana",
        "role": UserRole.MINER,
        "rfid": "TAG1",
    }
    fields.update(overrides)
    return ProvisioningRequest(**fields)


class TestCreateAccount:

    def test_creates_confirmed_user_with_metadata(self, service, admin_db):
        response = service.create_account(_request())

        assert response.status_code == 200
        assert response.body() == {"ok": True}
        admin_db.admin.auth.admin.create_user.assert_called_once_with({
            "email": "m@x.io",
            "password": "secret1",
            "email_confirm": True,
            "user_metadata": {"full_name": "Ana", "role": "miner", "rfid": "TAG1"},
        })

    def test_seeds_profile(self, service, profile_repo):
        service.create_account(_request())

        profile = profile_repo.rows["new-user"]
        assert profile.role == UserRole.MINER
        assert profile.rfid == "TAG1"

    def test_admin_request_tag_is_not_stored(self, service, admin_db, profile_repo):
        response = service.create_account(_request(role=UserRole.ADMIN, rfid="TAG9"))

        assert response.ok
        metadata = admin_db.admin.auth.admin.create_user.call_args[0][0]["user_metadata"]
        assert metadata == {"full_name": "Ana", "role": "admin", "rfid": None}
        assert profile_repo.rows["new-user"].role == UserRole.ADMIN
        assert profile_repo.rows["new-user"].rfid is None

    def test_profile_seed_defaults_to_miner(self, service, profile_repo):
        service.create_account(_request(role=None, full_name=None, rfid=None))

        profile = profile_repo.rows["new-user"]
        assert profile.role == UserRole.MINER
        assert profile.full_name == ""

    def test_profile_seed_failure_is_not_fatal(self, service, profile_repo):
        profile_repo.upsert_error = RuntimeError("table locked")

        response = service.create_account(_request())

        assert response.ok

    @pytest.mark.parametrize("overrides", [{"email": ""}, {"password": ""}])
    def test_missing_credentials(self, service, admin_db, overrides):
        response = service.create_account(_request(**overrides))

        assert response.status_code == 400
        assert response.error == MISSING_CREDENTIALS
        admin_db.admin.auth.admin.create_user.assert_not_called()

    def test_not_configured(self, service, admin_db):
        admin_db.has_admin = False

        response = service.create_account(_request())

        assert response.status_code == 500
        assert response.error == NOT_CONFIGURED


class TestRejections:

    @pytest.mark.parametrize("exc", [
        FakeAuthError("A user with this email address has already been registered", status=422, code="email_exists"),
        FakeAuthError("User already registered", status=400),
        FakeAuthError("Conflict", status=422),
    ])
    def test_existing_email_maps_to_409(self, service, admin_db, exc):
        admin_db.admin.auth.admin.create_user.side_effect = exc

        response = service.create_account(_request())

        assert response.status_code == 409
        assert response.body() == {"ok": False, "error": EMAIL_EXISTS}

    def test_other_rejection_is_400_with_message(self, service, admin_db, profile_repo):
        admin_db.admin.auth.admin.create_user.side_effect = FakeAuthError(
            "Password should be at least 6 characters", status=400, code="weak_password",
        )

        response = service.create_account(_request())

        assert response.status_code == 400
        assert response.error == "Password should be at least 6 characters"
        assert profile_repo.rows == {}

    def test_unexpected_failure_is_500(self, service):
        service._seed_profile = MagicMock(side_effect=RuntimeError("boom"))

        response = service.create_account(_request())

        assert response.status_code == 500
        assert response.error == "boom"
