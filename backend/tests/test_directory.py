"""Tests for the admin directory: barangays, accounts and partial creation."""
from unittest.mock import MagicMock

import pytest

from casdt.core.errors import (
    AuthenticationFailure,
    AuthorizationDenied,
    PartialCreateFailure,
    StoreUnavailable,
    ValidationFailure,
)
from casdt.models.user import Credential, UserRole
from casdt.services.directory import DirectoryService
from casdt.services.record_store import USERS, SqlRecordStore
from casdt.services.scoped_query import ScopedRecords


class ProfileInsertFails(SqlRecordStore):
    def insert(self, table, row):
        if table == USERS:
            raise StoreUnavailable("Record store is unavailable")
        return super().insert(table, row)


@pytest.fixture()
def directory(records, auth_provider):
    return DirectoryService(records, auth_provider)


class TestBarangays:
    def test_create_and_list(self, directory, admin_scope):
        created = directory.create_barangay(admin_scope, " Bagua ", "Cotabato City", "Maguindanao")
        assert created["name"] == "Bagua"
        assert [b["name"] for b in directory.list_barangays(admin_scope)] == ["Bagua"]

    def test_all_fields_required(self, directory, admin_scope):
        with pytest.raises(ValidationFailure) as exc_info:
            directory.create_barangay(admin_scope, "Bagua", "", None)
        assert [e["field"] for e in exc_info.value.errors] == ["municipality", "province"]

    def test_barangay_user_cannot_create(self, directory, north_scope):
        with pytest.raises(AuthorizationDenied):
            directory.create_barangay(north_scope, "Bagua", "Cotabato City", "Maguindanao")


class TestCreateAccount:
    def test_barangay_user_account(self, directory, admin_scope, barangays, auth_provider):
        created = directory.create_account(
            admin_scope, email="BHW@Example.org", password="Secret123!",
            full_name="Nur Hassan", role=UserRole.BARANGAY, barangay_id=barangays["north"],
        )
        assert created["email"] == "bhw@example.org"
        assert created["barangay_id"] == barangays["north"]
        assert auth_provider.authenticate("bhw@example.org", "Secret123!") == created["id"]

    def test_missing_barangay_fails_before_credential(self, records, admin_scope):
        auth = MagicMock()
        directory = DirectoryService(records, auth)
        with pytest.raises(ValidationFailure) as exc_info:
            directory.create_account(admin_scope, "bhw@example.org", "Secret123!", "Nur", UserRole.BARANGAY)
        assert exc_info.value.errors[0]["field"] == "barangay_id"
        auth.create_credential.assert_not_called()

    def test_unknown_barangay_fails_before_credential(self, records, admin_scope, barangays):
        auth = MagicMock()
        directory = DirectoryService(records, auth)
        with pytest.raises(ValidationFailure):
            directory.create_account(admin_scope, "bhw@example.org", "pw", "Nur", UserRole.BARANGAY, "nowhere")
        auth.create_credential.assert_not_called()

    def test_invalid_role(self, directory, admin_scope):
        with pytest.raises(ValidationFailure) as exc_info:
            directory.create_account(admin_scope, "x@example.org", "pw", "X", "physician")
        assert exc_info.value.errors[0]["field"] == "role"

    def test_admin_account_has_no_barangay(self, directory, admin_scope, barangays):
        created = directory.create_account(
            admin_scope, "chief@example.org", "pw", "Chief", UserRole.ADMIN, barangays["south"]
        )
        assert created["barangay_id"] is None

    def test_duplicate_email(self, directory, admin_scope):
        directory.create_account(admin_scope, "chief@example.org", "pw", "Chief", UserRole.ADMIN)
        with pytest.raises(ValidationFailure) as exc_info:
            directory.create_account(admin_scope, "Chief@example.org", "pw2", "Chief 2", UserRole.ADMIN)
        assert exc_info.value.errors == [{"field": "email", "message": "already registered"}]

    def test_profile_failure_reports_orphaned_credential(self, session_factory, auth_provider, admin_scope, barangays):
        directory = DirectoryService(ScopedRecords(ProfileInsertFails(session_factory)), auth_provider)
        with pytest.raises(PartialCreateFailure) as exc_info:
            directory.create_account(
                admin_scope, "bhw@example.org", "Secret123!", "Nur", UserRole.BARANGAY, barangays["north"]
            )
        orphan = exc_info.value.orphaned_account_id
        assert exc_info.value.to_dict()["orphaned_account_id"] == orphan

        db = session_factory()
        try:
            assert db.query(Credential).filter(Credential.id == orphan).count() == 1
        finally:
            db.close()

    def test_barangay_user_cannot_create_accounts(self, directory, north_scope):
        with pytest.raises(AuthorizationDenied):
            directory.create_account(north_scope, "x@example.org", "pw", "X", UserRole.ADMIN)


class TestListAccounts:
    def test_accounts_carry_their_barangay(self, directory, admin_scope, barangays):
        directory.create_account(admin_scope, "chief@example.org", "pw", "Chief", UserRole.ADMIN)
        directory.create_account(
            admin_scope, "bhw@example.org", "pw", "Nur", UserRole.BARANGAY, barangays["north"]
        )
        accounts = {a["email"]: a for a in directory.list_accounts(admin_scope)}
        assert accounts["chief@example.org"]["barangay"] is None
        assert accounts["bhw@example.org"]["barangay"]["name"] == "Rosary Heights"

    def test_denied_to_barangay_users(self, directory, north_scope):
        with pytest.raises(AuthorizationDenied):
            directory.list_accounts(north_scope)


class TestSqlAuthProvider:
    def test_wrong_password(self, auth_provider):
        auth_provider.create_credential("a@example.org", "right")
        with pytest.raises(AuthenticationFailure):
            auth_provider.authenticate("a@example.org", "wrong")

    def test_unknown_email(self, auth_provider):
        with pytest.raises(AuthenticationFailure):
            auth_provider.authenticate("nobody@example.org", "pw")

    def test_email_is_case_insensitive(self, auth_provider):
        account_id = auth_provider.create_credential("A@Example.org", "pw")
        assert auth_provider.authenticate(" a@example.ORG ", "pw") == account_id
