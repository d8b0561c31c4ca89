"""Tests for access-scoped reads and writes against an in-memory store."""
from datetime import datetime

import pytest

import casdt.services.scoped_query as sq
from casdt.core.errors import AuthorizationDenied, RecordNotFound, ValidationFailure
from casdt.services.record_store import BARANGAYS, PATIENTS, USERS
from casdt.services.scoped_query import QueryFilter, scoped_query
from conftest import intake


@pytest.fixture()
def clock(monkeypatch):
    """Deterministic, strictly increasing registration timestamps."""
    ticks = iter(datetime(2026, 10, 1, 8, minute) for minute in range(60))
    monkeypatch.setattr(sq, "utcnow", lambda: next(ticks))


class TestScopedQuery:
    def test_barangay_user_filtered_to_own_barangay(self, north_scope, barangays):
        qf = scoped_query(PATIENTS, north_scope)
        assert qf.predicates == {"barangay_id": barangays["north"]}
        assert not qf.denied

    def test_admin_unfiltered(self, admin_scope):
        assert scoped_query(PATIENTS, admin_scope) == QueryFilter()

    def test_directory_tables_denied_to_barangay_users(self, north_scope, admin_scope):
        for table in (BARANGAYS, USERS):
            assert scoped_query(table, north_scope).denied
            assert not scoped_query(table, admin_scope).denied

    def test_unknown_table(self, admin_scope):
        with pytest.raises(ValueError):
            scoped_query("inventory", admin_scope)

    def test_filter_matches(self):
        qf = QueryFilter(predicates={"barangay_id": "b1"})
        assert qf.matches({"barangay_id": "b1", "id": "p"})
        assert not qf.matches({"barangay_id": "b2"})
        assert not QueryFilter(denied=True).matches({})


class TestCreatePatient:
    def test_barangay_user_writes_to_own_barangay(self, records, north_scope, barangays, clock):
        record = records.create_patient(north_scope, intake(barangay_id=barangays["south"]))
        assert record.barangay_id == barangays["north"]
        assert record.created_by == "bhw-north"
        assert record.id
        assert record.created_at == datetime(2026, 10, 1, 8, 0)

    def test_admin_must_choose_barangay(self, records, admin_scope):
        with pytest.raises(ValidationFailure) as exc_info:
            records.create_patient(admin_scope, intake())
        assert exc_info.value.errors[0]["field"] == "barangay_id"

    def test_admin_missing_barangay_reported_with_form_errors(self, records, admin_scope):
        with pytest.raises(ValidationFailure) as exc_info:
            records.create_patient(admin_scope, {"client_address": "x", "date_of_birth": "1990-01-01"})
        fields = [e["field"] for e in exc_info.value.errors]
        assert fields == ["barangay_id", "client_name"]

    def test_admin_unknown_barangay(self, records, admin_scope, barangays):
        with pytest.raises(ValidationFailure) as exc_info:
            records.create_patient(admin_scope, intake(barangay_id="nowhere"))
        assert exc_info.value.errors == [{"field": "barangay_id", "message": "unknown barangay"}]

    def test_admin_creates_in_chosen_barangay(self, records, admin_scope, barangays):
        record = records.create_patient(admin_scope, intake(barangay_id=barangays["south"]))
        assert record.barangay_id == barangays["south"]
        assert record.created_by == "admin-1"

    def test_invalid_form_writes_nothing(self, records, store, north_scope):
        with pytest.raises(ValidationFailure):
            records.create_patient(north_scope, intake(client_name=""))
        assert store.count(PATIENTS) == 0

    def test_derived_fields_persisted(self, records, north_scope):
        record = records.create_patient(
            north_scope, intake(height=160, weight=60, via_findings_positive=True, via_findings_negative=True)
        )
        assert record.bmi == 23.4
        assert record.via_findings_negative is True
        assert record.via_findings_positive is False


class TestReads:
    @pytest.fixture()
    def registered(self, records, north_scope, south_scope, clock):
        records.create_patient(north_scope, intake(client_name="Ana North"))
        records.create_patient(south_scope, intake(client_name="Bea South", client_address="Tamontaka"))
        records.create_patient(north_scope, intake(client_name="Cora North"))

    def test_barangay_user_sees_only_own_records(self, records, north_scope, registered):
        names = [r.client_name for r in records.list_patients(north_scope)]
        assert names == ["Cora North", "Ana North"]

    def test_admin_sees_all_newest_first(self, records, admin_scope, registered):
        names = [r.client_name for r in records.list_patients(admin_scope)]
        assert names == ["Cora North", "Bea South", "Ana North"]

    def test_search_on_name_and_address(self, records, admin_scope, registered):
        assert [r.client_name for r in records.list_patients(admin_scope, search="cora")] == ["Cora North"]
        assert [r.client_name for r in records.list_patients(admin_scope, search="TAMONTAKA")] == ["Bea South"]

    def test_limit(self, records, admin_scope, registered):
        assert len(records.list_patients(admin_scope, limit=2)) == 2

    def test_lookup_outside_scope_denied(self, records, north_scope, south_scope, registered):
        other = records.list_patients(south_scope)[0]
        with pytest.raises(AuthorizationDenied):
            records.get_patient(north_scope, other.id)

    def test_lookup_within_scope(self, records, north_scope, registered):
        own = records.list_patients(north_scope)[0]
        assert records.get_patient(north_scope, own.id).client_name == own.client_name

    def test_lookup_missing(self, records, admin_scope):
        with pytest.raises(RecordNotFound):
            records.get_patient(admin_scope, "missing-id")

    def test_barangay_info_only_for_admins(self, records, admin_scope, north_scope, barangays, registered):
        for record, barangay in records.with_barangays(admin_scope, records.list_patients(admin_scope)):
            assert barangay["id"] == record.barangay_id
        for _, barangay in records.with_barangays(north_scope, records.list_patients(north_scope)):
            assert barangay is None

    def test_directory_denied_to_barangay_users(self, records, north_scope):
        with pytest.raises(AuthorizationDenied):
            records.list_barangays(north_scope)
        with pytest.raises(AuthorizationDenied):
            records.list_accounts(north_scope)
        with pytest.raises(AuthorizationDenied):
            records.count_barangays(north_scope)

    def test_barangays_listed_by_name(self, records, admin_scope, barangays):
        assert [b["name"] for b in records.list_barangays(admin_scope)] == ["Rosary Heights", "Tamontaka"]
        assert records.count_barangays(admin_scope) == 2
