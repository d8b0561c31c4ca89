"""Tests for the intake record: derived fields, VIA exclusivity and gating."""
from datetime import date

import pytest

from casdt.core.errors import ValidationFailure
from casdt.services.patient_record import (
    CONDITIONAL_FIELDS,
    PatientDraft,
    compute_bmi,
    derive_age,
    load_record,
    validate_record,
)
from conftest import intake


class TestDeriveAge:
    def test_day_before_birthday(self):
        assert derive_age(date(1990, 6, 15), as_of=date(2020, 6, 14)) == 29

    def test_on_birthday(self):
        assert derive_age(date(1990, 6, 15), as_of=date(2020, 6, 15)) == 30

    def test_leap_day_birth(self):
        assert derive_age(date(2000, 2, 29), as_of=date(2021, 2, 28)) == 20
        assert derive_age(date(2000, 2, 29), as_of=date(2021, 3, 1)) == 21


class TestComputeBmi:
    def test_typical_values(self):
        # 60 / 1.6^2 = 23.4375
        assert compute_bmi(160, 60) == 23.4
        assert compute_bmi(160, 64) == 25.0

    def test_rounds_half_up(self):
        # 89 / 2.0^2 = 22.25 exactly
        assert compute_bmi(200, 89) == 22.3

    def test_zero_unless_both_positive(self):
        assert compute_bmi(0, 60) == 0
        assert compute_bmi(160, 0) == 0
        assert compute_bmi(-160, 60) == 0


class TestPatientDraft:
    def test_via_last_write_wins(self):
        draft = PatientDraft()
        draft.set("via_findings_positive", True)
        draft.set("via_findings_negative", True)
        assert draft.get("via_findings_positive") is False
        assert draft.get("via_findings_negative") is True

        draft.set("via_findings_positive", True)
        assert draft.get("via_findings_positive") is True
        assert draft.get("via_findings_negative") is False

    @pytest.mark.parametrize("marked", [1, "true", "yes", "1", "on"])
    def test_via_exclusion_with_form_values(self, marked):
        record = validate_record(intake(via_findings_negative=True, via_findings_positive=marked))
        assert record.via_findings_positive is True
        assert record.via_findings_negative is False

        record = validate_record(intake(via_findings_negative=marked, via_findings_positive=marked))
        assert not (record.via_findings_positive and record.via_findings_negative)

    def test_invalid_via_value_still_reported(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_record(intake(via_findings_positive="maybe"))
        assert [e["field"] for e in exc_info.value.errors] == ["via_findings_positive"]

    def test_clearing_one_via_flag_leaves_the_other(self):
        draft = PatientDraft({"via_findings_positive": True})
        draft.set("via_findings_negative", False)
        assert draft.get("via_findings_positive") is True

    def test_bmi_follows_height_and_weight(self):
        draft = PatientDraft({"height": 160})
        assert draft.get("bmi") == 0
        draft.set("weight", 60)
        assert draft.get("bmi") == 23.4
        draft.set("height", 0)
        assert draft.get("bmi") == 0

    def test_client_bmi_is_ignored(self):
        record = validate_record(intake(height=160, weight=60, bmi=99.9))
        assert record.bmi == 23.4

    def test_system_fields_are_ignored(self):
        record = validate_record(intake(id="forged", created_by="someone-else"))
        assert record.id is None
        assert record.created_by is None


class TestValidateRecord:
    def test_minimal_form_is_valid(self):
        record = validate_record(intake())
        assert record.client_name == "Maria Santos"
        assert record.number_of_children == 0
        assert record.bmi == 0

    def test_missing_required_fields(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_record({})
        fields = {e["field"]: e["message"] for e in exc_info.value.errors}
        assert fields == {
            "client_name": "is required",
            "client_address": "is required",
            "date_of_birth": "is required",
        }

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_record(intake(client_name="   "))
        assert [e["field"] for e in exc_info.value.errors] == ["client_name"]

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_record(intake(number_of_children=-1))
        assert exc_info.value.errors[0]["field"] == "number_of_children"

    def test_unknown_field_reported(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_record(intake(favourite_colour="blue"))
        assert exc_info.value.errors == [{"field": "favourite_colour", "message": "unknown field"}]

    def test_all_errors_reported_together(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_record({"client_address": "Somewhere", "gravida": -2, "nickname": "x"})
        fields = {e["field"] for e in exc_info.value.errors}
        assert fields == {"nickname", "client_name", "date_of_birth", "gravida"}

    def test_date_strings_are_parsed(self):
        record = validate_record(intake(date_of_birth="1985-04-20"))
        assert record.date_of_birth == date(1985, 4, 20)


class TestConditionalFields:
    def test_details_dropped_when_flag_false(self):
        record = validate_record(intake(smoking=False, smoking_year_started=2001, cigarettes_per_day=10))
        assert record.cigarettes_per_day is None
        assert record.details_for("smoking") == {}

    def test_details_kept_when_flag_true(self):
        record = validate_record(intake(smoking=True, smoking_year_started=2001, cigarettes_per_day=10))
        assert record.details_for("smoking") == {"smoking_year_started": 2001, "cigarettes_per_day": 10}

    def test_previous_screening_results_are_gated(self):
        record = validate_record(intake(previous_cervical_screening=False, via_result="Negative"))
        assert record.via_result is None

    def test_gated_details_written_empty(self):
        row = validate_record(
            intake(referral_needed=False, referral_details="RHU", contraceptives_use=False,
                   contraceptives_duration_years=3)
        ).to_row()
        assert row["referral_details"] == ""
        assert row["contraceptives_duration_years"] == 0

    def test_every_flag_gates_its_details(self):
        form = intake()
        for details in CONDITIONAL_FIELDS.values():
            for name in details:
                form[name] = 1 if name in ("contraceptives_duration_years", "contraceptives_duration_months",
                                           "smoking_year_started", "cigarettes_per_day") else "x"
        record = validate_record(form)
        for flag in CONDITIONAL_FIELDS:
            assert record.details_for(flag) == {}

    def test_unknown_flag(self):
        with pytest.raises(KeyError):
            validate_record(intake()).details_for("breast_mass")


class TestLoadRecord:
    def test_nulls_from_hosted_rows_take_defaults(self):
        row = dict(intake(), civil_status=None, gravida=None, created_at="2026-10-01T08:00:00")
        record = load_record(row)
        assert record.civil_status == ""
        assert record.gravida == 0
        assert record.created_at.month == 10

    def test_stored_empty_details_read_back_as_absent(self):
        row = validate_record(intake(allergies=False)).to_row()
        assert load_record(row).allergies_details is None
