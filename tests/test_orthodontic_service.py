"""
Tests for orthodontic patients: records, contract changes and treatment cycles.
"""

import pytest

from models.orthodontic import STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_NOT_STARTED
from services import orthodontic_service as ortho
from services.payment_service import add_payment, get_payment_history
from services.query_service import get_patient_details

pytestmark = pytest.mark.usefixtures("clinic_db")


def _info(patient_id):
    return get_patient_details(patient_id, "Ortho")["patient"]["info"]


def _add_visits(patient_id, count):
    for _ in range(count):
        result = ortho.add_orthodontic_treatment_record(patient_id, {"arch_wire": "NiTi 014"})
        assert result["success"], result


class TestCreatePatient:

    def test_new_patient_owes_contract_price(self, ortho_patient):
        info = _info(ortho_patient)

        assert info["treatment_cycle"] == 1
        assert info["treatment_status"] == STATUS_NOT_STARTED
        assert info["current_contract_price"] == 10000
        assert info["current_balance"] == 10000

    def test_name_required(self):
        result = ortho.create_orthodontic_patient({"name": "  "}, contract_price=5000, contract_months=6)

        assert result["success"] is False
        assert result["code"] == "VALIDATION_ERROR"

    def test_name_exists_ignores_case(self, ortho_patient):
        assert ortho.name_exists("juan dela cruz") is True
        assert ortho.name_exists("Someone Else") is False

    def test_ledger_fields_cannot_be_edited_directly(self, ortho_patient):
        result = ortho.update_orthodontic_patient(ortho_patient, {"current_balance": 0})

        assert result["code"] == "VALIDATION_ERROR"
        assert _info(ortho_patient)["current_balance"] == 10000

    def test_demographics_update(self, ortho_patient):
        result = ortho.update_orthodontic_patient(ortho_patient, {"address": "Cebu City", "birthdate": "2009-05-01"})

        assert result["success"] is True
        assert _info(ortho_patient)["address"] == "Cebu City"
        assert _info(ortho_patient)["birthdate"] == "2009-05-01"


class TestTreatmentRecords:

    def test_first_record_starts_treatment_and_applies_payment(self, ortho_patient):
        result = ortho.add_orthodontic_treatment_record(ortho_patient, {
            "date": "2024-01-10",
            "amount_paid": 4000,
            "mode_of_payment": "GCash",
        })

        assert result["success"] is True
        assert result["appt_no"] == "1"
        assert result["current_balance"] == 6000
        assert _info(ortho_patient)["treatment_status"] == STATUS_IN_PROGRESS

        payments = get_payment_history(ortho_patient, "Ortho")["payments"]
        assert len(payments) == 1
        assert payments[0]["remaining_balance"] == 6000
        assert payments[0]["payment_method"] == "GCash"
        assert payments[0]["treatment_record_id"] == result["record_id"]

    def test_appointment_numbers_increase(self, ortho_patient):
        _add_visits(ortho_patient, 2)

        result = ortho.get_next_appointment_number(ortho_patient)

        assert result["next_appt_no"] == 3
        assert result["treatment_cycle"] == 1

    def test_duplicate_appointment_number_rejected(self, ortho_patient):
        ortho.add_orthodontic_treatment_record(ortho_patient, {"appt_no": "1"})

        result = ortho.add_orthodontic_treatment_record(ortho_patient, {"appt_no": "01"})

        assert result["success"] is False
        assert result["code"] == "VALIDATION_ERROR"

    def test_non_numeric_appointment_number_rejected(self, ortho_patient):
        result = ortho.add_orthodontic_treatment_record(ortho_patient, {"appt_no": "first"})

        assert result["code"] == "VALIDATION_ERROR"

    def test_record_inherits_contract_terms(self, ortho_patient):
        ortho.add_orthodontic_treatment_record(ortho_patient, {})

        record = get_patient_details(ortho_patient, "Ortho")["patient"]["treatment_records"][0]

        assert record["contract_price"] == 10000
        assert record["contract_months"] == 12

    def test_additional_charges_do_not_touch_ledger_balance(self, ortho_patient):
        ortho.add_orthodontic_treatment_record(ortho_patient, {"amount_paid": 4000})
        result = ortho.add_orthodontic_treatment_record(ortho_patient, {"recement": 1, "xray": 1})

        assert result["additional_charges_total"] == 1500
        assert result["current_balance"] == 6000

        summary = ortho.get_cycle_summary(ortho_patient)
        assert summary["ledger_balance"] == 6000
        assert summary["summary"]["total_balance"] == 7500

    def test_editing_counters_recomputes_total(self, ortho_patient):
        record_id = ortho.add_orthodontic_treatment_record(ortho_patient, {"rebracket": 1})["record_id"]

        result = ortho.update_orthodontic_treatment_record(record_id, {"rebracket": 2, "kabayoshi": 1})

        assert result["additional_charges_total"] == 1300

    def test_amount_paid_not_editable(self, ortho_patient):
        record_id = ortho.add_orthodontic_treatment_record(ortho_patient, {})["record_id"]

        result = ortho.update_orthodontic_treatment_record(record_id, {"amount_paid": 500})

        assert result["code"] == "VALIDATION_ERROR"


class TestContractUpdate:

    def test_raised_price_credits_payments(self, ortho_patient):
        add_payment(ortho_patient, "Ortho", 4000)

        result = ortho.update_contract_details(ortho_patient, contract_price=12000)

        assert result["success"] is True
        assert result["current_balance"] == 8000

    def test_lowered_price_floors_at_zero(self, ortho_patient):
        add_payment(ortho_patient, "Ortho", 6000)

        result = ortho.update_contract_details(ortho_patient, contract_price=5000)

        assert result["current_balance"] == 0

    def test_first_appointment_carries_new_terms(self, ortho_patient):
        ortho.add_orthodontic_treatment_record(ortho_patient, {})

        ortho.update_contract_details(ortho_patient, contract_price=15000, contract_months=18)

        record = get_patient_details(ortho_patient, "Ortho")["patient"]["treatment_records"][0]
        assert record["contract_price"] == 15000
        assert record["contract_months"] == 18

    def test_requires_price_or_months(self, ortho_patient):
        result = ortho.update_contract_details(ortho_patient)

        assert result["code"] == "VALIDATION_ERROR"

    def test_shorter_contract_can_complete_cycle(self, ortho_patient):
        _add_visits(ortho_patient, 3)

        result = ortho.update_contract_details(ortho_patient, contract_months=2)

        assert result["treatment_status"] == STATUS_COMPLETED


class TestTreatmentCycles:

    @pytest.fixture
    def completed_patient(self):
        """Two month contract of 6,000 with 2,000 paid and three visits."""
        patient_id = ortho.create_orthodontic_patient(
            {"name": "Liza Cruz"}, contract_price=6000, contract_months=2
        )["patient_id"]
        ortho.add_orthodontic_treatment_record(patient_id, {"amount_paid": 2000})
        _add_visits(patient_id, 2)
        return patient_id

    def test_cycle_completes_after_contract_visits(self, completed_patient):
        assert _info(completed_patient)["treatment_status"] == STATUS_COMPLETED

    def test_cannot_start_new_cycle_before_completion(self, ortho_patient):
        result = ortho.start_new_treatment_cycle(ortho_patient, contract_price=5000, contract_months=6)

        assert result["success"] is False
        assert result["code"] == "VALIDATION_ERROR"
        assert _info(ortho_patient)["treatment_cycle"] == 1

    def test_new_cycle_resets_balance_without_carry_over(self, completed_patient):
        result = ortho.start_new_treatment_cycle(completed_patient, contract_price=5000, contract_months=6)

        assert result["success"] is True
        assert result["new_cycle"] == 2
        assert result["current_balance"] == 5000
        info = _info(completed_patient)
        assert info["treatment_status"] == STATUS_IN_PROGRESS
        assert info["current_contract_months"] == 6

    def test_new_cycle_reuses_previous_terms_when_omitted(self, completed_patient):
        result = ortho.start_new_treatment_cycle(completed_patient)

        assert result["current_balance"] == 6000
        assert _info(completed_patient)["current_contract_months"] == 2

    def test_first_appointment_of_new_cycle(self, completed_patient):
        result = ortho.start_new_treatment_cycle(
            completed_patient,
            contract_price=5000,
            contract_months=6,
            first_appointment={"date": "2024-06-01", "amount_paid": 1000},
        )

        assert result["current_balance"] == 4000
        assert result["record_id"] is not None
        next_appt = ortho.get_next_appointment_number(completed_patient)
        assert next_appt == {"success": True, "next_appt_no": 2, "treatment_cycle": 2}

    def test_previous_cycle_summary_uses_its_own_contract(self, completed_patient):
        ortho.start_new_treatment_cycle(completed_patient, contract_price=5000, contract_months=6)

        summary = ortho.get_cycle_summary(completed_patient, treatment_cycle=1)

        assert summary["treatment_cycle"] == 1
        assert summary["summary"]["contract_price"] == 6000
        assert summary["summary"]["total_paid"] == 2000
        assert len(summary["records"]) == 3


class TestDeletePatient:

    def test_delete_removes_records_and_payments(self, ortho_patient):
        ortho.add_orthodontic_treatment_record(ortho_patient, {"amount_paid": 1000})

        result = ortho.delete_orthodontic_patient(ortho_patient)

        assert result["success"] is True
        assert get_patient_details(ortho_patient, "Ortho")["code"] == "NOT_FOUND"
        assert get_payment_history(ortho_patient, "Ortho")["payments"] == []
