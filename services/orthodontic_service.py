from datetime import date

from sqlalchemy import cast, func, Integer
from sqlalchemy.orm import Session

from core.database import session_scope, get_db_context
from core.exceptions import NotFoundError, ValidationError
from core.helpers import apply_fields, require_name
from core.logging_setup import get_logger
from core.results import service_operation
from models.orthodontic import (
    OrthodonticPatient,
    OrthodonticTreatmentRecord,
    CHARGE_FIELDS,
    STATUS_NOT_STARTED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    TREATMENT_STATUSES,
)
from models.payment import PATIENT_TYPE_ORTHO
from services import ledger
from services.payment_service import record_ortho_payment, delete_payments_for

logger = get_logger("orthodontic")

# Columns only the ledger operations may change
LEDGER_FIELDS = (
    "treatment_cycle",
    "current_contract_price",
    "current_contract_months",
    "current_balance",
)


def _get_patient(db: Session, patient_id: int) -> OrthodonticPatient:
    patient = db.get(OrthodonticPatient, patient_id)
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


def _max_appt_no(db: Session, patient_id: int, cycle: int):
    return (
        db.query(func.max(cast(OrthodonticTreatmentRecord.appt_no, Integer)))
        .filter(
            OrthodonticTreatmentRecord.patient_id == patient_id,
            OrthodonticTreatmentRecord.treatment_cycle == cycle,
        )
        .scalar()
    )


def _cycle_records(db: Session, patient_id: int, cycle: int):
    return (
        db.query(OrthodonticTreatmentRecord)
        .filter(
            OrthodonticTreatmentRecord.patient_id == patient_id,
            OrthodonticTreatmentRecord.treatment_cycle == cycle,
        )
        .order_by(cast(OrthodonticTreatmentRecord.appt_no, Integer))
        .all()
    )


def _check_contract_values(contract_price, contract_months):
    if contract_price is not None and contract_price < 0:
        raise ValidationError("Contract price must be positive")
    if contract_months is not None and contract_months < 1:
        raise ValidationError("Contract months must be at least 1")


def _complete_if_due(db: Session, patient: OrthodonticPatient) -> bool:
    max_appt = _max_appt_no(db, patient.patient_id, patient.treatment_cycle)
    if ledger.is_cycle_complete(max_appt, patient.current_contract_months):
        if patient.treatment_status != STATUS_COMPLETED:
            patient.treatment_status = STATUS_COMPLETED
            logger.info("Patient %s cycle %s completed", patient.patient_id, patient.treatment_cycle)
        return True
    return False


# ------------------------------------------
# Patients
# ------------------------------------------
def name_exists(name: str) -> bool:
    name = (name or "").strip()
    if not name:
        return False
    with get_db_context() as db:
        return (
            db.query(OrthodonticPatient)
            .filter(func.lower(OrthodonticPatient.name) == name.lower())
            .first()
            is not None
        )


@service_operation("Failed to add orthodontic patient")
def create_orthodontic_patient(data: dict, contract_price: float | None = None, contract_months: int | None = None):
    """New patient on cycle 1, Not Started, owing the full contract price."""
    data = dict(data or {})
    data["name"] = require_name(data.get("name"))
    _check_contract_values(contract_price, contract_months)

    with session_scope() as db:
        patient = apply_fields(
            OrthodonticPatient(), data,
            exclude=("patient_id", "created_at", "treatment_status") + LEDGER_FIELDS,
        )
        if patient.registration_date is None:
            patient.registration_date = date.today()
        patient.treatment_status = STATUS_NOT_STARTED
        patient.treatment_cycle = 1
        patient.current_contract_price = contract_price
        patient.current_contract_months = contract_months
        patient.current_balance = float(contract_price or 0)
        db.add(patient)
        db.flush()
        logger.info("Orthodontic patient %s created", patient.patient_id)
        return {"patient_id": patient.patient_id}


@service_operation("Failed to update orthodontic patient")
def update_orthodontic_patient(patient_id: int, data: dict):
    """Edit demographics and status. Contract and balance have their own operations."""
    data = dict(data or {})
    touched = [f for f in LEDGER_FIELDS if f in data]
    if touched:
        raise ValidationError(
            f"Use the contract and payment operations to change: {', '.join(touched)}"
        )
    if "name" in data:
        data["name"] = require_name(data["name"])
    if "treatment_status" in data and data["treatment_status"] not in TREATMENT_STATUSES:
        raise ValidationError(f"Unknown treatment status: {data['treatment_status']}")

    with session_scope() as db:
        patient = _get_patient(db, patient_id)
        apply_fields(patient, data, exclude=("patient_id", "created_at"))
    return None


@service_operation("Failed to delete orthodontic patient")
def delete_orthodontic_patient(patient_id: int):
    with session_scope() as db:
        patient = _get_patient(db, patient_id)
        removed_payments = delete_payments_for(db, patient_id, PATIENT_TYPE_ORTHO)
        db.delete(patient)
        logger.info("Orthodontic patient %s deleted (%d payments removed)", patient_id, removed_payments)
    return None


# ------------------------------------------
# Treatment records
# ------------------------------------------
@service_operation("Failed to get next appointment number")
def get_next_appointment_number(patient_id: int, treatment_cycle: int | None = None):
    with get_db_context() as db:
        patient = _get_patient(db, patient_id)
        cycle = treatment_cycle or patient.treatment_cycle
        max_appt = _max_appt_no(db, patient_id, cycle)
        return {"next_appt_no": (max_appt or 0) + 1, "treatment_cycle": cycle}


def _write_record(db: Session, patient: OrthodonticPatient, data: dict) -> OrthodonticTreatmentRecord:
    """Insert a record for the patient's current cycle and apply its payment."""
    data = dict(data or {})
    cycle = patient.treatment_cycle

    appt_no = data.get("appt_no")
    if appt_no in (None, ""):
        appt_no = (_max_appt_no(db, patient.patient_id, cycle) or 0) + 1
    appt_no = str(appt_no).strip()
    if not appt_no.isdigit() or int(appt_no) < 1:
        raise ValidationError("Appointment number must be a positive whole number")
    appt_no = str(int(appt_no))
    duplicate = (
        db.query(OrthodonticTreatmentRecord)
        .filter(
            OrthodonticTreatmentRecord.patient_id == patient.patient_id,
            OrthodonticTreatmentRecord.treatment_cycle == cycle,
            OrthodonticTreatmentRecord.appt_no == appt_no,
        )
        .first()
    )
    if duplicate:
        raise ValidationError(f"Appointment #{appt_no} already exists in treatment cycle {cycle}")

    amount_paid = data.get("amount_paid")
    if amount_paid is not None and amount_paid < 0:
        raise ValidationError("Amount paid must be positive")

    record = apply_fields(
        OrthodonticTreatmentRecord(), data,
        exclude=("record_id", "patient_id", "treatment_cycle", "appt_no",
                 "additional_charges_total", "created_at"),
    )
    record.patient_id = patient.patient_id
    record.treatment_cycle = cycle
    record.appt_no = appt_no
    if record.date is None:
        record.date = date.today()
    if record.contract_price is None:
        record.contract_price = patient.current_contract_price
    if record.contract_months is None:
        record.contract_months = patient.current_contract_months
    for field in CHARGE_FIELDS:
        if getattr(record, field) is None:
            setattr(record, field, 0)
    record.additional_charges_total = ledger.additional_charges_total(
        {field: getattr(record, field) for field in CHARGE_FIELDS}
    )
    db.add(record)
    db.flush()

    if amount_paid:
        record_ortho_payment(
            db, patient, amount_paid,
            payment_method=record.mode_of_payment,
            treatment_record_id=record.record_id,
            payment_date=record.date,
            notes=f"Appointment #{appt_no} (cycle {cycle})",
        )

    if patient.treatment_status == STATUS_NOT_STARTED:
        patient.treatment_status = STATUS_IN_PROGRESS
    _complete_if_due(db, patient)
    return record


@service_operation("Failed to add treatment record")
def add_orthodontic_treatment_record(patient_id: int, data: dict):
    with session_scope() as db:
        patient = _get_patient(db, patient_id)
        record = _write_record(db, patient, data)
        return {
            "record_id": record.record_id,
            "appt_no": record.appt_no,
            "treatment_cycle": record.treatment_cycle,
            "additional_charges_total": record.additional_charges_total,
            "current_balance": patient.current_balance,
        }


@service_operation("Failed to update treatment record")
def update_orthodontic_treatment_record(record_id: int, data: dict):
    """Edit a record's clinical details and charge counters.

    Payments are recorded through add_payment, so amount_paid is not
    editable here.
    """
    data = dict(data or {})
    if "amount_paid" in data:
        raise ValidationError("Record a payment instead of editing the amount paid")

    with session_scope() as db:
        record = db.get(OrthodonticTreatmentRecord, record_id)
        if not record:
            raise NotFoundError("Treatment record not found")
        apply_fields(
            record, data,
            exclude=("record_id", "patient_id", "treatment_cycle", "appt_no",
                     "additional_charges_total", "created_at"),
        )
        record.additional_charges_total = ledger.additional_charges_total(
            {field: getattr(record, field) for field in CHARGE_FIELDS}
        )
        return {"additional_charges_total": record.additional_charges_total}


# ------------------------------------------
# Contract changes mid-cycle
# ------------------------------------------
@service_operation("Failed to update contract")
def update_contract_details(patient_id: int, contract_price: float | None = None, contract_months: int | None = None):
    ledger.validate_contract_update(contract_price, contract_months)

    with session_scope() as db:
        patient = _get_patient(db, patient_id)

        patient.current_balance = ledger.balance_after_contract_update(
            patient.current_contract_price, patient.current_balance, contract_price
        )
        if contract_price is not None:
            patient.current_contract_price = contract_price
        if contract_months is not None:
            patient.current_contract_months = contract_months

        # The first appointment of the cycle carries the contract terms
        first_record = (
            db.query(OrthodonticTreatmentRecord)
            .filter(
                OrthodonticTreatmentRecord.patient_id == patient_id,
                OrthodonticTreatmentRecord.treatment_cycle == patient.treatment_cycle,
                OrthodonticTreatmentRecord.appt_no == "1",
            )
            .first()
        )
        if first_record:
            if contract_price is not None:
                first_record.contract_price = contract_price
            if contract_months is not None:
                first_record.contract_months = contract_months

        if contract_months is not None:
            _complete_if_due(db, patient)

        logger.info(
            "Contract for patient %s updated: price=%s months=%s balance=%.2f",
            patient_id, patient.current_contract_price, patient.current_contract_months,
            patient.current_balance,
        )
        return {
            "current_balance": patient.current_balance,
            "treatment_status": patient.treatment_status,
        }


# ------------------------------------------
# New treatment cycle
# ------------------------------------------
@service_operation("Error starting new treatment cycle")
def start_new_treatment_cycle(patient_id: int, contract_price: float | None = None, contract_months: int | None = None, first_appointment: dict | None = None):
    """Open the next cycle for a patient whose current cycle is Completed.

    The balance is reset to the new contract price; anything still owed on
    the previous cycle is not carried over. Omitted contract values reuse
    the previous cycle's. When first_appointment is given it becomes
    appointment #1 of the new cycle (with its payment, if any).
    """
    _check_contract_values(contract_price, contract_months)

    with session_scope() as db:
        patient = _get_patient(db, patient_id)
        if patient.treatment_status != STATUS_COMPLETED:
            raise ValidationError("The current treatment cycle must be completed before starting a new one")

        if patient.current_balance:
            logger.warning(
                "Patient %s starts cycle %s with %.2f unpaid from cycle %s; not carried over",
                patient_id, patient.treatment_cycle + 1, patient.current_balance, patient.treatment_cycle,
            )

        patient.treatment_cycle += 1
        if contract_price is not None:
            patient.current_contract_price = contract_price
        if contract_months is not None:
            patient.current_contract_months = contract_months
        patient.current_balance = float(patient.current_contract_price or 0)
        patient.treatment_status = STATUS_IN_PROGRESS
        db.flush()

        record_id = None
        if first_appointment is not None:
            appointment = dict(first_appointment)
            appointment["appt_no"] = "1"
            record_id = _write_record(db, patient, appointment).record_id

        logger.info("Patient %s started treatment cycle %s", patient_id, patient.treatment_cycle)
        return {
            "new_cycle": patient.treatment_cycle,
            "record_id": record_id,
            "current_balance": patient.current_balance,
        }


# ------------------------------------------
# Cycle summary (display figure, not the ledger balance)
# ------------------------------------------
@service_operation("Failed to load cycle summary")
def get_cycle_summary(patient_id: int, treatment_cycle: int | None = None):
    with get_db_context() as db:
        patient = _get_patient(db, patient_id)
        cycle = treatment_cycle or patient.treatment_cycle
        records = _cycle_records(db, patient_id, cycle)

        if cycle == patient.treatment_cycle:
            contract_price = patient.current_contract_price
        else:
            first = next((r for r in records if r.appt_no == "1"), None)
            contract_price = first.contract_price if first else None

        summary = ledger.cycle_balance(contract_price, records)
        return {
            "treatment_cycle": cycle,
            "summary": summary,
            "ledger_balance": patient.current_balance,
            "records": [r.to_dict() for r in records],
        }
