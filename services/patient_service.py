from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.database import session_scope, get_db_context
from core.exceptions import NotFoundError, ValidationError
from core.helpers import apply_fields, require_name
from core.logging_setup import get_logger
from core.results import service_operation
from models.payment import PATIENT_TYPE_REGULAR
from models.regular import RegularPatient, MedicalHistory, RegularTreatmentRecord
from services.payment_service import delete_payments_for

logger = get_logger("patients")


def _get_patient(db: Session, patient_id: int) -> RegularPatient:
    patient = db.get(RegularPatient, patient_id)
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


# ------------------------------------------
# Check for an existing patient with this name
# ------------------------------------------
def name_exists(name: str) -> bool:
    name = (name or "").strip()
    if not name:
        return False
    with get_db_context() as db:
        return (
            db.query(RegularPatient)
            .filter(func.lower(RegularPatient.name) == name.lower())
            .first()
            is not None
        )


# ------------------------------------------
# Create a new regular patient
# ------------------------------------------
@service_operation("Failed to add patient")
def create_regular_patient(data: dict):
    data = dict(data or {})
    data["name"] = require_name(data.get("name"))

    with session_scope() as db:
        patient = apply_fields(RegularPatient(), data, exclude=("patient_id", "created_at"))
        if patient.registration_date is None:
            patient.registration_date = date.today()
        db.add(patient)
        db.flush()
        logger.info("Regular patient %s created", patient.patient_id)
        return {"patient_id": patient.patient_id}


# ------------------------------------------
# Update patient basic info
# ------------------------------------------
@service_operation("Failed to update patient")
def update_regular_patient(patient_id: int, data: dict):
    data = dict(data or {})
    if "name" in data:
        data["name"] = require_name(data["name"])

    with session_scope() as db:
        patient = _get_patient(db, patient_id)
        apply_fields(patient, data, exclude=("patient_id", "created_at"))
    return None


# ------------------------------------------
# Delete a patient and everything attached to them
# ------------------------------------------
@service_operation("Failed to delete patient")
def delete_regular_patient(patient_id: int):
    with session_scope() as db:
        patient = _get_patient(db, patient_id)
        removed_payments = delete_payments_for(db, patient_id, PATIENT_TYPE_REGULAR)
        # histories and treatment records go with the patient (ORM cascade)
        db.delete(patient)
        logger.info("Regular patient %s deleted (%d payments removed)", patient_id, removed_payments)
    return None


# ------------------------------------------
# Medical history (append-only list per patient)
# ------------------------------------------
@service_operation("Failed to add medical history")
def add_medical_history(patient_id: int, data: dict):
    with session_scope() as db:
        _get_patient(db, patient_id)
        history = apply_fields(MedicalHistory(), data, exclude=("history_id", "patient_id", "created_at"))
        history.patient_id = patient_id
        db.add(history)
        db.flush()
        return {"history_id": history.history_id}


@service_operation("Failed to update medical history")
def update_medical_history(history_id: int, data: dict):
    with session_scope() as db:
        history = db.get(MedicalHistory, history_id)
        if not history:
            raise NotFoundError("Medical history not found")
        apply_fields(history, data, exclude=("history_id", "patient_id", "created_at"))
    return None


# ------------------------------------------
# Treatment records
# ------------------------------------------
@service_operation("Failed to add treatment record")
def add_treatment_record(patient_id: int, data: dict):
    data = dict(data or {})
    for field in ("amount_charged", "amount_paid", "balance"):
        if data.get(field) is not None and data[field] < 0:
            raise ValidationError(f"{field.replace('_', ' ').capitalize()} cannot be negative")

    with session_scope() as db:
        _get_patient(db, patient_id)
        record = apply_fields(RegularTreatmentRecord(), data, exclude=("record_id", "patient_id"))
        record.patient_id = patient_id
        if record.treatment_date is None:
            record.treatment_date = date.today()
        if record.balance is None:
            charged = float(record.amount_charged or 0)
            paid = float(record.amount_paid or 0)
            record.balance = max(0.0, charged - paid)
        db.add(record)
        db.flush()
        return {"record_id": record.record_id, "balance": record.balance}


@service_operation("Failed to update treatment record")
def update_treatment_record(record_id: int, data: dict):
    with session_scope() as db:
        record = db.get(RegularTreatmentRecord, record_id)
        if not record:
            raise NotFoundError("Treatment record not found")
        apply_fields(record, data, exclude=("record_id", "patient_id"))
    return None


@service_operation("Failed to update balance")
def update_treatment_record_balance(record_id: int, new_balance: float):
    if new_balance is None or new_balance < 0:
        raise ValidationError("Remaining balance cannot be negative")
    with session_scope() as db:
        record = db.get(RegularTreatmentRecord, record_id)
        if not record:
            raise NotFoundError("Treatment record not found")
        record.balance = float(new_balance)
    return None
