from collections import Counter

from core.database import get_db_context
from core.exceptions import NotFoundError, ValidationError
from core.results import service_operation
from models.orthodontic import OrthodonticPatient, OrthodonticTreatmentRecord
from models.payment import PaymentHistory, PATIENT_TYPE_ORTHO, PATIENT_TYPE_REGULAR, PATIENT_TYPES
from models.regular import RegularPatient, MedicalHistory, RegularTreatmentRecord
from services import ledger

SORT_FIELDS = ("name", "registration_date", "age", "type")


def _summary_row(patient, patient_type: str) -> dict:
    registration = patient.registration_date
    return {
        "patient_id": patient.patient_id,
        "name": patient.name,
        "type": patient_type,
        "sex": patient.sex,
        "age": patient.age,
        "registration_date": registration.isoformat() if registration else None,
    }


def _all_summaries(db) -> list:
    rows = [_summary_row(p, PATIENT_TYPE_REGULAR) for p in db.query(RegularPatient).all()]
    rows += [_summary_row(p, PATIENT_TYPE_ORTHO) for p in db.query(OrthodonticPatient).all()]
    return rows


# ------------------------------------------
# Full profile for one patient
# ------------------------------------------
@service_operation("Failed to load patient")
def get_patient_details(patient_id: int, patient_type: str):
    if patient_type not in PATIENT_TYPES:
        raise ValidationError(f"Unknown patient type: {patient_type}")

    with get_db_context() as db:
        payments = (
            db.query(PaymentHistory)
            .filter(PaymentHistory.patient_id == patient_id, PaymentHistory.patient_type == patient_type)
            .order_by(PaymentHistory.payment_date.desc(), PaymentHistory.payment_id.desc())
            .all()
        )

        if patient_type == PATIENT_TYPE_REGULAR:
            patient = db.get(RegularPatient, patient_id)
            if not patient:
                raise NotFoundError("Patient not found")
            histories = (
                db.query(MedicalHistory)
                .filter(MedicalHistory.patient_id == patient_id)
                .order_by(MedicalHistory.history_id.desc())
                .all()
            )
            records = (
                db.query(RegularTreatmentRecord)
                .filter(RegularTreatmentRecord.patient_id == patient_id)
                .order_by(RegularTreatmentRecord.treatment_date.desc(), RegularTreatmentRecord.record_id.desc())
                .all()
            )
            return {"patient": {
                "info": patient.to_dict(),
                "medical_history": [h.to_dict() for h in histories],
                "treatment_records": [r.to_dict() for r in records],
                "payment_history": [p.to_dict() for p in payments],
            }}

        patient = db.get(OrthodonticPatient, patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        records = (
            db.query(OrthodonticTreatmentRecord)
            .filter(OrthodonticTreatmentRecord.patient_id == patient_id)
            .order_by(OrthodonticTreatmentRecord.treatment_cycle.desc(), OrthodonticTreatmentRecord.record_id)
            .all()
        )
        current = [r for r in records if r.treatment_cycle == patient.treatment_cycle]
        return {"patient": {
            "info": patient.to_dict(),
            "treatment_records": [r.to_dict() for r in records],
            "payment_history": [p.to_dict() for p in payments],
            "cycle_summary": ledger.cycle_balance(patient.current_contract_price, current),
        }}


# ------------------------------------------
# Patient list with search, filters and sorting
# ------------------------------------------
@service_operation("Failed to load patients")
def get_filtered_patients(search_name: str = "", type_filter: str = "all", sex_filter: str = "all", sort_by: str = "registration_date", sort_direction: str = "desc"):
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"Cannot sort by {sort_by}")

    with get_db_context() as db:
        rows = _all_summaries(db)

    query = (search_name or "").strip().lower()
    if query:
        rows = [r for r in rows if query in (r["name"] or "").lower()]
    if type_filter and type_filter != "all":
        rows = [r for r in rows if r["type"] == type_filter]
    if sex_filter and sex_filter != "all":
        rows = [r for r in rows if (r["sex"] or "").lower() == sex_filter.lower()]

    # None values sort last regardless of direction
    present = [r for r in rows if r[sort_by] is not None]
    missing = [r for r in rows if r[sort_by] is None]
    key = (lambda r: r[sort_by].lower()) if sort_by in ("name", "type") else (lambda r: r[sort_by])
    present.sort(key=key, reverse=(sort_direction == "desc"))
    return {"patients": present + missing}


@service_operation("Failed to load recent patients")
def get_recent_patients(limit: int = 5):
    with get_db_context() as db:
        rows = _all_summaries(db)
    rows = [r for r in rows if r["registration_date"]]
    rows.sort(key=lambda r: (r["registration_date"], r["patient_id"]), reverse=True)
    return {"patients": rows[:limit]}


@service_operation("Failed to count patients")
def get_patient_counts():
    with get_db_context() as db:
        regular = db.query(RegularPatient).count()
        orthodontic = db.query(OrthodonticPatient).count()
    return {"regular": regular, "orthodontic": orthodontic, "total": regular + orthodontic}


@service_operation("Failed to load monthly counts")
def get_monthly_patient_counts():
    """Registrations per (year, month) across both patient types, oldest first."""
    with get_db_context() as db:
        dates = [d for (d,) in db.query(RegularPatient.registration_date).all()]
        dates += [d for (d,) in db.query(OrthodonticPatient.registration_date).all()]

    counts = Counter((d.year, d.month) for d in dates if d is not None)
    data = [
        {"year": year, "month": month, "count": count}
        for (year, month), count in sorted(counts.items())
    ]
    return {"data": data}
