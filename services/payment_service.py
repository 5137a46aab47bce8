from datetime import date

from sqlalchemy.orm import Session

from core.database import session_scope, get_db_context
from core.exceptions import NotFoundError, ValidationError
from core.helpers import parse_date
from core.logging_setup import get_logger
from core.results import service_operation
from models.orthodontic import OrthodonticPatient
from models.payment import PaymentHistory, PATIENT_TYPE_ORTHO, PATIENT_TYPE_REGULAR, PATIENT_TYPES
from models.regular import RegularTreatmentRecord
from services.ledger import balance_after_payment

logger = get_logger("payments")


# ------------------------------------------
# Apply a payment inside an open session
# ------------------------------------------
def record_ortho_payment(db: Session, patient: OrthodonticPatient, amount_paid: float, *, payment_method: str = "Cash", treatment_record_id: int | None = None, payment_date=None, notes: str | None = None) -> PaymentHistory:
    """Reduce the patient's ledger balance and log the payment."""
    remaining = balance_after_payment(patient.current_balance, amount_paid)
    patient.current_balance = remaining

    payment = PaymentHistory(
        patient_id=patient.patient_id,
        patient_type=PATIENT_TYPE_ORTHO,
        treatment_record_id=treatment_record_id,
        payment_date=parse_date(payment_date) or date.today(),
        amount_paid=float(amount_paid),
        payment_method=payment_method or "Cash",
        remaining_balance=remaining,
        notes=notes,
    )
    db.add(payment)
    db.flush()
    return payment


def record_regular_payment(db: Session, record: RegularTreatmentRecord, amount_paid: float, *, payment_method: str = "Cash", payment_date=None, notes: str | None = None) -> PaymentHistory:
    """Reduce a treatment record's balance and log the payment."""
    remaining = balance_after_payment(record.balance, amount_paid)
    record.balance = remaining

    payment = PaymentHistory(
        patient_id=record.patient_id,
        patient_type=PATIENT_TYPE_REGULAR,
        treatment_record_id=record.record_id,
        payment_date=parse_date(payment_date) or date.today(),
        amount_paid=float(amount_paid),
        payment_method=payment_method or "Cash",
        remaining_balance=remaining,
        notes=notes,
    )
    db.add(payment)
    db.flush()
    return payment


# ------------------------------------------
# Record a payment
# ------------------------------------------
@service_operation("Payment failed")
def add_payment(patient_id: int, patient_type: str, amount_paid: float, *, payment_method: str = "Cash", treatment_record_id: int | None = None, payment_date=None, notes: str | None = None):
    if patient_type not in PATIENT_TYPES:
        raise ValidationError(f"Unknown patient type: {patient_type}")
    if amount_paid is None or amount_paid <= 0:
        raise ValidationError("Amount paid must be greater than zero")

    with session_scope() as db:
        if patient_type == PATIENT_TYPE_ORTHO:
            patient = db.get(OrthodonticPatient, patient_id)
            if not patient:
                raise NotFoundError("Patient not found")
            payment = record_ortho_payment(
                db, patient, amount_paid,
                payment_method=payment_method,
                treatment_record_id=treatment_record_id,
                payment_date=payment_date,
                notes=notes,
            )
        else:
            if treatment_record_id is None:
                raise ValidationError("Regular patient payments must reference a treatment record")
            record = db.get(RegularTreatmentRecord, treatment_record_id)
            if not record or record.patient_id != patient_id:
                raise NotFoundError("Treatment record not found")
            payment = record_regular_payment(
                db, record, amount_paid,
                payment_method=payment_method,
                payment_date=payment_date,
                notes=notes,
            )

        logger.info(
            "Payment of %.2f recorded for %s patient %s (remaining %.2f)",
            payment.amount_paid, patient_type, patient_id, payment.remaining_balance,
        )
        return {"payment_id": payment.payment_id, "remaining_balance": payment.remaining_balance}


# ------------------------------------------
# Payment history for one patient
# ------------------------------------------
@service_operation("Failed to load payment history")
def get_payment_history(patient_id: int, patient_type: str | None = None):
    with get_db_context() as db:
        query = db.query(PaymentHistory).filter(PaymentHistory.patient_id == patient_id)
        if patient_type:
            query = query.filter(PaymentHistory.patient_type == patient_type)
        payments = query.order_by(PaymentHistory.payment_date.desc(), PaymentHistory.payment_id.desc()).all()
        return {"payments": [p.to_dict() for p in payments]}


def delete_payments_for(db: Session, patient_id: int, patient_type: str) -> int:
    return (
        db.query(PaymentHistory)
        .filter(PaymentHistory.patient_id == patient_id, PaymentHistory.patient_type == patient_type)
        .delete(synchronize_session=False)
    )
