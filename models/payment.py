from datetime import date, datetime

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text

from core.database import Base
from models.mixins import DictMixin

PATIENT_TYPE_REGULAR = "Regular"
PATIENT_TYPE_ORTHO = "Ortho"
PATIENT_TYPES = (PATIENT_TYPE_REGULAR, PATIENT_TYPE_ORTHO)


class PaymentHistory(DictMixin, Base):
    __tablename__ = "payment_history"

    payment_id = Column(Integer, primary_key=True, index=True)

    # patient_id points into regular_patients or orthodontic_patients
    # depending on patient_type
    patient_id = Column(Integer, nullable=False, index=True)
    patient_type = Column(String, nullable=False)
    treatment_record_id = Column(Integer, nullable=True)

    payment_date = Column(Date, nullable=False, default=date.today)
    amount_paid = Column(Float, nullable=False)
    payment_method = Column(String, nullable=False, default="Cash")
    remaining_balance = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<PaymentHistory {self.payment_id} {self.patient_type}:{self.patient_id} {self.amount_paid}>"
