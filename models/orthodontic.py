# models/orthodontic.py

from datetime import date, datetime

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from core.database import Base
from models.mixins import DictMixin

STATUS_NOT_STARTED = "Not Started"
STATUS_IN_PROGRESS = "In Progress"
STATUS_COMPLETED = "Completed"
TREATMENT_STATUSES = (STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_COMPLETED)

# Per-visit additional charge counters on a treatment record
CHARGE_FIELDS = (
    "recement",
    "replacement",
    "rebracket",
    "xray",
    "dental_kit",
    "kabayoshi",
    "lingual_button",
)


class OrthodonticPatient(DictMixin, Base):
    __tablename__ = "orthodontic_patients"

    patient_id = Column(Integer, primary_key=True, index=True)

    # Demographics
    name = Column(String, nullable=False, index=True)
    birthdate = Column(Date, nullable=True)
    parents_guardians_name = Column(String, nullable=True)
    parents_occupation = Column(String, nullable=True)
    address = Column(String, nullable=True)
    home_phone = Column(String, nullable=True)
    business_phone = Column(String, nullable=True)
    cellphone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    chart_number = Column(String, nullable=True)
    sex = Column(String, nullable=True)
    age = Column(Integer, nullable=True)

    registration_date = Column(Date, default=date.today)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Contract state for the active treatment cycle
    treatment_status = Column(String, nullable=False, default=STATUS_NOT_STARTED)
    treatment_cycle = Column(Integer, nullable=False, default=1)
    current_contract_price = Column(Float, nullable=True)
    current_contract_months = Column(Integer, nullable=True)
    current_balance = Column(Float, nullable=False, default=0.0)

    treatment_records = relationship(
        "OrthodonticTreatmentRecord", back_populates="patient", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<OrthodonticPatient {self.patient_id} - {self.name} (cycle {self.treatment_cycle})>"


class OrthodonticTreatmentRecord(DictMixin, Base):
    __tablename__ = "orthodontic_treatment_records"

    record_id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("orthodontic_patients.patient_id"), nullable=False, index=True)

    # Cycle active when the record was written; appt_no is unique within it
    treatment_cycle = Column(Integer, nullable=False, default=1)
    appt_no = Column(String, nullable=False)

    date = Column(Date, nullable=False, default=date.today)
    arch_wire = Column(String, nullable=True)
    procedure = Column(Text, nullable=True)
    appliances = Column(String, nullable=True)
    contract_price = Column(Float, nullable=True)
    contract_months = Column(Integer, nullable=True)
    amount_paid = Column(Float, nullable=True)
    mode_of_payment = Column(String, nullable=True)
    next_schedule = Column(Date, nullable=True)

    recement = Column(Integer, default=0)
    replacement = Column(Integer, default=0)
    rebracket = Column(Integer, default=0)
    xray = Column(Integer, default=0)
    dental_kit = Column(Integer, default=0)
    kabayoshi = Column(Integer, default=0)
    lingual_button = Column(Integer, default=0)
    additional_charges_total = Column(Float, default=0.0)

    created_at = Column(DateTime, default=datetime.utcnow)

    patient = relationship("OrthodonticPatient", back_populates="treatment_records")

    def __repr__(self):
        return f"<OrthodonticTreatmentRecord {self.record_id} appt {self.appt_no} cycle {self.treatment_cycle}>"
