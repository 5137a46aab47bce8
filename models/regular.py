# models/regular.py

from datetime import date, datetime

from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from core.database import Base
from models.mixins import DictMixin


class RegularPatient(DictMixin, Base):
    __tablename__ = "regular_patients"

    patient_id = Column(Integer, primary_key=True, index=True)

    # Demographics
    name = Column(String, nullable=False, index=True)
    birthday = Column(Date, nullable=True)
    religion = Column(String, nullable=True)
    home_address = Column(String, nullable=True)
    sex = Column(String, nullable=True)
    age = Column(Integer, nullable=True)
    nationality = Column(String, nullable=True)
    cellphone_number = Column(String, nullable=True)

    registration_date = Column(Date, default=date.today)
    created_at = Column(DateTime, default=datetime.utcnow)

    medical_histories = relationship(
        "MedicalHistory", back_populates="patient", cascade="all, delete-orphan"
    )
    treatment_records = relationship(
        "RegularTreatmentRecord", back_populates="patient", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<RegularPatient {self.patient_id} - {self.name}>"


class MedicalHistory(DictMixin, Base):
    __tablename__ = "medical_history"

    history_id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("regular_patients.patient_id"), nullable=False, index=True)

    general_health = Column(String, nullable=True)
    under_medical_treatment = Column(Boolean, default=False)
    medical_condition = Column(Text, nullable=True)
    serious_illness_or_surgery = Column(Boolean, default=False)
    illness_or_surgery_details = Column(Text, nullable=True)
    hospitalized = Column(Boolean, default=False)
    hospitalization_details = Column(Text, nullable=True)
    taking_medications = Column(Boolean, default=False)
    medications_list = Column(Text, nullable=True)
    uses_tobacco = Column(Boolean, default=False)
    list_of_allergies = Column(Text, nullable=True)
    bleeding_time = Column(String, nullable=True)
    is_pregnant = Column(Boolean, default=False)
    is_nursing = Column(Boolean, default=False)
    taking_birth_control = Column(Boolean, default=False)
    blood_type = Column(String, nullable=True)
    blood_pressure = Column(String, nullable=True)

    # Comma separated list of ticked conditions
    selected_conditions = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    patient = relationship("RegularPatient", back_populates="medical_histories")


class RegularTreatmentRecord(DictMixin, Base):
    __tablename__ = "regular_treatment_records"

    record_id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("regular_patients.patient_id"), nullable=False, index=True)

    treatment_date = Column(Date, nullable=False, default=date.today)
    tooth_number = Column(String, nullable=True)
    procedure = Column(String, nullable=True)
    dentist_name = Column(String, nullable=True)
    amount_charged = Column(Float, nullable=True)
    amount_paid = Column(Float, nullable=True)
    balance = Column(Float, nullable=True)
    mode_of_payment = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    patient = relationship("RegularPatient", back_populates="treatment_records")

    def __repr__(self):
        return f"<RegularTreatmentRecord {self.record_id} for Patient {self.patient_id}>"
