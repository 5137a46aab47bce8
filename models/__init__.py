from .regular import RegularPatient, MedicalHistory, RegularTreatmentRecord
from .orthodontic import OrthodonticPatient, OrthodonticTreatmentRecord
from .payment import PaymentHistory

__all__ = [
    "RegularPatient",
    "MedicalHistory",
    "RegularTreatmentRecord",
    "OrthodonticPatient",
    "OrthodonticTreatmentRecord",
    "PaymentHistory",
]
