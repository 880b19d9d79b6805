"""
Application Services
"""
from .analysis import AnalysisService, REQUIRED_PATIENT_FIELDS, missing_patient_fields

__all__ = [
    "AnalysisService",
    "REQUIRED_PATIENT_FIELDS",
    "missing_patient_fields",
]
