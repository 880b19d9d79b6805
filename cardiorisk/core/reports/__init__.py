"""
Report Generation Module

Printable PDF report for a completed cardiovascular risk analysis.
"""
from .medical_report import MedicalReportGenerator, MedicalReport, RiskIndicator

__all__ = [
    "MedicalReportGenerator",
    "MedicalReport",
    "RiskIndicator",
]
