"""
Store Records

Patient, analysis and history containers held by the repositories.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from cardiorisk.core.scoring import RiskAssessment

# camelCase registration form keys → PatientRecord attributes
_PATIENT_ALIASES = {
    "firstName": "first_name",
    "lastName": "last_name",
    "contactNo": "contact_no",
    "existingConditions": "existing_conditions",
    "userId": "user_id",
}

PATIENT_INPUT_FIELDS = (
    "first_name",
    "last_name",
    "age",
    "gender",
    "contact_no",
    "email",
    "state",
    "district",
    "city",
    "pincode",
    "existing_conditions",
)


def normalise_patient_input(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map registration form keys to PatientRecord field names, dropping unknown keys."""
    result: Dict[str, Any] = {}
    for key, value in data.items():
        name = _PATIENT_ALIASES.get(key, key)
        if name in PATIENT_INPUT_FIELDS:
            result[name] = value
    return result


@dataclass
class PatientRecord:
    """A registered patient."""
    id: str
    mrn: str
    first_name: str
    last_name: str
    registration_date: datetime
    created_at: datetime
    age: str = ""
    gender: str = ""
    contact_no: str = ""
    email: str = ""
    state: str = ""
    district: str = ""
    city: str = ""
    pincode: str = ""
    existing_conditions: List[str] = field(default_factory=list)
    user_id: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "mrn": self.mrn,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "age": self.age,
            "gender": self.gender,
            "contact_no": self.contact_no,
            "email": self.email,
            "state": self.state,
            "district": self.district,
            "city": self.city,
            "pincode": self.pincode,
            "existing_conditions": list(self.existing_conditions),
            "user_id": self.user_id,
            "registration_date": self.registration_date.isoformat(),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class AnalysisRecord:
    """One scored biomarker submission for a patient."""
    id: str
    patient_id: str
    biomarkers: Dict[str, Any]
    assessment: RiskAssessment
    analysis_date: datetime
    created_at: datetime
    user_id: str = ""
    ecg_findings: List[str] = field(default_factory=list)
    follow_up: List[str] = field(default_factory=list)
    clinical_notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "user_id": self.user_id,
            "biomarkers": dict(self.biomarkers),
            **self.assessment.to_dict(),
            "analysis_date": self.analysis_date.isoformat(),
            "created_at": self.created_at.isoformat(),
            "ecg_findings": list(self.ecg_findings),
            "follow_up": list(self.follow_up),
            "clinical_notes": self.clinical_notes,
        }


@dataclass
class PatientHistory:
    """A patient with their analyses, newest first."""
    patient: PatientRecord
    analyses: List[AnalysisRecord] = field(default_factory=list)

    @property
    def total_analyses(self) -> int:
        return len(self.analyses)

    @property
    def last_analysis(self) -> Optional[datetime]:
        return self.analyses[0].analysis_date if self.analyses else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient": self.patient.to_dict(),
            "analyses": [a.to_dict() for a in self.analyses],
            "total_analyses": self.total_analyses,
            "last_analysis": self.last_analysis.isoformat() if self.last_analysis else None,
        }
