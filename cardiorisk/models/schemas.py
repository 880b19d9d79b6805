"""
API request/response models.

Request bodies accept the camelCase keys sent by the web client as well as
snake_case names.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


FormValue = Optional[Union[float, str]]


class BiomarkerInput(CamelModel):
    """Biomarker form; every field optional, values as typed."""
    bmi: FormValue = None
    systolic_bp: FormValue = None
    diastolic_bp: FormValue = None
    cholesterol: FormValue = None
    ldl: FormValue = None
    hdl: FormValue = None
    hba1c: FormValue = None
    hs_crp: FormValue = None
    smoking_status: Optional[str] = None
    diabetes: Optional[str] = None
    family_history: Optional[str] = None
    physical_activity: FormValue = None
    sleep_hours: FormValue = None
    diet_quality: Optional[str] = None
    stress_level: Optional[str] = None
    comorbidities: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={"example": {
            "bmi": "32", "systolicBp": "150", "diastolicBp": "95",
            "cholesterol": "250", "ldl": "140", "smokingStatus": "current",
            "diabetes": "type2", "familyHistory": "yes",
        }},
    )


class PatientInput(CamelModel):
    """Registration form. Required fields are checked by the service."""
    first_name: str = ""
    last_name: str = ""
    age: Union[int, str] = ""
    gender: str = ""
    contact_no: str = ""
    email: str = ""
    state: str = ""
    district: str = ""
    city: str = ""
    pincode: str = ""
    existing_conditions: List[str] = Field(default_factory=list)


class AnalysisRequest(CamelModel):
    patient_id: str
    biomarkers: BiomarkerInput = Field(default_factory=BiomarkerInput)


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(CamelModel):
    email: str
    password: str
    hospital_name: str = ""
    location: str = ""


class ReportRequest(CamelModel):
    analysis_id: str


class ReportResponse(BaseModel):
    report_id: str
    analysis_id: str
    patient_id: str
    pdf_path: str
    generated_at: str


class RiskScoreResponse(BaseModel):
    risk_score: int
    raw_score: int
    risk_level: str
    risk_color: str
    risk_label: str
    risk_factors: List[str]
    recommendations: List[str]
    ten_year_risk: float


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    uptime_seconds: float
    demo_session_active: bool = False
    store: Dict[str, Any] = Field(default_factory=dict)
