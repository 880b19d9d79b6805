"""
API schemas.
"""
from .schemas import (
    AnalysisRequest,
    BiomarkerInput,
    HealthResponse,
    PatientInput,
    ReportRequest,
    ReportResponse,
    RiskScoreResponse,
    SignInRequest,
    SignUpRequest,
)

__all__ = [
    "AnalysisRequest",
    "BiomarkerInput",
    "HealthResponse",
    "PatientInput",
    "ReportRequest",
    "ReportResponse",
    "RiskScoreResponse",
    "SignInRequest",
    "SignUpRequest",
]
