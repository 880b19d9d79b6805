"""
Patient Data Store

Usage:
    from cardiorisk.core.store import InMemoryPatientRepository, seed_demo_data

    repo = InMemoryPatientRepository()
    await seed_demo_data(repo, rng=random.Random(42))
    history = await repo.get_patient_history("PAT001")
"""
from .models import AnalysisRecord, PatientHistory, PatientRecord
from .repository import (
    InMemoryPatientRepository,
    PassThroughRepository,
    PatientRepository,
)
from .demo_data import DEMO_PATIENTS, generate_biomarkers, seed_demo_data

__all__ = [
    "AnalysisRecord",
    "PatientHistory",
    "PatientRecord",
    "InMemoryPatientRepository",
    "PassThroughRepository",
    "PatientRepository",
    "DEMO_PATIENTS",
    "generate_biomarkers",
    "seed_demo_data",
]
