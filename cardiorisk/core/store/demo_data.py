"""
Demo Data

Three sample patients with three monthly analyses each, loaded when a demo
session starts. Biomarker jitter comes from the ``random.Random`` passed in,
so a seeded generator always produces the same data set.
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from cardiorisk.utils import get_logger
from .models import PatientRecord
from .repository import InMemoryPatientRepository

logger = get_logger(__name__)

MONTHS_OF_HISTORY = 3

DEMO_PATIENTS: List[Dict[str, Any]] = [
    {
        "id": "PAT001", "mrn": "MRN2024001",
        "first_name": "Sarah", "last_name": "Johnson", "age": "45", "gender": "Female",
        "contact_no": "+1-555-0123", "email": "sarah.johnson@email.com",
        "state": "California", "district": "Los Angeles", "city": "Los Angeles",
        "pincode": "90210", "existing_conditions": ["Hypertension", "Diabetes Type 2"],
        "registered_days_ago": 180, "profile": "medium",
    },
    {
        "id": "PAT002", "mrn": "MRN2024002",
        "first_name": "Michael", "last_name": "Chen", "age": "52", "gender": "Male",
        "contact_no": "+1-555-0124", "email": "michael.chen@email.com",
        "state": "New York", "district": "Manhattan", "city": "New York",
        "pincode": "10001", "existing_conditions": ["High Cholesterol", "Family History"],
        "registered_days_ago": 150, "profile": "high",
    },
    {
        "id": "PAT003", "mrn": "MRN2024003",
        "first_name": "Emma", "last_name": "Rodriguez", "age": "38", "gender": "Female",
        "contact_no": "+1-555-0125", "email": "emma.rodriguez@email.com",
        "state": "Texas", "district": "Harris", "city": "Houston",
        "pincode": "77001", "existing_conditions": ["None"],
        "registered_days_ago": 120, "profile": "low",
    },
]

# Baseline values per profile; jitter is added on top
_PROFILE_BASELINES: Dict[str, Dict[str, Any]] = {
    "low": {
        "bmi": 23.0, "systolic_bp": 120, "diastolic_bp": 75, "cholesterol": 180,
        "ldl": 95, "hdl": 55, "hba1c": 5.4, "heart_rate": 70,
        "smoking_status": "never", "diabetes": "no", "physical_activity": "5",
    },
    "medium": {
        "bmi": 27.5, "systolic_bp": 135, "diastolic_bp": 85, "cholesterol": 215,
        "ldl": 120, "hdl": 45, "hba1c": 6.1, "heart_rate": 78,
        "smoking_status": "former", "diabetes": "prediabetic", "physical_activity": "2",
    },
    "high": {
        "bmi": 31.5, "systolic_bp": 155, "diastolic_bp": 95, "cholesterol": 250,
        "ldl": 165, "hdl": 38, "hba1c": 7.2, "heart_rate": 88,
        "smoking_status": "current", "diabetes": "type2", "physical_activity": "0",
    },
}


def _jitter(rng: random.Random, spread: float) -> float:
    return rng.random() * spread * 2 - spread


def generate_biomarkers(profile: str, rng: random.Random) -> Dict[str, str]:
    """Biomarker form values (strings, as entered) around a profile baseline."""
    base = _PROFILE_BASELINES.get(profile, _PROFILE_BASELINES["medium"])
    return {
        "bmi": f"{base['bmi'] + _jitter(rng, 1.0):.1f}",
        "systolicBp": str(base["systolic_bp"] + round(_jitter(rng, 5))),
        "diastolicBp": str(base["diastolic_bp"] + round(_jitter(rng, 5))),
        "cholesterol": str(base["cholesterol"] + round(_jitter(rng, 10))),
        "ldl": str(base["ldl"] + round(_jitter(rng, 10))),
        "hdl": str(base["hdl"] + round(_jitter(rng, 5))),
        "hba1c": f"{base['hba1c'] + _jitter(rng, 0.3):.1f}",
        "smokingStatus": base["smoking_status"],
        "diabetes": base["diabetes"],
        "familyHistory": "yes" if rng.random() > 0.5 else "no",
        "physicalActivity": base["physical_activity"],
        "sleepHours": str(rng.choice([6, 7, 8])),
    }


def _months_ago(now: datetime, months: int) -> datetime:
    """
    Same wall time on the 15th, ``months`` calendar months before ``now``.

    Never later than ``now``: before the 15th the current-month entry is
    dated ``now`` itself.
    """
    year, month = divmod(now.year * 12 + (now.month - 1) - months, 12)
    return min(now.replace(year=year, month=month + 1, day=15), now)


def _month_label(index: int) -> str:
    if index == 0:
        return "Current Month"
    return f"{index} Month{'s' if index > 1 else ''} Ago"


async def seed_demo_data(
    repository: InMemoryPatientRepository,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> None:
    """Load the demo patients and their monthly analyses into ``repository``."""
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    for entry in DEMO_PATIENTS:
        registered = now - timedelta(days=entry["registered_days_ago"])
        patient = repository.add_patient(PatientRecord(
            id=entry["id"],
            mrn=entry["mrn"],
            first_name=entry["first_name"],
            last_name=entry["last_name"],
            age=entry["age"],
            gender=entry["gender"],
            contact_no=entry["contact_no"],
            email=entry["email"],
            state=entry["state"],
            district=entry["district"],
            city=entry["city"],
            pincode=entry["pincode"],
            existing_conditions=list(entry["existing_conditions"]),
            user_id=repository.user_id,
            registration_date=registered,
            created_at=registered,
        ))

        for i in range(MONTHS_OF_HISTORY):
            await repository.create_analysis(
                patient.id,
                generate_biomarkers(entry["profile"], rng),
                analysis_date=_months_ago(now, i),
                clinical_notes=f"Assessment {i + 1} ({_month_label(i)}).",
            )

    logger.info(
        f"Demo data loaded: {len(DEMO_PATIENTS)} patients, "
        f"{len(DEMO_PATIENTS) * MONTHS_OF_HISTORY} analyses"
    )
