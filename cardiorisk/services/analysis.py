"""
Analysis Service

Form-level workflow on top of a PatientRepository: validates registrations,
runs analyses behind the "analysis in progress" delay, and builds the
dashboard summary.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional

from cardiorisk.core.scoring import RiskTier
from cardiorisk.core.store import AnalysisRecord, PatientRecord, PatientRepository
from cardiorisk.core.store.models import normalise_patient_input
from cardiorisk.utils import ValidationError, get_logger

logger = get_logger(__name__)

REQUIRED_PATIENT_FIELDS = (
    "first_name",
    "last_name",
    "age",
    "contact_no",
    "district",
    "city",
    "pincode",
)


def missing_patient_fields(data: Mapping[str, Any]) -> List[str]:
    """Required registration fields that are absent or blank."""
    fields = normalise_patient_input(data)
    return [
        name for name in REQUIRED_PATIENT_FIELDS
        if fields.get(name) is None or not str(fields[name]).strip()
    ]


class AnalysisService:
    """
    Args:
        repository: The store serving the current session.
        analysis_delay: Seconds to wait before scoring; 0 disables it.
    """

    def __init__(self, repository: PatientRepository, analysis_delay: float = 0.0):
        self.repository = repository
        self.analysis_delay = analysis_delay

    async def register_patient(self, data: Mapping[str, Any]) -> PatientRecord:
        missing = missing_patient_fields(data)
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )
        return await self.repository.create_patient(data)

    async def list_patients(self) -> List[PatientRecord]:
        return await self.repository.list_patients()

    async def run_analysis(
        self,
        patient_id: str,
        biomarkers: Optional[Mapping[str, Any]],
    ) -> AnalysisRecord:
        """
        Score a biomarker submission for an existing patient.

        Raises:
            ValidationError: if no patient id was given.
            NotFoundError: if the patient does not exist.
        """
        if not patient_id:
            raise ValidationError("Select a patient before starting analysis", fields=["patient_id"])

        # Fail fast on unknown patients before the artificial wait
        await self.repository.get_patient_history(patient_id)

        if self.analysis_delay > 0:
            logger.debug(f"Analysis for {patient_id} in progress ({self.analysis_delay:.1f}s)")
            await asyncio.sleep(self.analysis_delay)

        return await self.repository.create_analysis(patient_id, biomarkers or {})

    async def dashboard_summary(self) -> Dict[str, Any]:
        """
        Cohort overview keyed on each patient's most recent analysis.

        Example output:
        {
            "total_patients": 3,
            "total_analyses": 9,
            "assessed_patients": 3,
            "high_risk_patients": 1,
            "tiers": {"low": {"count": 1, "percentage": 33.3}, ...}
        }
        """
        patients = await self.repository.list_patients()
        analyses = await self.repository.list_analyses()

        latest: Dict[str, AnalysisRecord] = {}
        for analysis in analyses:
            current = latest.get(analysis.patient_id)
            if current is None or analysis.analysis_date >= current.analysis_date:
                latest[analysis.patient_id] = analysis

        counts = {tier: 0 for tier in RiskTier}
        for patient in patients:
            analysis = latest.get(patient.id)
            if analysis is not None:
                counts[analysis.assessment.tier] += 1

        assessed = sum(counts.values())
        tiers = {
            tier.value: {
                "count": count,
                "percentage": round(100.0 * count / assessed, 1) if assessed else 0.0,
            }
            for tier, count in counts.items()
        }

        return {
            "total_patients": len(patients),
            "total_analyses": len(analyses),
            "assessed_patients": assessed,
            "high_risk_patients": counts[RiskTier.HIGH],
            "tiers": tiers,
        }
