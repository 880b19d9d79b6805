"""
Patient Repositories

``PatientRepository`` is the data-access interface the services depend on.
Two implementations:

- InMemoryPatientRepository: the demo store. Lists live for the lifetime
  of the instance; nothing is persisted.
- PassThroughRepository: stands in for the remote backend on
  authenticated (non-demo) sessions. Reads return nothing and
  analysis operations are unavailable.

Methods are coroutines that resolve immediately; callers always await them.
"""
from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from cardiorisk.core.scoring import (
    BiomarkerRecord,
    RiskScoringEngine,
    care_plan_for_tier,
    ecg_findings_for_tier,
)
from cardiorisk.utils import BackendError, NotFoundError, get_logger
from .models import (
    AnalysisRecord,
    PatientHistory,
    PatientRecord,
    normalise_patient_input,
)

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _build_patient(
    data: Mapping[str, Any],
    patient_id: str,
    mrn: str,
    user_id: str,
    now: datetime,
) -> PatientRecord:
    fields = normalise_patient_input(data)
    conditions = fields.pop("existing_conditions", None) or []
    if isinstance(conditions, str):
        conditions = [conditions]
    fields.setdefault("first_name", "")
    fields.setdefault("last_name", "")
    return PatientRecord(
        id=patient_id,
        mrn=mrn,
        user_id=user_id,
        registration_date=now,
        created_at=now,
        existing_conditions=list(conditions),
        **{k: ("" if v is None else str(v)) for k, v in fields.items()},
    )


class PatientRepository(ABC):
    """Data-access interface for patients and their analyses."""

    @abstractmethod
    async def create_patient(self, data: Mapping[str, Any]) -> PatientRecord:
        """Register a patient and assign its id and MRN."""

    @abstractmethod
    async def list_patients(self) -> List[PatientRecord]:
        """All registered patients, in registration order."""

    @abstractmethod
    async def create_analysis(
        self,
        patient_id: str,
        biomarkers: Mapping[str, Any],
        analysis_date: Optional[datetime] = None,
    ) -> AnalysisRecord:
        """Score the biomarkers and append the analysis."""

    @abstractmethod
    async def get_analysis(self, analysis_id: str) -> AnalysisRecord:
        """Fetch one analysis by id."""

    @abstractmethod
    async def list_analyses(self) -> List[AnalysisRecord]:
        """All analyses, in insertion order."""

    @abstractmethod
    async def get_patient_history(self, patient_id: str) -> PatientHistory:
        """A patient's analyses sorted by date, newest first."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop all held records."""


class InMemoryPatientRepository(PatientRepository):
    """
    Demo data store backed by plain lists.

    Each instance is isolated; tests construct their own.
    """

    def __init__(
        self,
        user_id: str = "demo-user-123",
        engine: Optional[RiskScoringEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
        mrn_prefix: Optional[str] = None,
    ):
        self.user_id = user_id
        self.engine = engine or RiskScoringEngine()
        self._clock = clock or _utcnow
        self._mrn_prefix = mrn_prefix
        self._patients: List[PatientRecord] = []
        self._analyses: List[AnalysisRecord] = []
        self._patient_seq = itertools.count(1)
        self._analysis_seq = itertools.count(1)

    # ------------------------------------------------------------------
    # Id generation
    # ------------------------------------------------------------------

    def _next_patient_ids(self, now: datetime) -> tuple:
        existing = {p.id for p in self._patients}
        while True:
            n = next(self._patient_seq)
            patient_id = f"PAT{n:03d}"
            if patient_id not in existing:
                break
        prefix = self._mrn_prefix or f"MRN{now.year}"
        return patient_id, f"{prefix}{n:03d}"

    def _next_analysis_id(self) -> str:
        return f"ANA{next(self._analysis_seq):05d}"

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------

    async def create_patient(self, data: Mapping[str, Any]) -> PatientRecord:
        now = self._clock()
        patient_id, mrn = self._next_patient_ids(now)
        patient = _build_patient(data, patient_id, mrn, self.user_id, now)
        self._patients.append(patient)
        logger.info(f"Registered patient {patient.id} ({patient.mrn})")
        return patient

    def add_patient(self, patient: PatientRecord) -> PatientRecord:
        """Append a pre-built record (used when loading demo data)."""
        self._patients.append(patient)
        return patient

    async def list_patients(self) -> List[PatientRecord]:
        return list(self._patients)

    def _find_patient(self, patient_id: str) -> Optional[PatientRecord]:
        return next((p for p in self._patients if p.id == patient_id), None)

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def create_analysis(
        self,
        patient_id: str,
        biomarkers: Mapping[str, Any],
        analysis_date: Optional[datetime] = None,
        clinical_notes: str = "",
    ) -> AnalysisRecord:
        if self._find_patient(patient_id) is None:
            raise NotFoundError(
                f"Patient {patient_id} not found", resource="patient", resource_id=patient_id
            )

        record = BiomarkerRecord.from_mapping(biomarkers)
        assessment = self.engine.assess(record)
        now = self._clock()

        analysis = AnalysisRecord(
            id=self._next_analysis_id(),
            patient_id=patient_id,
            user_id=self.user_id,
            biomarkers=record.to_dict(),
            assessment=assessment,
            analysis_date=analysis_date or now,
            created_at=now,
            ecg_findings=ecg_findings_for_tier(assessment.tier),
            follow_up=care_plan_for_tier(assessment.tier),
            clinical_notes=clinical_notes or (
                f"Patient showing {assessment.tier.value} cardiovascular risk "
                f"(score {assessment.score}/100)."
            ),
        )
        self._analyses.append(analysis)
        logger.info(
            f"Analysis {analysis.id} for {patient_id}: "
            f"score={assessment.score} tier={assessment.tier.value}"
        )
        return analysis

    async def get_analysis(self, analysis_id: str) -> AnalysisRecord:
        for analysis in self._analyses:
            if analysis.id == analysis_id:
                return analysis
        raise NotFoundError(
            "Analysis not found", resource="analysis", resource_id=analysis_id
        )

    async def list_analyses(self) -> List[AnalysisRecord]:
        return list(self._analyses)

    async def get_patient_history(self, patient_id: str) -> PatientHistory:
        patient = self._find_patient(patient_id)
        if patient is None:
            raise NotFoundError(
                "Patient not found", resource="patient", resource_id=patient_id
            )
        # Same-date analyses: most recently stored first
        analyses = sorted(
            (a for a in reversed(self._analyses) if a.patient_id == patient_id),
            key=lambda a: a.analysis_date,
            reverse=True,
        )
        return PatientHistory(patient=patient, analyses=analyses)

    async def clear(self) -> None:
        self._patients.clear()
        self._analyses.clear()
        self._patient_seq = itertools.count(1)
        self._analysis_seq = itertools.count(1)
        logger.info("Demo store cleared")

    def is_empty(self) -> bool:
        return not self._patients

    def counts(self) -> Dict[str, int]:
        return {"patients": len(self._patients), "analyses": len(self._analyses)}


class PassThroughRepository(PatientRepository):
    """
    Repository for sessions backed by the remote service.

    The remote tables are not wired up: created patients are echoed back
    without being stored, listings are empty and analysis operations raise
    BackendError.
    """

    def __init__(self, user_id: str = "", clock: Optional[Callable[[], datetime]] = None):
        self.user_id = user_id
        self._clock = clock or _utcnow

    async def create_patient(self, data: Mapping[str, Any]) -> PatientRecord:
        now = self._clock()
        stamp = int(now.timestamp() * 1000)
        return _build_patient(data, f"PAT{stamp}", f"MRN{stamp}", self.user_id, now)

    async def list_patients(self) -> List[PatientRecord]:
        return []

    async def create_analysis(
        self,
        patient_id: str,
        biomarkers: Mapping[str, Any],
        analysis_date: Optional[datetime] = None,
    ) -> AnalysisRecord:
        raise BackendError(
            "Analysis creation not implemented for non-demo mode",
            operation="create_analysis",
        )

    async def get_analysis(self, analysis_id: str) -> AnalysisRecord:
        raise BackendError(
            "Analysis retrieval not implemented for non-demo mode",
            operation="get_analysis",
        )

    async def list_analyses(self) -> List[AnalysisRecord]:
        return []

    async def get_patient_history(self, patient_id: str) -> PatientHistory:
        raise BackendError(
            "Patient history not implemented for non-demo mode",
            operation="get_patient_history",
        )

    async def clear(self) -> None:
        return None
