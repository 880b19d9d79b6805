"""
Risk Scoring Base Types

Input record, tier enum and the immutable assessment returned by the
scoring engine. Consumed by the store, the report generator and the API.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class RiskTier(str, Enum):
    """
    Three-valued cardiovascular risk tier.

    LOW    – score < 30
    MEDIUM – 30 <= score < 60
    HIGH   – score >= 60
    """
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"


@dataclass(frozen=True)
class TierDisplay:
    """Fixed presentation values for a tier."""
    color: str
    label: str


TIER_DISPLAY: Dict[RiskTier, TierDisplay] = {
    RiskTier.LOW:    TierDisplay(color="#22C55E", label="Low Risk"),
    RiskTier.MEDIUM: TierDisplay(color="#F59E0B", label="Medium Risk"),
    RiskTier.HIGH:   TierDisplay(color="#EF4444", label="High Risk"),
}


# ── Parsing ───────────────────────────────────────────────────────────────────

def parse_numeric(value: Any, default: float) -> float:
    """
    Parse a form value to float, falling back to ``default``.

    Absent, empty, non-numeric and non-finite values all yield the default,
    so the scoring function stays total.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    if not math.isfinite(number):
        return default
    return number


# camelCase form keys → record attribute names
_FIELD_ALIASES = {
    "bmi":              "bmi",
    "systolicBp":       "systolic_bp",
    "systolicBP":       "systolic_bp",
    "diastolicBp":      "diastolic_bp",
    "diastolicBP":      "diastolic_bp",
    "cholesterol":      "cholesterol",
    "totalCholesterol": "cholesterol",
    "ldl":              "ldl",
    "hdl":              "hdl",
    "hba1c":            "hba1c",
    "hsCrp":            "hs_crp",
    "hsCRP":            "hs_crp",
    "smokingStatus":    "smoking_status",
    "diabetes":         "diabetes",
    "diabetesStatus":   "diabetes",
    "familyHistory":    "family_history",
    "physicalActivity": "physical_activity",
    "sleepHours":       "sleep_hours",
    "dietQuality":      "diet_quality",
    "stressLevel":      "stress_level",
    "comorbidities":    "comorbidities",
}


@dataclass(frozen=True)
class BiomarkerRecord:
    """
    One set of biomarker form inputs.

    Every field is optional and kept as entered; numeric interpretation
    happens in the scoring rules via ``parse_numeric``.
    """
    # ── Clinical ──────────────────────────────────────────────────────────
    bmi: Optional[Any] = None
    systolic_bp: Optional[Any] = None
    diastolic_bp: Optional[Any] = None
    cholesterol: Optional[Any] = None
    ldl: Optional[Any] = None
    hdl: Optional[Any] = None
    hba1c: Optional[Any] = None
    hs_crp: Optional[Any] = None

    # ── Lifestyle / history ───────────────────────────────────────────────
    smoking_status: Optional[str] = None
    diabetes: Optional[str] = None
    family_history: Optional[str] = None
    physical_activity: Optional[Any] = None
    sleep_hours: Optional[Any] = None
    diet_quality: Optional[str] = None
    stress_level: Optional[str] = None
    comorbidities: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "BiomarkerRecord":
        """Build a record from camelCase or snake_case keys; unknown keys are ignored."""
        if data is None:
            return cls()
        if isinstance(data, BiomarkerRecord):
            return data
        known = set(cls.__dataclass_fields__)
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in self.__dataclass_fields__
            if getattr(self, name) is not None
        }


@dataclass(frozen=True)
class RiskFactor:
    """A single triggered scoring rule."""
    rule_id: str                           # e.g. "CV-BMI-OBESE"
    label: str                             # Shown in the risk-factor list
    points: int
    recommendation: Optional[str] = None   # Some factors add no recommendation


@dataclass(frozen=True)
class RiskAssessment:
    """
    Result of one scoring call. Created fresh per call and never mutated.
    """
    score: int                                   # clamped to [0, 100]
    tier: RiskTier
    risk_factors: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    ten_year_risk: float = 0.0
    raw_score: int = 0                           # sum before clamping
    triggered: Tuple[RiskFactor, ...] = field(default=(), repr=False)

    @property
    def color(self) -> str:
        return TIER_DISPLAY[self.tier].color

    @property
    def label(self) -> str:
        return TIER_DISPLAY[self.tier].label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_score": self.score,
            "raw_score": self.raw_score,
            "risk_level": self.tier.value,
            "risk_color": self.color,
            "risk_label": self.label,
            "risk_factors": list(self.risk_factors),
            "recommendations": list(self.recommendations),
            "ten_year_risk": round(self.ten_year_risk, 1),
        }
