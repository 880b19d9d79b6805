"""
Cardiovascular Risk Scoring

Usage:
    from cardiorisk.core.scoring import RiskScoringEngine

    engine = RiskScoringEngine()
    assessment = engine.assess(biomarker_form)   # mapping or BiomarkerRecord
"""
from .base import (
    BiomarkerRecord,
    RiskAssessment,
    RiskFactor,
    RiskTier,
    TierDisplay,
    TIER_DISPLAY,
    parse_numeric,
)
from .engine import (
    RiskScoringEngine,
    assess_risk,
    care_plan_for_tier,
    ecg_findings_for_tier,
    ten_year_risk,
    tier_for_score,
)

__all__ = [
    "BiomarkerRecord",
    "RiskAssessment",
    "RiskFactor",
    "RiskTier",
    "TierDisplay",
    "TIER_DISPLAY",
    "parse_numeric",
    "RiskScoringEngine",
    "assess_risk",
    "care_plan_for_tier",
    "ecg_findings_for_tier",
    "ten_year_risk",
    "tier_for_score",
]
