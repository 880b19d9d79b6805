"""
Risk Scoring Engine

Turns a BiomarkerRecord into a RiskAssessment: sums rule points, clamps
to [0, 100], assigns a tier and derives the ten-year risk estimate.

Usage:
    from cardiorisk.core.scoring import assess_risk

    result = assess_risk({"bmi": "32", "smokingStatus": "current"})
    print(result.score, result.tier, result.risk_factors)

Deterministic and side-effect free; never raises on malformed input.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from .base import BiomarkerRecord, RiskAssessment, RiskTier, TIER_DISPLAY
from .rules import RULES, evaluate_rules

logger = logging.getLogger(__name__)

MAX_SCORE = 100
MEDIUM_THRESHOLD = 30
HIGH_THRESHOLD = 60

TEN_YEAR_RISK_FACTOR = 0.3
TEN_YEAR_RISK_CAP = 30.0

# Tier-level follow-up plan attached to stored analyses
_CARE_PLANS: Dict[RiskTier, List[str]] = {
    RiskTier.LOW: [
        "Continue current lifestyle and medication regimen",
        "Maintain regular exercise routine",
        "Follow-up in 6 months",
        "Continue dietary modifications",
    ],
    RiskTier.MEDIUM: [
        "Increase physical activity to 150 minutes per week",
        "Consider medication adjustment",
        "Follow-up in 3 months",
        "Dietary consultation recommended",
    ],
    RiskTier.HIGH: [
        "Immediate medical intervention required",
        "Start intensive medication therapy",
        "Follow-up in 4-6 weeks",
        "Consider specialist referral",
    ],
}

_ECG_FINDINGS: Dict[RiskTier, List[str]] = {
    RiskTier.LOW: [
        "Normal sinus rhythm detected",
        "Heart rate within normal range",
        "No significant abnormalities detected",
        "Regular P-wave morphology",
    ],
    RiskTier.MEDIUM: [
        "Normal sinus rhythm detected",
        "Heart rate slightly elevated",
        "Minor ST-segment depression noted",
        "No significant arrhythmias detected",
    ],
    RiskTier.HIGH: [
        "Sinus rhythm with irregular intervals",
        "Tachycardia detected",
        "Significant ST-segment changes",
        "Occasional premature beats detected",
    ],
}


def tier_for_score(score: float) -> RiskTier:
    """Map a score to its tier: <30 low, 30-59 medium, >=60 high."""
    if score < MEDIUM_THRESHOLD:
        return RiskTier.LOW
    if score < HIGH_THRESHOLD:
        return RiskTier.MEDIUM
    return RiskTier.HIGH


def ten_year_risk(score: float) -> float:
    """Estimated ten-year CVD risk percentage, a bounded linear transform."""
    return min(score * TEN_YEAR_RISK_FACTOR, TEN_YEAR_RISK_CAP)


def care_plan_for_tier(tier: RiskTier) -> List[str]:
    return list(_CARE_PLANS[tier])


def ecg_findings_for_tier(tier: RiskTier) -> List[str]:
    return list(_ECG_FINDINGS[tier])


class RiskScoringEngine:
    """
    Scores biomarker records with the additive rule table.

    Stateless; one instance can be shared across requests.
    """

    def assess(
        self,
        biomarkers: Union[BiomarkerRecord, Mapping[str, Any], None],
    ) -> RiskAssessment:
        """
        Score one biomarker record.

        Args:
            biomarkers: A BiomarkerRecord or a raw form mapping
                        (camelCase or snake_case keys).

        Returns:
            RiskAssessment with factors and recommendations in rule order.
        """
        record = BiomarkerRecord.from_mapping(biomarkers)
        factors = evaluate_rules(record)

        raw_score = sum(f.points for f in factors)
        score = max(0, min(raw_score, MAX_SCORE))
        tier = tier_for_score(score)

        assessment = RiskAssessment(
            score=score,
            tier=tier,
            risk_factors=tuple(f.label for f in factors),
            recommendations=tuple(f.recommendation for f in factors if f.recommendation),
            ten_year_risk=ten_year_risk(score),
            raw_score=raw_score,
            triggered=tuple(factors),
        )

        logger.debug(
            f"RiskScoringEngine: raw={raw_score} score={score} tier={tier.value} "
            f"factors=[{', '.join(f.rule_id for f in factors)}]"
        )
        return assessment

    @staticmethod
    def rules() -> List[str]:
        """Rule names in evaluation order."""
        return [name for name, _ in RULES]

    @staticmethod
    def tier_table() -> List[Dict[str, Any]]:
        """Tier display values with their score ranges."""
        bounds = {
            RiskTier.LOW:    (0, MEDIUM_THRESHOLD - 1),
            RiskTier.MEDIUM: (MEDIUM_THRESHOLD, HIGH_THRESHOLD - 1),
            RiskTier.HIGH:   (HIGH_THRESHOLD, MAX_SCORE),
        }
        return [
            {
                "tier": tier.value,
                "color": TIER_DISPLAY[tier].color,
                "label": TIER_DISPLAY[tier].label,
                "min_score": bounds[tier][0],
                "max_score": bounds[tier][1],
            }
            for tier in RiskTier
        ]


_default_engine: Optional[RiskScoringEngine] = None


def assess_risk(biomarkers: Union[BiomarkerRecord, Mapping[str, Any], None]) -> RiskAssessment:
    """Score with a shared engine instance."""
    global _default_engine
    if _default_engine is None:
        _default_engine = RiskScoringEngine()
    return _default_engine.assess(biomarkers)
