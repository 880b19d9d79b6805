"""
Cardiovascular Risk Scoring Rules

Additive point system over a BiomarkerRecord. Each rule inspects one
condition and returns a RiskFactor or None; the engine sums the points.

Rule order (also the order of factors and recommendations in the result):
    1. Obesity               BMI > 30                          +15
    2. Overweight            25 < BMI <= 30                    +8
    3. Hypertension          systolic > 140 or diastolic > 90  +20
    4. High cholesterol      total > 240 or LDL > 130          +18
    5. Current smoking       smoking_status == "current"       +25
    6. Diabetes              diabetes in {"type1", "type2"}    +22
    7. Family history        family_history == "yes"           +10

HbA1c, HDL, sleep and activity are collected on the form but not scored.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from .base import BiomarkerRecord, RiskFactor, parse_numeric

# ── Defaults for absent / malformed inputs ────────────────────────────────────

DEFAULT_BMI           = 25.0
DEFAULT_SYSTOLIC      = 120.0
DEFAULT_DIASTOLIC     = 80.0
DEFAULT_CHOLESTEROL   = 200.0
DEFAULT_LDL           = 100.0

# ── Thresholds ────────────────────────────────────────────────────────────────

BMI_OBESE             = 30.0
BMI_OVERWEIGHT        = 25.0
SBP_HYPERTENSION      = 140.0
DBP_HYPERTENSION      = 90.0
CHOLESTEROL_HIGH      = 240.0
LDL_HIGH              = 130.0

SMOKING_CURRENT       = "current"
DIABETES_TYPES        = ("type1", "type2")
FAMILY_HISTORY_YES    = "yes"

# ── Points ────────────────────────────────────────────────────────────────────

POINTS_OBESITY        = 15
POINTS_OVERWEIGHT     = 8
POINTS_HYPERTENSION   = 20
POINTS_CHOLESTEROL    = 18
POINTS_SMOKING        = 25
POINTS_DIABETES       = 22
POINTS_FAMILY_HISTORY = 10


# ── Rule 1/2: Body-mass index ─────────────────────────────────────────────────

def rule_obesity(record: BiomarkerRecord) -> Optional[RiskFactor]:
    bmi = parse_numeric(record.bmi, DEFAULT_BMI)
    if bmi <= BMI_OBESE:
        return None
    return RiskFactor(
        rule_id="CV-BMI-OBESE",
        label="Obesity (BMI > 30)",
        points=POINTS_OBESITY,
        recommendation="Weight management through diet and exercise",
    )


def rule_overweight(record: BiomarkerRecord) -> Optional[RiskFactor]:
    """Overweight band only; obesity is handled by rule_obesity."""
    bmi = parse_numeric(record.bmi, DEFAULT_BMI)
    if not (BMI_OVERWEIGHT < bmi <= BMI_OBESE):
        return None
    return RiskFactor(
        rule_id="CV-BMI-OVER",
        label="Overweight (BMI 25-30)",
        points=POINTS_OVERWEIGHT,
    )


# ── Rule 3: Blood pressure ────────────────────────────────────────────────────

def rule_hypertension(record: BiomarkerRecord) -> Optional[RiskFactor]:
    sbp = parse_numeric(record.systolic_bp, DEFAULT_SYSTOLIC)
    dbp = parse_numeric(record.diastolic_bp, DEFAULT_DIASTOLIC)
    if sbp <= SBP_HYPERTENSION and dbp <= DBP_HYPERTENSION:
        return None
    return RiskFactor(
        rule_id="CV-HTN",
        label="Hypertension",
        points=POINTS_HYPERTENSION,
        recommendation="Blood pressure management and monitoring",
    )


# ── Rule 4: Lipids ────────────────────────────────────────────────────────────

def rule_cholesterol(record: BiomarkerRecord) -> Optional[RiskFactor]:
    total = parse_numeric(record.cholesterol, DEFAULT_CHOLESTEROL)
    ldl = parse_numeric(record.ldl, DEFAULT_LDL)
    if total <= CHOLESTEROL_HIGH and ldl <= LDL_HIGH:
        return None
    return RiskFactor(
        rule_id="CV-LIPID",
        label="High cholesterol",
        points=POINTS_CHOLESTEROL,
        recommendation="Cholesterol management with diet and medication",
    )


# ── Rules 5-7: Categorical history ────────────────────────────────────────────

def rule_smoking(record: BiomarkerRecord) -> Optional[RiskFactor]:
    if record.smoking_status != SMOKING_CURRENT:
        return None
    return RiskFactor(
        rule_id="CV-SMOKE",
        label="Current smoking",
        points=POINTS_SMOKING,
        recommendation="Smoking cessation program",
    )


def rule_diabetes(record: BiomarkerRecord) -> Optional[RiskFactor]:
    if record.diabetes not in DIABETES_TYPES:
        return None
    return RiskFactor(
        rule_id="CV-DM",
        label="Diabetes",
        points=POINTS_DIABETES,
        recommendation="Diabetes management and monitoring",
    )


def rule_family_history(record: BiomarkerRecord) -> Optional[RiskFactor]:
    if record.family_history != FAMILY_HISTORY_YES:
        return None
    return RiskFactor(
        rule_id="CV-FHX",
        label="Family history of CVD",
        points=POINTS_FAMILY_HISTORY,
    )


Rule = Callable[[BiomarkerRecord], Optional[RiskFactor]]

# Evaluation order is part of the output contract
RULES: Tuple[Tuple[str, Rule], ...] = (
    ("obesity",        rule_obesity),
    ("overweight",     rule_overweight),
    ("hypertension",   rule_hypertension),
    ("cholesterol",    rule_cholesterol),
    ("smoking",        rule_smoking),
    ("diabetes",       rule_diabetes),
    ("family_history", rule_family_history),
)


def evaluate_rules(record: BiomarkerRecord) -> List[RiskFactor]:
    """Run every rule in order and return the triggered factors."""
    factors: List[RiskFactor] = []
    for _, rule in RULES:
        factor = rule(record)
        if factor is not None:
            factors.append(factor)
    return factors
