"""
Static clinical rule tables shared by the stager, the confidence scorer, the
fallback generator and the chairside risk scores.

Both periodontal stage classifiers read their ceilings from ``STAGE_CEILINGS`` so
the joint ladder and the percentage-only bands cannot drift apart.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Literal, Optional, Tuple

Severity = Literal["mild", "moderate", "severe"]
Prognosis = Literal["Good", "Fair", "Poor", "Questionable"]
StageName = Literal["Stage I", "Stage II", "Stage III", "Stage IV"]

SEVERITIES: Tuple[str, ...] = ("mild", "moderate", "severe")
PROGNOSES: Tuple[str, ...] = ("Good", "Fair", "Poor", "Questionable")


@dataclass(frozen=True, slots=True)
class Range:
    low: float
    high: float

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high


# Inclusive on both ends; values between bands (e.g. 30.5%) match none.
BONE_LOSS_SEVERITY: Dict[str, Range] = {
    "mild": Range(0, 30),
    "moderate": Range(31, 50),
    "severe": Range(51, 100),
}

POCKET_DEPTH_SEVERITY: Dict[str, Range] = {
    "mild": Range(0, 4),
    "moderate": Range(5, 6),
    "severe": Range(7, math.inf),
}


@dataclass(frozen=True, slots=True)
class ConfidenceThresholds:
    minimum_acceptable: float = 0.65
    high: float = 0.80
    very_high: float = 0.90


CONFIDENCE_THRESHOLDS = ConfidenceThresholds()

BASE_CONFIDENCE = 0.45
BONE_LOSS_CONSISTENCY_WEIGHT = 0.35
PATHOLOGY_CONFIDENCE_WEIGHT = 0.35
PATHOLOGY_CONFIDENCE_CUTOFF = 0.75


@dataclass(frozen=True, slots=True)
class BleedingThresholds:
    """Whole-mouth bleeding-on-probing percentages and deep-pocket site counts."""

    inflammation: float = 10.0
    high_risk: float = 20.0
    high_risk_deep_sites: int = 5


BLEEDING_THRESHOLDS = BleedingThresholds()


@dataclass(frozen=True, slots=True)
class ProgressionRules:
    # (ratio strictly above, points), highest first; only the first match counts.
    bone_loss_age_steps: Tuple[Tuple[float, int], ...] = ((1.0, 2), (0.5, 1))
    bleeding_percentage: float = 25.0
    attachment_loss_mm: float = 4.0
    high_risk_above: float = 3.5
    moderate_risk_from: float = 2.0


PROGRESSION_RULES = ProgressionRules()


@dataclass(frozen=True, slots=True)
class StageCeilings:
    """Upper bounds (inclusive) for Stage I, II and III; anything above is Stage IV."""

    percentage: Tuple[float, float, float] = (15.0, 33.0, 50.0)
    depth_mm: Tuple[float, float, float] = (2.0, 3.0, 5.0)


STAGE_CEILINGS = StageCeilings()


@dataclass(frozen=True, slots=True)
class StageDefinition:
    stage: str
    label: str
    prognosis: str
    description: str
    recommendations: Tuple[str, ...]


PERIODONTAL_STAGES: Tuple[StageDefinition, ...] = (
    StageDefinition(
        stage="Stage I",
        label="Stage I - Initial Periodontitis",
        prognosis="Good",
        description="Early stage periodontal disease with minimal bone loss.",
        recommendations=(
            "Improved oral hygiene",
            "Regular professional cleaning",
            "Monitoring at 6-month intervals",
        ),
    ),
    StageDefinition(
        stage="Stage II",
        label="Stage II - Moderate Periodontitis",
        prognosis="Fair",
        description="Established periodontal disease with moderate bone loss.",
        recommendations=(
            "Deep cleaning (SRP)",
            "More frequent recalls",
            "Possible localized therapy",
        ),
    ),
    StageDefinition(
        stage="Stage III",
        label="Stage III - Severe Periodontitis",
        prognosis="Poor",
        description="Advanced periodontal disease with significant bone loss.",
        recommendations=(
            "Comprehensive periodontal therapy",
            "Possible surgical intervention",
            "Frequent maintenance",
        ),
    ),
    StageDefinition(
        stage="Stage IV",
        label="Stage IV - Advanced Periodontitis",
        prognosis="Questionable",
        description="Severe periodontal disease with risk of tooth loss.",
        recommendations=(
            "Advanced periodontal surgery",
            "Possible extraction consideration",
            "Intensive maintenance protocol",
        ),
    ),
)

NO_PERIODONTITIS = "No Periodontitis"
STAGING_INDETERMINATE = "Staging Indeterminate"

PROGNOSIS_BY_SEVERITY: Dict[str, str] = {
    "severe": "Poor",
    "moderate": "Fair",
    "mild": "Good",
}

_SEVERITY_ALIASES: Dict[str, str] = {
    "mild": "mild",
    "low": "mild",
    "minimal": "mild",
    "moderate": "moderate",
    "medium": "moderate",
    "severe": "severe",
    "high": "severe",
    "advanced": "severe",
}


def stage_definition(index: int) -> StageDefinition:
    return PERIODONTAL_STAGES[index]


def severity_for_percentage(percentage: float) -> str:
    """Map a bone-loss percentage onto the severity vocabulary without gaps."""

    if percentage <= BONE_LOSS_SEVERITY["mild"].high:
        return "mild"
    if percentage <= BONE_LOSS_SEVERITY["moderate"].high:
        return "moderate"
    return "severe"


def severity_for_pocket_depth(depth_mm: float) -> str:
    if depth_mm < POCKET_DEPTH_SEVERITY["moderate"].low:
        return "mild"
    if depth_mm < POCKET_DEPTH_SEVERITY["severe"].low:
        return "moderate"
    return "severe"


def bone_loss_matches_severity(percentage: float, severity: str) -> bool:
    band = BONE_LOSS_SEVERITY.get(severity)
    if band is None:
        return False
    return band.contains(percentage)


def coerce_severity(value: object) -> Optional[str]:
    """Return the canonical severity for free-text input, or ``None`` when unknown."""

    if not isinstance(value, str):
        return None
    return _SEVERITY_ALIASES.get(value.strip().lower())


def prognosis_for_severity(severity: Optional[str]) -> str:
    return PROGNOSIS_BY_SEVERITY.get(severity or "", "Good")


def confidence_band(score: float) -> str:
    if score >= CONFIDENCE_THRESHOLDS.very_high:
        return "very_high"
    if score >= CONFIDENCE_THRESHOLDS.high:
        return "high"
    if score >= CONFIDENCE_THRESHOLDS.minimum_acceptable:
        return "acceptable"
    return "low"


__all__ = [
    "BASE_CONFIDENCE",
    "BLEEDING_THRESHOLDS",
    "BONE_LOSS_CONSISTENCY_WEIGHT",
    "BONE_LOSS_SEVERITY",
    "CONFIDENCE_THRESHOLDS",
    "NO_PERIODONTITIS",
    "PATHOLOGY_CONFIDENCE_CUTOFF",
    "PATHOLOGY_CONFIDENCE_WEIGHT",
    "PERIODONTAL_STAGES",
    "POCKET_DEPTH_SEVERITY",
    "PROGRESSION_RULES",
    "PROGNOSES",
    "Prognosis",
    "SEVERITIES",
    "STAGE_CEILINGS",
    "STAGING_INDETERMINATE",
    "BleedingThresholds",
    "ProgressionRules",
    "Severity",
    "StageName",
    "StageDefinition",
    "bone_loss_matches_severity",
    "coerce_severity",
    "confidence_band",
    "prognosis_for_severity",
    "severity_for_percentage",
    "severity_for_pocket_depth",
    "stage_definition",
]
