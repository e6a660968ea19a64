"""
Chairside periodontal scores computed from examination counts.

``assess_bleeding`` summarises a bleeding-on-probing (BoP) charting and
``progression_risk`` grades the likelihood of further attachment loss. Both are
pure functions over the rule tables in ``severity_rules``.
"""

from __future__ import annotations

import logging
from typing import List

from pydantic import ConfigDict, Field, model_validator

from .severity_rules import BLEEDING_THRESHOLDS, PROGRESSION_RULES
from .wire import WireModel

logger = logging.getLogger(__name__)

__all__ = [
    "BleedingAssessment",
    "BleedingChart",
    "ProgressionFactors",
    "ProgressionRisk",
    "assess_bleeding",
    "progression_risk",
]


class BleedingChart(WireModel):
    model_config = ConfigDict(frozen=True)

    total_sites: int = Field(ge=0)
    bleeding_sites: int = Field(default=0, ge=0)
    anterior_bleeding_sites: int = Field(default=0, ge=0)
    posterior_bleeding_sites: int = Field(default=0, ge=0)
    deep_pocket_sites: int = Field(default=0, ge=0)
    total_pocket_depth: float = Field(default=0.0, ge=0.0)
    number_of_measurements: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _site_counts(self) -> "BleedingChart":
        if self.bleeding_sites > self.total_sites:
            raise ValueError("bleeding sites cannot exceed total sites")
        if max(self.anterior_bleeding_sites, self.posterior_bleeding_sites) > self.bleeding_sites:
            raise ValueError("anterior or posterior bleeding sites cannot exceed bleeding sites")
        return self


class BleedingAssessment(WireModel):
    model_config = ConfigDict(frozen=True)

    bop_score: float
    total_sites: int
    bleeding_sites: int
    anterior_bleeding: float
    posterior_bleeding: float
    deep_pocket_sites: int
    average_pocket_depth: float
    status: str
    periodontal_status: str
    risk_level: str
    recommendations: List[str]


def _percent(part: float, whole: float) -> float:
    return 100.0 * part / whole if whole > 0 else 0.0


def assess_bleeding(chart: BleedingChart) -> BleedingAssessment:
    rules = BLEEDING_THRESHOLDS
    bop = _percent(chart.bleeding_sites, chart.total_sites)
    # Each arch segment is taken as half of the examined sites.
    half = chart.total_sites / 2
    average_depth = (
        chart.total_pocket_depth / chart.number_of_measurements if chart.number_of_measurements > 0 else 0.0
    )
    inflamed = bop >= rules.inflammation
    deep_pockets = chart.deep_pocket_sites > 0

    periodontal_status = "Active gingival inflammation present" if inflamed else "Stable periodontal condition"
    if deep_pockets:
        periodontal_status += ", with signs of periodontitis"

    if bop >= rules.high_risk or chart.deep_pocket_sites >= rules.high_risk_deep_sites:
        risk_level = "High"
    elif inflamed:
        risk_level = "Moderate"
    else:
        risk_level = "Low"

    if inflamed:
        recommendations = [
            "Professional cleaning recommended",
            "Improve oral hygiene in affected areas",
            "Follow-up in 3 months",
        ]
    else:
        recommendations = ["Maintain current oral hygiene routine", "Regular 6-month check-ups"]
    if deep_pockets:
        recommendations.append("Periodontal therapy evaluation needed")

    return BleedingAssessment(
        bop_score=round(bop, 1),
        total_sites=chart.total_sites,
        bleeding_sites=chart.bleeding_sites,
        anterior_bleeding=round(_percent(chart.anterior_bleeding_sites, half), 1),
        posterior_bleeding=round(_percent(chart.posterior_bleeding_sites, half), 1),
        deep_pocket_sites=chart.deep_pocket_sites,
        average_pocket_depth=round(average_depth, 1),
        status="Gingivitis" if inflamed else "Healthy/Subclinical",
        periodontal_status=periodontal_status,
        risk_level=risk_level,
        recommendations=recommendations,
    )


class ProgressionFactors(WireModel):
    model_config = ConfigDict(frozen=True)

    bone_loss: float = Field(ge=0.0, le=100.0)
    patient_age: float = Field(gt=0.0, le=150.0)
    bop_score: float = Field(default=0.0, ge=0.0, le=100.0)
    clinical_attachment_loss: float = Field(default=0.0, ge=0.0)
    smoking: bool = False
    diabetes: bool = False


class ProgressionRisk(WireModel):
    model_config = ConfigDict(frozen=True)

    risk_score: int
    bone_loss_age_ratio: float
    bop_factor: float
    level: str
    recommendation: str
    contributions: List[str] = Field(default_factory=list)


_RECOMMENDATIONS = {
    "High": "High risk - Immediate intervention required",
    "Moderate": "Moderate risk - Close monitoring needed",
    "Low": "Low risk - Maintain current protocol",
}


def progression_risk(factors: ProgressionFactors) -> ProgressionRisk:
    rules = PROGRESSION_RULES
    ratio = factors.bone_loss / factors.patient_age
    bop_factor = factors.bop_score / 100.0
    score = 0
    contributions: List[str] = []

    for floor, points in rules.bone_loss_age_steps:
        if ratio > floor:
            score += points
            contributions.append(f"Bone loss to age ratio above {floor:g} (+{points})")
            break
    if factors.bop_score >= rules.bleeding_percentage:
        score += 1
        contributions.append(f"Bleeding on probing at or above {rules.bleeding_percentage:g}% (+1)")
    if factors.clinical_attachment_loss > rules.attachment_loss_mm:
        score += 1
        contributions.append(f"Clinical attachment loss above {rules.attachment_loss_mm:g}mm (+1)")
    if factors.smoking:
        score += 1
        contributions.append("Smoking (+1)")
    if factors.diabetes:
        score += 1
        contributions.append("Diabetes (+1)")

    if score > rules.high_risk_above:
        level = "High"
    elif score >= rules.moderate_risk_from:
        level = "Moderate"
    else:
        level = "Low"
    logger.debug("Progression risk score=%d ratio=%.3f level=%s", score, ratio, level)
    return ProgressionRisk(
        risk_score=score,
        bone_loss_age_ratio=round(ratio, 3),
        bop_factor=round(bop_factor, 3),
        level=level,
        recommendation=_RECOMMENDATIONS[level],
        contributions=contributions,
    )
