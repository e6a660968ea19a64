"""
Deterministic EnhancedAnalysis built from structured findings alone.

Used when the generative service is offline, when the findings are not trusted
enough to ask it, or when its answer fails validation. Every list is populated
from fixed templates, so the result satisfies ``analysis_schema`` by
construction.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .analysis_schema import (
    Condition,
    DetailedFindings,
    DetailedTreatmentPlan,
    EnhancedAnalysis,
    PrimaryCondition,
    RefinedPrognosis,
    RiskAssessment,
)
from .diagnostic_input import DiagnosticInput, Pathology, PatientContext
from .severity_rules import SEVERITIES, prognosis_for_severity
from .staging import stage_from_percentage

LONG_TERM_OUTLOOK = (
    "Prognosis depends on early intervention and patient compliance with recommended treatment plan."
)
FUTURE_RISK = "Long-term prognosis dependent on treatment compliance and risk factor management"

PRIMARY_IMPLICATIONS = (
    "May affect long-term tooth retention",
    "Could impact overall oral health",
    "May require ongoing periodontal maintenance",
)
SECONDARY_IMPLICATIONS = ("May affect treatment planning", "Requires monitoring")
MITIGATION_STRATEGIES = (
    "Regular professional dental care",
    "Optimal home care routine",
    "Management of systemic conditions",
    "Regular monitoring and assessment",
)
SHORT_TERM = (
    "Follow-up periodontal evaluation",
    "Assess healing and treatment response",
    "Adjust treatment plan based on response",
)
LONG_TERM = (
    "Regular periodontal maintenance every 3-4 months",
    "Annual comprehensive periodontal evaluation",
    "Regular radiographic assessment",
)
PREVENTIVE_MEASURES = (
    "Enhanced daily oral hygiene routine",
    "Use of prescribed oral care products",
    "Regular professional dental cleanings",
)

_TEMPLATED_FACTORS = ("smoking", "diabetes", "hypertension")


def _format_percentage(value: float) -> str:
    return f"{value:.1f}".rstrip("0").rstrip(".")


def _risk_factors(data: DiagnosticInput) -> List[str]:
    patient = data.patient_context
    bone_loss = data.findings.bone_loss
    factors = [
        "Active smoker - increased risk of periodontal disease" if patient.has("smoking") else "Non-smoker",
        "Diabetes - may affect healing and treatment response" if patient.has("diabetes") else "No diabetes",
    ]
    if patient.has("hypertension"):
        factors.append("Hypertension - requires blood pressure monitoring during periodontal procedures")
    factors.append(
        f"Bone loss detected: {_format_percentage(bone_loss.percentage)}%"
        if bone_loss is not None
        else "Bone loss assessment needed"
    )
    for factor in patient.present_factors():
        if factor in _TEMPLATED_FACTORS:
            continue
        factors.append(f"{factor[:1].upper()}{factor[1:]} - requires consideration in treatment planning")
    return factors


def _primary_severity(data: DiagnosticInput) -> str:
    if data.findings.bone_loss is not None:
        return data.findings.bone_loss.severity
    pathologies = data.findings.pathologies
    if pathologies:
        return max((p.severity for p in pathologies), key=SEVERITIES.index)
    return "mild"


def _secondary(pathologies: Sequence[Pathology]) -> List[Condition]:
    return [
        Condition(
            condition=p.type,
            description=f"Found in {p.location}",
            severity=p.severity,
            implications=list(SECONDARY_IMPLICATIONS),
        )
        for p in pathologies
    ]


def _current_risk(patient: PatientContext) -> str:
    level = "High" if patient.has("smoking") or patient.has("diabetes") else "Moderate"
    return f"Current risk level based on findings and medical history: {level}"


def _explanation(diagnosis: str, confidence_score: Optional[float]) -> str:
    text = f"Based on the {diagnosis}, a thorough professional evaluation is recommended for accurate prognosis."
    if confidence_score is not None:
        text += f" Automated assessment confidence: {round(confidence_score * 100)}%."
    return text


def generate(
    data: DiagnosticInput,
    confidence_score: Optional[float] = None,
    validation_notes: Sequence[str] = (),
) -> EnhancedAnalysis:
    """Build a schema-valid analysis; identical inputs always produce identical output."""

    patient = data.patient_context
    bone_loss = data.findings.bone_loss
    severity = bone_loss.severity if bone_loss is not None else None

    immediate = [
        "Comprehensive periodontal examination",
        "Full mouth radiographic assessment",
        "Professional dental cleaning",
        "Periodontal scaling and root planing" if bone_loss is not None else "Dental prophylaxis",
    ]
    if any(note.startswith("Failed validation") for note in validation_notes):
        immediate.append("Clinician review of automated findings")

    lifestyle = [
        "Smoking cessation advised" if patient.has("smoking") else "Maintain smoke-free lifestyle",
        "Balanced diet low in sugary foods",
        "Regular exercise and stress management",
        "Adequate hydration",
    ]

    return EnhancedAnalysis(
        refined_prognosis=RefinedPrognosis(
            status=prognosis_for_severity(severity),
            explanation=_explanation(data.diagnosis, confidence_score),
            risk_factors=_risk_factors(data),
            long_term_outlook=LONG_TERM_OUTLOOK,
            periodontal_stage=stage_from_percentage(bone_loss.percentage) if bone_loss is not None else None,
        ),
        detailed_findings=DetailedFindings(
            primary_condition=PrimaryCondition(
                description=data.diagnosis,
                severity=_primary_severity(data),
                implications=list(PRIMARY_IMPLICATIONS),
            ),
            secondary_findings=_secondary(data.findings.pathologies),
            risk_assessment=RiskAssessment(
                current=_current_risk(patient),
                future=FUTURE_RISK,
                mitigation_strategies=list(MITIGATION_STRATEGIES),
            ),
        ),
        detailed_treatment_plan=DetailedTreatmentPlan(
            immediate=immediate,
            short_term=list(SHORT_TERM),
            long_term=list(LONG_TERM),
            preventive_measures=list(PREVENTIVE_MEASURES),
            lifestyle=lifestyle,
        ),
    )


__all__ = ["generate"]
