from __future__ import annotations

from typing import Any, Dict

import pytest

from dental_cdss.api.services import fallback
from dental_cdss.api.services.analysis_schema import validate_enhanced_analysis
from dental_cdss.api.services.diagnostic_input import DiagnosticInput, coerce_diagnostic_input


def _case(**overrides: Any) -> DiagnosticInput:
    payload: Dict[str, Any] = {
        "diagnosis": "Chronic periodontitis",
        "findings": {
            "boneLoss": {"percentage": 42, "severity": "moderate", "regions": ["lower molars"]},
            "pathologies": [
                {"type": "Calculus", "location": "lower incisors", "severity": "mild", "confidence": 0.9}
            ],
        },
        "patientContext": {"age": 52, "smoking": True},
    }
    payload.update(overrides)
    return coerce_diagnostic_input(payload)


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"findings": {}},
        {"findings": {"pathologies": [{"type": "Abscess", "severity": "high"}]}},
        {"patientContext": {"riskFactors": ["bruxism"], "diabetes": True, "hypertension": True}},
        {"findings": {"boneLoss": {"percentage": 0}}, "patientContext": {}},
    ],
)
def test_fallback_always_passes_the_schema(overrides: Dict[str, Any]) -> None:
    analysis = fallback.generate(_case(**overrides), 0.5, ["Invalid JSON format"])
    check = validate_enhanced_analysis(analysis.to_wire())
    assert check.ok, check.reason


def test_same_input_gives_same_output() -> None:
    data = _case()
    first = fallback.generate(data, 0.45, ["note"])
    second = fallback.generate(data, 0.45, ["note"])
    assert first.to_wire() == second.to_wire()


@pytest.mark.parametrize(
    ("percentage", "severity", "status"),
    [(10, "mild", "Good"), (42, "moderate", "Fair"), (70, "severe", "Poor")],
)
def test_status_follows_bone_loss_severity(percentage: float, severity: str, status: str) -> None:
    data = _case(findings={"boneLoss": {"percentage": percentage, "severity": severity}})
    assert fallback.generate(data).refined_prognosis.status == status


def test_status_defaults_to_good_without_bone_loss() -> None:
    analysis = fallback.generate(_case(findings={}))
    assert analysis.refined_prognosis.status == "Good"
    assert analysis.refined_prognosis.periodontal_stage is None
    assert "Bone loss assessment needed" in analysis.refined_prognosis.risk_factors
    assert analysis.detailed_treatment_plan.immediate[-1] == "Dental prophylaxis"


def test_risk_factor_sentences() -> None:
    data = _case(patientContext={"smoking": True, "riskFactors": ["bruxism"]})
    factors = fallback.generate(data).refined_prognosis.risk_factors
    assert factors == [
        "Active smoker - increased risk of periodontal disease",
        "No diabetes",
        "Bone loss detected: 42%",
        "Bruxism - requires consideration in treatment planning",
    ]


def test_non_smoker_without_diabetes() -> None:
    data = _case(patientContext={})
    analysis = fallback.generate(data)
    assert analysis.refined_prognosis.risk_factors[:2] == ["Non-smoker", "No diabetes"]
    assert analysis.detailed_findings.risk_assessment.current.endswith("Moderate")
    assert analysis.detailed_treatment_plan.lifestyle[0] == "Maintain smoke-free lifestyle"


def test_smoker_is_high_current_risk() -> None:
    analysis = fallback.generate(_case())
    assert analysis.detailed_findings.risk_assessment.current.endswith("High")
    assert analysis.detailed_treatment_plan.lifestyle[0] == "Smoking cessation advised"


def test_periodontal_stage_is_attached_from_bone_loss() -> None:
    stage = fallback.generate(_case()).refined_prognosis.periodontal_stage
    assert stage is not None
    assert stage.stage == "Stage III"
    assert stage.prognosis == "Poor"


def test_pathologies_become_secondary_findings() -> None:
    findings = fallback.generate(_case()).detailed_findings
    assert findings.primary_condition.description == "Chronic periodontitis"
    assert findings.primary_condition.severity == "moderate"
    assert [c.condition for c in findings.secondary_findings] == ["Calculus"]
    assert findings.secondary_findings[0].description == "Found in lower incisors"


def test_primary_severity_uses_worst_pathology_without_bone_loss() -> None:
    data = _case(
        findings={
            "pathologies": [
                {"type": "Caries", "severity": "mild"},
                {"type": "Abscess", "severity": "severe"},
            ]
        }
    )
    assert fallback.generate(data).detailed_findings.primary_condition.severity == "severe"


def test_confidence_and_failed_validation_are_reflected() -> None:
    analysis = fallback.generate(_case(), 0.5, ["Failed validation: Missing required property: refinedPrognosis"])
    assert analysis.refined_prognosis.explanation.endswith("Automated assessment confidence: 50%.")
    assert analysis.detailed_treatment_plan.immediate[-1] == "Clinician review of automated findings"
