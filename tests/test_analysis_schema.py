from __future__ import annotations

from typing import Any, Dict

import pytest

from dental_cdss.api.services.analysis_schema import (
    AnalysisValidationError,
    EnhancedAnalysis,
    parse_enhanced_analysis,
    validate_enhanced_analysis,
)


def test_accepts_single_entry_in_every_required_list(analysis_payload: Dict[str, Any]) -> None:
    check = validate_enhanced_analysis(analysis_payload)
    assert check.ok is True
    assert check.reason is None
    assert isinstance(check.analysis, EnhancedAnalysis)
    assert check.analysis.detailed_findings.risk_assessment.mitigation_strategies == [
        "Smoking cessation programme"
    ]


def test_rejects_empty_mitigation_strategies(analysis_payload: Dict[str, Any]) -> None:
    analysis_payload["detailedFindings"]["riskAssessment"]["mitigationStrategies"] = []
    check = validate_enhanced_analysis(analysis_payload)
    assert check.ok is False
    assert check.analysis is None
    assert "mitigationStrategies" in (check.reason or "")


@pytest.mark.parametrize("section", ["refinedPrognosis", "detailedFindings", "detailedTreatmentPlan"])
def test_missing_top_level_section(analysis_payload: Dict[str, Any], section: str) -> None:
    del analysis_payload[section]
    check = validate_enhanced_analysis(analysis_payload)
    assert check.ok is False
    assert check.reason == f"Missing required property: {section}"


@pytest.mark.parametrize(
    "plan_section", ["immediate", "shortTerm", "longTerm", "preventiveMeasures", "lifestyle"]
)
def test_every_treatment_section_must_be_non_empty(analysis_payload: Dict[str, Any], plan_section: str) -> None:
    analysis_payload["detailedTreatmentPlan"][plan_section] = []
    assert validate_enhanced_analysis(analysis_payload).ok is False


def test_rejects_unknown_primary_severity(analysis_payload: Dict[str, Any]) -> None:
    analysis_payload["detailedFindings"]["primaryCondition"]["severity"] = "critical"
    check = validate_enhanced_analysis(analysis_payload)
    assert check.ok is False
    assert "primaryCondition" in (check.reason or "")


def test_each_secondary_finding_is_checked(analysis_payload: Dict[str, Any]) -> None:
    secondary = analysis_payload["detailedFindings"]["secondaryFindings"]
    secondary.append(
        {"condition": "Caries", "description": "Distal caries", "severity": "mild", "implications": []}
    )
    assert validate_enhanced_analysis(analysis_payload).ok is False


def test_secondary_findings_may_be_empty(analysis_payload: Dict[str, Any]) -> None:
    analysis_payload["detailedFindings"]["secondaryFindings"] = []
    assert validate_enhanced_analysis(analysis_payload).ok is True


def test_prognosis_status_vocabulary(analysis_payload: Dict[str, Any]) -> None:
    analysis_payload["refinedPrognosis"]["status"] = "fair"
    check = validate_enhanced_analysis(analysis_payload)
    assert check.ok is True
    assert check.analysis is not None
    assert check.analysis.refined_prognosis.status == "Fair"

    analysis_payload["refinedPrognosis"]["status"] = "Excellent"
    assert validate_enhanced_analysis(analysis_payload).ok is False


@pytest.mark.parametrize("field", ["explanation", "longTermOutlook"])
def test_blank_prognosis_text_is_rejected(analysis_payload: Dict[str, Any], field: str) -> None:
    analysis_payload["refinedPrognosis"][field] = "   "
    assert validate_enhanced_analysis(analysis_payload).ok is False


def test_blank_list_entries_are_rejected(analysis_payload: Dict[str, Any]) -> None:
    analysis_payload["refinedPrognosis"]["riskFactors"] = [""]
    assert validate_enhanced_analysis(analysis_payload).ok is False


def test_non_object_payload_is_rejected() -> None:
    check = validate_enhanced_analysis(["not", "an", "object"])
    assert check.ok is False
    assert check.reason == "Invalid response structure"


def test_parse_raises_with_detail(analysis_payload: Dict[str, Any]) -> None:
    analysis_payload["detailedFindings"]["riskAssessment"]["current"] = ""
    with pytest.raises(AnalysisValidationError) as excinfo:
        parse_enhanced_analysis(analysis_payload)
    assert excinfo.value.detail["stage"] == "validate"
    assert excinfo.value.detail["errors"]


def test_wire_output_keeps_camel_case(analysis_payload: Dict[str, Any]) -> None:
    analysis = parse_enhanced_analysis(analysis_payload)
    wire = analysis.to_wire()
    assert set(wire) == {"refinedPrognosis", "detailedFindings", "detailedTreatmentPlan"}
    assert "mitigationStrategies" in wire["detailedFindings"]["riskAssessment"]
    assert "shortTerm" in wire["detailedTreatmentPlan"]


@pytest.mark.parametrize(
    "stage",
    [
        {"stage": "Stage IX", "description": "Severe disease", "prognosis": "Poor"},
        {"stage": "Stage III", "description": "  ", "prognosis": "Poor"},
        {"stage": "Stage III", "description": "Severe disease", "prognosis": "Excellent"},
        {"stage": "Stage III", "description": "Severe disease"},
    ],
)
def test_periodontal_stage_from_the_model_is_checked(analysis_payload: Dict[str, Any], stage: Dict[str, Any]) -> None:
    analysis_payload["refinedPrognosis"]["periodontalStage"] = stage
    check = validate_enhanced_analysis(analysis_payload)
    assert check.ok is False
    assert "periodontalStage" in (check.reason or "")


def test_well_formed_periodontal_stage_is_kept(analysis_payload: Dict[str, Any]) -> None:
    analysis_payload["refinedPrognosis"]["periodontalStage"] = {
        "stage": "Stage III",
        "description": "Advanced periodontal disease with significant bone loss.",
        "prognosis": "poor",
    }
    check = validate_enhanced_analysis(analysis_payload)
    assert check.ok is True
    assert check.analysis is not None
    wire = check.analysis.to_wire()["refinedPrognosis"]["periodontalStage"]
    assert wire["stage"] == "Stage III"
    assert wire["prognosis"] == "Poor"
