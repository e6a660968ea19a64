from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from dental_cdss.api.services import confidence
from dental_cdss.api.services.diagnostic_input import CaseFindings


def _findings(
    bone_loss: Optional[Dict[str, Any]] = None,
    pathologies: Optional[List[Dict[str, Any]]] = None,
) -> CaseFindings:
    payload: Dict[str, Any] = {"pathologies": pathologies or []}
    if bone_loss is not None:
        payload["boneLoss"] = bone_loss
    return CaseFindings.model_validate(payload)


def test_base_score_without_supporting_evidence() -> None:
    assessment = confidence.score(_findings())
    assert assessment.confidence_score == pytest.approx(0.45)
    assert assessment.validations == []
    assert assessment.band == "low"
    assert assessment.acceptable is False


def test_consistent_bone_loss_adds_weight() -> None:
    assessment = confidence.score(_findings({"percentage": 40, "severity": "moderate"}))
    assert assessment.confidence_score == pytest.approx(0.8)
    assert assessment.validations == ["Bone loss measurements consistent with severity assessment"]
    assert assessment.band == "high"
    assert assessment.acceptable is True


def test_inconsistent_bone_loss_earns_nothing() -> None:
    assessment = confidence.score(_findings({"percentage": 40, "severity": "mild"}))
    assert assessment.confidence_score == pytest.approx(0.45)
    assert assessment.validations == []


def test_gap_between_bands_is_not_consistent() -> None:
    assessment = confidence.score(_findings({"percentage": 30.5, "severity": "mild"}))
    assert assessment.confidence_score == pytest.approx(0.45)


def test_derived_severity_is_not_counted_as_agreement() -> None:
    findings = _findings({"percentage": 40})
    assert findings.bone_loss is not None
    assert findings.bone_loss.severity == "moderate"
    assert confidence.score(findings).confidence_score == pytest.approx(0.45)


def test_severity_aliases_are_normalized_before_checking() -> None:
    assessment = confidence.score(_findings({"percentage": 60, "severity": "Severe"}))
    assert assessment.confidence_score == pytest.approx(0.8)


def test_pathology_contribution_is_proportional() -> None:
    assessment = confidence.score(
        _findings(
            pathologies=[
                {"type": "Caries", "confidence": 0.9},
                {"type": "Calculus", "confidence": 0.5},
            ]
        )
    )
    assert assessment.confidence_score == pytest.approx(0.625)
    assert assessment.validations == ["High confidence pathology detections present"]
    assert assessment.acceptable is False


def test_pathology_cutoff_is_exclusive() -> None:
    assessment = confidence.score(_findings(pathologies=[{"type": "Caries", "confidence": 0.75}]))
    assert assessment.confidence_score == pytest.approx(0.45)
    assert assessment.validations == []


def test_score_is_capped_at_one() -> None:
    assessment = confidence.score(
        _findings(
            {"percentage": 10, "severity": "mild"},
            [{"type": "Caries", "confidence": 0.95}, {"type": "Abscess", "confidence": 0.8}],
        )
    )
    assert assessment.confidence_score == 1.0
    assert assessment.band == "very_high"
    assert len(assessment.validations) == 2


def test_with_notes_keeps_existing_validations() -> None:
    base = confidence.score(_findings({"percentage": 40, "severity": "moderate"}))
    degraded = base.with_notes(["Invalid JSON format"], score=0.5)
    assert degraded.confidence_score == 0.5
    assert degraded.band == "low"
    assert degraded.validations[-1] == "Invalid JSON format"
    assert base.validations == ["Bone loss measurements consistent with severity assessment"]
    assert base.to_wire()["confidenceScore"] == pytest.approx(0.8)
