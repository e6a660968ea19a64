"""Deterministic trust score for a case's structured findings."""

from __future__ import annotations

from typing import List

from pydantic import ConfigDict, Field

from .diagnostic_input import CaseFindings
from .severity_rules import (
    BASE_CONFIDENCE,
    BONE_LOSS_CONSISTENCY_WEIGHT,
    CONFIDENCE_THRESHOLDS,
    PATHOLOGY_CONFIDENCE_CUTOFF,
    PATHOLOGY_CONFIDENCE_WEIGHT,
    bone_loss_matches_severity,
    confidence_band,
)
from .wire import WireModel


class ConfidenceAssessment(WireModel):
    model_config = ConfigDict(frozen=True)

    confidence_score: float = Field(ge=0.0, le=1.0)
    validations: List[str] = Field(default_factory=list)
    band: str = "low"

    @property
    def acceptable(self) -> bool:
        return self.confidence_score >= CONFIDENCE_THRESHOLDS.minimum_acceptable

    def with_notes(self, notes: List[str], *, score: float | None = None) -> "ConfidenceAssessment":
        new_score = self.confidence_score if score is None else score
        return ConfidenceAssessment(
            confidence_score=new_score,
            validations=[*self.validations, *notes],
            band=confidence_band(new_score),
        )


def score(findings: CaseFindings) -> ConfidenceAssessment:
    validations: List[str] = []
    total = BASE_CONFIDENCE

    bone_loss = findings.bone_loss
    # Only a caller-stated severity earns consistency credit.
    if (
        bone_loss is not None
        and bone_loss.severity_stated
        and bone_loss_matches_severity(bone_loss.percentage, bone_loss.severity)
    ):
        total += BONE_LOSS_CONSISTENCY_WEIGHT
        validations.append("Bone loss measurements consistent with severity assessment")

    pathologies = findings.pathologies
    if pathologies:
        confident = [p for p in pathologies if p.confidence > PATHOLOGY_CONFIDENCE_CUTOFF]
        if confident:
            total += PATHOLOGY_CONFIDENCE_WEIGHT * (len(confident) / len(pathologies))
            validations.append("High confidence pathology detections present")

    capped = round(min(total, 1.0), 4)
    return ConfidenceAssessment(confidence_score=capped, validations=validations, band=confidence_band(capped))


__all__ = ["ConfidenceAssessment", "score"]
