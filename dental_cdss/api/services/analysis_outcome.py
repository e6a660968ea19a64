"""Typed result of the reliability pipeline: a validated model answer or a fallback."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .analysis_schema import EnhancedAnalysis
from .confidence import ConfidenceAssessment
from .severity_rules import confidence_band
from .wire import WireModel

__all__ = [
    "AnalysisOutcome",
    "DiagnosticConfidence",
    "FallbackAnalysis",
    "FallbackReason",
    "ValidatedAnalysis",
    "build_envelope",
]


class FallbackReason(str, Enum):
    LOW_CONFIDENCE = "low_confidence"
    OFFLINE = "offline"
    EMPTY_RESPONSE = "empty_response"
    INVALID_JSON = "invalid_json"
    INVALID_STRUCTURE = "invalid_structure"
    FAILED_VALIDATION = "failed_validation"


class DiagnosticConfidence(WireModel):
    model_config = ConfigDict(frozen=True)

    overall: float = Field(ge=0.0, le=1.0)
    details: List[str] = Field(default_factory=list)
    timestamp: str
    model_version: str
    band: str


def build_envelope(
    assessment: ConfidenceAssessment,
    *,
    generated_at: datetime,
    model_version: str,
) -> DiagnosticConfidence:
    return DiagnosticConfidence(
        overall=assessment.confidence_score,
        details=list(assessment.validations),
        timestamp=generated_at.isoformat(),
        model_version=model_version,
        band=confidence_band(assessment.confidence_score),
    )


class ValidatedAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["validated"] = "validated"
    analysis: EnhancedAnalysis
    assessment: ConfidenceAssessment
    model: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return False

    def to_payload(self) -> Dict[str, Any]:
        return self.analysis.to_wire()


class FallbackAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["fallback"] = "fallback"
    analysis: EnhancedAnalysis
    assessment: ConfidenceAssessment
    reason: FallbackReason
    envelope: DiagnosticConfidence

    @property
    def used_fallback(self) -> bool:
        return True

    def to_payload(self) -> Dict[str, Any]:
        payload = self.analysis.to_wire()
        payload["diagnosticConfidence"] = self.envelope.to_wire()
        return payload


AnalysisOutcome = Annotated[Union[ValidatedAnalysis, FallbackAnalysis], Field(discriminator="kind")]
