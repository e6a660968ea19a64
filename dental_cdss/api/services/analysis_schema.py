"""Strict EnhancedAnalysis contract shared by the model path and the fallback path."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BeforeValidator, ConfigDict, Field, ValidationError, field_validator

from .severity_rules import PROGNOSES, SEVERITIES
from .staging import PeriodontalStageResult
from .wire import WireModel

__all__ = [
    "AnalysisValidationError",
    "Condition",
    "DetailedFindings",
    "DetailedTreatmentPlan",
    "EnhancedAnalysis",
    "PrimaryCondition",
    "RefinedPrognosis",
    "RiskAssessment",
    "SchemaCheck",
    "parse_enhanced_analysis",
    "validate_enhanced_analysis",
]

REQUIRED_SECTIONS = (
    ("refinedPrognosis", "refined_prognosis"),
    ("detailedFindings", "detailed_findings"),
    ("detailedTreatmentPlan", "detailed_treatment_plan"),
)


class AnalysisValidationError(ValueError):
    """Raised when a candidate analysis violates the EnhancedAnalysis contract."""

    def __init__(self, reason: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.detail = {"stage": "validate", "msg": reason, "errors": errors or []}


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("must be a string")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("cannot be blank")
    return cleaned


def _clean_items(values: Any) -> List[str]:
    if not isinstance(values, list):
        raise ValueError("must be a list")
    items = [_clean_text(item) for item in values]
    if not items:
        raise ValueError("must contain at least one entry")
    return items


def _clean_severity(value: Any) -> str:
    cleaned = _clean_text(value).lower()
    if cleaned not in SEVERITIES:
        raise ValueError(f"severity must be one of {', '.join(SEVERITIES)}")
    return cleaned


NonEmptyText = Annotated[str, BeforeValidator(_clean_text)]
NonEmptyList = Annotated[List[str], BeforeValidator(_clean_items)]
SeverityText = Annotated[str, BeforeValidator(_clean_severity)]


class _Strict(WireModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class PrimaryCondition(_Strict):
    description: NonEmptyText
    severity: SeverityText
    implications: NonEmptyList


class Condition(_Strict):
    condition: NonEmptyText
    description: NonEmptyText
    severity: SeverityText
    implications: NonEmptyList


class RiskAssessment(_Strict):
    current: NonEmptyText
    future: NonEmptyText
    mitigation_strategies: NonEmptyList


class DetailedFindings(_Strict):
    primary_condition: PrimaryCondition
    secondary_findings: List[Condition] = Field(default_factory=list)
    risk_assessment: RiskAssessment


class RefinedPrognosis(_Strict):
    status: str
    explanation: NonEmptyText
    risk_factors: NonEmptyList
    long_term_outlook: NonEmptyText
    periodontal_stage: Optional[PeriodontalStageResult] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> str:
        cleaned = _clean_text(value).capitalize()
        if cleaned not in PROGNOSES:
            raise ValueError(f"status must be one of {', '.join(PROGNOSES)}")
        return cleaned


class DetailedTreatmentPlan(_Strict):
    immediate: NonEmptyList
    short_term: NonEmptyList
    long_term: NonEmptyList
    preventive_measures: NonEmptyList
    lifestyle: NonEmptyList


class EnhancedAnalysis(_Strict):
    refined_prognosis: RefinedPrognosis
    detailed_findings: DetailedFindings
    detailed_treatment_plan: DetailedTreatmentPlan


@dataclass(frozen=True, slots=True)
class SchemaCheck:
    ok: bool
    reason: Optional[str] = None
    analysis: Optional[EnhancedAnalysis] = None


def _describe(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid analysis"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def parse_enhanced_analysis(payload: Any) -> EnhancedAnalysis:
    """Validate ``payload`` as a whole; any single violation rejects it."""

    if isinstance(payload, EnhancedAnalysis):
        return payload
    if not isinstance(payload, dict):
        raise AnalysisValidationError("Invalid response structure")
    for alias, name in REQUIRED_SECTIONS:
        if not (payload.get(alias) or payload.get(name)):
            raise AnalysisValidationError(f"Missing required property: {alias}")
    try:
        return EnhancedAnalysis.model_validate(payload)
    except ValidationError as exc:
        errors = [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]
        raise AnalysisValidationError(_describe(exc), errors) from exc


def validate_enhanced_analysis(payload: Any) -> SchemaCheck:
    try:
        analysis = parse_enhanced_analysis(payload)
    except AnalysisValidationError as exc:
        return SchemaCheck(ok=False, reason=exc.reason)
    return SchemaCheck(ok=True, analysis=analysis)
