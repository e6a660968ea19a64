"""Request payload accepted by the reliability pipeline."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, ValidationError, field_validator, model_validator

from .settings import parse_flag
from .severity_rules import coerce_severity, severity_for_percentage
from .wire import WireModel

__all__ = [
    "BoneLossFinding",
    "CaseFindings",
    "DiagnosticInput",
    "DiagnosticInputError",
    "Measurement",
    "Pathology",
    "PatientContext",
    "coerce_diagnostic_input",
]

_HISTORY_FLAGS = ("smoking", "diabetes", "hypertension", "alcohol")


class DiagnosticInputError(ValueError):
    """Raised when an inbound request misses the diagnosis or findings."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.detail = {"stage": "input", "msg": message, "errors": errors or []}


class Measurement(WireModel):
    model_config = ConfigDict(frozen=True)

    type: str
    value: float
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class BoneLossFinding(WireModel):
    model_config = ConfigDict(frozen=True)

    percentage: float = Field(ge=0.0, le=100.0)
    severity: str
    regions: List[str] = Field(default_factory=list)
    measurements: List[Measurement] = Field(default_factory=list)
    severity_stated: bool = Field(default=True, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _canonical_severity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        severity = coerce_severity(payload.get("severity"))
        if severity is None:
            payload["severity_stated"] = False
            try:
                severity = severity_for_percentage(float(payload.get("percentage")))
            except (TypeError, ValueError):
                # Let the percentage field report the real problem.
                severity = "mild"
        payload["severity"] = severity
        return payload


class Pathology(WireModel):
    model_config = ConfigDict(frozen=True)

    type: str
    location: str = "Unspecified location"
    severity: str = "mild"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("severity", mode="before")
    @classmethod
    def _canonical_severity(cls, value: Any) -> str:
        return coerce_severity(value) or "mild"

    @field_validator("type", "location")
    @classmethod
    def _strip(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if not cleaned:
            raise ValueError("cannot be blank")
        return cleaned


class CaseFindings(WireModel):
    model_config = ConfigDict(frozen=True)

    bone_loss: Optional[BoneLossFinding] = None
    pathologies: List[Pathology] = Field(default_factory=list)


class PatientContext(WireModel):
    model_config = ConfigDict(frozen=True)

    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = None
    risk_factors: List[str] = Field(default_factory=list)
    smoking: bool = False
    diabetes: bool = False
    hypertension: bool = False
    alcohol: bool = False
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_medical_history(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        history = data.get("medicalHistory") or data.get("medical_history")
        if not isinstance(history, dict):
            return data
        payload = {k: v for k, v in data.items() if k not in ("medicalHistory", "medical_history")}
        extras = list(payload.get("riskFactors") or payload.get("risk_factors") or [])
        for key, value in history.items():
            flag = parse_flag(value)
            if key in _HISTORY_FLAGS:
                # Unrecognised text is left for the bool field to reject.
                payload.setdefault(key, value if flag is None else flag)
            elif key == "notes":
                payload.setdefault("notes", value)
            elif flag:
                extras.append(key)
        payload["riskFactors"] = extras
        payload.pop("risk_factors", None)
        return payload

    @field_validator("age", mode="before")
    @classmethod
    def _coerce_age(cls, value: Any) -> Any:
        if isinstance(value, str):
            cleaned = value.strip()
            return int(cleaned) if cleaned else None
        return value

    def has(self, factor: str) -> bool:
        """True when the factor is flagged or listed among the free-text risk factors."""

        key = factor.strip().lower()
        if key in _HISTORY_FLAGS and getattr(self, key):
            return True
        return any(key == entry.strip().lower() for entry in self.risk_factors)

    def present_factors(self) -> List[str]:
        seen: List[str] = []
        for flag in _HISTORY_FLAGS:
            if getattr(self, flag):
                seen.append(flag)
        for entry in self.risk_factors:
            cleaned = entry.strip().lower()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return seen


class DiagnosticInput(WireModel):
    model_config = ConfigDict(frozen=True)

    diagnosis: str
    findings: CaseFindings
    patient_context: PatientContext = Field(default_factory=PatientContext)

    @field_validator("diagnosis")
    @classmethod
    def _require_diagnosis(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("diagnosis cannot be blank")
        return cleaned


def coerce_diagnostic_input(payload: Dict[str, Any] | DiagnosticInput | None) -> DiagnosticInput:
    """Validate an inbound payload, raising ``DiagnosticInputError`` on contract violations."""

    if isinstance(payload, DiagnosticInput):
        return payload
    data = dict(payload or {})
    if not data.get("diagnosis"):
        raise DiagnosticInputError("Invalid input: missing diagnosis")
    if data.get("findings") is None:
        raise DiagnosticInputError("Invalid input: missing findings")
    # Accept the legacy "patientData" key from older case records.
    if "patientContext" not in data and "patient_context" not in data and "patientData" in data:
        data["patientContext"] = data.pop("patientData")
    try:
        return DiagnosticInput.model_validate(data)
    except ValidationError as exc:
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
            for err in exc.errors()
        ]
        raise DiagnosticInputError("Invalid input: malformed request", errors) from exc
