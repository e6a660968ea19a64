from __future__ import annotations

import pytest

from dental_cdss.api.services.diagnostic_input import (
    DiagnosticInputError,
    PatientContext,
    coerce_diagnostic_input,
)
from dental_cdss.api.services.settings import parse_flag


@pytest.mark.parametrize("value", ["no", "false", "False", "0", "off", "", 0, None, False])
def test_negative_history_flags_stay_false(value) -> None:
    patient = PatientContext.model_validate({"medicalHistory": {"smoking": value, "diabetes": value}})
    assert patient.smoking is False
    assert patient.diabetes is False
    assert patient.has("smoking") is False


@pytest.mark.parametrize("value", ["yes", "TRUE", "1", "on", 1, True])
def test_positive_history_flags(value) -> None:
    patient = PatientContext.model_validate({"medicalHistory": {"smoking": value}})
    assert patient.smoking is True


def test_unrecognised_history_flag_is_rejected() -> None:
    with pytest.raises(DiagnosticInputError) as excinfo:
        coerce_diagnostic_input(
            {
                "diagnosis": "Gingivitis",
                "findings": {},
                "patientData": {"medicalHistory": {"smoking": "sometimes"}},
            }
        )
    assert excinfo.value.detail["msg"] == "Invalid input: malformed request"


def test_extra_history_entries_become_risk_factors() -> None:
    patient = PatientContext.model_validate(
        {"age": " 47 ", "medicalHistory": {"bruxism": "yes", "osteoporosis": "no", "notes": "Anxious patient"}}
    )
    assert patient.age == 47
    assert patient.risk_factors == ["bruxism"]
    assert patient.notes == "Anxious patient"
    assert patient.present_factors() == ["bruxism"]


def test_parse_flag() -> None:
    assert parse_flag(" Yes ") is True
    assert parse_flag("off") is False
    assert parse_flag(2.5) is True
    assert parse_flag("maybe") is None
    assert parse_flag(["x"]) is None
