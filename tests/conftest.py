from __future__ import annotations

import asyncio
import copy
from typing import Any, Dict, List

import pytest

_VALID_ANALYSIS: Dict[str, Any] = {
    "refinedPrognosis": {
        "status": "Fair",
        "explanation": "Moderate horizontal bone loss with controllable risk factors.",
        "riskFactors": ["Active smoker"],
        "longTermOutlook": "Stable with regular maintenance.",
    },
    "detailedFindings": {
        "primaryCondition": {
            "description": "Generalized moderate chronic periodontitis",
            "severity": "moderate",
            "implications": ["Progressive attachment loss if untreated"],
        },
        "secondaryFindings": [
            {
                "condition": "Calculus",
                "description": "Subgingival calculus on lower incisors",
                "severity": "mild",
                "implications": ["Requires scaling"],
            }
        ],
        "riskAssessment": {
            "current": "Moderate",
            "future": "High without smoking cessation",
            "mitigationStrategies": ["Smoking cessation programme"],
        },
    },
    "detailedTreatmentPlan": {
        "immediate": ["Scaling and root planing"],
        "shortTerm": ["Re-evaluation at 6 weeks"],
        "longTerm": ["Three-monthly maintenance"],
        "preventiveMeasures": ["Interdental brushing"],
        "lifestyle": ["Stop smoking"],
    },
}


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


@pytest.fixture
def analysis_payload() -> Dict[str, Any]:
    return copy.deepcopy(_VALID_ANALYSIS)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
