"""
Geometric periodontal staging from three radiograph landmarks.

The CEJ, crestal bone and root apex points arrive in source-image pixels. The
stager converts them to millimetres, derives the bone-loss percentage and walks
the joint (percentage, depth) ladder. A coarser percentage-only classifier is
exposed for callers that only hold a percentage (the fallback path).
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import ConfigDict, Field, field_validator

from .diagnostic_input import BoneLossFinding, Measurement
from .severity_rules import (
    NO_PERIODONTITIS,
    PERIODONTAL_STAGES,
    STAGE_CEILINGS,
    STAGING_INDETERMINATE,
    Prognosis,
    StageCeilings,
    StageName,
    severity_for_percentage,
)
from .wire import WireModel

logger = logging.getLogger(__name__)

DEFAULT_PIXELS_PER_MM = 7.0


class StagingInputError(ValueError):
    """Raised when the landmark coordinates or the pixel scale are unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.detail = {"stage": "staging", "msg": message}


class LandmarkPoint(WireModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    @field_validator("x", "y")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates must be finite")
        return value


class PeriodontalStageResult(WireModel):
    model_config = ConfigDict(frozen=True)

    stage: StageName
    description: str
    prognosis: Prognosis

    @field_validator("stage", "description", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = " ".join(value.split())
            if not value:
                raise ValueError("cannot be blank")
        return value

    @field_validator("prognosis", mode="before")
    @classmethod
    def _capitalize(cls, value: Any) -> Any:
        return value.strip().capitalize() if isinstance(value, str) else value


class StagingResult(WireModel):
    model_config = ConfigDict(frozen=True)

    bone_loss_percentage: Optional[float] = None
    root_length: float
    cej_to_bone: float
    cej_y: float
    bone_y: float
    apex_y: float
    stage_label: str
    stage_result: Optional[PeriodontalStageResult] = None
    indeterminate: bool = False


class StagingSummary(WireModel):
    model_config = ConfigDict(frozen=True)

    tooth_count: int
    staged_count: int
    average_bone_loss: Optional[float] = None
    max_bone_loss: Optional[float] = None
    stage_result: Optional[PeriodontalStageResult] = None
    indeterminate: bool = False


_Rule = Tuple[str, Callable[[float, float], bool]]


def _joint_ladder(ceilings: StageCeilings) -> Tuple[_Rule, ...]:
    p1, p2, p3 = ceilings.percentage
    d1, d2, d3 = ceilings.depth_mm
    # Ordered least to most severe; the first satisfied rung wins.
    return (
        (NO_PERIODONTITIS, lambda pct, mm: pct < p1 and mm < d1),
        ("Stage I", lambda pct, mm: pct <= p1 and mm <= d1),
        ("Stage II", lambda pct, mm: pct <= p2 and mm <= d2),
        ("Stage III", lambda pct, mm: p2 < pct <= p3 or d2 < mm <= d3),
        ("Stage IV", lambda pct, mm: pct > p3 or mm > d3),
    )


_LADDER = _joint_ladder(STAGE_CEILINGS)


def distance_px(a: LandmarkPoint, b: LandmarkPoint) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def distance_mm(a: LandmarkPoint, b: LandmarkPoint, pixels_per_mm: float) -> float:
    _require_scale(pixels_per_mm)
    return distance_px(a, b) / pixels_per_mm


def classify_joint(percentage: float, depth_mm: float) -> str:
    """Walk the joint ladder and return the first matching stage label."""

    for label, rule in _LADDER:
        if rule(percentage, depth_mm):
            return label
    return STAGING_INDETERMINATE


def _stage_result_for(label: str) -> Optional[PeriodontalStageResult]:
    for definition in PERIODONTAL_STAGES:
        if definition.stage == label:
            return PeriodontalStageResult(
                stage=definition.stage,
                description=definition.description,
                prognosis=definition.prognosis,
            )
    return None


def stage_from_percentage(percentage: float) -> PeriodontalStageResult:
    """Coarse percentage-only classifier sharing the ladder's upper-inclusive ceilings."""

    for ceiling, definition in zip(STAGE_CEILINGS.percentage, PERIODONTAL_STAGES):
        if percentage <= ceiling:
            break
    else:
        definition = PERIODONTAL_STAGES[-1]
    return PeriodontalStageResult(
        stage=definition.stage,
        description=definition.description,
        prognosis=definition.prognosis,
    )


def stage(
    cej: LandmarkPoint,
    bone: LandmarkPoint,
    apex: LandmarkPoint,
    pixels_per_mm: float = DEFAULT_PIXELS_PER_MM,
) -> StagingResult:
    """Convert three landmarks into bone-loss metrics and a periodontal stage."""

    _require_scale(pixels_per_mm)
    cej_to_bone = distance_mm(cej, bone, pixels_per_mm)
    cej_to_apex = distance_mm(cej, apex, pixels_per_mm)
    common = {
        "root_length": cej_to_apex,
        "cej_to_bone": cej_to_bone,
        "cej_y": cej.y / pixels_per_mm,
        "bone_y": bone.y / pixels_per_mm,
        "apex_y": apex.y / pixels_per_mm,
    }

    if cej_to_apex <= 0:
        logger.warning("Degenerate landmarks: CEJ and apex coincide at (%s, %s)", cej.x, cej.y)
        return StagingResult(stage_label=STAGING_INDETERMINATE, indeterminate=True, **common)

    percentage = 100.0 * cej_to_bone / cej_to_apex
    label = classify_joint(percentage, cej_to_bone)
    logger.debug("Staged landmarks pct=%.2f depth_mm=%.2f label=%s", percentage, cej_to_bone, label)
    return StagingResult(
        bone_loss_percentage=percentage,
        stage_label=label,
        stage_result=_stage_result_for(label),
        indeterminate=label == STAGING_INDETERMINATE,
        **common,
    )


def bone_loss_finding_from_staging(
    result: StagingResult,
    *,
    regions: Sequence[str] = (),
    confidence: float = 1.0,
) -> Optional[BoneLossFinding]:
    """Derive the case finding fed back into the pipeline; ``None`` when indeterminate."""

    if result.indeterminate or result.bone_loss_percentage is None:
        return None
    percentage = min(100.0, max(0.0, result.bone_loss_percentage))
    measurements = [
        Measurement(type="CEJ Y", value=round(result.cej_y, 1), confidence=confidence),
        Measurement(type="Bone Y", value=round(result.bone_y, 1), confidence=confidence),
        Measurement(type="Apex Y", value=round(result.apex_y, 1), confidence=confidence),
        Measurement(type="CEJ-Bone Distance", value=round(result.cej_to_bone, 1), confidence=confidence),
        Measurement(type="Root Length", value=round(result.root_length, 1), confidence=confidence),
    ]
    return BoneLossFinding(
        percentage=round(percentage, 1),
        severity=severity_for_percentage(percentage),
        regions=[r for r in regions if r and r.strip()],
        measurements=measurements,
    )


def summarize_stagings(results: Iterable[StagingResult]) -> StagingSummary:
    """Overall assessment across teeth: average and worst bone loss plus the worst stage."""

    items = list(results)
    percentages: List[float] = [
        r.bone_loss_percentage for r in items if not r.indeterminate and r.bone_loss_percentage is not None
    ]
    if not percentages:
        return StagingSummary(tooth_count=len(items), staged_count=0, indeterminate=True)
    worst = max(percentages)
    return StagingSummary(
        tooth_count=len(items),
        staged_count=len(percentages),
        average_bone_loss=round(sum(percentages) / len(percentages), 1),
        max_bone_loss=round(worst, 1),
        stage_result=stage_from_percentage(worst),
    )


def _require_scale(pixels_per_mm: float) -> None:
    if not (isinstance(pixels_per_mm, (int, float)) and math.isfinite(pixels_per_mm) and pixels_per_mm > 0):
        raise StagingInputError(f"pixels_per_mm must be a positive number, got {pixels_per_mm!r}")


__all__ = [
    "DEFAULT_PIXELS_PER_MM",
    "LandmarkPoint",
    "PeriodontalStageResult",
    "StagingInputError",
    "StagingResult",
    "StagingSummary",
    "bone_loss_finding_from_staging",
    "classify_joint",
    "distance_mm",
    "distance_px",
    "stage",
    "stage_from_percentage",
    "summarize_stagings",
]
