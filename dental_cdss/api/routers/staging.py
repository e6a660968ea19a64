"""Landmark-based periodontal staging endpoints."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from pydantic import Field

from dental_cdss.api.services.staging import (
    DEFAULT_PIXELS_PER_MM,
    LandmarkPoint,
    StagingInputError,
    StagingResult,
    bone_loss_finding_from_staging,
    stage,
    stage_from_percentage,
    summarize_stagings,
)
from dental_cdss.api.services.wire import WireModel

router = APIRouter()


class StagingReq(WireModel):
    cej: LandmarkPoint
    bone: LandmarkPoint
    apex: LandmarkPoint
    pixels_per_mm: float = DEFAULT_PIXELS_PER_MM
    regions: List[str] = Field(default_factory=list)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class BandReq(WireModel):
    percentage: float = Field(ge=0.0, le=100.0)


class SummaryReq(WireModel):
    teeth: List[StagingReq] = Field(min_length=1)


def _stage(req: StagingReq) -> StagingResult:
    try:
        return stage(req.cej, req.bone, req.apex, req.pixels_per_mm)
    except StagingInputError as exc:
        raise HTTPException(status_code=422, detail=exc.detail) from exc


@router.post("")
async def stage_tooth(req: StagingReq) -> Dict[str, Any]:
    result = _stage(req)
    finding = bone_loss_finding_from_staging(result, regions=req.regions, confidence=req.confidence)
    payload = result.to_wire()
    payload["boneLoss"] = finding.to_wire() if finding is not None else None
    return payload


@router.post("/bands")
async def stage_band(req: BandReq) -> Dict[str, Any]:
    return stage_from_percentage(req.percentage).to_wire()


@router.post("/summary")
async def stage_summary(req: SummaryReq) -> Dict[str, Any]:
    results = [_stage(tooth) for tooth in req.teeth]
    return {
        "summary": summarize_stagings(results).to_wire(),
        "teeth": [result.to_wire() for result in results],
    }


__all__ = ["router"]
