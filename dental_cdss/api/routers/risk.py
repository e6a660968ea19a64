"""Chairside periodontal risk scores."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from dental_cdss.api.services.clinical_scores import (
    BleedingChart,
    ProgressionFactors,
    assess_bleeding,
    progression_risk,
)

router = APIRouter()


@router.post("/bleeding")
async def bleeding_on_probing(req: BleedingChart) -> Dict[str, Any]:
    return assess_bleeding(req).to_wire()


@router.post("/progression")
async def disease_progression(req: ProgressionFactors) -> Dict[str, Any]:
    return progression_risk(req).to_wire()


__all__ = ["router"]
