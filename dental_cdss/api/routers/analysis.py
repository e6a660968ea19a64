"""Enhanced-analysis endpoints backed by the reliability pipeline."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response

from dental_cdss.api.services.diagnostic_input import DiagnosticInputError
from dental_cdss.api.services.llm_runner import GenerativeServiceError
from dental_cdss.api.services.orchestrator import AnalysisOrchestrator
from dental_cdss.api.services.rate_limiter import RetryBudgetExhaustedError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    orchestrator: AnalysisOrchestrator | None = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=500, detail="Analysis orchestrator unavailable")
    return orchestrator


@router.post("/enhanced")
async def enhanced_analysis(
    response: Response,
    payload: Dict[str, Any] = Body(...),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    try:
        outcome = await orchestrator.analyze(payload)
    except DiagnosticInputError as exc:
        raise HTTPException(status_code=422, detail=exc.detail) from exc
    except RetryBudgetExhaustedError as exc:
        logger.error("Enhanced analysis rejected: %s", exc)
        raise HTTPException(status_code=503, detail=exc.detail, headers={"Retry-After": "60"}) from exc
    except GenerativeServiceError as exc:
        logger.error("Enhanced analysis failed upstream: %s", exc)
        raise HTTPException(status_code=502, detail=exc.detail) from exc

    response.headers["X-Analysis-Source"] = outcome.kind
    return outcome.to_payload()


@router.post("/confidence")
async def confidence_assessment(
    payload: Dict[str, Any] = Body(...),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    try:
        assessment = orchestrator.assess(payload)
    except DiagnosticInputError as exc:
        raise HTTPException(status_code=422, detail=exc.detail) from exc
    return assessment.to_wire()


__all__ = ["router"]
