"""Service health checks aggregated under /health."""

from __future__ import annotations

import os
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


def _app_version() -> str:
    return (
        os.getenv("APP_VERSION")
        or os.getenv("GIT_SHA")
        or os.getenv("COMMIT_SHA")
        or "dev"
    )


async def _llm_ok(request: Request) -> bool:
    runner = getattr(request.app.state, "llm", None)
    if runner is None:
        return False
    try:
        return bool(await runner.health())
    except Exception:
        return False


def _quota(request: Request) -> Dict[str, Any]:
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return {}
    return limiter.snapshot()


def _offline(request: Request) -> bool:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    return bool(orchestrator is None or orchestrator.offline)


@router.get("/health", name="health_root")
async def health_root(request: Request) -> Dict[str, Any]:
    llm_ok = await _llm_ok(request)
    return {
        "ok": llm_ok,
        "version": _app_version(),
        "offline": _offline(request),
        "details": {"llm": llm_ok},
        "quota": _quota(request),
    }


@router.get("/health/llm", name="health_llm")
async def health_llm(request: Request) -> Dict[str, bool]:
    return {"ok": await _llm_ok(request), "offline": _offline(request)}


@router.get("/health/quota", name="health_quota")
async def health_quota(request: Request) -> Dict[str, Any]:
    return _quota(request)


__all__ = ["router"]
