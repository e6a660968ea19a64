import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from dental_cdss import __version__
from dental_cdss.api.routers import analysis, health, risk, staging
from dental_cdss.api.services.llm_runner import GenerativeRunner
from dental_cdss.api.services.orchestrator import AnalysisOrchestrator, OrchestratorSettings
from dental_cdss.api.services.rate_limiter import RateLimiter

logging.getLogger("dental_cdss").setLevel(os.getenv("LOG_LEVEL", "INFO").upper())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the process-wide rate limiter, generative client and orchestrator on
    startup and close the HTTP client on shutdown. Every request shares the same
    limiter, so concurrent assessments draw on one quota.
    """
    rate_limiter = RateLimiter.from_env()
    llm_runner = GenerativeRunner.from_env()
    orchestrator = AnalysisOrchestrator(
        rate_limiter,
        llm_runner,
        settings=OrchestratorSettings.from_env(),
    )

    app.state.rate_limiter = rate_limiter
    app.state.llm = llm_runner
    app.state.orchestrator = orchestrator

    try:
        yield
    finally:
        await llm_runner.aclose()


app = FastAPI(
    title="Dental Clinical Decision-Support Pipeline",
    version=__version__,
    lifespan=lifespan,
)


# Router registration -------------------------------------------------------
app.include_router(health.router)
app.include_router(analysis.router, prefix="/analysis", tags=["analysis"])
app.include_router(staging.router, prefix="/staging", tags=["staging"])
app.include_router(risk.router, prefix="/risk", tags=["risk"])
