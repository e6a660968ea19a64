"""Service layer for the decision-support pipeline."""

from .llm_runner import GenerativeRunner  # noqa: F401
from .orchestrator import AnalysisOrchestrator  # noqa: F401
from .rate_limiter import RateLimiter  # noqa: F401

__all__ = [
    "AnalysisOrchestrator",
    "GenerativeRunner",
    "RateLimiter",
]
