"""
Top-level coordinator for enhanced analyses.

Flow: validate input -> score findings -> (low score or offline: fallback) ->
rate-limited generative call -> sanitize -> validate -> validated result, or a
fallback when the answer cannot be trusted. Quota exhaustion and service
failures propagate to the caller; malformed output never does.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from . import confidence, fallback
from .analysis_outcome import (
    FallbackAnalysis,
    FallbackReason,
    ValidatedAnalysis,
    build_envelope,
)
from .analysis_schema import validate_enhanced_analysis
from .confidence import ConfidenceAssessment
from .diagnostic_input import DiagnosticInput, coerce_diagnostic_input
from .llm_runner import GenerationResult, GenerativeRunner
from .prompt import build_prompt
from .rate_limiter import RateLimiter
from .sanitizer import parse_candidate, sanitize
from .settings import env_bool

logger = logging.getLogger(__name__)

MALFORMED_OUTPUT_CONFIDENCE = 0.5

Outcome = Union[ValidatedAnalysis, FallbackAnalysis]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class OrchestratorSettings:
    offline: bool = False
    model_version: str = "1.0"

    @classmethod
    def from_env(cls) -> "OrchestratorSettings":
        return cls(
            offline=env_bool("CDSS_OFFLINE", False),
            model_version=os.getenv("CDSS_MODEL_VERSION", "1.0"),
        )


class AnalysisOrchestrator:
    """Returns either a validated model analysis or a deterministic fallback."""

    def __init__(
        self,
        limiter: RateLimiter,
        runner: Optional[GenerativeRunner] = None,
        *,
        settings: Optional[OrchestratorSettings] = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._limiter = limiter
        self._runner = runner
        self._settings = settings or OrchestratorSettings()
        self._now = now

    @property
    def offline(self) -> bool:
        runner = self._runner
        return self._settings.offline or runner is None or not runner.configured

    def assess(self, payload: Dict[str, Any] | DiagnosticInput) -> ConfidenceAssessment:
        data = coerce_diagnostic_input(payload)
        return confidence.score(data.findings)

    async def analyze(self, payload: Dict[str, Any] | DiagnosticInput) -> Outcome:
        data = coerce_diagnostic_input(payload)
        assessment = confidence.score(data.findings)

        if not assessment.acceptable:
            logger.warning(
                "Confidence %.2f below minimum acceptable; using fallback without a generative call",
                assessment.confidence_score,
            )
            return self._fallback(
                data,
                assessment.with_notes(["Confidence below minimum acceptable threshold"]),
                FallbackReason.LOW_CONFIDENCE,
            )

        if self.offline:
            logger.info("Generative service offline; using fallback")
            return self._fallback(
                data,
                assessment.with_notes(["Generative service offline"]),
                FallbackReason.OFFLINE,
            )

        runner = self._runner
        assert runner is not None
        prompt = build_prompt(data)
        result: GenerationResult = await self._limiter.invoke(lambda: runner.generate(prompt))
        logger.info("Generative call completed model=%s latency_ms=%d", result.model, result.latency_ms)
        return self._interpret(data, assessment, result)

    def _interpret(
        self,
        data: DiagnosticInput,
        assessment: ConfidenceAssessment,
        result: GenerationResult,
    ) -> Outcome:
        raw = result.text or ""
        logger.debug("Raw generative response (%d chars): %s", len(raw), raw)
        if not raw.strip():
            return self._malformed(data, assessment, FallbackReason.EMPTY_RESPONSE, "Empty response from API")

        candidate = sanitize(raw)
        logger.debug("Sanitized generative response (%d chars): %s", len(candidate), candidate)
        parsed = parse_candidate(candidate)
        if parsed is None:
            return self._malformed(data, assessment, FallbackReason.INVALID_JSON, "Invalid JSON format")
        if not isinstance(parsed, dict):
            return self._malformed(
                data, assessment, FallbackReason.INVALID_STRUCTURE, "Invalid response structure"
            )

        check = validate_enhanced_analysis(parsed)
        if not check.ok or check.analysis is None:
            return self._malformed(
                data,
                assessment,
                FallbackReason.FAILED_VALIDATION,
                f"Failed validation: {check.reason}",
            )
        return ValidatedAnalysis(analysis=check.analysis, assessment=assessment, model=result.model)

    def _malformed(
        self,
        data: DiagnosticInput,
        assessment: ConfidenceAssessment,
        reason: FallbackReason,
        note: str,
    ) -> FallbackAnalysis:
        logger.warning("Generative output rejected (%s); using fallback", note)
        degraded = assessment.with_notes([note], score=MALFORMED_OUTPUT_CONFIDENCE)
        return self._fallback(data, degraded, reason)

    def _fallback(
        self,
        data: DiagnosticInput,
        assessment: ConfidenceAssessment,
        reason: FallbackReason,
    ) -> FallbackAnalysis:
        notes: List[str] = list(assessment.validations)
        analysis = fallback.generate(data, assessment.confidence_score, notes)
        envelope = build_envelope(
            assessment,
            generated_at=self._now(),
            model_version=self._settings.model_version,
        )
        return FallbackAnalysis(analysis=analysis, assessment=assessment, reason=reason, envelope=envelope)


__all__ = [
    "AnalysisOrchestrator",
    "MALFORMED_OUTPUT_CONFIDENCE",
    "OrchestratorSettings",
    "Outcome",
]
