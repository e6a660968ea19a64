"""
Client for the external generative service (Gemini ``generateContent`` REST API).

The runner performs exactly one HTTP call per ``generate``; admission, quota
retries and fallback decisions belong to the rate limiter and orchestrator.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .rate_limiter import QuotaExceededError
from .settings import env_float, env_int

logger = logging.getLogger(__name__)

_HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GenerativeServiceError(RuntimeError):
    """Raised for any non-quota failure talking to the generative service."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = {"stage": "generate", "msg": message, "status_code": status_code}


@dataclass(slots=True)
class GenerationResult:
    text: str
    model: str
    latency_ms: int
    finish_reason: Optional[str] = None


@dataclass
class GenerativeRunner:
    base_url: str = "https://generativelanguage.googleapis.com"
    model: str = "gemini-pro"
    api_key: Optional[str] = None
    timeout: float = 60.0
    temperature: float = 0.3
    top_k: int = 20
    top_p: float = 0.85
    max_output_tokens: int = 2048
    _client: Optional[httpx.AsyncClient] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

    @classmethod
    def from_env(cls) -> "GenerativeRunner":
        return cls(
            base_url=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"),
            model=os.getenv("GEMINI_MODEL", "gemini-pro"),
            api_key=os.getenv("GEMINI_API_KEY") or None,
            timeout=env_float("GEMINI_TIMEOUT", 60.0),
            temperature=env_float("GEMINI_TEMPERATURE", 0.3),
            top_k=env_int("GEMINI_TOP_K", 20),
            top_p=env_float("GEMINI_TOP_P", 0.85),
            max_output_tokens=env_int("GEMINI_MAX_OUTPUT_TOKENS", 2048),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _endpoint(self, action: str = ":generateContent") -> str:
        return f"{self.base_url}/v1beta/models/{self.model}{action}"

    def _headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self.api_key or "", "content-type": "application/json"}

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": self.top_k,
                "topP": self.top_p,
                "maxOutputTokens": self.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_NONE"} for category in _HARM_CATEGORIES
            ],
        }

    async def generate(self, prompt: str) -> GenerationResult:
        if not self.configured:
            raise GenerativeServiceError("Generative service API key is not configured")
        client = self._client
        assert client is not None
        start = time.perf_counter()
        try:
            response = await client.post(self._endpoint(), json=self.build_payload(prompt), headers=self._headers())
        except httpx.HTTPError as exc:
            raise GenerativeServiceError(f"Generative service unreachable: {exc}") from exc

        if response.status_code == 429:
            raise QuotaExceededError(f"Generative service quota exceeded: {response.text[:200]}")
        if response.is_error:
            raise GenerativeServiceError(
                f"Generative service returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise GenerativeServiceError("Generative service returned a non-JSON envelope") from exc
        if not isinstance(data, dict):
            raise GenerativeServiceError("Generative service returned an unexpected envelope")

        latency_ms = int((time.perf_counter() - start) * 1000)
        text, finish_reason = _extract_text(data)
        logger.debug("Generative call model=%s latency_ms=%d chars=%d", self.model, latency_ms, len(text))
        return GenerationResult(
            text=text,
            model=str(data.get("modelVersion") or self.model),
            latency_ms=latency_ms,
            finish_reason=finish_reason,
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def health(self) -> bool:
        """Lightweight readiness check against the model metadata endpoint."""

        if not self.configured:  # Offline mode still serves fallbacks.
            return True
        client = self._client
        assert client is not None
        try:
            response = await client.get(self._endpoint(""), headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPError:
            return False
        return True


def _extract_text(data: Dict[str, Any]) -> tuple[str, Optional[str]]:
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return "", None
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") if isinstance(first.get("content"), dict) else {}
    parts: List[Any] = content.get("parts") or []
    texts = [str(part.get("text", "")) for part in parts if isinstance(part, dict)]
    return "".join(texts), first.get("finishReason")


__all__ = ["GenerationResult", "GenerativeRunner", "GenerativeServiceError"]
