"""
Best-effort textual clean-up of generative-service output.

Nothing here judges whether the result is clinically or structurally correct;
``analysis_schema`` is the only authority on that. ``sanitize`` never raises and
never invents braces: text without a ``{`` stays unparseable.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?|\n?```")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_-]*)(\s*:)")
_SINGLE_QUOTED_RE = re.compile(r"(?<=[\[{,:])(\s*)'((?:[^'\\]|\\.)*)'")


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def outermost_object(text: str) -> str:
    """Keep the span from the first ``{`` to the last ``}``; otherwise return ``text`` unchanged."""

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return text
    return text[start : end + 1]


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def quote_keys(text: str) -> str:
    return _UNQUOTED_KEY_RE.sub(r'\1"\2"\3', text)


def _requote(match: "re.Match[str]") -> str:
    inner = match.group(2).replace("\\'", "'").replace('"', '\\"')
    return f'{match.group(1)}"{inner}"'


def double_quote_strings(text: str) -> str:
    return _SINGLE_QUOTED_RE.sub(_requote, text)


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True


def sanitize(raw_text: Optional[str]) -> str:
    """Return the most parseable candidate text that can be recovered from ``raw_text``."""

    try:
        candidate = outermost_object(strip_fences(raw_text or ""))
        if not candidate or _parses(candidate):
            return candidate
        for repair in (
            remove_trailing_commas,
            lambda text: remove_trailing_commas(quote_keys(double_quote_strings(text))),
        ):
            repaired = repair(candidate)
            if _parses(repaired):
                logger.debug("Sanitizer repaired malformed JSON (%d chars)", len(candidate))
                return repaired
        return remove_trailing_commas(candidate)
    except Exception:  # pragma: no cover - regex engine failures only
        logger.debug("Sanitizer gave up on input", exc_info=True)
        return raw_text if isinstance(raw_text, str) else ""


def parse_candidate(candidate: str) -> Optional[Any]:
    """Decode sanitized text; ``None`` signals that nothing parseable was recovered."""

    if not candidate:
        return None
    try:
        return json.loads(candidate)
    except (TypeError, ValueError):
        return None


def parse_object(raw_text: Optional[str]) -> Optional[Dict[str, Any]]:
    parsed = parse_candidate(sanitize(raw_text))
    return parsed if isinstance(parsed, dict) else None


__all__ = [
    "double_quote_strings",
    "outermost_object",
    "parse_candidate",
    "parse_object",
    "quote_keys",
    "remove_trailing_commas",
    "sanitize",
    "strip_fences",
]
