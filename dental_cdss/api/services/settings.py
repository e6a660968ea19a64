"""Environment and yes/no flag helpers shared by the ``from_env`` constructors and input models."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid float for %s=%s; falling back to %s", name, value, default)
        return default


def env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid int for %s=%s; falling back to %s", name, value, default)
        return default


def parse_flag(value: Any) -> Optional[bool]:
    """Interpret a yes/no style value; ``None`` when it is not recognisable."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
    return None


def env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    parsed = parse_flag(value)
    if parsed is not None:
        return parsed
    logger.warning("Invalid bool for %s=%s; falling back to %s", name, value, default)
    return default


__all__ = ["env_bool", "env_float", "env_int", "parse_flag"]
