"""Router package for the decision-support API."""

from . import analysis, health, risk, staging  # noqa: F401

__all__ = ["analysis", "health", "risk", "staging"]
