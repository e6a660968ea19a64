"""Clinical decision-support reliability pipeline for dental case analysis."""

__version__ = "0.1.0"
