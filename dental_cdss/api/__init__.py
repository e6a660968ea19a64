"""HTTP surface and service layer for the decision-support pipeline."""
