"""Drift detection and branch-policy gate for generated schema code."""

__version__ = "0.1.0"
