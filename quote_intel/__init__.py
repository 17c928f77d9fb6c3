"""Quote intelligence core: triage, signal fusion and the quality gate."""

__version__ = "0.1.0"
