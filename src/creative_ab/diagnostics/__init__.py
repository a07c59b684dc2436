"""Data-volume guardrails checked before trusting a winner."""

from creative_ab.diagnostics import guardrails

__all__ = ["guardrails"]
