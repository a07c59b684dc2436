"""Shared data model, numeric helpers and significance tests."""

from creative_ab.core import frequentist, models, numeric

__all__ = ["frequentist", "models", "numeric"]
