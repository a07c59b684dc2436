"""Per-variant performance aggregation."""

from creative_ab.metrics import performance

__all__ = ["performance"]
