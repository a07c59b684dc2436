"""Reconstruction of which variant was live on each day."""

from creative_ab.timeline import history

__all__ = ["history"]
