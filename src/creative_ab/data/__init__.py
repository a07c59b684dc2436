"""Loaders that turn collector and store exports into engine records."""

from creative_ab.data import loaders

__all__ = ["loaders"]
