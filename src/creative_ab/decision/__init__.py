"""Winner decisions for single experiments and portfolio roll-ups."""

from creative_ab.decision import framework, portfolio

__all__ = ["framework", "portfolio"]
