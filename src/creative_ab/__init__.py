"""
Creative A/B - Title/Thumbnail Experiment Analytics
===================================================

Analytics and decision engine for experiments where two creatives (title and
thumbnail variants A and B) alternate daily on a single video.

Modules:
--------
- core: Data model, numeric helpers, two-proportion z-test
- timeline: Which variant was live on each day (exact events or day parity)
- metrics: Per-variant CTR, watch-time per impression and composite score
- diagnostics: Exposure/impression guardrails and eligibility predicates
- decision: Pending/auto/inconclusive winner decisions and portfolio lift
- data: Loaders for collector and store exports
- pipelines: End-to-end evaluation of one experiment snapshot

Example Usage:
--------------
>>> from creative_ab.config import settings
>>> from creative_ab.metrics import performance
>>> from creative_ab.decision import framework
>>>
>>> config = settings.scoring_config()
>>> split = performance.compute_variant_performance(rows, '2026-01-01', config.weights)
>>> decision = framework.evaluate_winner_decision(split, 14, config, test_completed=True)
>>> print(decision.winner_mode, decision.winner_variant)

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__license__ = "MIT"

from creative_ab.core import frequentist, models, numeric
from creative_ab.timeline import history
from creative_ab.metrics import performance
from creative_ab.decision import framework, portfolio

__all__ = [
    "frequentist",
    "models",
    "numeric",
    "history",
    "performance",
    "framework",
    "portfolio",
]
