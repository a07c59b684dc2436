"""
End-to-end evaluation of a single experiment.

Composes the timeline reconstructor, the performance aggregator and the
winner decision engine over one consistent snapshot of daily rows and
rotation events:

1. Label every metric day with the variant that was live (exact or inferred)
2. Aggregate per-variant performance from those labels
3. Decide pending / auto / inconclusive, depending on whether the planned
   duration has elapsed
"""

# Lazy import so `python -m creative_ab.pipelines.evaluation` does not
# import the module twice

__all__ = [
    'evaluate_experiment',
]


def __getattr__(name: str):
    """Import pipeline functions on first access."""
    if name == 'evaluate_experiment':
        from creative_ab.pipelines.evaluation import evaluate_experiment
        return evaluate_experiment
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
