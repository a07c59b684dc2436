"""
Daily Experiment Evaluation
===========================

Runs one experiment snapshot through timeline reconstruction, aggregation and
the winner decision. The external daily job calls this once per active
experiment and persists the result; nothing here touches the store or the
video platform.

Example Usage:
--------------
>>> from creative_ab.config import settings
>>> from creative_ab.pipelines.evaluation import evaluate_experiment
>>>
>>> evaluation = evaluate_experiment(
...     test, daily_rows, events, settings.scoring_config(), as_of='2026-01-15'
... )
>>> print(evaluation.decision.winner_mode, evaluation.decision.reason)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from creative_ab.core.models import (
    CurrentVariantState,
    DailyMetricPoint,
    DailyVariantResult,
    ExperimentRecord,
    ScoringConfig,
    SplitVariantPerformance,
    VariantEvent,
    WinnerDecision,
)
from creative_ab.decision.framework import evaluate_winner_decision
from creative_ab.log import get_logger
from creative_ab.metrics.performance import aggregate_variant_performance
from creative_ab.timeline.history import current_state, daily_assignment, day_offset

logger = get_logger("pipelines.evaluation")


def days_elapsed(start_date: Any, as_of: Any) -> int:
    """Whole UTC calendar days from ``start_date`` to ``as_of`` (never negative)."""
    return max(0, day_offset(as_of, start_date))


def is_test_completed(start_date: Any, duration_days: int, as_of: Any) -> bool:
    """
    Whether the planned duration has elapsed.

    Example
    -------
    >>> is_test_completed('2026-01-01', 14, '2026-01-15')
    True
    >>> is_test_completed('2026-01-01', 14, '2026-01-14')
    False
    """
    return days_elapsed(start_date, as_of) >= duration_days


@dataclass(frozen=True)
class ExperimentEvaluation:
    """Everything computed for one experiment in one evaluation."""
    test_id: str
    days_elapsed: int
    completed: bool
    current: CurrentVariantState
    daily: List[DailyVariantResult]
    performance: SplitVariantPerformance
    decision: WinnerDecision

    def to_dict(self) -> Dict[str, Any]:
        return {
            'test_id': self.test_id,
            'days_elapsed': self.days_elapsed,
            'completed': self.completed,
            'current': self.current.to_dict(),
            'daily': [day.to_dict() for day in self.daily],
            'performance': self.performance.to_dict(),
            'decision': self.decision.to_dict(),
        }


def evaluate_experiment(
    test: ExperimentRecord,
    daily_rows: Sequence[DailyMetricPoint],
    events: Sequence[VariantEvent],
    config: ScoringConfig,
    as_of: Any,
    test_completed: Optional[bool] = None,
) -> ExperimentEvaluation:
    """
    Evaluate one experiment snapshot.

    Parameters
    ----------
    test : ExperimentRecord
        The experiment row
    daily_rows : sequence of DailyMetricPoint
        All collected metric days of this experiment
    events : sequence of VariantEvent
        All rotation events of this experiment
    config : ScoringConfig
        Guardrail thresholds and score weights
    as_of : date-like
        Evaluation day; decides whether the test has completed
    test_completed : bool, optional
        Override the duration rule, e.g. to evaluate a test stopped early

    Returns
    -------
    ExperimentEvaluation
    """
    daily = daily_assignment(test, daily_rows, events)
    exact_days = sum(1 for day in daily if day.source == 'exact')
    logger.debug(
        f"Timeline for test {test.id}: {exact_days} exact, {len(daily) - exact_days} inferred days",
        extra={'test_id': test.id},
    )

    performance = aggregate_variant_performance([(day.variant, day) for day in daily], config.weights)

    elapsed = days_elapsed(test.start_date, as_of)
    completed = elapsed >= test.duration_days if test_completed is None else test_completed
    decision = evaluate_winner_decision(performance, test.duration_days, config, completed)

    logger.info(
        f"Evaluated test {test.id}: {decision.winner_mode} ({decision.reason})",
        extra={
            'test_id': test.id,
            'winner_mode': decision.winner_mode,
            'reason': decision.reason,
            'days_elapsed': elapsed,
        },
    )

    return ExperimentEvaluation(
        test_id=test.id,
        days_elapsed=elapsed,
        completed=completed,
        current=current_state(test, events),
        daily=daily,
        performance=performance,
        decision=decision,
    )
