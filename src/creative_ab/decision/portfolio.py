"""
Portfolio Impact Summary
========================

Rolls many finished experiments up into dashboard lift metrics.

For each finished test the A/B performance is recomputed from its daily rows,
the winner is taken from the recorded decision (auto or manual) or, when none
was recorded, picked with ``choose_winner``, and the winner is compared with
the loser.

Example Usage:
--------------
>>> from creative_ab.decision import portfolio
>>>
>>> summary = portfolio.summarize_finished_tests(finished, rows, weights)
>>> print(f"Average CTR lift: {summary.avg_ctr_lift:.2f}%")
>>> print(f"Extra clicks: {summary.extra_clicks:,}")
"""

from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from creative_ab.core.models import (
    DailyMetricPoint,
    ExperimentRecord,
    PortfolioSummary,
    ScoreWeights,
    VariantEvent,
)
from creative_ab.core.numeric import round_half_up
from creative_ab.decision.framework import choose_winner
from creative_ab.metrics.performance import aggregate_variant_performance, label_rows_by_parity
from creative_ab.timeline.history import daily_assignment


def _relative_lift(winner_value: float, loser_value: float) -> float:
    return (winner_value - loser_value) / loser_value * 100


def summarize_finished_tests(
    finished_tests: Sequence[ExperimentRecord],
    daily_rows: Sequence[DailyMetricPoint],
    weights: ScoreWeights,
    events_by_test: Optional[Mapping[str, Sequence[VariantEvent]]] = None,
) -> PortfolioSummary:
    """
    Summarize lift across finished experiments.

    Parameters
    ----------
    finished_tests : sequence of ExperimentRecord
        Finished experiments, with any recorded winner
    daily_rows : sequence of DailyMetricPoint
        Daily rows of all those experiments, keyed by ``test_id``
    weights : ScoreWeights
        Score weights used to recompute performance
    events_by_test : mapping, optional
        Rotation events per test id. Tests with events are labelled by the
        timeline reconstructor; the rest by day parity.

    Returns
    -------
    PortfolioSummary
        - avg_ctr_lift: mean relative CTR lift of winner over loser (%)
        - extra_clicks: summed positive click difference (integer)
        - avg_wtpi_lift: mean relative WTPI lift (%)
        - extra_watch_minutes: summed positive minutes-watched difference
        - inconclusive_count: tests flagged inconclusive or needing review

    Notes
    -----
    - A test enters a lift average only if its loser has impressions and a
      positive value for that metric, so a zero baseline never produces an
      infinite lift
    - Tests without daily rows still count towards inconclusive_count
    """
    rows_by_test: Dict[str, List[DailyMetricPoint]] = defaultdict(list)
    for row in daily_rows:
        rows_by_test[row.test_id].append(row)
    events_by_test = events_by_test or {}

    ctr_lifts: List[float] = []
    wtpi_lifts: List[float] = []
    extra_clicks = 0.0
    extra_watch_minutes = 0.0
    inconclusive_count = 0

    for test in finished_tests:
        if test.winner_mode == 'inconclusive' or test.review_required:
            inconclusive_count += 1

        test_rows = rows_by_test.get(test.id, [])
        events = events_by_test.get(test.id)
        if events:
            labelled = [(day.variant, day) for day in daily_assignment(test, test_rows, events)]
        else:
            labelled = label_rows_by_parity(test_rows, test.start_date, test.initial_variant)
        performance = aggregate_variant_performance(labelled, weights)

        winner_variant = test.winner_variant or choose_winner(performance)
        winner, loser = performance.winner_and_loser(winner_variant)

        extra_clicks += max(0.0, winner.estimated_clicks - loser.estimated_clicks)
        extra_watch_minutes += max(0.0, winner.estimated_minutes_watched - loser.estimated_minutes_watched)

        if loser.impressions > 0 and loser.ctr > 0:
            ctr_lifts.append(_relative_lift(winner.ctr, loser.ctr))
        if loser.impressions > 0 and loser.wtpi > 0:
            wtpi_lifts.append(_relative_lift(winner.wtpi, loser.wtpi))

    return PortfolioSummary(
        avg_ctr_lift=round_half_up(float(np.mean(ctr_lifts)), 2) if ctr_lifts else 0.0,
        extra_clicks=int(round_half_up(extra_clicks, 0)),
        avg_wtpi_lift=round_half_up(float(np.mean(wtpi_lifts)), 2) if wtpi_lifts else 0.0,
        extra_watch_minutes=round_half_up(extra_watch_minutes, 2),
        inconclusive_count=inconclusive_count,
        tests_evaluated=len(finished_tests),
    )
