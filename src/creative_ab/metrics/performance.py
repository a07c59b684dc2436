"""
Variant Performance Aggregation
===============================

Folds a day-labelled metric stream into two comparable per-variant summaries.

Per variant:
- exposure days, summed impressions / clicks / views / minutes watched
- CTR (%) from totals, plus the mean of the daily platform CTR (%)
- watch-time per impression (WTPI)
- views-weighted average view duration
- CTR and WTPI normalized against the better variant, and a weighted
  composite score

When no watch-time signal exists the score degrades to normalized CTR alone.

Example Usage:
--------------
>>> from creative_ab.core.models import DailyMetricPoint, ScoreWeights
>>> from creative_ab.metrics import performance
>>>
>>> rows = [
...     DailyMetricPoint('2026-01-01', impressions=100, clicks=10, estimated_minutes_watched=10),
...     DailyMetricPoint('2026-01-02', impressions=100, clicks=12, estimated_minutes_watched=8),
... ]
>>> split = performance.compute_variant_performance(
...     rows, start_date='2026-01-01', weights=ScoreWeights(0.7, 0.3)
... )
>>> split.a.ctr, split.b.ctr
(10.0, 12.0)
"""

from typing import Any, Dict, List, Sequence, Tuple

from creative_ab.core.models import (
    ScoreWeights,
    SplitVariantPerformance,
    VariantPerformance,
    parse_variant,
)
from creative_ab.core.numeric import (
    normalize_weight_pair,
    round_half_up,
    safe_number,
    safe_ratio,
)
from creative_ab.timeline.history import infer_variant_for_date, normalize_utc_date

LabelledRow = Tuple[str, Any]


def compute_estimated_clicks(impressions: Any, ctr_percent: Any) -> int:
    """
    Estimate clicks from impressions and the platform's impression CTR (%).

    Example
    -------
    >>> compute_estimated_clicks(1000, 5)
    50
    >>> compute_estimated_clicks(1000, 0)
    0
    """
    return int(round_half_up(safe_number(impressions) * (safe_number(ctr_percent) / 100), 0))


def label_rows_by_parity(
    rows: Sequence[Any],
    start_date: Any,
    start_variant: str = 'A',
) -> List[LabelledRow]:
    """
    Tag each row with its variant using day parity alone.

    Rows dated before ``start_date`` are dropped. Use
    ``timeline.history.daily_assignment`` instead when rotation events exist.
    """
    start = normalize_utc_date(start_date)
    start_variant = parse_variant(start_variant)
    labelled = []
    for row in rows:
        day = normalize_utc_date(row.date)
        if day < start:
            continue
        labelled.append((infer_variant_for_date(day, start, start_variant), row))
    return labelled


def split_daily_results_by_variant(
    rows: Sequence[Any],
    start_date: Any,
    start_variant: str = 'A',
) -> Dict[str, Dict[str, float]]:
    """
    Plain impression/click totals per variant using day parity.

    Returns
    -------
    dict
        ``{'a': {...}, 'b': {...}}`` each with impressions, clicks and
        ctr (%, rounded to 2 decimals)
    """
    totals = {
        'a': {'impressions': 0.0, 'clicks': 0.0, 'ctr': 0.0},
        'b': {'impressions': 0.0, 'clicks': 0.0, 'ctr': 0.0},
    }
    for variant, row in label_rows_by_parity(rows, start_date, start_variant):
        bucket = totals[variant.lower()]
        bucket['impressions'] += safe_number(row.impressions)
        bucket['clicks'] += safe_number(row.clicks)

    for bucket in totals.values():
        bucket['ctr'] = round_half_up(safe_ratio(bucket['clicks'], bucket['impressions']) * 100, 2)
    return totals


def _empty_accumulator() -> Dict[str, float]:
    return {
        'exposure_days': 0,
        'impressions': 0.0,
        'estimated_clicks': 0.0,
        'views': 0.0,
        'estimated_minutes_watched': 0.0,
        'impressions_ctr_sum': 0.0,
        'weighted_duration': 0.0,
    }


def aggregate_variant_performance(
    labelled_rows: Sequence[LabelledRow],
    weights: ScoreWeights,
) -> SplitVariantPerformance:
    """
    Aggregate ``(variant, row)`` pairs into an A/B performance pair.

    Parameters
    ----------
    labelled_rows : sequence of (variant, row)
        Rows carry ``date``, ``impressions``, ``clicks``, ``views``,
        ``estimated_minutes_watched``, ``average_view_duration_seconds`` and
        ``impressions_ctr`` (``DailyMetricPoint`` or ``DailyVariantResult``)
    weights : ScoreWeights
        Composite score weights, renormalized to sum to 1

    Returns
    -------
    SplitVariantPerformance

    Notes
    -----
    - ctr = clicks / impressions x 100, rounded to 4 decimals
    - impressions_ctr = mean of the daily CTR field, rounded to 4 decimals
    - wtpi = minutes watched / impressions, rounded to 6 decimals
    - ctr_norm, wtpi_norm = value / max over both variants, 6 decimals
    - Quality is available iff some row has minutes watched > 0 and the
      larger WTPI is > 0; otherwise score = ctr_norm
    - Non-finite or negative inputs count as 0; every ratio with a zero
      denominator is 0
    """
    ctr_weight, quality_weight = normalize_weight_pair(weights.ctr_weight, weights.quality_weight)
    acc = {'A': _empty_accumulator(), 'B': _empty_accumulator()}
    has_quality_signal = False

    # Fixed accumulation order keeps float sums identical for any input order
    ordered = sorted(labelled_rows, key=lambda item: normalize_utc_date(item[1].date))

    for variant, row in ordered:
        target = acc[parse_variant(variant)]
        impressions = safe_number(row.impressions)
        clicks = safe_number(row.clicks)
        views = safe_number(row.clicks if row.views is None else row.views)
        minutes = safe_number(row.estimated_minutes_watched)
        duration = safe_number(row.average_view_duration_seconds)

        target['exposure_days'] += 1
        target['impressions'] += impressions
        target['estimated_clicks'] += clicks
        target['views'] += views
        target['estimated_minutes_watched'] += minutes
        target['impressions_ctr_sum'] += safe_number(row.impressions_ctr)
        if duration > 0 and views > 0:
            target['weighted_duration'] += duration * views
        if minutes > 0:
            has_quality_signal = True

    ctr = {}
    wtpi = {}
    for variant, totals in acc.items():
        ctr[variant] = round_half_up(safe_ratio(totals['estimated_clicks'], totals['impressions']) * 100, 4)
        wtpi[variant] = round_half_up(safe_ratio(totals['estimated_minutes_watched'], totals['impressions']), 6)

    max_ctr = max(ctr.values())
    max_wtpi = max(wtpi.values())
    quality_available = has_quality_signal and max_wtpi > 0

    performance = {}
    for variant, totals in acc.items():
        ctr_norm = round_half_up(safe_ratio(ctr[variant], max_ctr), 6)
        wtpi_norm = round_half_up(safe_ratio(wtpi[variant], max_wtpi), 6)
        if quality_available:
            score = round_half_up(ctr_weight * ctr_norm + quality_weight * wtpi_norm, 6)
        else:
            score = round_half_up(ctr_norm, 6)

        performance[variant] = VariantPerformance(
            variant=variant,
            exposure_days=int(totals['exposure_days']),
            impressions=totals['impressions'],
            estimated_clicks=totals['estimated_clicks'],
            ctr=ctr[variant],
            impressions_ctr=round_half_up(
                safe_ratio(totals['impressions_ctr_sum'], totals['exposure_days']), 4
            ),
            views=totals['views'],
            estimated_minutes_watched=totals['estimated_minutes_watched'],
            average_view_duration_seconds=round_half_up(
                safe_ratio(totals['weighted_duration'], totals['views']), 3
            ),
            wtpi=wtpi[variant],
            score=score,
            ctr_norm=ctr_norm,
            wtpi_norm=wtpi_norm,
        )

    return SplitVariantPerformance(
        a=performance['A'],
        b=performance['B'],
        quality_available=quality_available,
    )


def compute_variant_performance(
    rows: Sequence[Any],
    start_date: Any,
    weights: ScoreWeights,
    start_variant: str = 'A',
) -> SplitVariantPerformance:
    """Parity-labelled shortcut for ``aggregate_variant_performance``."""
    return aggregate_variant_performance(
        label_rows_by_parity(rows, start_date, start_variant),
        weights,
    )
