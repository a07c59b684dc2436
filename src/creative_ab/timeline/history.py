"""
Variant Timeline Reconstruction
===============================

Answers "which variant was live on this day, and how do we know?".

Two sources of truth, kept strictly apart:

- **exact**: an explicit ``VariantEvent`` (test created, daily rotation,
  winner applied, revert) at or before the end of the day
- **inferred**: no event has applied yet, so the variant follows day parity
  from the start date (even offset = initial variant, odd offset = the other)

The ``source``/``since_source`` tags tell the caller which path produced the
answer; the two are never blended.

Example Usage:
--------------
>>> from creative_ab.core.models import ExperimentRecord, DailyMetricPoint
>>> from creative_ab.timeline import history
>>>
>>> test = ExperimentRecord(id='t1', start_date='2026-01-01', title_a='Old', title_b='New')
>>> rows = [DailyMetricPoint('2026-01-01', 100, 10), DailyMetricPoint('2026-01-02', 100, 12)]
>>> [r.variant for r in history.daily_assignment(test, rows, [])]
['A', 'B']
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Sequence

from creative_ab.core.models import (
    CurrentVariantState,
    DailyMetricPoint,
    DailyVariantResult,
    ExperimentRecord,
    VariantEvent,
    opposite_variant,
)
from creative_ab.core.numeric import safe_number, safe_ratio

DAY = timedelta(days=1)
END_OF_DAY_OFFSET = DAY - timedelta(milliseconds=1)


def to_utc_datetime(value: Any) -> datetime:
    """
    Interpret a date-like value as an aware UTC datetime.

    Accepts ``datetime`` (naive values are taken as UTC), ``date`` and
    ISO-8601 strings, including a trailing ``Z``.

    Raises
    ------
    ValueError
        If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text[-1:] in ('Z', 'z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Unparsable date {value!r}") from None
        return to_utc_datetime(parsed)
    raise ValueError(f"Unparsable date {value!r}")


def normalize_utc_date(value: Any) -> datetime:
    """Start of the UTC calendar day containing ``value``."""
    moment = to_utc_datetime(value)
    return datetime(moment.year, moment.month, moment.day, tzinfo=timezone.utc)


def end_of_utc_day(value: Any) -> datetime:
    """Last millisecond of the UTC calendar day containing ``value``."""
    return normalize_utc_date(value) + END_OF_DAY_OFFSET


def day_offset(day: Any, start_date: Any) -> int:
    """Whole UTC days from ``start_date`` to ``day`` (negative before start)."""
    return (normalize_utc_date(day) - normalize_utc_date(start_date)).days


def infer_variant_for_date(day: Any, start_date: Any, start_variant: str = 'A') -> str:
    """
    Parity rule used when no rotation event covers a day.

    Example
    -------
    >>> infer_variant_for_date('2026-01-03', '2026-01-01', 'A')
    'A'
    >>> infer_variant_for_date('2026-01-02', '2026-01-01', 'A')
    'B'
    """
    if day_offset(day, start_date) % 2 == 0:
        return start_variant
    return opposite_variant(start_variant)


def _events_ascending(events: Iterable[VariantEvent]) -> List[VariantEvent]:
    # sorted() is stable: events sharing a timestamp keep list order, so the
    # one written last is applied last
    return sorted(events, key=lambda event: to_utc_datetime(event.changed_at))


def current_state(test: ExperimentRecord, events: Sequence[VariantEvent]) -> CurrentVariantState:
    """
    Currently live variant and since when.

    The newest event decides (``since_source='exact'``). Without events we
    fall back to the stored ``current_variant`` live since ``start_date``
    (``since_source='inferred'``).

    Parameters
    ----------
    test : ExperimentRecord
        The experiment row
    events : sequence of VariantEvent
        Rotation events in any order

    Returns
    -------
    CurrentVariantState
    """
    ordered = _events_ascending(events)
    latest: Optional[VariantEvent] = ordered[-1] if ordered else None

    if latest is not None:
        variant = latest.variant
        since = to_utc_datetime(latest.changed_at)
        since_source = 'exact'
    else:
        variant = test.current_variant
        since = to_utc_datetime(test.start_date)
        since_source = 'inferred'

    title, thumbnail_url = test.assets_for(variant)
    return CurrentVariantState(
        variant=variant,
        title=title,
        thumbnail_url=thumbnail_url,
        since=since,
        since_source=since_source,
    )


def daily_assignment(
    test: ExperimentRecord,
    daily_rows: Sequence[DailyMetricPoint],
    events: Sequence[VariantEvent],
) -> List[DailyVariantResult]:
    """
    Label every metric day with the variant that was live on it.

    Walks the days in ascending order while advancing a pointer through the
    events sorted by timestamp. Every event at or before the end of a day
    (start of day + 24h - 1ms, UTC) is applied; the last applied event gives
    the day's variant with ``source='exact'``. Days before any event fall
    back to day parity with ``source='inferred'``.

    Parameters
    ----------
    test : ExperimentRecord
        Supplies start date, initial variant and the per-variant assets
    daily_rows : sequence of DailyMetricPoint
        One row per day, any order
    events : sequence of VariantEvent
        Rotation events, any order

    Returns
    -------
    list of DailyVariantResult
        Ascending by date. Days before ``start_date`` are excluded.

    Notes
    -----
    - An event exactly at a day boundary belongs to that day
    - Events sharing a timestamp resolve by list order, last one wins
    - Missing days are simply absent, never zero-filled
    """
    start = normalize_utc_date(test.start_date)
    ordered_events = _events_ascending(events)
    ordered_rows = sorted(daily_rows, key=lambda row: normalize_utc_date(row.date))

    results: List[DailyVariantResult] = []
    active_event: Optional[VariantEvent] = None
    event_index = 0

    for row in ordered_rows:
        day = normalize_utc_date(row.date)
        if day < start:
            continue

        day_end = day + END_OF_DAY_OFFSET
        while (
            event_index < len(ordered_events)
            and to_utc_datetime(ordered_events[event_index].changed_at) <= day_end
        ):
            active_event = ordered_events[event_index]
            event_index += 1

        if active_event is not None:
            variant = active_event.variant
            source = 'exact'
        else:
            variant = infer_variant_for_date(day, start, test.initial_variant)
            source = 'inferred'

        title, thumbnail_url = test.assets_for(variant)
        impressions = safe_number(row.impressions)
        clicks = safe_number(row.clicks)
        views = safe_number(row.clicks if row.views is None else row.views)

        results.append(DailyVariantResult(
            date=day.date().isoformat(),
            variant=variant,
            source=source,
            title=title,
            thumbnail_url=thumbnail_url,
            impressions=impressions,
            clicks=clicks,
            views=views,
            estimated_minutes_watched=safe_number(row.estimated_minutes_watched),
            average_view_duration_seconds=safe_number(row.average_view_duration_seconds),
            impressions_ctr=safe_number(row.impressions_ctr),
            ctr=safe_ratio(clicks, impressions) * 100,
        ))

    return results
