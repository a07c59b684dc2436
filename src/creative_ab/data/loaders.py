"""
Data Loading Utilities for Experiment Snapshots
===============================================

Converts exports of the metrics collector and the experiment store into the
engine's records. The engine itself never reads files; these helpers are for
the daily job, the CLI and notebooks.

Sources:
--------
1. Daily metrics (CSV / DataFrame): one row per day, columns ``date``,
   ``impressions``, ``clicks`` plus optional ``views``,
   ``estimated_minutes_watched``, ``average_view_duration_seconds``,
   ``impressions_ctr`` and ``test_id``
2. Rotation events (DataFrame): ``variant``, ``source``, ``changed_at`` plus
   optional ``id`` and ``changed_by_user_id``
3. Snapshot (JSON): ``{"test": {...}, "daily_results": [...], "events": [...]}``

Example Usage:
--------------
>>> from creative_ab.data import loaders
>>>
>>> rows = loaders.load_daily_metrics_csv('daily_results.csv', test_id='t1')
>>> snapshot = loaders.load_snapshot('experiment.json')
>>> print(snapshot.test.id, len(snapshot.daily_rows))
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from creative_ab.core.models import DailyMetricPoint, ExperimentRecord, VariantEvent
from creative_ab.metrics.performance import compute_estimated_clicks

REQUIRED_DAILY_COLUMNS = ("date", "impressions", "clicks")
OPTIONAL_DAILY_COLUMNS = (
    "views",
    "estimated_minutes_watched",
    "average_view_duration_seconds",
    "impressions_ctr",
)
REQUIRED_EVENT_COLUMNS = ("variant", "source", "changed_at")
REQUIRED_TEST_FIELDS = ("id", "start_date")


@dataclass(frozen=True)
class ExperimentSnapshot:
    """Everything needed to evaluate one experiment."""
    test: ExperimentRecord
    daily_rows: List[DailyMetricPoint]
    events: List[VariantEvent]


def _check_columns(df: pd.DataFrame, required, what: str) -> None:
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"{what} is missing required columns: {missing}")


def _cell(value: Any) -> Any:
    # pandas marks gaps as NaN/NaT; the engine expects None for "not recorded"
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def daily_metrics_from_frame(
    df: pd.DataFrame,
    test_id: Optional[str] = None,
) -> List[DailyMetricPoint]:
    """
    Convert a daily metrics DataFrame into ``DailyMetricPoint`` records.

    Parameters
    ----------
    df : pd.DataFrame
        One row per day
    test_id : str, optional
        Experiment id to stamp on every row; falls back to a ``test_id``
        column when present

    Returns
    -------
    list of DailyMetricPoint

    Raises
    ------
    ValueError
        If ``date``, ``impressions`` or ``clicks`` is missing
    """
    _check_columns(df, REQUIRED_DAILY_COLUMNS, "Daily metrics")

    points = []
    for record in df.to_dict(orient="records"):
        optional = {col: _cell(record.get(col)) for col in OPTIONAL_DAILY_COLUMNS}
        for col in ("estimated_minutes_watched", "average_view_duration_seconds", "impressions_ctr"):
            if optional[col] is None:
                optional[col] = 0
        row_test_id = test_id if test_id is not None else _cell(record.get("test_id"))
        day = record["date"]
        if isinstance(day, pd.Timestamp):
            day = day.to_pydatetime()
        points.append(DailyMetricPoint(
            date=day,
            impressions=_cell(record["impressions"]),
            clicks=_cell(record["clicks"]),
            test_id=None if row_test_id is None else str(row_test_id),
            **optional,
        ))
    return points


def load_daily_metrics_csv(path: Union[str, Path], test_id: Optional[str] = None) -> List[DailyMetricPoint]:
    """Read a daily metrics CSV export."""
    df = pd.read_csv(path, dtype={"date": str, "test_id": str})
    return daily_metrics_from_frame(df, test_id=test_id)


def variant_events_from_frame(df: pd.DataFrame) -> List[VariantEvent]:
    """
    Convert a rotation events DataFrame into ``VariantEvent`` records.

    Raises
    ------
    ValueError
        If a required column is missing, or a row has an unknown variant or
        source
    """
    _check_columns(df, REQUIRED_EVENT_COLUMNS, "Variant events")

    events = []
    for record in df.to_dict(orient="records"):
        changed_at = record["changed_at"]
        if isinstance(changed_at, pd.Timestamp):
            changed_at = changed_at.to_pydatetime()
        events.append(VariantEvent(
            variant=str(record["variant"]).strip().upper(),
            source=str(record["source"]).strip(),
            changed_at=changed_at,
            id=_cell(record.get("id")),
            changed_by_user_id=_cell(record.get("changed_by_user_id")),
        ))
    return events


def daily_point_from_analytics(
    day: Any,
    impressions: Any,
    impressions_ctr: Any,
    views: Any = None,
    estimated_minutes_watched: Any = None,
    average_view_duration_seconds: Any = None,
    test_id: Optional[str] = None,
) -> DailyMetricPoint:
    """
    Build a metric day from a platform analytics row.

    The platform reports thumbnail impressions and impression CTR (%), not
    clicks, so clicks are estimated as impressions x CTR / 100.

    Example
    -------
    >>> point = daily_point_from_analytics('2026-01-01', 1000, 5)
    >>> point.clicks
    50
    """
    return DailyMetricPoint(
        date=day,
        impressions=impressions,
        clicks=compute_estimated_clicks(impressions, impressions_ctr),
        views=views,
        estimated_minutes_watched=estimated_minutes_watched or 0,
        average_view_duration_seconds=average_view_duration_seconds or 0,
        impressions_ctr=impressions_ctr,
        test_id=test_id,
    )


def experiment_from_dict(data: Dict[str, Any]) -> ExperimentRecord:
    """
    Build an ``ExperimentRecord`` from a store row, ignoring unknown keys.

    Raises
    ------
    ValueError
        If ``id`` or ``start_date`` is missing, or a field has the wrong type
    """
    missing = [name for name in REQUIRED_TEST_FIELDS if data.get(name) is None]
    if missing:
        raise ValueError(f"Experiment is missing required fields: {missing}")

    known = {f.name for f in fields(ExperimentRecord)}
    kwargs = {key: value for key, value in data.items() if key in known and value is not None}
    kwargs["id"] = str(kwargs["id"])
    try:
        if "duration_days" in kwargs:
            kwargs["duration_days"] = int(kwargs["duration_days"])
        return ExperimentRecord(**kwargs)
    except TypeError as e:
        raise ValueError(f"Invalid experiment {kwargs['id']}: {e}") from e


def load_snapshot(path: Union[str, Path]) -> ExperimentSnapshot:
    """
    Load an experiment snapshot JSON file.

    Raises
    ------
    ValueError
        If the file is not a JSON object with a ``test`` object, or the test
        lacks required fields
    """
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot must be a JSON object, got {type(data).__name__}")
    if not isinstance(data.get("test"), dict):
        raise ValueError("Snapshot must contain a 'test' object")

    test = experiment_from_dict(data["test"])
    daily = data.get("daily_results") or []
    events = data.get("events") or []

    daily_rows = daily_metrics_from_frame(pd.DataFrame(daily), test_id=test.id) if daily else []
    variant_events = variant_events_from_frame(pd.DataFrame(events)) if events else []
    return ExperimentSnapshot(test=test, daily_rows=daily_rows, events=variant_events)
