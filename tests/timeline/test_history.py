"""Tests for variant timeline reconstruction."""

from datetime import date, datetime, timezone

import pytest

from creative_ab.core.models import DailyMetricPoint, ExperimentRecord, ScoreWeights, VariantEvent
from creative_ab.metrics.performance import aggregate_variant_performance, compute_variant_performance
from creative_ab.timeline import history


def build_test(**overrides) -> ExperimentRecord:
    params = dict(
        id='test-1',
        start_date='2026-01-01T00:00:00.000Z',
        duration_days=14,
        initial_variant='A',
        current_variant='A',
        title_a='Control title',
        title_b='Test title',
        thumbnail_url_a='https://example.com/a.jpg',
        thumbnail_url_b='https://example.com/b.jpg',
    )
    params.update(overrides)
    return ExperimentRecord(**params)


def build_rows():
    return [
        DailyMetricPoint('2026-01-01', impressions=100, clicks=10, views=10,
                         estimated_minutes_watched=12, average_view_duration_seconds=72, impressions_ctr=10),
        DailyMetricPoint('2026-01-02', impressions=100, clicks=8, views=8,
                         estimated_minutes_watched=8, average_view_duration_seconds=60, impressions_ctr=8),
        DailyMetricPoint('2026-01-03', impressions=150, clicks=15, views=15,
                         estimated_minutes_watched=18, average_view_duration_seconds=72, impressions_ctr=10),
    ]


class TestDateHelpers:
    """Tests for UTC day arithmetic."""

    def test_equivalent_inputs(self):
        """Strings, dates and datetimes describe the same UTC instant."""
        expected = datetime(2026, 1, 2, tzinfo=timezone.utc)
        assert history.to_utc_datetime('2026-01-02') == expected
        assert history.to_utc_datetime('2026-01-02T00:00:00Z') == expected
        assert history.to_utc_datetime('2026-01-02T00:00:00.000Z') == expected
        assert history.to_utc_datetime(date(2026, 1, 2)) == expected
        assert history.to_utc_datetime(datetime(2026, 1, 2)) == expected

    def test_offset_timezone_converts_to_utc(self):
        assert history.normalize_utc_date('2026-01-02T20:00:00-05:00') == datetime(2026, 1, 3, tzinfo=timezone.utc)

    def test_end_of_day(self):
        end = history.end_of_utc_day('2026-01-02T13:45:00Z')
        assert end == datetime(2026, 1, 2, 23, 59, 59, 999000, tzinfo=timezone.utc)

    def test_unparsable_date(self):
        with pytest.raises(ValueError, match="Unparsable date"):
            history.to_utc_datetime('yesterday')
        with pytest.raises(ValueError, match="Unparsable date"):
            history.to_utc_datetime(12345)

    def test_infer_variant_parity(self):
        assert history.infer_variant_for_date('2026-01-01', '2026-01-01', 'A') == 'A'
        assert history.infer_variant_for_date('2026-01-02', '2026-01-01', 'A') == 'B'
        assert history.infer_variant_for_date('2026-01-03', '2026-01-01', 'A') == 'A'
        assert history.infer_variant_for_date('2026-01-02', '2026-01-01', 'B') == 'A'

    def test_infer_variant_ignores_time_of_day(self):
        """Start time within the day does not shift parity."""
        assert history.infer_variant_for_date('2026-01-02T01:00:00Z', '2026-01-01T23:00:00Z', 'A') == 'B'


class TestCurrentState:
    """Tests for the currently live variant."""

    def test_inferred_without_events(self):
        current = history.current_state(build_test(), [])

        assert current.variant == 'A'
        assert current.title == 'Control title'
        assert current.thumbnail_url == 'https://example.com/a.jpg'
        assert current.since_source == 'inferred'
        assert current.since == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_stored_current_variant_without_events(self):
        current = history.current_state(build_test(current_variant='B'), [])
        assert current.variant == 'B'
        assert current.title == 'Test title'

    def test_newest_event_wins(self):
        events = [
            VariantEvent('B', 'daily_rotation', '2026-01-02T00:01:00.000Z'),
            VariantEvent('A', 'test_created', '2026-01-01T00:00:00.000Z'),
        ]
        current = history.current_state(build_test(), events)

        assert current.variant == 'B'
        assert current.title == 'Test title'
        assert current.since == datetime(2026, 1, 2, 0, 1, tzinfo=timezone.utc)
        assert current.since_source == 'exact'

    def test_simultaneous_events_last_written_wins(self):
        stamp = '2026-01-02T00:01:00Z'
        events = [VariantEvent('A', 'daily_rotation', stamp), VariantEvent('B', 'manual_winner', stamp)]
        assert history.current_state(build_test(), events).variant == 'B'

    def test_to_dict(self):
        result = history.current_state(build_test(), []).to_dict()
        assert result['since'] == '2026-01-01T00:00:00+00:00'
        assert result['since_source'] == 'inferred'


class TestDailyAssignment:
    """Tests for per-day variant labelling."""

    def test_inferred_without_events(self):
        """Day parity alternates A, B, A and every day is inferred."""
        daily = history.daily_assignment(build_test(), build_rows(), [])

        assert [day.variant for day in daily] == ['A', 'B', 'A']
        assert all(day.source == 'inferred' for day in daily)
        assert [day.date for day in daily] == ['2026-01-01', '2026-01-02', '2026-01-03']

    def test_initial_variant_b(self):
        daily = history.daily_assignment(build_test(initial_variant='B'), build_rows(), [])
        assert [day.variant for day in daily] == ['B', 'A', 'B']

    def test_exact_events_override_parity(self):
        events = [
            VariantEvent('A', 'test_created', '2026-01-01T00:00:00.000Z', id='evt-1', changed_by_user_id='user-1'),
            VariantEvent('B', 'daily_rotation', '2026-01-02T00:01:00.000Z', id='evt-2'),
        ]
        daily = history.daily_assignment(build_test(current_variant='B'), build_rows(), events)

        assert [day.variant for day in daily] == ['A', 'B', 'B']
        assert all(day.source == 'exact' for day in daily)
        assert daily[2].title == 'Test title'
        assert daily[2].thumbnail_url == 'https://example.com/b.jpg'

    def test_single_event_flips_to_exact_from_its_day(self):
        """Days before the first event stay inferred; later days follow the event."""
        events = [VariantEvent('B', 'daily_rotation', '2026-01-02T00:01:00Z')]
        daily = history.daily_assignment(build_test(), build_rows(), events)

        assert [(day.variant, day.source) for day in daily] == [
            ('A', 'inferred'),
            ('B', 'exact'),
            ('B', 'exact'),
        ]

    def test_event_at_end_of_day_belongs_to_that_day(self):
        events = [VariantEvent('B', 'daily_rotation', '2026-01-01T23:59:59.999Z')]
        daily = history.daily_assignment(build_test(), build_rows(), events)
        assert (daily[0].variant, daily[0].source) == ('B', 'exact')

    def test_event_at_midnight_belongs_to_next_day(self):
        events = [VariantEvent('B', 'daily_rotation', '2026-01-02T00:00:00Z')]
        daily = history.daily_assignment(build_test(), build_rows(), events)
        assert (daily[0].variant, daily[0].source) == ('A', 'inferred')
        assert (daily[1].variant, daily[1].source) == ('B', 'exact')

    def test_event_in_other_timezone(self):
        """An event late on Jan 2 in New York is Jan 3 in UTC."""
        events = [VariantEvent('B', 'daily_rotation', '2026-01-02T20:00:00-05:00')]
        daily = history.daily_assignment(build_test(), build_rows(), events)
        assert [day.source for day in daily] == ['inferred', 'inferred', 'exact']

    @pytest.mark.parametrize("order, expected", [(('A', 'B'), 'B'), (('B', 'A'), 'A')])
    def test_simultaneous_events_last_written_wins(self, order, expected):
        stamp = '2026-01-02T00:01:00Z'
        events = [VariantEvent(variant, 'daily_rotation', stamp) for variant in order]
        daily = history.daily_assignment(build_test(), build_rows(), events)
        assert daily[1].variant == expected

    def test_events_in_any_order(self):
        events = [
            VariantEvent('A', 'daily_rotation', '2026-01-03T00:01:00Z'),
            VariantEvent('A', 'test_created', '2026-01-01T00:00:00Z'),
            VariantEvent('B', 'daily_rotation', '2026-01-02T00:01:00Z'),
        ]
        daily = history.daily_assignment(build_test(), build_rows(), events)
        assert [day.variant for day in daily] == ['A', 'B', 'A']

    def test_rows_in_any_order(self):
        daily = history.daily_assignment(build_test(), list(reversed(build_rows())), [])
        assert [day.date for day in daily] == ['2026-01-01', '2026-01-02', '2026-01-03']

    def test_days_before_start_excluded(self):
        rows = [DailyMetricPoint('2025-12-31', impressions=500, clicks=50)] + build_rows()
        daily = history.daily_assignment(build_test(), rows, [])
        assert len(daily) == 3
        assert daily[0].date == '2026-01-01'

    def test_missing_days_are_absent(self):
        rows = [build_rows()[0], build_rows()[2]]
        daily = history.daily_assignment(build_test(), rows, [])
        assert [day.date for day in daily] == ['2026-01-01', '2026-01-03']
        assert [day.variant for day in daily] == ['A', 'A']

    def test_ctr_and_coercion(self):
        rows = [
            DailyMetricPoint('2026-01-01', impressions=200, clicks=10),
            DailyMetricPoint('2026-01-02', impressions=None, clicks='7', views=float('nan'),
                             estimated_minutes_watched=float('inf')),
        ]
        daily = history.daily_assignment(build_test(), rows, [])

        assert daily[0].ctr == pytest.approx(5.0)
        assert daily[0].views == 10  # falls back to clicks
        assert daily[1].impressions == 0
        assert daily[1].clicks == 7
        assert daily[1].ctr == 0
        assert daily[1].views == 0
        assert daily[1].estimated_minutes_watched == 0

    def test_no_rows(self):
        assert history.daily_assignment(build_test(), [], [VariantEvent('A', 'test_created', '2026-01-01')]) == []


class TestTimelineFeedsAggregation:
    """Timeline rows keep the views-to-clicks fallback of the aggregator."""

    def test_missing_views_match_parity_aggregation(self):
        test = ExperimentRecord(id='t1', start_date='2026-01-01')
        rows = [
            DailyMetricPoint('2026-01-01', impressions=100, clicks=10, average_view_duration_seconds=30),
            DailyMetricPoint('2026-01-02', impressions=100, clicks=12, average_view_duration_seconds=40),
        ]
        weights = ScoreWeights(0.7, 0.3)

        daily = history.daily_assignment(test, rows, [])
        from_timeline = aggregate_variant_performance([(day.variant, day) for day in daily], weights)
        from_rows = compute_variant_performance(rows, '2026-01-01', weights)

        assert [day.views for day in daily] == [10, 12]
        assert from_timeline.a.views == 10
        assert from_timeline == from_rows
