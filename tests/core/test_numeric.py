"""Unit tests for numeric helpers."""

import pytest

from creative_ab.core import numeric


class TestSafeNumber:
    """Tests for defensive coercion of raw metric values."""

    @pytest.mark.parametrize("value, expected", [
        (12, 12.0),
        (12.5, 12.5),
        ("12.5", 12.5),
        (None, 0.0),
        ("abc", 0.0),
        (float('nan'), 0.0),
        (float('inf'), 0.0),
        (float('-inf'), 0.0),
        (-3, 0.0),
        (True, 0.0),
    ])
    def test_safe_number(self, value, expected):
        assert numeric.safe_number(value) == expected


class TestRoundHalfUp:
    """Tests for half-up rounding."""

    def test_ties_round_up(self):
        """Exact ties go up, unlike banker's rounding."""
        assert numeric.round_half_up(2.5, 0) == 3.0
        assert numeric.round_half_up(0.125, 2) == 0.13

    def test_regular_rounding(self):
        assert numeric.round_half_up(0.8833331, 6) == pytest.approx(0.883333)
        assert numeric.round_half_up(4.73684, 4) == pytest.approx(4.7368)

    def test_non_finite(self):
        """Non-finite values collapse to 0."""
        assert numeric.round_half_up(float('nan'), 2) == 0.0
        assert numeric.round_half_up(float('inf'), 2) == 0.0


class TestSafeRatio:
    """Tests for guarded division."""

    def test_regular(self):
        assert numeric.safe_ratio(10, 100) == pytest.approx(0.1)

    def test_zero_denominator(self):
        assert numeric.safe_ratio(10, 0) == 0.0

    def test_non_finite_denominator(self):
        assert numeric.safe_ratio(10, float('inf')) == 0.0
        assert numeric.safe_ratio(10, float('nan')) == 0.0


class TestNormalizeWeightPair:
    """Tests for weight renormalization."""

    def test_already_normalized(self):
        assert numeric.normalize_weight_pair(0.7, 0.3) == pytest.approx((0.7, 0.3))

    def test_rescales(self):
        assert numeric.normalize_weight_pair(7, 3) == pytest.approx((0.7, 0.3))

    def test_degenerate_pair_is_pure_ctr(self):
        assert numeric.normalize_weight_pair(0, 0) == (1.0, 0.0)

    def test_negative_weight_clamps(self):
        assert numeric.normalize_weight_pair(-1, 2) == (0.0, 1.0)
