"""Tests for the winner decision framework."""

import json

import pytest

from creative_ab.core.models import ScoreWeights, ScoringConfig, SplitVariantPerformance, VariantPerformance
from creative_ab.decision import framework


def make_config(**overrides):
    params = dict(
        min_impressions_per_variant=1500,
        min_confidence=0.95,
        min_ctr_delta_pct_points=0.2,
        min_score_delta=0.02,
        weights=ScoreWeights(ctr_weight=0.7, quality_weight=0.3),
    )
    params.update(overrides)
    return ScoringConfig(**params)


def make_split(a_days=7, b_days=7, a_impressions=5000, b_impressions=5000,
               a_clicks=250, b_clicks=200, a_score=1.0, b_score=0.8):
    def variant(tag, days, impressions, clicks, score):
        ctr = clicks / impressions * 100 if impressions else 0.0
        return VariantPerformance(tag, exposure_days=days, impressions=impressions,
                                  estimated_clicks=clicks, ctr=ctr, score=score)

    return SplitVariantPerformance(
        a=variant('A', a_days, a_impressions, a_clicks, a_score),
        b=variant('B', b_days, b_impressions, b_clicks, b_score),
        quality_available=False,
    )


class TestChooseWinner:
    """Tests for the score / CTR / A tie-break order."""

    def test_higher_score_wins(self):
        assert framework.choose_winner(make_split(a_score=0.8, b_score=0.9)) == 'B'
        assert framework.choose_winner(make_split(a_score=0.9, b_score=0.8)) == 'A'

    def test_ctr_breaks_score_tie(self):
        split = make_split(a_clicks=200, b_clicks=250, a_score=0.9, b_score=0.9)
        assert framework.choose_winner(split) == 'B'

    def test_full_tie_defaults_to_a(self):
        split = make_split(a_clicks=200, b_clicks=200, a_score=0.9, b_score=0.9)
        assert framework.choose_winner(split) == 'A'


class TestEvaluateWinnerDecision:
    """Tests for pending / auto / inconclusive outcomes."""

    def test_auto_winner(self):
        decision = framework.evaluate_winner_decision(make_split(), 14, make_config(), test_completed=True)

        assert decision.winner_mode == 'auto'
        assert decision.winner_variant == 'A'
        assert decision.review_required is False
        assert decision.reason == 'auto_criteria_met'
        assert decision.guardrails_passed is True
        assert decision.min_exposure_days_per_variant == 7
        assert decision.failures == ()

    def test_auto_winner_b(self):
        split = make_split(a_clicks=200, b_clicks=250, a_score=0.8, b_score=1.0)
        decision = framework.evaluate_winner_decision(split, 14, make_config(), test_completed=True)
        assert decision.winner_mode == 'auto'
        assert decision.winner_variant == 'B'

    def test_pending_waiting_for_end(self):
        """Criteria met early still waits for the planned end."""
        decision = framework.evaluate_winner_decision(make_split(), 14, make_config(), test_completed=False)

        assert decision.winner_mode == 'pending'
        assert decision.winner_variant == 'A'
        assert decision.review_required is False
        assert decision.reason == 'criteria_met_waiting_test_end'

    def test_pending_in_progress(self):
        split = make_split(a_days=2, b_days=2)
        decision = framework.evaluate_winner_decision(split, 14, make_config(), test_completed=False)

        assert decision.winner_mode == 'pending'
        assert decision.reason == 'test_in_progress'
        assert decision.review_required is False
        assert decision.failures == ('insufficient_exposure_days',)

    def test_inconclusive_small_sample(self):
        split = make_split(a_days=1, b_days=1, a_impressions=400, b_impressions=380,
                           a_clicks=20, b_clicks=18, a_score=1.0, b_score=0.95)
        decision = framework.evaluate_winner_decision(split, 14, make_config(), test_completed=True)

        assert decision.winner_mode == 'inconclusive'
        assert decision.winner_variant is None
        assert decision.review_required is True
        assert decision.reason == 'insufficient_exposure_days,insufficient_impressions,insufficient_confidence'
        assert decision.guardrails_passed is False

    @pytest.mark.parametrize("split_kwargs, config_kwargs, expected", [
        ({'a_days': 6}, {}, 'insufficient_exposure_days'),
        ({}, {'min_impressions_per_variant': 6000}, 'insufficient_impressions'),
        ({}, {'min_confidence': 0.99}, 'insufficient_confidence'),
        ({}, {'min_ctr_delta_pct_points': 1.5}, 'insufficient_ctr_delta'),
        ({}, {'min_score_delta': 0.25}, 'insufficient_score_delta'),
    ])
    def test_inconclusive_reason_names_failure(self, split_kwargs, config_kwargs, expected):
        """An inconclusive reason lists exactly the failing predicate."""
        decision = framework.evaluate_winner_decision(
            make_split(**split_kwargs), 14, make_config(**config_kwargs), test_completed=True
        )
        assert decision.winner_mode == 'inconclusive'
        assert decision.reason == expected

    def test_no_data(self):
        """No impressions at all is inconclusive with confidence 0."""
        split = make_split(a_days=0, b_days=0, a_impressions=0, b_impressions=0,
                           a_clicks=0, b_clicks=0, a_score=0, b_score=0)
        decision = framework.evaluate_winner_decision(split, 14, make_config(), test_completed=True)

        assert decision.winner_mode == 'inconclusive'
        assert decision.confidence == 0
        assert decision.p_value == 1
        assert decision.reason.split(',') == [
            'insufficient_exposure_days',
            'insufficient_impressions',
            'insufficient_confidence',
            'insufficient_ctr_delta',
            'insufficient_score_delta',
        ]

    def test_to_dict_serializable(self):
        decision = framework.evaluate_winner_decision(
            make_split(a_days=2), 14, make_config(), test_completed=True
        )
        result = decision.to_dict()

        assert result['failures'] == ['insufficient_exposure_days']
        assert result['winner_variant'] is None
        assert json.loads(json.dumps(result))['reason'] == 'insufficient_exposure_days'
