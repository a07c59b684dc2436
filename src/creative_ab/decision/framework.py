"""
Winner Decision Framework
=========================

Turns aggregated A/B performance into a winner decision.

Decision Matrix:
- **PENDING**: the test is still running. A provisional winner is reported
  for information only; ``reason`` says whether the criteria are already met.
- **AUTO**: the test has ended, guardrails pass and confidence, CTR delta and
  score delta all clear their thresholds.
- **INCONCLUSIVE**: the test has ended and at least one predicate failed.
  No winner; a human must choose (recorded later as a ``manual_winner``
  rotation event).

Example Usage:
--------------
>>> from creative_ab.decision import framework
>>>
>>> decision = framework.evaluate_winner_decision(
...     performance, duration_days=14, config=config, test_completed=True
... )
>>> print(decision.winner_mode)  # 'auto'
>>> print(decision.reason)       # 'auto_criteria_met'
"""

from typing import Optional

from creative_ab.core.models import ScoringConfig, SplitVariantPerformance, WinnerDecision
from creative_ab.diagnostics.guardrails import GuardrailReport, evaluate_guardrails

REASON_AUTO = 'auto_criteria_met'
REASON_WAITING = 'criteria_met_waiting_test_end'
REASON_IN_PROGRESS = 'test_in_progress'


def choose_winner(performance: SplitVariantPerformance) -> str:
    """
    Pick the better variant of the pair.

    Higher score wins; on a score tie the higher CTR wins; on a full tie
    variant A wins. The A default has always been applied to stored
    decisions and must stay stable.
    """
    a, b = performance.a, performance.b
    if a.score > b.score:
        return 'A'
    if b.score > a.score:
        return 'B'
    if a.ctr > b.ctr:
        return 'A'
    if b.ctr > a.ctr:
        return 'B'
    return 'A'


def _decision(
    report: GuardrailReport,
    winner_variant: Optional[str],
    winner_mode: str,
    review_required: bool,
    reason: str,
) -> WinnerDecision:
    return WinnerDecision(
        winner_variant=winner_variant,
        winner_mode=winner_mode,
        confidence=report.confidence,
        p_value=report.p_value,
        review_required=review_required,
        reason=reason,
        min_exposure_days_per_variant=report.min_exposure_days_per_variant,
        guardrails_passed=report.guardrails_passed,
        ctr_delta_pct_points=report.ctr_delta_pct_points,
        score_delta=report.score_delta,
        failures=report.failures,
    )


def evaluate_winner_decision(
    performance: SplitVariantPerformance,
    duration_days: int,
    config: ScoringConfig,
    test_completed: bool,
) -> WinnerDecision:
    """
    Decide pending / auto / inconclusive for one experiment.

    Parameters
    ----------
    performance : SplitVariantPerformance
        Aggregated A and B performance
    duration_days : int
        Planned experiment length; sets the minimum exposure days
    config : ScoringConfig
        Guardrail and eligibility thresholds
    test_completed : bool
        Whether the experiment has reached its end

    Returns
    -------
    WinnerDecision
        - pending: winner_variant is informational, review_required False,
          reason 'criteria_met_waiting_test_end' or 'test_in_progress'
        - auto: winner_variant set, reason 'auto_criteria_met'
        - inconclusive: winner_variant None, review_required True, reason is
          the comma-joined failing predicate codes in canonical order

    Example
    -------
    >>> decision = evaluate_winner_decision(performance, 14, config, test_completed=False)
    >>> decision.winner_mode
    'pending'
    """
    report = evaluate_guardrails(performance, duration_days, config)
    winner = choose_winner(performance)

    if not test_completed:
        reason = REASON_WAITING if report.auto_eligible else REASON_IN_PROGRESS
        return _decision(report, winner, 'pending', False, reason)

    if report.auto_eligible:
        return _decision(report, winner, 'auto', False, REASON_AUTO)

    return _decision(report, None, 'inconclusive', True, ','.join(report.failures))


if __name__ == "__main__":
    from creative_ab.core.models import ScoreWeights, VariantPerformance

    print("=" * 80)
    print("Winner Decision Demo")
    print("=" * 80)

    config = ScoringConfig(
        min_impressions_per_variant=1500,
        min_confidence=0.95,
        min_ctr_delta_pct_points=0.2,
        min_score_delta=0.02,
        weights=ScoreWeights(ctr_weight=0.7, quality_weight=0.3),
    )
    performance = SplitVariantPerformance(
        a=VariantPerformance('A', exposure_days=7, impressions=5000, estimated_clicks=250,
                             ctr=5.0, score=1.0, ctr_norm=1.0, wtpi_norm=1.0),
        b=VariantPerformance('B', exposure_days=7, impressions=5000, estimated_clicks=200,
                             ctr=4.0, score=0.86, ctr_norm=0.8, wtpi_norm=0.75),
        quality_available=True,
    )

    for completed in (False, True):
        decision = evaluate_winner_decision(performance, 14, config, test_completed=completed)
        print(f"\n📊 test_completed={completed}")
        print(f"   Mode: {decision.winner_mode.upper()}")
        print(f"   Winner: {decision.winner_variant}")
        print(f"   Confidence: {decision.confidence:.4f} (p={decision.p_value:.4f})")
        print(f"   Reason: {decision.reason}")
