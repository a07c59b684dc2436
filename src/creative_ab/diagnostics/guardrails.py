"""
Guardrail and Eligibility Checks
================================

Predicates an experiment must satisfy before an automatic winner is trusted.

Guardrails (minimum data volume):
- **Exposure**: each variant was live on at least
  ``max(2, duration_days // 2)`` days
- **Impressions**: each variant collected at least
  ``config.min_impressions_per_variant`` impressions

Eligibility (evaluated regardless of guardrails):
- **Confidence**: 1 - p-value of the two-proportion z-test >= ``min_confidence``
- **CTR delta**: |ctr_A - ctr_B| (pp) >= ``min_ctr_delta_pct_points``
- **Score delta**: |score_A - score_B| >= ``min_score_delta``

Failures are always reported in the fixed order of ``FAILURE_CODES``.

Example Usage:
--------------
>>> from creative_ab.diagnostics import guardrails
>>>
>>> report = guardrails.evaluate_guardrails(performance, duration_days=14, config=config)
>>> report.guardrails_passed
True
>>> report.failures
('insufficient_confidence',)
"""

from dataclasses import dataclass
from typing import Tuple

from creative_ab.core.frequentist import two_proportion_p_value
from creative_ab.core.models import ScoringConfig, SplitVariantPerformance
from creative_ab.core.numeric import round_half_up

INSUFFICIENT_EXPOSURE_DAYS = 'insufficient_exposure_days'
INSUFFICIENT_IMPRESSIONS = 'insufficient_impressions'
INSUFFICIENT_CONFIDENCE = 'insufficient_confidence'
INSUFFICIENT_CTR_DELTA = 'insufficient_ctr_delta'
INSUFFICIENT_SCORE_DELTA = 'insufficient_score_delta'

FAILURE_CODES: Tuple[str, ...] = (
    INSUFFICIENT_EXPOSURE_DAYS,
    INSUFFICIENT_IMPRESSIONS,
    INSUFFICIENT_CONFIDENCE,
    INSUFFICIENT_CTR_DELTA,
    INSUFFICIENT_SCORE_DELTA,
)


def min_exposure_days_per_variant(duration_days: int) -> int:
    """
    Minimum days each variant must have been live.

    Example
    -------
    >>> min_exposure_days_per_variant(14)
    7
    >>> min_exposure_days_per_variant(3)
    2
    """
    return max(2, int(duration_days) // 2)


@dataclass(frozen=True)
class GuardrailReport:
    """Outcome of every predicate plus the statistics they were judged on."""
    min_exposure_days_per_variant: int
    p_value: float
    confidence: float
    ctr_delta_pct_points: float
    score_delta: float
    has_exposure: bool
    has_impressions: bool
    has_confidence: bool
    has_ctr_delta: bool
    has_score_delta: bool

    @property
    def guardrails_passed(self) -> bool:
        """Exposure and impression guardrails both hold."""
        return self.has_exposure and self.has_impressions

    @property
    def auto_eligible(self) -> bool:
        """Guardrails and every eligibility predicate hold."""
        return (
            self.guardrails_passed
            and self.has_confidence
            and self.has_ctr_delta
            and self.has_score_delta
        )

    @property
    def failures(self) -> Tuple[str, ...]:
        """Codes of the failing predicates, in canonical order."""
        checks = (
            self.has_exposure,
            self.has_impressions,
            self.has_confidence,
            self.has_ctr_delta,
            self.has_score_delta,
        )
        return tuple(code for code, passed in zip(FAILURE_CODES, checks) if not passed)


def evaluate_guardrails(
    performance: SplitVariantPerformance,
    duration_days: int,
    config: ScoringConfig,
) -> GuardrailReport:
    """
    Evaluate guardrail and eligibility predicates for an A/B pair.

    Parameters
    ----------
    performance : SplitVariantPerformance
        Aggregated A and B performance
    duration_days : int
        Planned experiment length in days
    config : ScoringConfig
        Thresholds to judge against

    Returns
    -------
    GuardrailReport

    Notes
    -----
    - If either variant has zero impressions, p_value = 1 and confidence = 0
    - confidence and p_value are fractions; ctr_delta_pct_points is in pp
    """
    a, b = performance.a, performance.b
    min_days = min_exposure_days_per_variant(duration_days)

    p_value = two_proportion_p_value(a.estimated_clicks, a.impressions, b.estimated_clicks, b.impressions)
    confidence = round_half_up(1 - p_value, 6)
    ctr_delta = round_half_up(abs(a.ctr - b.ctr), 4)
    score_delta = round_half_up(abs(a.score - b.score), 6)

    return GuardrailReport(
        min_exposure_days_per_variant=min_days,
        p_value=round_half_up(p_value, 6),
        confidence=confidence,
        ctr_delta_pct_points=ctr_delta,
        score_delta=score_delta,
        has_exposure=a.exposure_days >= min_days and b.exposure_days >= min_days,
        has_impressions=(
            a.impressions >= config.min_impressions_per_variant
            and b.impressions >= config.min_impressions_per_variant
        ),
        has_confidence=confidence >= config.min_confidence,
        has_ctr_delta=ctr_delta >= config.min_ctr_delta_pct_points,
        has_score_delta=score_delta >= config.min_score_delta,
    )
