"""
Frequentist Tests for Click-Through Rates
=========================================

Two-proportion z-test on (clicks, impressions) per variant, the significance
test behind automatic winner decisions.

Example Usage:
--------------
>>> from creative_ab.core import frequentist
>>>
>>> # 5% vs 4% CTR on 5,000 impressions each
>>> result = frequentist.z_test_proportions(clicks_a=250, impressions_a=5000,
...                                         clicks_b=200, impressions_b=5000)
>>> print(f"Confidence: {result['confidence']:.4f}")
>>>
>>> # Guarded variant used by the decision engine (never raises)
>>> p = frequentist.two_proportion_p_value(250, 5000, 200, 5000)
"""

import math
from typing import Dict

import numpy as np
from scipy import stats


def normal_cdf(x: float) -> float:
    """Standard normal cumulative distribution function."""
    return float(stats.norm.cdf(x))


def z_test_proportions(
    clicks_a: float,
    impressions_a: float,
    clicks_b: float,
    impressions_b: float,
    alpha: float = 0.05,
) -> Dict[str, float]:
    """
    Two-sided pooled z-test comparing the CTR of variant A with variant B.

    Parameters
    ----------
    clicks_a, impressions_a : float
        Clicks and impressions while variant A was live
    clicks_b, impressions_b : float
        Clicks and impressions while variant B was live
    alpha : float, default=0.05
        Significance level for the ``significant`` flag

    Returns
    -------
    dict
        Dictionary with keys:
        - ctr_a, ctr_b: CTR of each variant (%)
        - ctr_delta_pct_points: ctr_a - ctr_b (pp)
        - z_statistic: Z-test statistic (0 when the pooled SE is 0)
        - p_value: two-sided p-value
        - confidence: 1 - p_value
        - significant: whether p_value < alpha

    Raises
    ------
    ValueError
        On negative clicks, non-positive impressions or more clicks than
        impressions

    Notes
    -----
    Pooled SE: SE = √[p̄(1-p̄)(1/n_a + 1/n_b)]
    """
    if clicks_a < 0 or clicks_b < 0:
        raise ValueError("clicks must be non-negative")
    if impressions_a <= 0 or impressions_b <= 0:
        raise ValueError("impressions must be positive")
    if clicks_a > impressions_a or clicks_b > impressions_b:
        raise ValueError("clicks cannot exceed impressions")

    p_a = clicks_a / impressions_a
    p_b = clicks_b / impressions_b
    p_pooled = (clicks_a + clicks_b) / (impressions_a + impressions_b)
    se_pooled = np.sqrt(p_pooled * (1 - p_pooled) * (1/impressions_a + 1/impressions_b))

    z_stat = (p_a - p_b) / se_pooled if se_pooled > 0 else 0.0
    p_value = 2 * (1 - normal_cdf(abs(z_stat)))

    return {
        'ctr_a': float(p_a * 100),
        'ctr_b': float(p_b * 100),
        'ctr_delta_pct_points': float((p_a - p_b) * 100),
        'z_statistic': float(z_stat),
        'p_value': float(p_value),
        'confidence': float(1 - p_value),
        'significant': bool(p_value < alpha),
    }


def two_proportion_p_value(
    clicks_a: float,
    impressions_a: float,
    clicks_b: float,
    impressions_b: float,
) -> float:
    """
    Two-sided p-value of ``z_test_proportions`` for arbitrary counts.

    Never raises: non-finite counts, a missing impression count, negative
    clicks, more clicks than impressions or zero pooled variance all yield
    1.0. The result is clamped to [0, 1].

    Example
    -------
    >>> two_proportion_p_value(250, 5000, 200, 5000)  # doctest: +ELLIPSIS
    0.0158...
    >>> two_proportion_p_value(10, 0, 12, 100)
    1.0
    """
    counts = (clicks_a, impressions_a, clicks_b, impressions_b)
    if not all(math.isfinite(value) for value in counts):
        return 1.0
    if impressions_a <= 0 or impressions_b <= 0:
        return 1.0
    if not (0 <= clicks_a <= impressions_a and 0 <= clicks_b <= impressions_b):
        return 1.0

    pooled = (clicks_a + clicks_b) / (impressions_a + impressions_b)
    if pooled <= 0 or pooled >= 1:
        return 1.0

    p_value = z_test_proportions(clicks_a, impressions_a, clicks_b, impressions_b)['p_value']
    if not math.isfinite(p_value):
        return 1.0
    return min(1.0, max(0.0, p_value))


if __name__ == "__main__":
    print("=" * 80)
    print("Two-Proportion Z-Test Demo")
    print("=" * 80)

    result = z_test_proportions(clicks_a=250, impressions_a=5000, clicks_b=200, impressions_b=5000)
    print(f"Variant A CTR: {result['ctr_a']:.2f}%")
    print(f"Variant B CTR: {result['ctr_b']:.2f}%")
    print(f"Difference: {result['ctr_delta_pct_points']:.2f}pp")
    print(f"Z-statistic: {result['z_statistic']:.4f}")
    print(f"P-value: {result['p_value']:.4f}")
    print(f"Confidence: {result['confidence']:.4f}")
    print(f"Significant: {'✅' if result['significant'] else '❌'}")
