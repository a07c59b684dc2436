"""
Numeric Helpers
===============

Small, defensive numeric routines shared by the timeline, aggregation and
decision modules. Collector rows arrive with strings, nulls and the odd NaN,
so everything that touches raw metrics goes through ``safe_number`` first.

Example Usage:
--------------
>>> from creative_ab.core import numeric
>>> numeric.safe_number("12.5")
12.5
>>> numeric.safe_number(float('nan'))
0.0
>>> numeric.round_half_up(0.1234565, 6)
0.123457
"""

import math
from typing import Any, Tuple

import numpy as np


def safe_number(value: Any) -> float:
    """
    Coerce a raw metric value to a finite, non-negative float.

    Parameters
    ----------
    value : Any
        Number, numeric string, ``None`` or anything else the collector produced

    Returns
    -------
    float
        The parsed value, or 0.0 when it is missing, unparsable, non-finite
        or negative
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not np.isfinite(parsed) or parsed < 0:
        return 0.0
    return parsed


def round_half_up(value: float, decimals: int) -> float:
    """
    Round with ties going towards +infinity.

    Python's ``round`` uses banker's rounding, which would move persisted
    scores and CTRs by one unit in the last place on exact ties. Stored
    decisions were produced with half-up rounding, so we keep it.

    Example
    -------
    >>> round_half_up(2.5, 0)
    3.0
    >>> round(2.5)
    2
    """
    if not math.isfinite(value):
        return 0.0
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, collapsing zero or non-finite denominators (and results) to 0."""
    if denominator == 0 or not math.isfinite(denominator):
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def normalize_weight_pair(ctr_weight: float, quality_weight: float) -> Tuple[float, float]:
    """
    Renormalize a (ctr, quality) weight pair so it sums to 1.

    Negative weights clamp to 0. When both weights are 0 the pair collapses
    to pure-CTR weighting ``(1.0, 0.0)``.

    Example
    -------
    >>> normalize_weight_pair(7, 3)
    (0.7, 0.3)
    >>> normalize_weight_pair(0, 0)
    (1.0, 0.0)
    """
    ctr = max(0.0, safe_number(ctr_weight))
    quality = max(0.0, safe_number(quality_weight))
    total = ctr + quality
    if total == 0:
        return 1.0, 0.0
    return ctr / total, quality / total
