"""
Experiment Data Model
=====================

Immutable records passed between the timeline reconstructor, the performance
aggregator, the decision engine and the portfolio summarizer.

The calling layer (API, daily job) owns every record. Engine functions take
snapshots by value and always return new, independent objects.

Units:
------
- ``ctr``, ``impressions_ctr``, ``ctr_delta_pct_points`` and lift values are
  percentages in the 0-100 range.
- ``confidence``, ``p_value`` and score weights are fractions in the 0-1 range.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Literal, Optional, Tuple, Union


VariantId = Literal['A', 'B']
VARIANTS: Tuple[str, str] = ('A', 'B')

VariantEventSource = Literal[
    'test_created',
    'daily_rotation',
    'auto_winner',
    'manual_winner',
    'inconclusive_revert',
]
VARIANT_EVENT_SOURCES: Tuple[str, ...] = (
    'test_created',
    'daily_rotation',
    'auto_winner',
    'manual_winner',
    'inconclusive_revert',
)

DailyVariantSource = Literal['exact', 'inferred']
WinnerMode = Literal['pending', 'auto', 'inconclusive']

DateLike = Union[str, date, datetime]
Numeric = Union[int, float, str, None]


def parse_variant(value: Any) -> str:
    """
    Validate a variant tag.

    Accepts 'A'/'B' in either case and returns the upper-case tag.

    Raises
    ------
    ValueError
        If the value is not a known variant
    """
    if isinstance(value, str) and value.strip().upper() in VARIANTS:
        return value.strip().upper()
    raise ValueError(f"variant must be 'A' or 'B', got {value!r}")


def opposite_variant(variant: str) -> str:
    """Return the other variant of the pair."""
    return 'B' if parse_variant(variant) == 'A' else 'A'


def is_variant_event_source(value: Any) -> bool:
    """Whether ``value`` is one of the recorded rotation event sources."""
    return isinstance(value, str) and value in VARIANT_EVENT_SOURCES


@dataclass(frozen=True)
class DailyMetricPoint:
    """One calendar day of raw metrics for the experiment's video."""
    date: DateLike
    impressions: Numeric = 0
    clicks: Numeric = 0
    views: Numeric = None
    estimated_minutes_watched: Numeric = 0
    average_view_duration_seconds: Numeric = 0
    impressions_ctr: Numeric = 0
    test_id: Optional[str] = None


@dataclass(frozen=True)
class VariantEvent:
    """Exact record that ``variant`` became live at ``changed_at``."""
    variant: VariantId
    source: VariantEventSource
    changed_at: DateLike
    id: Optional[str] = None
    changed_by_user_id: Optional[str] = None

    def __post_init__(self):
        if self.variant not in VARIANTS:
            raise ValueError(f"variant must be 'A' or 'B', got {self.variant!r}")
        if not is_variant_event_source(self.source):
            raise ValueError(
                f"Unknown variant event source {self.source!r}. "
                f"Expected one of: {list(VARIANT_EVENT_SOURCES)}"
            )


@dataclass(frozen=True)
class ExperimentRecord:
    """The stored experiment row, as far as the analytics engine needs it."""
    id: str
    start_date: DateLike
    duration_days: int = 14
    initial_variant: VariantId = 'A'
    current_variant: VariantId = 'A'
    title_a: str = ''
    title_b: str = ''
    thumbnail_url_a: str = ''
    thumbnail_url_b: str = ''
    status: str = 'active'
    winner_variant: Optional[VariantId] = None
    winner_mode: Optional[str] = None
    review_required: bool = False

    def __post_init__(self):
        for name in ('initial_variant', 'current_variant'):
            if getattr(self, name) not in VARIANTS:
                raise ValueError(f"{name} must be 'A' or 'B', got {getattr(self, name)!r}")
        if self.winner_variant is not None and self.winner_variant not in VARIANTS:
            raise ValueError(f"winner_variant must be 'A', 'B' or None, got {self.winner_variant!r}")
        if self.duration_days < 1:
            raise ValueError("duration_days must be at least 1")

    def assets_for(self, variant: str) -> Tuple[str, str]:
        """Return ``(title, thumbnail_url)`` of the given variant."""
        if parse_variant(variant) == 'A':
            return self.title_a, self.thumbnail_url_a
        return self.title_b, self.thumbnail_url_b


@dataclass(frozen=True)
class ScoreWeights:
    """Composite score weights; renormalized to sum to 1 before use."""
    ctr_weight: float
    quality_weight: float


@dataclass(frozen=True)
class ScoringConfig:
    """Guardrail thresholds an experiment must clear for an automatic winner."""
    min_impressions_per_variant: float
    min_confidence: float
    min_ctr_delta_pct_points: float
    min_score_delta: float
    weights: ScoreWeights

    def __post_init__(self):
        if self.min_impressions_per_variant < 0:
            raise ValueError("min_impressions_per_variant must be non-negative")
        if not 0 <= self.min_confidence <= 1:
            raise ValueError("min_confidence must be between 0 and 1")
        if self.min_ctr_delta_pct_points < 0:
            raise ValueError("min_ctr_delta_pct_points must be non-negative")
        if self.min_score_delta < 0:
            raise ValueError("min_score_delta must be non-negative")


@dataclass(frozen=True)
class VariantPerformance:
    """Aggregated performance of one variant over its exposure days."""
    variant: VariantId
    exposure_days: int = 0
    impressions: float = 0.0
    estimated_clicks: float = 0.0
    ctr: float = 0.0
    impressions_ctr: float = 0.0
    views: float = 0.0
    estimated_minutes_watched: float = 0.0
    average_view_duration_seconds: float = 0.0
    wtpi: float = 0.0
    score: float = 0.0
    ctr_norm: float = 0.0
    wtpi_norm: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SplitVariantPerformance:
    """The A/B pair of aggregates plus whether a watch-time signal existed."""
    a: VariantPerformance
    b: VariantPerformance
    quality_available: bool

    def winner_and_loser(self, winner: str) -> Tuple[VariantPerformance, VariantPerformance]:
        """Return ``(winner, loser)`` aggregates for the given winning variant."""
        if parse_variant(winner) == 'A':
            return self.a, self.b
        return self.b, self.a

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WinnerDecision:
    """Outcome of one evaluation of the winner decision procedure."""
    winner_variant: Optional[VariantId]
    winner_mode: WinnerMode
    confidence: float
    p_value: float
    review_required: bool
    reason: str
    min_exposure_days_per_variant: int
    guardrails_passed: bool
    ctr_delta_pct_points: float
    score_delta: float
    failures: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['failures'] = list(self.failures)
        return result


@dataclass(frozen=True)
class DailyVariantResult:
    """One metric day labelled with the variant that was live on it."""
    date: str
    variant: VariantId
    source: DailyVariantSource
    title: str
    thumbnail_url: str
    impressions: float
    clicks: float
    views: float
    estimated_minutes_watched: float
    average_view_duration_seconds: float
    impressions_ctr: float
    ctr: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CurrentVariantState:
    """Which variant is live right now, and since when."""
    variant: VariantId
    title: str
    thumbnail_url: str
    since: datetime
    since_source: DailyVariantSource

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['since'] = self.since.isoformat()
        return result


@dataclass(frozen=True)
class PortfolioSummary:
    """Fleet-level lift metrics across finished experiments."""
    avg_ctr_lift: float = 0.0
    extra_clicks: int = 0
    avg_wtpi_lift: float = 0.0
    extra_watch_minutes: float = 0.0
    inconclusive_count: int = 0
    tests_evaluated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
