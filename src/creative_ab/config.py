"""Central configuration via Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from creative_ab.core.models import ScoreWeights, ScoringConfig


class Settings(BaseSettings):
    """Settings loaded from ``CREATIVE_AB_*`` environment variables / .env file."""

    # ── App ──
    log_level: str = "INFO"

    # ── Composite score ──
    ctr_weight: float = Field(default=0.7, ge=0)
    quality_weight: float = Field(default=0.3, ge=0)

    # ── Winner guardrails ──
    min_impressions_per_variant: float = Field(default=1500, ge=0)
    min_confidence: float = Field(default=0.95, ge=0, le=1)
    min_ctr_delta_pct_points: float = Field(default=0.2, ge=0)
    min_score_delta: float = Field(default=0.02, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="CREATIVE_AB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def score_weights(self) -> ScoreWeights:
        return ScoreWeights(ctr_weight=self.ctr_weight, quality_weight=self.quality_weight)

    def scoring_config(self) -> ScoringConfig:
        """Immutable policy value handed to every engine call."""
        return ScoringConfig(
            min_impressions_per_variant=self.min_impressions_per_variant,
            min_confidence=self.min_confidence,
            min_ctr_delta_pct_points=self.min_ctr_delta_pct_points,
            min_score_delta=self.min_score_delta,
            weights=self.score_weights(),
        )


settings = Settings()
