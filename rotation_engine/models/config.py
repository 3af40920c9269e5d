"""Recommendation engine configuration."""

from pydantic import BaseModel, Field


class RecommendationConfig(BaseModel):
    """Tunable constants for history scoring and grouping."""

    history_window: int = Field(default=100, ge=1)
    bucket_lookback: int = Field(default=3, ge=0)
    decay_base: int = Field(default=2, ge=2)
    group_size: int = Field(default=2, ge=1)
    default_entity_type: str = "person"
    history_chunk_ms: int = Field(default=3_600_000, ge=1)
