"""
History Clock: discretizes time into the buckets history entries are keyed by.

Recording board snapshots and pruning old buckets belong to the caller; this
module only does the bucket arithmetic both sides must agree on.
"""

from datetime import datetime, timezone
from typing import Optional

from rotation_engine.models.config import RecommendationConfig


class HistoryClock:
    """Maps timestamps onto integer history buckets of a fixed width."""

    def __init__(self, chunk_ms: int):
        if chunk_ms <= 0:
            raise ValueError(f"chunk_ms must be positive, got {chunk_ms}")
        self.chunk_ms = chunk_ms

    @classmethod
    def from_config(cls, config: Optional[RecommendationConfig] = None) -> "HistoryClock":
        return cls((config or RecommendationConfig()).history_chunk_ms)

    def scale(self, timestamp_ms: float) -> int:
        """Bucket id for a millisecond epoch timestamp."""
        return int(timestamp_ms // self.chunk_ms)

    def bucket_for(self, moment: datetime) -> int:
        # Naive datetimes are taken as UTC
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return self.scale(moment.timestamp() * 1000)

    def history_key(self, moment: datetime) -> str:
        """Decimal key a snapshot taken at `moment` is stored under."""
        return str(self.bucket_for(moment))
