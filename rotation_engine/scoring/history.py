"""
History Scorer: converts a candidate plus the historical record into a
repetition cost.

Behavioral Contract:
- Reads only the most recent `history_window` entries, ordered by bucket id
- When a current bucket is supplied, also drops entries that are not newer
  than `current_bucket - bucket_lookback`
- A pair's recency penalty is `decay_base ** position` of the entry where the
  pair was last co-located (position 0 = oldest entry read); never co-located
  scores zero
- Affinity exclusions are counted apart from recency and always outweigh it
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from rotation_engine.models.board import Entity, HistoryEntry, Location, type_name
from rotation_engine.models.config import RecommendationConfig
from rotation_engine.models.moves import Grouping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Cost:
    """Candidate cost, compared lexicographically: exclusions first, then recency."""

    exclusions: int = 0
    recency: int = 0

    def __add__(self, other: "Cost") -> "Cost":
        return Cost(
            exclusions=self.exclusions + other.exclusions,
            recency=self.recency + other.recency,
        )


ZERO_COST = Cost()


def select_window(
    history: Optional[Iterable[HistoryEntry]],
    config: RecommendationConfig,
    current_bucket: Optional[int] = None,
) -> List[HistoryEntry]:
    """Order history by bucket and keep the bounded recent window."""
    numbered = []
    for entry in history or []:
        if not isinstance(entry, HistoryEntry):
            try:
                entry = HistoryEntry.model_validate(entry)
            except ValidationError as e:
                logger.debug("Skipping malformed history entry: %s", e)
                continue
        if entry.bucket is None:
            logger.debug("Skipping history entry with non-numeric id %r", entry.id)
            continue
        numbered.append(entry)

    numbered.sort(key=lambda e: e.bucket)
    window = numbered[-config.history_window:]

    if current_bucket is not None:
        start = current_bucket - config.bucket_lookback
        window = [e for e in window if e.bucket > start]

    logger.debug("History window holds %d of %d entries", len(window), len(numbered))
    return window


class HistoryScorer:
    """
    Indexes when each pair of entities was last co-located and prices
    candidate groupings from that index.
    """

    def __init__(
        self,
        history: Optional[Iterable[HistoryEntry]],
        entity_types: Iterable[str],
        current_bucket: Optional[int] = None,
        config: Optional[RecommendationConfig] = None,
    ):
        self.config = config or RecommendationConfig()
        self._types = {type_name(t) for t in entity_types}
        self._last_together: Dict[FrozenSet[str], int] = {}
        self.window = select_window(history, self.config, current_bucket)
        self._index_window()

    def _index_window(self) -> None:
        # Ascending order: later entries overwrite earlier positions
        for position, entry in enumerate(self.window):
            for group in self._colocated_groups(entry):
                for a, b in combinations(group, 2):
                    if a != b:
                        self._last_together[frozenset((a, b))] = position

    def _colocated_groups(self, entry: HistoryEntry) -> Iterable[List[str]]:
        by_location: Dict[str, List[str]] = defaultdict(list)
        for entity in entry.entities:
            if entity.type not in self._types:
                continue
            if entity.location in (Location.UNASSIGNED, Location.OUT):
                continue
            by_location[entity.location].append(entity.id)
        return by_location.values()

    def last_together(self, a_id: str, b_id: str) -> Optional[int]:
        """Window position where the pair was last co-located, if ever."""
        return self._last_together.get(frozenset((a_id, b_id)))

    def recency(self, a_id: str, b_id: str) -> int:
        position = self.last_together(a_id, b_id)
        if position is None:
            return 0
        return self.config.decay_base ** position

    def pair_cost(self, a: Entity, b: Entity) -> Cost:
        return Cost(
            exclusions=1 if a.excludes(b) else 0,
            recency=self.recency(a.id, b.id),
        )

    def join_cost(self, entity: Entity, group: Sequence[Entity]) -> Cost:
        """Cost added by placing an entity alongside an existing group."""
        total = ZERO_COST
        for member in group:
            total = total + self.pair_cost(entity, member)
        return total

    def grouping_cost(self, grouping: Grouping, entities: Mapping[str, Entity]) -> Cost:
        """Pairing cost: every same-group pair."""
        total = ZERO_COST
        for placement in grouping:
            members = [entities[i] for i in placement.entity_ids if i in entities]
            for a, b in combinations(members, 2):
                total = total + self.pair_cost(a, b)
        return total

    def matching_cost(
        self,
        grouping: Grouping,
        hosts: Mapping[str, Sequence[Entity]],
        entities: Mapping[str, Entity],
    ) -> Cost:
        """Assignment cost: every (lane host, placed entity) association."""
        total = ZERO_COST
        for placement in grouping:
            lane_hosts = hosts.get(placement.lane, [])
            for entity_id in placement.entity_ids:
                if entity_id in entities:
                    total = total + self.join_cost(entities[entity_id], lane_hosts)
        return total
