"""
Recommendation Engine: picks the least repetitive arrangement of a board.

Behavioral Contract:
- Pure function of the board and history passed in; keeps no state between calls
- Scans every candidate, keeps the minimal cost, and draws uniformly at
  random among ties (a fresh random source per call unless one is injected)
- Prefers the current arrangement when it is among the ties, so an
  already-optimal board yields no moves
- Pairing boards with too many lanes for their movable entities yield
  NoSolution; degenerate boards yield an empty move list
- Never raises on board or history content
"""

import logging
import random
from typing import Iterable, List, Optional, Union

from rotation_engine.candidates.generator import (
    CandidateAssignments,
    CandidateMatchings,
    _RestartableCandidates,
    StepCost,
)
from rotation_engine.models.board import Board, HistoryEntry, type_name
from rotation_engine.models.config import RecommendationConfig
from rotation_engine.models.moves import Grouping, Move, NoSolution
from rotation_engine.moves.translator import moves_from_grouping
from rotation_engine.scoring.history import Cost, HistoryScorer

logger = logging.getLogger(__name__)

Recommendation = Union[List[Move], NoSolution]


class RecommendationEngine:
    """Best pairing and best assignment over a shared candidate/score/select pipeline."""

    def __init__(self, config: Optional[RecommendationConfig] = None):
        self.config = config or RecommendationConfig()

    def best_pairing(
        self,
        board: Board,
        history: Optional[Iterable[HistoryEntry]] = None,
        entity_type: Optional[str] = None,
        current_bucket: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> Recommendation:
        """Group the movable entities of one type so recent partners are split up."""
        rng = rng or random.Random()
        entity_type = type_name(entity_type or self.config.default_entity_type)

        candidates = CandidateAssignments(
            board, entity_type, rng=rng, group_size=self.config.group_size
        )
        if not candidates.is_feasible:
            reason = (
                f"{len(candidates.lane_ids)} unlocked lanes need at least "
                f"{candidates.required_count} movable '{entity_type}' entities, "
                f"found {candidates.movable_count}"
            )
            logger.info("No pairing possible: %s", reason)
            return NoSolution(reason=reason)
        if candidates.movable_count == 0:
            return []

        scorer = HistoryScorer(history, [entity_type], current_bucket, self.config)
        entities = board.entity_index()

        def step_cost(entity_id: str, lane_id: str, members) -> Cost:
            return scorer.join_cost(entities[entity_id], [entities[m] for m in members])

        grouping = self._select(candidates, step_cost, board, rng)
        return moves_from_grouping(grouping, board.lanes, board.entities)

    def best_assignment(
        self,
        primary_type: str,
        secondary_type: str,
        board: Board,
        history: Optional[Iterable[HistoryEntry]] = None,
        current_bucket: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> Recommendation:
        """
        Match secondary-type entities onto the lanes hosting primary-type
        entities, preferring hosts that have gone longest without them.
        """
        rng = rng or random.Random()
        primary_type, secondary_type = type_name(primary_type), type_name(secondary_type)
        candidates = CandidateMatchings(board, primary_type, secondary_type, rng=rng)
        if not candidates.lane_ids or not candidates.secondary_ids:
            return []

        scorer = HistoryScorer(
            history, [primary_type, secondary_type], current_bucket, self.config
        )
        entities = board.entity_index()
        hosts = {
            lane_id: board.occupants_of(lane_id, primary_type)
            for lane_id in candidates.lane_ids
        }

        def step_cost(entity_id: str, lane_id: str, members) -> Cost:
            return scorer.join_cost(entities[entity_id], hosts[lane_id])

        grouping = self._select(candidates, step_cost, board, rng)
        return moves_from_grouping(grouping, board.lanes, board.entities)

    def _select(
        self,
        candidates: _RestartableCandidates,
        step_cost: StepCost,
        board: Board,
        rng: random.Random,
    ) -> Grouping:
        """Minimal-cost candidate, reservoir-sampled among ties."""
        best: Optional[Cost] = None
        chosen: Grouping = []
        chosen_is_current = False
        ties = 0
        examined = 0

        location = {e.id: e.location for e in board.entities}

        def is_current(grouping: Grouping) -> bool:
            # Candidates only name unlocked lanes or NEW_LANE, so a grouping
            # translates to no moves exactly when everyone already sits on its slot
            return all(
                location.get(entity_id) == lane
                for entity_ids, lane in grouping
                for entity_id in entity_ids
            )

        for grouping, cost in candidates.search(step_cost, lambda: best):
            examined += 1
            if best is None or cost < best:
                best, chosen, ties = cost, grouping, 1
                chosen_is_current = is_current(grouping)
            elif cost == best:
                ties += 1
                if chosen_is_current:
                    continue
                if is_current(grouping):
                    chosen, chosen_is_current = grouping, True
                elif rng.randrange(ties) == 0:
                    chosen = grouping

        logger.debug(
            "Examined %d candidates, best cost %s shared by %d", examined, best, ties
        )
        return chosen


def best_pairing(
    board: Board,
    history: Optional[Iterable[HistoryEntry]] = None,
    entity_type: Optional[str] = None,
    current_bucket: Optional[int] = None,
    rng: Optional[random.Random] = None,
    config: Optional[RecommendationConfig] = None,
) -> Recommendation:
    return RecommendationEngine(config).best_pairing(
        board, history, entity_type=entity_type, current_bucket=current_bucket, rng=rng
    )


def best_assignment(
    primary_type: str,
    secondary_type: str,
    board: Board,
    history: Optional[Iterable[HistoryEntry]] = None,
    current_bucket: Optional[int] = None,
    rng: Optional[random.Random] = None,
    config: Optional[RecommendationConfig] = None,
) -> Recommendation:
    return RecommendationEngine(config).best_assignment(
        primary_type, secondary_type, board, history,
        current_bucket=current_bucket, rng=rng,
    )
