"""
Candidate Generator: enumerates every legal redistribution of movable
entities across eligible lanes.

Behavioral Contract:
- Locked lanes are never slots and their occupants never move
- Each occupied lane keeps one designated occupant (context-preserving
  rotation); its other occupants join the movable set
- Groups formed outside the occupied lanes are enumerated as a set partition
  and then laid onto the empty lanes, followed by NEW_LANE slots only when the
  lanes cannot take every movable entity at the target group size
- Never emits the same candidate twice within one iteration
- Every iteration starts from scratch and reshuffles the enumeration order
"""

import logging
import random
from abc import ABC, abstractmethod
from itertools import product
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from rotation_engine.models.board import NEW_LANE, Board, EntityType, Location
from rotation_engine.models.moves import Grouping, Placement
from rotation_engine.scoring.history import ZERO_COST, Cost

logger = logging.getLogger(__name__)

# (entity_id, slot lane, current slot members) -> cost of adding the entity
StepCost = Callable[[str, str, Sequence[str]], Cost]
# Best complete cost seen so far, or None before the first candidate
Ceiling = Callable[[], Optional[Cost]]
# A lane and the ids placed on it; members grow and shrink during the search
Slot = Tuple[str, List[str]]


def _unique(ids: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def _over_ceiling(cost: Cost, ceiling: Optional[Ceiling]) -> bool:
    if ceiling is None:
        return False
    limit = ceiling()
    return limit is not None and cost > limit


class _RestartableCandidates(ABC):
    """
    Base for candidate enumerations. Iterating yields groupings; `search`
    yields (grouping, cost) pairs and prunes partial candidates whose cost
    already exceeds the ceiling.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def __iter__(self) -> Iterator[Grouping]:
        for grouping, _cost in self.search():
            yield grouping

    @abstractmethod
    def search(
        self,
        step_cost: Optional[StepCost] = None,
        ceiling: Optional[Ceiling] = None,
    ) -> Iterator[Tuple[Grouping, Cost]]:
        ...


class CandidateAssignments(_RestartableCandidates):
    """
    All pairing candidates for one entity type on one board.

    Empty lanes and NEW_LANE slots cost the same to a pairing, so groups
    opened outside the occupied lanes are not told apart by where they land.
    Each iteration lays them onto a freshly shuffled order of those slots,
    empty lanes first. While a group is still open the step cost sees it as
    NEW_LANE.
    """

    def __init__(
        self,
        board: Board,
        entity_type: str = EntityType.PERSON,
        rng: Optional[random.Random] = None,
        group_size: int = 2,
    ):
        super().__init__(rng)
        self.board = board
        self.entity_type = entity_type
        self.group_size = group_size
        self.lane_ids = _unique([lane.id for lane in board.eligible_lanes()])
        self.occupants: Dict[str, List[str]] = {lane_id: [] for lane_id in self.lane_ids}
        self.unassigned: List[str] = []
        self._home: Dict[str, str] = {}

        movable = board.movable(entity_type)
        for entity in movable:
            if entity.location == Location.UNASSIGNED:
                self.unassigned.append(entity.id)
            else:
                self.occupants[entity.location].append(entity.id)
                self._home[entity.id] = entity.location

        self.movable_count = len(movable)
        groups_needed = -(-self.movable_count // group_size)
        self.new_lane_count = max(0, groups_needed - len(self.lane_ids))

    @property
    def required_count(self) -> int:
        """Fewest movable entities that fill every lane but one at the group size."""
        if not self.lane_ids:
            return 0
        return (len(self.lane_ids) - 1) * self.group_size + 1

    @property
    def is_feasible(self) -> bool:
        return self.movable_count >= self.required_count

    def search(
        self,
        step_cost: Optional[StepCost] = None,
        ceiling: Optional[Ceiling] = None,
    ) -> Iterator[Tuple[Grouping, Cost]]:
        rng = self._rng
        occupied = [lane_id for lane_id in self.lane_ids if self.occupants[lane_id]]
        rng.shuffle(occupied)
        empty = [lane_id for lane_id in self.lane_ids if not self.occupants[lane_id]]
        rng.shuffle(empty)
        open_labels = empty + [NEW_LANE] * self.new_lane_count
        survivor_choices = [
            rng.sample(self.occupants[lane_id], len(self.occupants[lane_id]))
            for lane_id in occupied
        ]
        logger.debug(
            "Enumerating %d movable over %d occupied lanes and %d open slots",
            self.movable_count, len(occupied), len(open_labels),
        )

        for survivors in product(*survivor_choices):
            stays = dict(zip(occupied, survivors))
            slots: List[Slot] = [(lane_id, [stays[lane_id]]) for lane_id in occupied]
            rng.shuffle(slots)

            movers = list(self.unassigned)
            for lane_id in occupied:
                movers.extend(o for o in self.occupants[lane_id] if o != stays[lane_id])
            rng.shuffle(movers)

            yield from self._place(
                movers, 0, slots, [], open_labels, stays, ZERO_COST, step_cost, ceiling
            )

    def _place(
        self,
        movers: List[str],
        index: int,
        slots: List[Slot],
        groups: List[List[str]],
        open_labels: List[str],
        stays: Dict[str, str],
        cost: Cost,
        step_cost: Optional[StepCost],
        ceiling: Optional[Ceiling],
    ) -> Iterator[Tuple[Grouping, Cost]]:
        if _over_ceiling(cost, ceiling):
            return
        if index == len(movers):
            grouping = [Placement(tuple(members), lane) for lane, members in slots]
            grouping.extend(
                Placement(tuple(members), label)
                for members, label in zip(groups, open_labels)
            )
            yield grouping, cost
            return

        mover = movers[index]
        home = self._home.get(mover)

        targets: List[Slot] = [
            (lane, members) for lane, members in slots
            # The same group arises with this mover as the designated occupant
            if len(members) < self.group_size and not (lane == home and mover < stays[home])
        ]
        targets.extend(
            (NEW_LANE, members) for members in groups if len(members) < self.group_size
        )
        for lane, members in targets:
            added = step_cost(mover, lane, members) if step_cost else ZERO_COST
            members.append(mover)
            yield from self._place(
                movers, index + 1, slots, groups, open_labels, stays,
                cost + added, step_cost, ceiling,
            )
            members.pop()

        if len(groups) < len(open_labels):
            added = step_cost(mover, NEW_LANE, []) if step_cost else ZERO_COST
            groups.append([mover])
            yield from self._place(
                movers, index + 1, slots, groups, open_labels, stays,
                cost + added, step_cost, ceiling,
            )
            groups.pop()


class CandidateMatchings(_RestartableCandidates):
    """
    All ways to spread secondary-type entities over the unlocked lanes that
    host primary-type entities, keeping lane loads within one of each other.
    """

    def __init__(
        self,
        board: Board,
        primary_type: str,
        secondary_type: str,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(rng)
        self.board = board
        self.primary_type = primary_type
        self.secondary_type = secondary_type
        self.lane_ids = _unique([
            lane.id for lane in board.eligible_lanes()
            if board.occupants_of(lane.id, primary_type)
        ])
        self.secondary_ids = _unique([e.id for e in board.movable(secondary_type)])

        count, lanes = len(self.secondary_ids), len(self.lane_ids)
        if lanes and count > lanes:
            self.min_load = count // lanes
            self.max_load = -(-count // lanes)
        else:
            self.min_load = 0
            self.max_load = 1

    def search(
        self,
        step_cost: Optional[StepCost] = None,
        ceiling: Optional[Ceiling] = None,
    ) -> Iterator[Tuple[Grouping, Cost]]:
        if not self.lane_ids or not self.secondary_ids:
            yield [], ZERO_COST
            return

        rng = self._rng
        slots: List[Slot] = [(lane_id, []) for lane_id in self.lane_ids]
        rng.shuffle(slots)
        secondaries = list(self.secondary_ids)
        rng.shuffle(secondaries)
        yield from self._place(secondaries, 0, slots, ZERO_COST, step_cost, ceiling)

    def _place(
        self,
        secondaries: List[str],
        index: int,
        slots: List[Slot],
        cost: Cost,
        step_cost: Optional[StepCost],
        ceiling: Optional[Ceiling],
    ) -> Iterator[Tuple[Grouping, Cost]]:
        if _over_ceiling(cost, ceiling):
            return
        remaining = len(secondaries) - index
        shortfall = sum(max(0, self.min_load - len(members)) for _lane, members in slots)
        if shortfall > remaining:
            return
        if index == len(secondaries):
            yield [Placement(tuple(members), lane) for lane, members in slots if members], cost
            return

        secondary = secondaries[index]
        for lane, members in slots:
            if len(members) >= self.max_load:
                continue
            added = step_cost(secondary, lane, members) if step_cost else ZERO_COST
            members.append(secondary)
            yield from self._place(
                secondaries, index + 1, slots, cost + added, step_cost, ceiling
            )
            members.pop()


def candidate_assignments(
    board: Board,
    entity_type: str = EntityType.PERSON,
    rng: Optional[random.Random] = None,
    group_size: int = 2,
) -> CandidateAssignments:
    """Restartable, unordered sequence of pairing candidates for a board."""
    return CandidateAssignments(board, entity_type, rng=rng, group_size=group_size)


def candidate_matchings(
    board: Board,
    primary_type: str,
    secondary_type: str,
    rng: Optional[random.Random] = None,
) -> CandidateMatchings:
    """Restartable, unordered sequence of assignment candidates for a board."""
    return CandidateMatchings(board, primary_type, secondary_type, rng=rng)
