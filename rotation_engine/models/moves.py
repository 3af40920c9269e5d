"""Engine output: candidate placements, moves and the no-solution marker."""

from typing import List, NamedTuple, Tuple

from pydantic import BaseModel


class Placement(NamedTuple):
    """One group of a candidate: the entities placed together and their slot."""

    entity_ids: Tuple[str, ...]
    lane: str                               # Lane id or NEW_LANE


Grouping = List[Placement]


class Move(BaseModel):
    """Relocate entities onto a lane, or onto a lane the caller must create."""

    lane: str                               # Lane id or NEW_LANE
    entities: List[str]


class NoSolution(BaseModel):
    """
    Returned instead of a move list when the board cannot be arranged.

    Falsy, so callers can branch on it, but distinct from the empty move list
    that means the board is already optimal.
    """

    reason: str

    def __bool__(self) -> bool:
        return False
