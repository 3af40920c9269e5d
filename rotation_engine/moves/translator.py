"""Move Translator: turns a chosen grouping into the Move list callers apply."""

from typing import Iterable, List, Optional

from rotation_engine.models.board import NEW_LANE, Entity, Lane
from rotation_engine.models.moves import Grouping, Move


def moves_from_grouping(
    grouping: Optional[Grouping],
    lanes: Optional[Iterable[Lane]],
    entities: Optional[Iterable[Entity]] = None,
) -> List[Move]:
    """
    Build one Move per slot of a grouping.

    Entities already located on their target lane are left out, and a slot
    left with nobody to move is dropped. Slots naming a lane that is not an
    unlocked lane of the board become NEW_LANE. Moves onto existing lanes come
    first in board order, followed by NEW_LANE moves.
    """
    if not grouping:
        return []

    order = {}
    for lane in lanes or []:
        if not lane.locked:
            order.setdefault(lane.id, len(order))
    location = {e.id: e.location for e in entities or []}

    moves = []
    for entity_ids, lane_id in grouping:
        target = lane_id if lane_id in order else NEW_LANE
        movers = [i for i in entity_ids if location.get(i) != target]
        if movers:
            moves.append(Move(lane=target, entities=movers))

    moves.sort(key=lambda m: order.get(m.lane, len(order)))
    return moves
