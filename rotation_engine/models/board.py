"""Board Model: read-only snapshot of entities, lanes and past board states."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class EntityType(str, Enum):
    PERSON = "person"
    ROLE = "role"
    TRACK = "track"


def type_name(entity_type: Any) -> str:
    """Plain string for an EntityType member or a free-form type string."""
    if isinstance(entity_type, Enum):
        return entity_type.value
    return "" if entity_type is None else str(entity_type)


class Location:
    """Sentinel locations an entity can hold instead of a lane id."""

    UNASSIGNED = "unassigned"
    OUT = "out"


NEW_LANE = "new-lane"                       # Placeholder target, resolved by the caller


def _id_of(record: Any) -> Any:
    if isinstance(record, BaseModel):
        return getattr(record, "id", None)
    if isinstance(record, dict):
        return record.get("id")
    return None


def _identified(records: Any) -> Any:
    """Drop records that carry no id; anything that is not a list is left to validation."""
    if records is None:
        return []
    if not isinstance(records, (list, tuple)):
        return records
    return [r for r in records if _id_of(r) not in (None, "")]


def _id_as_string(value: Any) -> Any:
    if value is None:
        return ""
    return str(value) if isinstance(value, int) else value


class Affinities(BaseModel):
    """Tags an entity must not be grouped with."""

    model_config = ConfigDict(frozen=True)

    none: List[str] = []

    @field_validator("none", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class Entity(BaseModel):
    """A person, role or track item with its current location."""

    model_config = ConfigDict(frozen=True)

    id: str = ""                            # Empty for incomplete records, which boards drop
    type: str = ""                          # Open string; EntityType holds the known roles
    location: str = Location.UNASSIGNED     # Lane id, UNASSIGNED or OUT
    tags: List[str] = []
    affinities: Affinities = Affinities()

    @field_validator("id", mode="before")
    @classmethod
    def _id_default(cls, value: Any) -> Any:
        return _id_as_string(value)

    @field_validator("type", mode="before")
    @classmethod
    def _type_as_string(cls, value: Any) -> Any:
        return type_name(value)

    @field_validator("location", mode="before")
    @classmethod
    def _location_default(cls, value: Any) -> Any:
        return Location.UNASSIGNED if value in (None, "") else value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("affinities", mode="before")
    @classmethod
    def _affinities_default(cls, value: Any) -> Any:
        return {} if value is None else value

    def excludes(self, other: "Entity") -> bool:
        """True if either entity refuses to be grouped with a tag the other holds."""
        if set(self.affinities.none) & set(other.tags):
            return True
        return bool(set(other.affinities.none) & set(self.tags))


class Lane(BaseModel):
    """A grouping slot on the board. Occupants are derived from entity locations."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    locked: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _id_default(cls, value: Any) -> Any:
        return _id_as_string(value)

    @field_validator("locked", mode="before")
    @classmethod
    def _locked_default(cls, value: Any) -> Any:
        return False if value is None else value


class HistoryEntry(BaseModel):
    """A past board state keyed by its time bucket."""

    model_config = ConfigDict(frozen=True)

    id: str = ""                            # Decimal bucket key
    entities: List[Entity] = []

    @field_validator("id", mode="before")
    @classmethod
    def _id_default(cls, value: Any) -> Any:
        return _id_as_string(value)

    @field_validator("entities", mode="before")
    @classmethod
    def _entities_from_mapping(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            records = []
            for key, record in value.items():
                if isinstance(record, BaseModel):
                    record = record.model_dump()
                if record is None:
                    record = {}
                if isinstance(record, dict):
                    records.append({**record, "id": key})
            return _identified(records)
        return _identified(value)

    @property
    def bucket(self) -> Optional[int]:
        """The entry id as an integer bucket, or None when it is not numeric."""
        try:
            return int(self.id)
        except ValueError:
            return None


class Board(BaseModel):
    """The current state passed to every recommendation call."""

    model_config = ConfigDict(frozen=True)

    entities: List[Entity] = []
    lanes: List[Lane] = []

    @field_validator("entities", "lanes", mode="before")
    @classmethod
    def _drop_unidentified(cls, value: Any) -> Any:
        return _identified(value)

    @staticmethod
    def is_eligible(lane: Lane) -> bool:
        return not lane.locked

    def eligible_lanes(self) -> List[Lane]:
        return [lane for lane in self.lanes if self.is_eligible(lane)]

    def occupants_of(self, lane_id: str, entity_type: str) -> List[Entity]:
        """All entities of a type located in a lane."""
        return [
            e for e in self.entities
            if e.type == entity_type and e.location == lane_id
        ]

    def entities_of_type(self, entity_type: str) -> List[Entity]:
        return [e for e in self.entities if e.type == entity_type]

    def movable(self, entity_type: str) -> List[Entity]:
        """
        Entities of a type the engine may relocate: unassigned ones and the
        occupants of unlocked lanes. OUT entities, occupants of locked lanes
        and entities pointing at unknown lanes are left alone.
        """
        eligible = {lane.id for lane in self.eligible_lanes()}
        return [
            e for e in self.entities_of_type(entity_type)
            if e.location == Location.UNASSIGNED or e.location in eligible
        ]

    def entity_index(self) -> Dict[str, Entity]:
        return {e.id: e for e in self.entities}
