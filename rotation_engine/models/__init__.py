"""Rotation engine data models."""

from rotation_engine.models.board import (
    NEW_LANE,
    Affinities,
    Board,
    Entity,
    EntityType,
    HistoryEntry,
    Lane,
    Location,
)
from rotation_engine.models.config import RecommendationConfig
from rotation_engine.models.moves import Grouping, Move, NoSolution, Placement

__all__ = [
    "NEW_LANE",
    "Affinities",
    "Board",
    "Entity",
    "EntityType",
    "Grouping",
    "HistoryEntry",
    "Lane",
    "Location",
    "Move",
    "NoSolution",
    "Placement",
    "RecommendationConfig",
]
