"""Rotation engine: fair lane rotation recommendations from board history."""

from rotation_engine.candidates.generator import (
    CandidateAssignments,
    CandidateMatchings,
    candidate_assignments,
    candidate_matchings,
)
from rotation_engine.history.clock import HistoryClock
from rotation_engine.models import (
    NEW_LANE,
    Board,
    Entity,
    EntityType,
    HistoryEntry,
    Lane,
    Location,
    Move,
    NoSolution,
    Placement,
    RecommendationConfig,
)
from rotation_engine.moves.translator import moves_from_grouping
from rotation_engine.scoring.history import Cost, HistoryScorer
from rotation_engine.selector.engine import (
    RecommendationEngine,
    best_assignment,
    best_pairing,
)

__all__ = [
    "NEW_LANE",
    "Board",
    "CandidateAssignments",
    "CandidateMatchings",
    "Cost",
    "Entity",
    "EntityType",
    "HistoryClock",
    "HistoryEntry",
    "HistoryScorer",
    "Lane",
    "Location",
    "Move",
    "NoSolution",
    "Placement",
    "RecommendationConfig",
    "RecommendationEngine",
    "best_assignment",
    "best_pairing",
    "candidate_assignments",
    "candidate_matchings",
    "moves_from_grouping",
]
