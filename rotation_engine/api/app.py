"""
Rotation Engine API: FastAPI endpoints.

A stateless HTTP surface over the recommendation engine for:
- Best pairing of one entity type
- Best assignment of a secondary type onto lanes hosting a primary type
- Candidate inspection
- History bucket lookup

Nothing is stored; every request carries the board and history it is about.
"""

from datetime import datetime, timezone
from itertools import islice
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from rotation_engine.candidates.generator import candidate_assignments
from rotation_engine.history.clock import HistoryClock
from rotation_engine.models.board import Board, HistoryEntry
from rotation_engine.models.config import RecommendationConfig
from rotation_engine.models.moves import Move, NoSolution
from rotation_engine.selector.engine import Recommendation, RecommendationEngine


# --- Request/Response Models ---

class PairingRequest(BaseModel):
    board: Board
    history: List[HistoryEntry] = []
    entity_type: Optional[str] = None
    now: Optional[datetime] = None          # Enables the recent-bucket history filter


class AssignmentRequest(BaseModel):
    primary_type: str
    secondary_type: str
    board: Board
    history: List[HistoryEntry] = []
    now: Optional[datetime] = None


class CandidatesRequest(BaseModel):
    board: Board
    entity_type: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=1000)


class RecommendationResponse(BaseModel):
    moves: Optional[List[Move]] = None
    no_solution: Optional[NoSolution] = None


# --- Application Factory ---

def create_app(
    config: Optional[RecommendationConfig] = None,
    engine: Optional[RecommendationEngine] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Rotation Engine API",
        description="Fair lane rotation recommendations",
        version="0.1.0",
    )

    cfg = config or (engine.config if engine else RecommendationConfig())
    eng = engine or RecommendationEngine(cfg)
    clock = HistoryClock.from_config(cfg)

    app.state.engine = eng
    app.state.clock = clock

    def _bucket(now: Optional[datetime]) -> Optional[int]:
        return clock.bucket_for(now) if now is not None else None

    def _respond(result: Recommendation) -> RecommendationResponse:
        if isinstance(result, NoSolution):
            return RecommendationResponse(no_solution=result)
        return RecommendationResponse(moves=result)

    # === RECOMMENDATIONS ===

    @app.post("/recommendations/pairing", response_model=RecommendationResponse)
    def recommend_pairing(req: PairingRequest):
        """Moves that rotate one entity type into fresh groupings."""
        result = eng.best_pairing(
            req.board,
            req.history,
            entity_type=req.entity_type,
            current_bucket=_bucket(req.now),
        )
        return _respond(result)

    @app.post("/recommendations/assignment", response_model=RecommendationResponse)
    def recommend_assignment(req: AssignmentRequest):
        """Moves that spread a secondary type over lanes hosting the primary type."""
        result = eng.best_assignment(
            req.primary_type,
            req.secondary_type,
            req.board,
            req.history,
            current_bucket=_bucket(req.now),
        )
        return _respond(result)

    @app.post("/recommendations/candidates", response_model=dict)
    def list_candidates(req: CandidatesRequest):
        """The first candidates of a pairing enumeration, in arbitrary order."""
        entity_type = req.entity_type or cfg.default_entity_type
        candidates = candidate_assignments(
            req.board, entity_type, group_size=cfg.group_size
        )
        taken = list(islice(iter(candidates), req.limit + 1))
        return {
            "candidates": [
                [{"entities": list(p.entity_ids), "lane": p.lane} for p in grouping]
                for grouping in taken[:req.limit]
            ],
            "truncated": len(taken) > req.limit,
            "feasible": candidates.is_feasible,
        }

    # === HISTORY ===

    @app.get("/history/bucket", response_model=dict)
    def history_bucket(timestamp_ms: Optional[float] = None):
        """Bucket id for a timestamp, or for the current time."""
        if timestamp_ms is None:
            return {"bucket": clock.bucket_for(datetime.now(timezone.utc))}
        try:
            return {"bucket": clock.scale(timestamp_ms)}
        except (ValueError, OverflowError) as e:
            raise HTTPException(400, f"Invalid timestamp: {e}")

    return app
