from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException

from hand_efficiency.blocks import partition_hand
from hand_efficiency.config import settings
from hand_efficiency.orchestrator import make_executor
from hand_efficiency.repository import AnalysisSession, SessionRepository
from hand_efficiency.schemas import (
    DiscardsResponse,
    PartitionRequest,
    PartitionResponse,
    SessionResponse,
    SessionStateRequest,
    ShantenRequest,
    ShantenResponse,
    ShapeShanten,
    UkeireRequest,
    UkeireResponse,
    UkeireResult,
)
from hand_efficiency.shanten import compute_shanten, shanten_by_shape
from hand_efficiency.ukeire import MIN_TILES_FOR_UKEIRE, acceptance_count, compute_ukeire, discard_table
from hand_efficiency.validators import parse_hand_input, resolve_wall, validate_hand_length, validate_tile

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

executor = make_executor()
repo = SessionRepository(executor, ttl_hours=settings.session_ttl_hours)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    executor.shutdown(wait=False, cancel_futures=True)


app = FastAPI(title="Mahjong Hand Efficiency API", version="0.1.0", lifespan=lifespan)


@app.get("/")
def root() -> dict[str, str]:
    return {
        "message": "Mahjong Hand Efficiency API",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/v1/shanten", response_model=ShantenResponse)
def shanten(req: ShantenRequest) -> ShantenResponse:
    tiles = parse_hand_input(req.hand)
    return ShantenResponse(
        hand=[t.key for t in tiles],
        shanten=compute_shanten(tiles),
        by_shape=ShapeShanten(**shanten_by_shape(tiles)),
    )


@app.post("/api/v1/ukeire", response_model=UkeireResponse)
def ukeire(req: UkeireRequest) -> UkeireResponse:
    tiles = parse_hand_input(req.hand)
    if len(tiles) > MIN_TILES_FOR_UKEIRE:
        raise HTTPException(
            status_code=422,
            detail=f"Hand must have at most {MIN_TILES_FOR_UKEIRE} tiles, got {len(tiles)}; use /api/v1/discards for 14-tile hands",
        )
    wall = resolve_wall(req.wall, tiles)
    result = compute_ukeire(tiles, wall)
    return UkeireResponse(
        hand=[t.key for t in tiles],
        result=result,
        primary_count=acceptance_count(result.primary_acceptance, wall),
        secondary_count=acceptance_count(result.secondary_acceptance, wall),
    )


@app.post("/api/v1/partition", response_model=PartitionResponse)
def partition(req: PartitionRequest) -> PartitionResponse:
    tiles = parse_hand_input(req.hand)
    if req.ukeire:
        for key in [*req.ukeire.primary_acceptance, *req.ukeire.secondary_acceptance]:
            validate_tile(key)
    return PartitionResponse(blocks=partition_hand(tiles, req.ukeire))


@app.post("/api/v1/discards", response_model=DiscardsResponse)
def discards(req: UkeireRequest) -> DiscardsResponse:
    tiles = parse_hand_input(req.hand)
    validate_hand_length(tiles, {14})
    wall = resolve_wall(req.wall, tiles)
    return DiscardsResponse(
        hand=[t.key for t in tiles],
        shanten=compute_shanten(tiles),
        options=discard_table(tiles, wall),
    )


def _session_response(session: AnalysisSession) -> SessionResponse:
    with session.lock:
        generation, status, result = session.calculator.snapshot()
        hand = [t.key for t in session.hand]
    return SessionResponse(
        session_id=session.id,
        status=status,
        generation=generation,
        created_at=session.created_at,
        expires_at=session.expires_at,
        hand=hand,
        result=result,
    )


@app.post("/api/v1/sessions", response_model=SessionResponse)
def create_session() -> SessionResponse:
    session = repo.create()
    logger.info("Session %s created", session.id)
    return _session_response(session)


@app.get("/api/v1/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: UUID) -> SessionResponse:
    session = repo.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="session not found or expired")
    return _session_response(session)


@app.put("/api/v1/sessions/{session_id}/state", response_model=SessionResponse)
def update_session_state(session_id: UUID, req: SessionStateRequest) -> SessionResponse:
    tiles = parse_hand_input(req.hand)
    wall = resolve_wall(req.wall, tiles)
    session = repo.update(session_id, tiles, wall)
    if not session:
        raise HTTPException(status_code=404, detail="session not found or expired")
    return _session_response(session)


@app.get("/api/v1/sessions/{session_id}/discards/{index}", response_model=UkeireResult)
def get_discard_acceptance(session_id: UUID, index: int) -> UkeireResult:
    session = repo.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="session not found or expired")
    result = session.calculator.get_acceptance_for(index)
    if result is None:
        raise HTTPException(status_code=404, detail="no acceptance for this discard candidate")
    return result


@app.delete("/api/v1/sessions/{session_id}")
def delete_session(session_id: UUID) -> dict[str, str]:
    if not repo.delete(session_id):
        raise HTTPException(status_code=404, detail="session not found or expired")
    return {"status": "ok"}
