from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import Lock
from uuid import UUID, uuid4

from hand_efficiency.orchestrator import UkeireCalculator
from hand_efficiency.schemas import Tile, WallState
from hand_efficiency.tiles import INITIAL_WALL

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSession:
    id: UUID
    created_at: datetime
    expires_at: datetime
    calculator: UkeireCalculator
    hand: list[Tile] = field(default_factory=list)
    wall: WallState = field(default_factory=lambda: dict(INITIAL_WALL))
    # serializes store-and-submit so the newest state gets the newest generation
    lock: Lock = field(default_factory=Lock, repr=False, compare=False)


class SessionRepository:
    """Analysis sessions sharing one executor, pruned after ``ttl_hours``."""

    def __init__(self, executor: Executor, ttl_hours: int = 24) -> None:
        self._executor = executor
        self._ttl_hours = ttl_hours
        self._items: dict[UUID, AnalysisSession] = {}
        self._lock = Lock()

    def _utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    def _prune(self) -> None:
        now = self._utcnow()
        expired = [session_id for session_id, item in self._items.items() if item.expires_at <= now]
        for session_id in expired:
            self._items.pop(session_id).calculator.close()
            logger.info("Session %s expired", session_id)

    def create(self) -> AnalysisSession:
        with self._lock:
            self._prune()
            now = self._utcnow()
            item = AnalysisSession(
                id=uuid4(),
                created_at=now,
                expires_at=now + timedelta(hours=self._ttl_hours),
                calculator=UkeireCalculator(executor=self._executor),
            )
            self._items[item.id] = item
            return item

    def get(self, session_id: UUID) -> AnalysisSession | None:
        with self._lock:
            self._prune()
            return self._items.get(session_id)

    def update(self, session_id: UUID, hand: list[Tile], wall: WallState) -> AnalysisSession | None:
        """Store a new hand/wall snapshot and submit it to the session's calculator."""
        with self._lock:
            self._prune()
            item = self._items.get(session_id)
            if item is None:
                return None
        hand = list(hand)
        wall = dict(wall)
        with item.lock:
            item.hand = hand
            item.wall = wall
            item.calculator.submit(hand, wall)
        return item

    def delete(self, session_id: UUID) -> bool:
        with self._lock:
            item = self._items.pop(session_id, None)
        if item is None:
            return False
        item.calculator.close()
        return True
