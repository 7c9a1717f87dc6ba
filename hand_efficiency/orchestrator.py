"""Background ukeire calculation with stale-result cancellation.

Every ``submit`` starts a new generation. A 13-tile hand is one unit of work;
a 14-tile hand is one unit per distinct tile type (the result of discarding
any copy of a type is the same, so all of its positions share one result).
Units run on an executor against snapshots of the hand and wall and report
back through a completion callback. Completions tagged with an older
generation are dropped.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from threading import Condition, Lock

from hand_efficiency.config import settings
from hand_efficiency.schemas import CalculationResult, CalculationStatus, Tile, TileKey, UkeireResult, WallState
from hand_efficiency.shanten import MAX_SHANTEN, compute_shanten
from hand_efficiency.tiles import MAX_TILES_IN_HAND, sort_tiles, validate_wall
from hand_efficiency.ukeire import MIN_TILES_FOR_UKEIRE, acceptance_count, compute_ukeire

logger = logging.getLogger(__name__)

# unit key for the single evaluation of a 13-tile hand
WHOLE_HAND = "*"


@dataclass
class _PendingBatch:
    generation: int
    hand: tuple[Tile, ...]
    wall: WallState
    total: int
    completed: int = 0
    results: dict[TileKey, UkeireResult] = field(default_factory=dict)
    tile_to_indices: dict[TileKey, list[int]] = field(default_factory=dict)
    futures: list[Future] = field(default_factory=list)


def make_executor(kind: str | None = None, max_workers: int | None = None) -> Executor:
    kind = kind or settings.calc_executor
    max_workers = max_workers or settings.calc_max_workers
    if kind == "process":
        return ProcessPoolExecutor(max_workers=max_workers)
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ukeire")


class UkeireCalculator:
    def __init__(self, executor: Executor | None = None) -> None:
        self._owns_executor = executor is None
        self._executor = executor or make_executor()
        self._lock = Lock()
        self._ready = Condition(self._lock)
        self._generation = 0
        self._status = CalculationStatus.idle
        self._result: CalculationResult | None = None
        self._pending: _PendingBatch | None = None

    def __enter__(self) -> UkeireCalculator:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def status(self) -> CalculationStatus:
        with self._lock:
            return self._status

    @property
    def result(self) -> CalculationResult | None:
        with self._lock:
            return self._result

    def snapshot(self) -> tuple[int, CalculationStatus, CalculationResult | None]:
        with self._lock:
            return self._generation, self._status, self._result

    def get_acceptance_for(self, index: int) -> UkeireResult | None:
        """Acceptance after discarding the tile at ``index`` of the sorted 14-tile hand."""
        with self._lock:
            if self._result is None or self._result.discard_results is None:
                return None
            return self._result.discard_results.get(index)

    def wait(self, timeout: float | None = None) -> bool:
        with self._ready:
            return self._ready.wait_for(lambda: self._status != CalculationStatus.loading, timeout)

    def submit(self, hand: list[Tile], wall: WallState) -> int:
        hand = tuple(sort_tiles(hand))
        if len(hand) > MAX_TILES_IN_HAND:
            raise ValueError(f"Hand has {len(hand)} tiles; at most {MAX_TILES_IN_HAND} are allowed")
        wall = validate_wall(wall)

        with self._lock:
            self._generation += 1
            generation = self._generation
            superseded = self._pending
            self._pending = None
            self._result = None

            if len(hand) < MIN_TILES_FOR_UKEIRE:
                shanten = compute_shanten(hand) if hand else MAX_SHANTEN
                self._result = CalculationResult(
                    generation=generation, shanten=shanten, ukeire=UkeireResult(shanten=shanten)
                )
                self._status = CalculationStatus.ready
                self._ready.notify_all()
                units = {}
            else:
                units = self._plan_units(hand)
                self._pending = _PendingBatch(
                    generation=generation,
                    hand=hand,
                    wall=wall,
                    total=len(units),
                    tile_to_indices={key: indices for key, (indices, _) in units.items()},
                )
                self._status = CalculationStatus.loading
            pending = self._pending

        if superseded is not None:
            for future in superseded.futures:
                future.cancel()

        logger.debug("Generation %d: %d tiles, %d units", generation, len(hand), len(units))
        for key, (_, unit_hand) in units.items():
            future = self._executor.submit(compute_ukeire, unit_hand, wall)
            with self._lock:
                pending.futures.append(future)
            future.add_done_callback(partial(self._on_unit_done, generation, key))
        return generation

    @staticmethod
    def _plan_units(hand: tuple[Tile, ...]) -> dict[TileKey, tuple[list[int], list[Tile]]]:
        if len(hand) == MIN_TILES_FOR_UKEIRE:
            return {WHOLE_HAND: ([], list(hand))}
        units: dict[TileKey, tuple[list[int], list[Tile]]] = {}
        for i, tile in enumerate(hand):
            if tile.key in units:
                units[tile.key][0].append(i)
            else:
                units[tile.key] = ([i], list(hand[:i] + hand[i + 1:]))
        return units

    def _on_unit_done(self, generation: int, key: TileKey, future: Future) -> None:
        if future.cancelled():
            return
        try:
            result = future.result()
        except Exception:
            logger.exception("Ukeire unit %s of generation %d failed", key, generation)
            result = None

        with self._lock:
            pending = self._pending
            if pending is None or pending.generation != generation:
                logger.debug("Dropping stale result %s of generation %d", key, generation)
                return
            if result is not None:
                pending.results[key] = result
            pending.completed += 1
            if pending.completed >= pending.total:
                self._finish(pending)

    def _finish(self, pending: _PendingBatch) -> None:
        if len(pending.hand) == MIN_TILES_FOR_UKEIRE:
            ukeire = pending.results.get(WHOLE_HAND) or UkeireResult(shanten=compute_shanten(pending.hand))
            self._result = CalculationResult(generation=pending.generation, shanten=ukeire.shanten, ukeire=ukeire)
        else:
            discard_results = {}
            for key, indices in pending.tile_to_indices.items():
                if key in pending.results:
                    for idx in indices:
                        discard_results[idx] = pending.results[key]
            shanten = compute_shanten(pending.hand)
            self._result = CalculationResult(
                generation=pending.generation,
                shanten=shanten,
                ukeire=self._best_discard(pending) or UkeireResult(shanten=shanten),
                discard_results=discard_results,
            )
        self._pending = None
        self._status = CalculationStatus.ready
        self._ready.notify_all()
        logger.info("Generation %d ready (%d units)", pending.generation, pending.total)

    @staticmethod
    def _best_discard(pending: _PendingBatch) -> UkeireResult | None:
        ranked = sorted(
            pending.results.items(),
            key=lambda item: (
                item[1].shanten,
                -acceptance_count(item[1].primary_acceptance, pending.wall),
                pending.tile_to_indices[item[0]][0],
            ),
        )
        return ranked[0][1] if ranked else None

    def close(self) -> None:
        """Abandon the outstanding batch and release waiters.

        A batch cut short by ``close`` never completes, so the status drops
        back to idle and the result stays empty.
        """
        with self._lock:
            pending = self._pending
            self._pending = None
            if self._status == CalculationStatus.loading:
                self._status = CalculationStatus.idle
            self._ready.notify_all()
        if pending is not None:
            for future in pending.futures:
                future.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
