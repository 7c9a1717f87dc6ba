from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Mapping

from hand_efficiency.schemas import Suit, Tile, TileKey, WallState

TILE_KEY_RE = re.compile(r"^(?:[1-9][mps]|[1-7]z)$")
SUIT_ORDER = {Suit.m: 0, Suit.p: 1, Suit.s: 2, Suit.z: 3}
SUIT_SIZES = {Suit.m: 9, Suit.p: 9, Suit.s: 9, Suit.z: 7}
MAX_COPIES = 4
MAX_TILES_IN_HAND = 14


def make_tile(suit: Suit | str, rank: int) -> Tile:
    return Tile(suit=suit, rank=rank)


def tile_from_key(key: TileKey) -> Tile:
    if not TILE_KEY_RE.fullmatch(key):
        raise ValueError(f"Invalid tile key: {key}")
    return Tile(suit=key[1], rank=int(key[0]))


TILE_ORDER: list[Tile] = [make_tile(suit, rank) for suit, size in SUIT_SIZES.items() for rank in range(1, size + 1)]
TILE_KEYS: tuple[TileKey, ...] = tuple(t.key for t in TILE_ORDER)
TILE_INDEX: dict[TileKey, int] = {key: i for i, key in enumerate(TILE_KEYS)}
TERMINAL_HONOR_KEYS = ("1m", "9m", "1p", "9p", "1s", "9s", "1z", "2z", "3z", "4z", "5z", "6z", "7z")
TERMINAL_HONOR_INDICES = tuple(TILE_INDEX[key] for key in TERMINAL_HONOR_KEYS)
INITIAL_WALL: WallState = {key: MAX_COPIES for key in TILE_KEYS}


def sort_key(tile: Tile) -> tuple[int, int]:
    return SUIT_ORDER[tile.suit], tile.rank


def sort_tiles(tiles: Iterable[Tile]) -> list[Tile]:
    return sorted(tiles, key=sort_key)


def count_tiles(tiles: Iterable[Tile]) -> dict[TileKey, int]:
    return dict(Counter(t.key for t in tiles))


def hand_vector(tiles: Iterable[Tile]) -> list[int]:
    """Occurrence counts in canonical tile order (34 entries)."""
    vector = [0] * len(TILE_KEYS)
    for tile in tiles:
        vector[TILE_INDEX[tile.key]] += 1
    return vector


def wall_vector(wall: Mapping[TileKey, int]) -> list[int]:
    return [wall.get(key, 0) for key in TILE_KEYS]


def validate_wall(wall: Mapping[TileKey, int]) -> WallState:
    """Return a full 34-key copy of the wall, rejecting unknown keys and out-of-range counts."""
    for key, count in wall.items():
        if key not in TILE_INDEX:
            raise ValueError(f"Invalid tile key in wall: {key}")
        if not 0 <= count <= MAX_COPIES:
            raise ValueError(f"Wall count for {key} must be 0..{MAX_COPIES}, got {count}")
    return {key: wall.get(key, 0) for key in TILE_KEYS}
