"""Hand notation.

Numbered tiles are written as digits followed by their suit letter
(m, p, s, z), e.g. ``123m456p11z``. Honors may also be written with
shortcuts: E, S, W, N for 1z..4z, Wh for 5z, G for 6z and R for 7z.
A ``0`` digit is a red five and reads as a plain 5; honors have none.
"""

from __future__ import annotations

from collections.abc import Iterable

from hand_efficiency.schemas import Suit, Tile, WallState
from hand_efficiency.tiles import INITIAL_WALL, make_tile, sort_tiles

HONOR_SHORTCUTS = {"Wh": 5, "E": 1, "S": 2, "W": 3, "N": 4, "G": 6, "R": 7}
SUIT_LETTERS = {"m", "p", "s", "z"}


def parse_hand(notation: str) -> list[Tile]:
    tiles: list[Tile] = []
    pending: list[int] = []
    i = 0
    while i < len(notation):
        ch = notation[i]
        if notation.startswith("Wh", i):
            tiles.append(make_tile(Suit.z, HONOR_SHORTCUTS["Wh"]))
            i += 2
            continue
        if ch in HONOR_SHORTCUTS:
            tiles.append(make_tile(Suit.z, HONOR_SHORTCUTS[ch]))
        elif ch in SUIT_LETTERS:
            if ch == "z" and 0 in pending:
                raise ValueError("0z is not a tile; honors have no red five")
            tiles.extend(make_tile(ch, 5 if rank == 0 else rank) for rank in pending)
            pending = []
        elif "0" <= ch <= "9":
            pending.append(int(ch))
        i += 1
    return tiles


def format_hand(tiles: Iterable[Tile]) -> str:
    parts = []
    ranks: dict[Suit, list[int]] = {}
    for tile in sort_tiles(tiles):
        ranks.setdefault(tile.suit, []).append(tile.rank)
    for suit, values in ranks.items():
        parts.append("".join(str(v) for v in values) + suit.value)
    return "".join(parts)


def create_wall_from_hand(tiles: Iterable[Tile]) -> WallState:
    """Full wall with one copy removed for every tile in the hand."""
    wall = dict(INITIAL_WALL)
    for tile in tiles:
        wall[tile.key] = max(0, wall[tile.key] - 1)
    return wall
