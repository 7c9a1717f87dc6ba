from __future__ import annotations

from collections import Counter

from fastapi import HTTPException

from hand_efficiency.notation import create_wall_from_hand, parse_hand
from hand_efficiency.schemas import HandNotation, Tile, WallState
from hand_efficiency.tiles import MAX_COPIES, MAX_TILES_IN_HAND, TILE_KEY_RE, tile_from_key, validate_wall


def validate_tile(tile: str) -> None:
    if not TILE_KEY_RE.fullmatch(tile):
        raise HTTPException(status_code=422, detail=f"Invalid tile code: {tile}")


def parse_hand_input(hand: HandNotation) -> list[Tile]:
    """Accept notation (``"123m456p11z"``) or a list of tile keys."""
    if isinstance(hand, str):
        try:
            tiles = parse_hand(hand)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=f"Invalid hand notation: {hand}") from exc
    else:
        for tile in hand:
            validate_tile(tile)
        tiles = [tile_from_key(tile) for tile in hand]

    if len(tiles) > MAX_TILES_IN_HAND:
        raise HTTPException(status_code=422, detail=f"Hand must have at most {MAX_TILES_IN_HAND} tiles")
    for key, count in Counter(t.key for t in tiles).items():
        if count > MAX_COPIES:
            raise HTTPException(status_code=422, detail=f"Tile appears 5+ times in hand: {key}")
    return tiles


def validate_hand_length(tiles: list[Tile], allowed: set[int]) -> None:
    if len(tiles) not in allowed:
        expected = " or ".join(str(n) for n in sorted(allowed))
        raise HTTPException(status_code=422, detail=f"Hand must have {expected} tiles, got {len(tiles)}")


def resolve_wall(wall: WallState | None, tiles: list[Tile]) -> WallState:
    """Validated wall, defaulting to the full wall minus the hand."""
    if wall is None:
        return create_wall_from_hand(tiles)
    try:
        return validate_wall(wall)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
