from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from hand_efficiency.schemas import DiscardOption, Tile, TileKey, UkeireResult
from hand_efficiency.shanten import compute_shanten, shanten_vector
from hand_efficiency.tiles import (
    MAX_TILES_IN_HAND,
    TILE_KEYS,
    hand_vector,
    sort_tiles,
    validate_wall,
    wall_vector,
)

MIN_TILES_FOR_UKEIRE = 13


def _improving_indices(vector: list[int], shanten: int) -> list[int]:
    improving = []
    for i in range(len(vector)):
        vector[i] += 1
        if shanten_vector(tuple(vector)) < shanten:
            improving.append(i)
        vector[i] -= 1
    return improving


def improving_tiles(hand: Iterable[Tile], shanten: int | None = None) -> list[TileKey]:
    """Tile keys whose draw lowers the hand's shanten below ``shanten``."""
    hand = list(hand)
    if shanten is None:
        shanten = compute_shanten(hand)
    return [TILE_KEYS[i] for i in _improving_indices(hand_vector(hand), shanten)]


def acceptance_count(keys: Iterable[TileKey], wall: Mapping[TileKey, int]) -> int:
    return sum(wall.get(key, 0) for key in keys)


def _score(indices: Sequence[int], wall: Sequence[int]) -> int:
    return sum(wall[i] for i in indices)


def _best_score_after_draw(vector: list[int], wall: list[int], draw: int, shanten: int) -> int:
    """Best primary-acceptance score over same-shanten discards after drawing ``draw``."""
    hand14 = list(vector)
    hand14[draw] += 1
    wall_after_draw = list(wall)
    wall_after_draw[draw] = max(0, wall_after_draw[draw] - 1)

    best = -1
    for discard in range(len(hand14)):
        if hand14[discard] == 0:
            continue
        hand14[discard] -= 1
        if shanten_vector(tuple(hand14)) == shanten:
            proposed = _improving_indices(hand14, shanten)
            wall_after_discard = list(wall_after_draw)
            wall_after_discard[discard] += 1
            best = max(best, _score(proposed, wall_after_discard))
        hand14[discard] += 1
    return best


def compute_ukeire(hand: Iterable[Tile], wall: Mapping[TileKey, int]) -> UkeireResult:
    """Primary and secondary acceptance of a 13-tile hand against ``wall``.

    Primary acceptance holds every tile whose draw lowers shanten. Secondary
    acceptance holds the remaining tiles whose draw, followed by the best
    shanten-preserving discard, leaves strictly more primary acceptance in
    the wall than the hand has now. Hands shorter than 13 tiles and complete
    hands get empty acceptance.
    """
    hand = list(hand)
    if len(hand) > MAX_TILES_IN_HAND:
        raise ValueError(f"Hand has {len(hand)} tiles; at most {MAX_TILES_IN_HAND} are allowed")
    walls = wall_vector(validate_wall(wall))
    vector = hand_vector(hand)
    shanten = shanten_vector(tuple(vector))

    if len(hand) < MIN_TILES_FOR_UKEIRE or shanten <= -1:
        return UkeireResult(shanten=shanten)

    primary = _improving_indices(vector, shanten)
    base_score = _score(primary, walls)
    primary_set = set(primary)

    secondary = []
    for draw in range(len(vector)):
        if draw in primary_set:
            continue
        if _best_score_after_draw(vector, walls, draw, shanten) > base_score:
            secondary.append(draw)

    return UkeireResult(
        shanten=shanten,
        primary_acceptance=[TILE_KEYS[i] for i in primary],
        secondary_acceptance=[TILE_KEYS[i] for i in secondary],
    )


def discard_table(hand: Iterable[Tile], wall: Mapping[TileKey, int]) -> list[DiscardOption]:
    """Ukeire of every distinct discard from a 14-tile hand, best first."""
    sorted_hand = sort_tiles(hand)
    wall = validate_wall(wall)

    indices_by_key: dict[TileKey, list[int]] = {}
    for i, tile in enumerate(sorted_hand):
        indices_by_key.setdefault(tile.key, []).append(i)

    options = []
    for key, indices in indices_by_key.items():
        first = indices[0]
        remaining = sorted_hand[:first] + sorted_hand[first + 1:]
        result = compute_ukeire(remaining, wall)
        options.append(
            DiscardOption(
                tile=key,
                indices=indices,
                shanten=result.shanten,
                primary_count=acceptance_count(result.primary_acceptance, wall),
                secondary_count=acceptance_count(result.secondary_acceptance, wall),
                ukeire=result,
            )
        )
    options.sort(key=lambda o: (o.shanten, -o.primary_count, o.indices[0]))
    return options
