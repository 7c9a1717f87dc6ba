from __future__ import annotations

from collections.abc import Iterable, Sequence

from hand_efficiency.schemas import BlockType, BlockUkeire, HandBlock, Tile, TileKey, UkeireResult
from hand_efficiency.tiles import sort_tiles, tile_from_key

RELEVANT_RANK_DISTANCE = 2


def _is_connected(prev: Tile, curr: Tile) -> bool:
    if prev.suit != curr.suit:
        return False
    if prev.is_honor:
        return prev.rank == curr.rank
    return curr.rank - prev.rank <= RELEVANT_RANK_DISTANCE


def identify_block_type(tiles: Sequence[Tile]) -> BlockType:
    """Classify a sorted, connected group of tiles."""
    if len(tiles) == 1:
        return BlockType.ISOLATED
    if len(tiles) == 2:
        low, high = tiles
        if low.rank == high.rank:
            return BlockType.TOITSU
        if low.is_honor:
            return BlockType.ISOLATED
        diff = high.rank - low.rank
        if diff == 1:
            if low.rank == 1 or high.rank == 9:
                return BlockType.TATSU_PENCHAN
            return BlockType.TATSU_RYANMEN
        if diff == 2:
            return BlockType.TATSU_KANCHAN
        return BlockType.ISOLATED
    if len(tiles) == 3:
        a, b, c = tiles
        if a.rank == b.rank == c.rank:
            return BlockType.MENTSU
        if not a.is_honor and a.rank + 1 == b.rank and b.rank + 1 == c.rank:
            return BlockType.MENTSU
    return BlockType.COMPLEX


def _relevant(key: TileKey, tiles: Sequence[Tile]) -> bool:
    candidate = tile_from_key(key)
    for tile in tiles:
        if tile.suit != candidate.suit:
            continue
        if tile.is_honor:
            if tile.rank == candidate.rank:
                return True
        elif abs(tile.rank - candidate.rank) <= RELEVANT_RANK_DISTANCE:
            return True
    return False


def _block_ukeire(tiles: Sequence[Tile], ukeire: UkeireResult | None) -> BlockUkeire:
    if ukeire is None:
        return BlockUkeire()
    return BlockUkeire(
        primary=[k for k in ukeire.primary_acceptance if _relevant(k, tiles)],
        secondary=[k for k in ukeire.secondary_acceptance if _relevant(k, tiles)],
    )


def _make_block(tiles: list[Tile], ukeire: UkeireResult | None) -> HandBlock:
    block_type = identify_block_type(tiles)
    sub_blocks = None
    if block_type == BlockType.COMPLEX:
        # single opaque breakdown; acceptance already comes from the ukeire engine
        sub_blocks = [HandBlock(id="sub1", tiles=list(tiles), type=BlockType.COMPLEX)]
    return HandBlock(
        id="".join(t.key for t in tiles),
        tiles=tiles,
        type=block_type,
        ukeire=_block_ukeire(tiles, ukeire),
        sub_blocks=sub_blocks,
    )


def partition_hand(hand: Iterable[Tile], ukeire: UkeireResult | None = None) -> list[HandBlock]:
    sorted_hand = sort_tiles(hand)
    if not sorted_hand:
        return []

    blocks = []
    current = [sorted_hand[0]]
    for prev, curr in zip(sorted_hand, sorted_hand[1:]):
        if _is_connected(prev, curr):
            current.append(curr)
        else:
            blocks.append(_make_block(current, ukeire))
            current = [curr]
    blocks.append(_make_block(current, ukeire))
    return blocks
