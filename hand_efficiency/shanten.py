from __future__ import annotations

from collections.abc import Iterable, Sequence
from functools import lru_cache

from hand_efficiency.schemas import Tile
from hand_efficiency.tiles import TERMINAL_HONOR_INDICES, hand_vector

MAX_SHANTEN = 8

# (offsets consumed from the leftmost tile, (mentsu, tatsu, pairs) gained)
_SUIT_BRANCHES = (
    ((0, 0, 0), (1, 0, 0)),  # triplet
    ((0, 1, 2), (1, 0, 0)),  # sequence
    ((0, 0), (0, 0, 1)),  # pair
    ((0, 1), (0, 1, 0)),  # ryanmen / penchan
    ((0, 2), (0, 1, 0)),  # kanchan
    ((0,), (0, 0, 0)),  # isolated
)


def _score(shape: tuple[int, int, int]) -> int:
    mentsu, tatsu, pairs = shape
    return mentsu * 10 + tatsu + pairs


@lru_cache(maxsize=None)
def _suit_shape(counts: tuple[int, ...]) -> tuple[int, int, int]:
    """Best (mentsu, tatsu, pairs) decomposition of one numbered suit."""
    first = next((i for i, c in enumerate(counts) if c > 0), -1)
    if first == -1:
        return 0, 0, 0

    best = (0, 0, 0)
    for offsets, gain in _SUIT_BRANCHES:
        work = list(counts)
        feasible = True
        for off in offsets:
            idx = first + off
            if idx >= len(work) or work[idx] == 0:
                feasible = False
                break
            work[idx] -= 1
        if not feasible:
            continue
        m, t, p = _suit_shape(tuple(work))
        shape = (m + gain[0], t + gain[1], p + gain[2])
        if _score(shape) > _score(best):
            best = shape
    return best


def _honor_shape(counts: Sequence[int]) -> tuple[int, int, int]:
    mentsu = sum(1 for c in counts if c >= 3)
    pairs = sum(1 for c in counts if c == 2)
    return mentsu, 0, pairs


def _analyze_shapes(vector: Sequence[int]) -> tuple[int, int, int]:
    total_m = total_t = total_p = 0
    for start in (0, 9, 18):
        m, t, p = _suit_shape(tuple(vector[start:start + 9]))
        total_m += m
        total_t += t
        total_p += p
    m, _, p = _honor_shape(vector[27:34])
    return total_m + m, total_t, total_p + p


def _standard_formula(vector: Sequence[int], has_head: bool) -> int:
    mentsu, tatsu, pairs = _analyze_shapes(vector)
    partials = tatsu + pairs
    if mentsu + partials > 4:
        partials = 4 - mentsu
    return 8 - 2 * mentsu - partials - (1 if has_head else 0)


def shanten_standard(vector: Sequence[int]) -> int:
    best = _standard_formula(vector, has_head=False)
    for i, count in enumerate(vector):
        if count < 2:
            continue
        work = list(vector)
        work[i] -= 2
        best = min(best, _standard_formula(work, has_head=True))
    return best


def shanten_chiitoi(vector: Sequence[int]) -> int:
    return 6 - sum(1 for c in vector if c >= 2)


def shanten_kokushi(vector: Sequence[int]) -> int:
    present = sum(1 for i in TERMINAL_HONOR_INDICES if vector[i] > 0)
    has_pair = any(vector[i] >= 2 for i in TERMINAL_HONOR_INDICES)
    return 13 - present - (1 if has_pair else 0)


@lru_cache(maxsize=262144)
def shanten_vector(vector: tuple[int, ...]) -> int:
    """Minimum shanten over all three hand shapes for a 34-entry count tuple."""
    return min(shanten_standard(vector), shanten_chiitoi(vector), shanten_kokushi(vector))


def compute_shanten(hand: Iterable[Tile]) -> int:
    return shanten_vector(tuple(hand_vector(hand)))


def shanten_by_shape(hand: Iterable[Tile]) -> dict[str, int]:
    vector = hand_vector(hand)
    return {
        "standard": shanten_standard(vector),
        "chiitoi": shanten_chiitoi(vector),
        "kokushi": shanten_kokushi(vector),
    }
