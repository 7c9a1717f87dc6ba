import random
from functools import lru_cache

import pytest

from hand_efficiency.notation import parse_hand
from hand_efficiency.shanten import compute_shanten, shanten_by_shape, shanten_standard
from hand_efficiency.tiles import TILE_ORDER, hand_vector


@pytest.mark.parametrize(
    "notation,expected",
    [
        ("123456789m123p11s", -1),
        ("123456789m123p1s", 0),
        ("45m123456p789s11z", 0),
        ("46m123456p789s11z", 0),
        ("111z222z333z444z55z", -1),
        ("19m19p19s1234567z", 0),
        ("19m19p19s1234567z1z", -1),
        ("1133m5577p2244s6z", 0),
        ("11223344556677z", -1),
        ("147m258p369s1234z", 6),
    ],
)
def test_compute_shanten(notation, expected):
    assert compute_shanten(parse_hand(notation)) == expected


def test_seven_pairs_beats_worse_standard_shape():
    by_shape = shanten_by_shape(parse_hand("1133m5577p2244s6z"))
    assert by_shape == {"standard": 3, "chiitoi": 0, "kokushi": 10}


def test_thirteen_orphans_with_pair_and_one_missing_type():
    hand = parse_hand("19m19p19s123456z1z")
    assert len(hand) == 13
    assert shanten_by_shape(hand)["kokushi"] == 0
    assert compute_shanten(hand) == 0


def test_complete_standard_hand_from_triplets_and_runs():
    assert compute_shanten(parse_hand("111m456p789s222z33z")) == -1


def test_empty_hand_uses_seven_pairs_formula():
    assert compute_shanten([]) == 6


def test_shanten_is_invariant_to_ordering():
    rng = random.Random(2024)
    pool = [tile for tile in TILE_ORDER for _ in range(4)]
    for _ in range(50):
        hand = rng.sample(pool, rng.choice([13, 14]))
        shuffled = hand[:]
        rng.shuffle(shuffled)
        assert compute_shanten(shuffled) == compute_shanten(hand)
        assert compute_shanten(reversed(hand)) == compute_shanten(hand)


def _reference_standard(vector):
    """Standard-shape shanten by enumerating every decomposition, no score pruning."""

    @lru_cache(maxsize=None)
    def shapes(counts):
        first = next((i for i, c in enumerate(counts) if c > 0), -1)
        if first == -1:
            return frozenset({(0, 0)})
        numbered = first < 27
        pos = first % 9
        moves = [((0, 0, 0), (1, 0)), ((0, 0), (0, 1)), ((0,), (0, 0))]
        if numbered:
            if pos <= 6:
                moves.append(((0, 1, 2), (1, 0)))
                moves.append(((0, 2), (0, 1)))
            if pos <= 7:
                moves.append(((0, 1), (0, 1)))
        found = set()
        for offsets, (dm, dp) in moves:
            work = list(counts)
            ok = True
            for off in offsets:
                if work[first + off] == 0:
                    ok = False
                    break
                work[first + off] -= 1
            if not ok:
                continue
            for m, p in shapes(tuple(work)):
                found.add((m + dm, p + dp))
        return frozenset(found)

    def formula(counts, head):
        return min(8 - 2 * m - min(p, 4 - m) - head for m, p in shapes(tuple(counts)))

    best = formula(vector, 0)
    for i, c in enumerate(vector):
        if c >= 2:
            work = list(vector)
            work[i] -= 2
            best = min(best, formula(work, 1))
    return best


def test_weighted_search_matches_exhaustive_reference():
    rng = random.Random(1337)
    pool = [tile for tile in TILE_ORDER for _ in range(4)]
    for _ in range(150):
        vector = hand_vector(rng.sample(pool, rng.choice([13, 14])))
        assert shanten_standard(vector) == _reference_standard(vector)


def test_weighted_search_matches_reference_on_single_suit_hands():
    rng = random.Random(99)
    pool = [tile for tile in TILE_ORDER[:9] for _ in range(4)]
    for _ in range(60):
        vector = hand_vector(rng.sample(pool, 13))
        assert shanten_standard(vector) == _reference_standard(vector)
