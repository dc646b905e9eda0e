from __future__ import annotations

import itertools
import random

from cassino.engine.partition import can_partition, partition_cards, partition_values

from factories import cards


def _brute_force(values: list[int], target: int) -> bool:
    total = sum(values)
    if not values or total % target:
        return False
    n = total // target
    if n > len(values):
        return False
    for labels in itertools.product(range(n), repeat=len(values)):
        sums = [0] * n
        for v, g in zip(values, labels):
            sums[g] += v
        if all(s == target for s in sums):
            return True
    return False


def test_simple_and_compound_partitions() -> None:
    assert partition_values([3, 2], 5) == [[3, 2]]
    assert partition_values([4, 4], 8) == [[4, 4]]
    assert partition_values([2, 6, 4, 4], 8) == [[6, 2], [4, 4]]
    assert partition_values([5, 5, 5], 5) == [[5], [5], [5]]
    assert partition_values([3, 4], 5) is None
    assert partition_values([9, 1], 5) is None
    assert partition_values([], 5) is None


def test_backtracking_finds_split_first_fit_misses() -> None:
    assert partition_values([3, 3, 2, 2, 2], 6) == [[3, 3], [2, 2, 2]]
    # First-fit alone puts 4+3 together and cannot place the last 2.
    assert partition_values([4, 3, 3, 2, 2, 2], 8) == [[4, 2, 2], [3, 3, 2]]


def test_partition_cards_keeps_card_identity() -> None:
    groups = partition_cards(cards("3♥", "2♣", "5♦"), 5)
    assert groups == [list(cards("5♦")), list(cards("3♥", "2♣"))]
    assert partition_cards(cards("3♥", "4♥"), 5) is None


def test_partition_matches_brute_force() -> None:
    rng = random.Random(2024)
    for _ in range(300):
        values = [rng.randint(1, 10) for _ in range(rng.randint(1, 5))]
        target = rng.randint(2, 10)
        groups = partition_values(values, target)
        assert (groups is not None) == _brute_force(values, target), (values, target)
        if groups is not None:
            assert all(sum(g) == target for g in groups)
            assert sorted(v for g in groups for v in g) == sorted(values)


def test_partition_is_order_independent() -> None:
    assert can_partition(cards("A♠", "4♦", "3♣", "2♥"), 5)
    a = partition_values([1, 4, 3, 2], 5)
    b = partition_values([2, 3, 4, 1], 5)
    assert a == b == [[4, 1], [3, 2]]
