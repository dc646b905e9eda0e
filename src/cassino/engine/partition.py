"""Equal-sum partitioning of card values.

Staging stacks and compound builds need to know whether a set of cards can
be split into groups that each add up to the same value. The search is
deterministic so the same cards always produce the same grouping:

* values are sorted in descending order;
* each value is placed into the first open group it fits (first-fit), with
  backtracking when a later value cannot be placed;
* an empty group is tried at most once per value, so equivalent groupings
  are never searched twice.

The returned groups are each sorted descending and ordered by their largest
member (then lexicographically).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .types import Card


def partition_values(values: Iterable[int], target: int) -> list[list[int]] | None:
    """Split ``values`` into groups that each sum to ``target``.

    Returns the groups in canonical order, or ``None`` when no split exists.
    An empty input has no partition.
    """
    vals = sorted(values, reverse=True)
    if target <= 0 or not vals:
        return None
    total = sum(vals)
    if total % target != 0 or vals[0] > target:
        return None

    n_groups = total // target
    sums = [0] * n_groups
    groups: list[list[int]] = [[] for _ in range(n_groups)]

    def place(i: int) -> bool:
        if i == len(vals):
            return all(s == target for s in sums)
        v = vals[i]
        tried_empty = False
        for g in range(n_groups):
            if sums[g] + v > target:
                continue
            if sums[g] == 0:
                if tried_empty:
                    continue
                tried_empty = True
            sums[g] += v
            groups[g].append(v)
            if place(i + 1):
                return True
            sums[g] -= v
            groups[g].pop()
        return False

    if not place(0):
        return None
    return sorted((sorted(g, reverse=True) for g in groups), key=lambda g: [-x for x in g])


def partition_cards(cards: Sequence[Card], target: int) -> list[list[Card]] | None:
    """Same as :func:`partition_values` but returns the cards themselves.

    Cards of equal value are assigned in their original order.
    """
    groups = partition_values((c.value for c in cards), target)
    if groups is None:
        return None
    pool: dict[int, list[Card]] = {}
    for c in cards:
        pool.setdefault(c.value, []).append(c)
    return [[pool[v].pop(0) for v in g] for g in groups]


def can_partition(cards: Sequence[Card], target: int) -> bool:
    return partition_values((c.value for c in cards), target) is not None
