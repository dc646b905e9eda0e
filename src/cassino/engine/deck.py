from __future__ import annotations

import random
from collections.abc import Sequence

from .types import RANKS, SUITS, Card


def build_deck() -> tuple[Card, ...]:
    return tuple(Card(rank=rank, suit=suit) for suit in SUITS for rank in RANKS)


def shuffle_deck(deck: Sequence[Card], rng: random.Random) -> tuple[Card, ...]:
    # random.shuffle is Fisher-Yates: every permutation equally likely.
    cards = list(deck)
    rng.shuffle(cards)
    return tuple(cards)


def deal(
    deck: Sequence[Card],
    hands: Sequence[Sequence[Card]],
    count: int,
) -> tuple[tuple[Card, ...], tuple[tuple[Card, ...], tuple[Card, ...]]]:
    """Deal up to ``count`` cards to each player, alternating, player 0 first.

    Cards come off the end of the deck. Returns ``(deck, hands)``.
    """
    remaining = list(deck)
    new_hands = [list(hands[0]), list(hands[1])]
    for _ in range(count):
        for p in (0, 1):
            if not remaining:
                break
            new_hands[p].append(remaining.pop())
    return tuple(remaining), (tuple(new_hands[0]), tuple(new_hands[1]))
