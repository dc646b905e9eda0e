from __future__ import annotations

from collections.abc import Sequence

from .state import RulesConfig
from .types import BIG_CASINO, LITTLE_CASINO, SPADES, CaptureGroup, Card, PlayerScore, ScoreDetails


def flatten(groups: Sequence[CaptureGroup]) -> list[Card]:
    return [c for g in groups for c in g.cards]


def _bonus_split(a: int, b: int, bonus: int) -> tuple[int, int]:
    # Ties share the bonus.
    if a > b:
        return bonus, 0
    if b > a:
        return 0, bonus
    return bonus // 2, bonus // 2


def score_game(
    captures: Sequence[Sequence[CaptureGroup]],
    config: RulesConfig | None = None,
) -> ScoreDetails:
    """Score both players' capture piles.

    Most cards and most spades carry a bonus, every ace scores, and the ten
    of diamonds (big casino) and two of spades (little casino) score extra.
    """
    cfg = config or RulesConfig()
    piles = [flatten(captures[0]), flatten(captures[1])]

    card_counts = [len(pile) for pile in piles]
    spade_counts = [sum(1 for c in pile if c.suit == SPADES) for pile in piles]
    ace_counts = [sum(1 for c in pile if c.rank == "A") for pile in piles]

    most_cards = _bonus_split(card_counts[0], card_counts[1], cfg.most_cards_bonus)
    most_spades = _bonus_split(spade_counts[0], spade_counts[1], cfg.most_spades_bonus)

    players = []
    for p, pile in enumerate(piles):
        players.append(
            PlayerScore(
                cards=card_counts[p],
                spades=spade_counts[p],
                aces=ace_counts[p],
                most_cards=most_cards[p],
                most_spades=most_spades[p],
                ace_points=ace_counts[p] * cfg.ace_points,
                big_casino=cfg.big_casino_points if BIG_CASINO in pile else 0,
                little_casino=cfg.little_casino_points if LITTLE_CASINO in pile else 0,
            )
        )
    return ScoreDetails(players=(players[0], players[1]))
