from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Rank = Literal["A", "2", "3", "4", "5", "6", "7", "8", "9", "10"]
Suit = Literal["♠", "♥", "♦", "♣"]
Source = Literal["hand", "table"]

RANKS: tuple[Rank, ...] = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10")
SUITS: tuple[Suit, ...] = ("♠", "♥", "♦", "♣")
SPADES: Suit = "♠"


def rank_value(rank: str) -> int:
    if rank == "A":
        return 1
    return int(rank)


@dataclass(frozen=True)
class Card:
    """Immutable playing card. Equality and hashing use (rank, suit) only."""

    rank: Rank
    suit: Suit
    value: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Unknown rank: {self.rank!r}")
        if self.suit not in SUITS:
            raise ValueError(f"Unknown suit: {self.suit!r}")
        # value is always derived from rank
        object.__setattr__(self, "value", rank_value(self.rank))

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    @staticmethod
    def parse(text: str) -> "Card":
        """Parse a short form like ``"10♦"`` or ``"A♠"``."""
        return Card(rank=text[:-1], suit=text[-1])  # type: ignore[arg-type]


BIG_CASINO = Card("10", "♦")
LITTLE_CASINO = Card("2", "♠")


@dataclass(frozen=True)
class LooseCard:
    card: Card

    @property
    def cards(self) -> tuple[Card, ...]:
        return (self.card,)

    @property
    def capture_value(self) -> int:
        return self.card.value


@dataclass(frozen=True)
class Build:
    """A table stack committed to ``value``.

    The cards split into one or more groups each summing to ``value``; a
    build with a single group (sum == value) is simple, anything else is
    compound and can no longer be extended.
    """

    id: str
    cards: tuple[Card, ...]
    value: int
    owner: int
    extendable: bool

    @property
    def capture_value(self) -> int:
        return self.value


@dataclass(frozen=True)
class StagedCard:
    card: Card
    source: Source


@dataclass(frozen=True)
class TemporaryStack:
    id: str
    owner: int
    staged: tuple[StagedCard, ...]

    @property
    def cards(self) -> tuple[Card, ...]:
        return tuple(s.card for s in self.staged)

    def from_source(self, source: Source) -> tuple[Card, ...]:
        return tuple(s.card for s in self.staged if s.source == source)

    @property
    def total(self) -> int:
        return sum(c.value for c in self.cards)


TableItem = LooseCard | Build | TemporaryStack


@dataclass(frozen=True)
class CaptureGroup:
    """One capture event: captured cards first, capturing card last."""

    cards: tuple[Card, ...]


@dataclass(frozen=True)
class PlayerScore:
    cards: int
    spades: int
    aces: int
    most_cards: int
    most_spades: int
    ace_points: int
    big_casino: int
    little_casino: int

    @property
    def total(self) -> int:
        return self.most_cards + self.most_spades + self.ace_points + self.big_casino + self.little_casino


@dataclass(frozen=True)
class ScoreDetails:
    players: tuple[PlayerScore, PlayerScore]

    @property
    def totals(self) -> tuple[int, int]:
        return (self.players[0].total, self.players[1].total)

    @property
    def winner(self) -> int | None:
        a, b = self.totals
        if a == b:
            return None
        return 0 if a > b else 1
