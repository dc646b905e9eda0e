from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterator, assert_never

from .types import Build, CaptureGroup, Card, LooseCard, ScoreDetails, TableItem, TemporaryStack

DECK_SIZE = 40
PLAYERS = 2


@dataclass(frozen=True)
class RulesConfig:
    hand_size: int = 10
    max_build_value: int = 10
    max_build_cards: int = 5
    max_stack_cards: int = 5
    first_round_build_lock: bool = True
    allow_opponent_card_capture: bool = True
    most_cards_bonus: int = 2
    most_spades_bonus: int = 2
    ace_points: int = 1
    big_casino_points: int = 2
    little_casino_points: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.hand_size <= DECK_SIZE // PLAYERS:
            raise ValueError(f"hand_size must be between 1 and {DECK_SIZE // PLAYERS}")
        if not 2 <= self.max_build_value <= 10:
            raise ValueError("max_build_value must be between 2 and 10")
        if self.max_build_cards < 2:
            raise ValueError("max_build_cards must be at least 2")
        if self.max_stack_cards < 2:
            raise ValueError("max_stack_cards must be at least 2")


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of one game. Transitions build new instances."""

    deck: tuple[Card, ...]
    hands: tuple[tuple[Card, ...], tuple[Card, ...]]
    table: tuple[TableItem, ...] = ()
    captures: tuple[tuple[CaptureGroup, ...], tuple[CaptureGroup, ...]] = ((), ())
    current_player: int = 0
    round: int = 1
    scores: tuple[int, int] = (0, 0)
    game_over: bool = False
    winner: int | None = None
    last_capturer: int | None = None
    score_details: ScoreDetails | None = None
    next_id: int = 1
    seed: int = 0
    config: RulesConfig = field(default_factory=RulesConfig)

    def opponent(self, player: int) -> int:
        return 1 - player

    def builds(self) -> list[Build]:
        return [item for item in self.table if isinstance(item, Build)]

    def build_of(self, player: int) -> Build | None:
        for b in self.builds():
            if b.owner == player:
                return b
        return None

    def stack_of(self, player: int) -> TemporaryStack | None:
        for item in self.table:
            if isinstance(item, TemporaryStack) and item.owner == player:
                return item
        return None

    def find_loose(self, card: Card) -> int | None:
        for i, item in enumerate(self.table):
            if isinstance(item, LooseCard) and item.card == card:
                return i
        return None

    def find_item(self, item_id: str) -> int | None:
        for i, item in enumerate(self.table):
            if isinstance(item, (Build, TemporaryStack)) and item.id == item_id:
                return i
        return None


def table_cards(item: TableItem) -> tuple[Card, ...]:
    if isinstance(item, LooseCard):
        return (item.card,)
    if isinstance(item, Build):
        return item.cards
    if isinstance(item, TemporaryStack):
        return item.cards
    assert_never(item)


def iter_all_cards(state: GameState) -> Iterator[Card]:
    yield from state.deck
    for hand in state.hands:
        yield from hand
    for item in state.table:
        yield from table_cards(item)
    for groups in state.captures:
        for g in groups:
            yield from g.cards


def check_invariants(state: GameState) -> list[str]:
    """Return every structural problem found in ``state`` (empty when sound)."""
    errors: list[str] = []

    if len(state.hands) != PLAYERS:
        errors.append(f"hands must have {PLAYERS} entries")
    if len(state.captures) != PLAYERS:
        errors.append(f"captures must have {PLAYERS} entries")
    if state.current_player not in (0, 1):
        errors.append("current_player must be 0 or 1")
    if state.round < 1:
        errors.append("round must be at least 1")

    cards = list(iter_all_cards(state))
    if len(cards) != DECK_SIZE:
        errors.append(f"expected {DECK_SIZE} cards in play, found {len(cards)}")
    dupes = sorted(str(c) for c, n in Counter(cards).items() if n > 1)
    if dupes:
        errors.append(f"duplicate cards: {', '.join(dupes)}")

    build_owners: list[int] = []
    build_values: list[int] = []
    stack_owners: list[int] = []
    for item in state.table:
        if isinstance(item, LooseCard):
            continue
        if isinstance(item, Build):
            build_owners.append(item.owner)
            build_values.append(item.value)
            if item.owner not in (0, 1):
                errors.append(f"{item.id} has invalid owner {item.owner}")
            total = sum(c.value for c in item.cards)
            if item.value <= 0 or total % item.value != 0:
                errors.append(f"{item.id} cards do not add up to {item.value}")
        elif isinstance(item, TemporaryStack):
            stack_owners.append(item.owner)
            if item.owner not in (0, 1):
                errors.append(f"{item.id} has invalid owner {item.owner}")
            if not item.staged:
                errors.append(f"{item.id} is empty")
        else:
            assert_never(item)

    if len(set(build_owners)) != len(build_owners):
        errors.append("a player owns more than one build")
    if len(set(build_values)) != len(build_values):
        errors.append("two builds share a value")
    if len(set(stack_owners)) != len(stack_owners):
        errors.append("a player owns more than one staging stack")
    return errors
