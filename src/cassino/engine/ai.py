from __future__ import annotations

import random
from dataclasses import dataclass

from .actions import (
    Action,
    AddToOpponentBuildAction,
    AddToOwnBuildAction,
    BuildAction,
    CancelStagingStackAction,
    CaptureAction,
    FinalizeStagingStackAction,
    TrailAction,
)
from .match import StepResult, apply
from .options import ActionOption, legal_actions
from .state import GameState, table_cards
from .types import BIG_CASINO, LITTLE_CASINO, SPADES, Card
from .validate import find_target


@dataclass(frozen=True)
class AISpec:
    """Simple AI tuning parameters.

    difficulty:
      0 = easy (often plays a random legal move)
      1 = normal
      2 = hard (always greedy)
    """

    difficulty: int = 1


def _card_worth(card: Card) -> float:
    v = 1.0
    if card.suit == SPADES:
        v += 0.5
    if card.rank == "A":
        v += 1.0
    if card == BIG_CASINO:
        v += 2.0
    if card == LITTLE_CASINO:
        v += 1.0
    return v


def _captured_cards(state: GameState, action: CaptureAction) -> list[Card]:
    cards: list[Card] = [action.card]
    for t in action.targets:
        idx = find_target(state, t)
        if idx is None:
            continue
        cards.extend(table_cards(state.table[idx]))
    if action.opponent_card is not None:
        cards.append(action.opponent_card)
    return cards


def _score(state: GameState, option: ActionOption) -> float:
    a = option.action
    if isinstance(a, CaptureAction):
        return 10.0 + sum(_card_worth(c) for c in _captured_cards(state, a))
    if isinstance(a, FinalizeStagingStackAction):
        return 8.0
    if isinstance(a, (BuildAction, AddToOpponentBuildAction)):
        return 5.0 + a.card.value * 0.1
    if isinstance(a, AddToOwnBuildAction):
        return 4.0
    if isinstance(a, TrailAction):
        # Trail the least valuable card.
        return 1.0 - _card_worth(a.card) - a.card.value * 0.05
    if isinstance(a, CancelStagingStackAction):
        return -5.0
    return 0.0


def choose_action(state: GameState, player: int, rng: random.Random, spec: AISpec | None = None) -> Action | None:
    """Pick a legal action for ``player``; ``None`` if it is not their turn."""
    spec = spec or AISpec()
    options = legal_actions(state, player, staging=False)
    if not options:
        return None

    mistake = {0: 0.35, 1: 0.10}.get(spec.difficulty, 0.0)
    if rng.random() < mistake:
        return rng.choice(options).action

    best: tuple[float, ActionOption] | None = None
    for opt in options:
        score = _score(state, opt)
        if best is None or score > best[0]:
            best = (score, opt)
    assert best is not None
    return best[1].action


def ai_take_turn(state: GameState, player: int, rng: random.Random, spec: AISpec | None = None) -> list[StepResult]:
    """Play out the bot's turn and return every accepted step.

    The bot draws from ``rng`` only, so a seeded rng reproduces the same game.
    """
    results: list[StepResult] = []
    while not state.game_over and state.current_player == player:
        action = choose_action(state, player, rng, spec)
        if action is None:
            break
        result = apply(state, action)
        if not result.ok:
            break
        results.append(result)
        state = result.state
    return results
