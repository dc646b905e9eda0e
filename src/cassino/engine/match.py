from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable

from .actions import TURN_ENDING, Action
from .deck import build_deck, deal, shuffle_deck
from .errors import Rejection
from .execute import execute
from .state import GameState, RulesConfig
from .turns import advance_turn
from .validate import validate

Event = dict[str, object]


@dataclass(frozen=True)
class StepResult:
    ok: bool
    state: GameState
    events: list[Event] = field(default_factory=list)
    error: Rejection | None = None


def new_game(seed: int, config: RulesConfig | None = None) -> GameState:
    """Shuffle a fresh 40-card deck with ``seed`` and deal the first round."""
    cfg = config or RulesConfig()
    rng = random.Random(seed)
    deck = shuffle_deck(build_deck(), rng)
    deck, hands = deal(deck, ((), ()), cfg.hand_size)
    return GameState(deck=deck, hands=hands, seed=seed, config=cfg)


def apply(state: GameState, action: Action) -> StepResult:
    """Apply a single action.

    ``state`` is never modified. On rejection the result carries the same
    state object and the reason; otherwise the successor state, with turn
    advance, redeal and end-of-game scoring already applied.
    """
    rejection = validate(state, action)
    if rejection is not None:
        return StepResult(ok=False, state=state, events=[], error=rejection)

    new_state, events = execute(state, action)
    if isinstance(action, TURN_ENDING):
        new_state, more = advance_turn(new_state)
        events.extend(more)
    return StepResult(ok=True, state=new_state, events=events)


def replay(
    seed: int,
    actions: Iterable[Action],
    config: RulesConfig | None = None,
) -> GameState:
    state = new_game(seed=seed, config=config)
    for a in actions:
        state = apply(state, a).state
        if state.game_over:
            break
    return state
