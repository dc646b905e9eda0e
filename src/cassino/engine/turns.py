from __future__ import annotations

from dataclasses import replace

from .deck import deal
from .scoring import score_game
from .state import GameState, table_cards
from .types import CaptureGroup

Event = dict[str, object]


def redeal(state: GameState) -> tuple[GameState, list[Event]]:
    deck, hands = deal(state.deck, state.hands, state.config.hand_size)
    state = replace(state, deck=deck, hands=hands, round=state.round + 1)
    return state, [
        {
            "type": "ROUND_DEALT",
            "round": state.round,
            "hand_sizes": [len(hands[0]), len(hands[1])],
            "deck_left": len(deck),
        }
    ]


def end_game(state: GameState) -> tuple[GameState, list[Event]]:
    """Sweep the table to the last capturer and score the game."""
    events: list[Event] = []
    if state.table and state.last_capturer is not None:
        swept = tuple(c for item in state.table for c in table_cards(item))
        captures = list(state.captures)
        captures[state.last_capturer] = captures[state.last_capturer] + (CaptureGroup(swept),)
        state = replace(state, table=(), captures=(captures[0], captures[1]))
        events.append({"type": "TABLE_SWEPT", "player": state.last_capturer, "cards": [str(c) for c in swept]})

    details = score_game(state.captures, state.config)
    state = replace(
        state,
        game_over=True,
        score_details=details,
        scores=details.totals,
        winner=details.winner,
    )
    events.append({"type": "GAME_ENDED", "winner": state.winner, "scores": list(state.scores)})
    return state, events


def advance_turn(state: GameState) -> tuple[GameState, list[Event]]:
    """Hand the turn over, redealing or ending the game when hands run out."""
    nxt = state.opponent(state.current_player)
    hands = state.hands

    if not hands[0] and not hands[1]:
        if state.deck:
            return redeal(replace(state, current_player=nxt))
        return end_game(replace(state, current_player=nxt))

    if not hands[nxt]:
        # Opponent has nothing left to play this round.
        return state, [{"type": "TURN_PASSED", "player": nxt, "to": state.current_player}]
    return replace(state, current_player=nxt), []
