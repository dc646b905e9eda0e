from __future__ import annotations

from cassino.engine.actions import (
    AddToStagingStackAction,
    CancelStagingStackAction,
    CaptureAction,
    CreateStagingStackAction,
    FinalizeStagingStackAction,
    TargetRef,
    TrailAction,
)
from cassino.engine.match import apply
from cassino.engine.state import RulesConfig, check_invariants
from cassino.engine.types import Build, CaptureGroup, LooseCard, StagedCard, TemporaryStack

from factories import card, cards, loose, make_state


def _staged_state():
    state = make_state(
        hand0=cards("2♣", "5♦", "9♠"),
        hand1=cards("6♦", "8♦"),
        table=[loose("3♥"), loose("4♥")],
    )
    res = apply(state, CreateStagingStackAction(player=0, card=card("2♣"), source="hand", target=card("3♥")))
    assert res.ok
    return res.state


def test_create_stack_keeps_the_turn() -> None:
    s = _staged_state()
    stack = s.table[0]
    assert isinstance(stack, TemporaryStack)
    assert stack.id == "stack-1"
    assert stack.owner == 0
    assert stack.staged == (StagedCard(card("3♥"), "table"), StagedCard(card("2♣"), "hand"))
    assert s.table[1] == LooseCard(card("4♥"))
    assert s.hands[0] == cards("5♦", "9♠")
    assert s.current_player == 0
    assert check_invariants(s) == []


def test_open_stack_blocks_other_actions() -> None:
    s = _staged_state()
    res = apply(s, TrailAction(player=0, card=card("9♠")))
    assert res.error is not None
    assert res.error.kind == "StagingViolation"

    res = apply(s, CreateStagingStackAction(player=0, card=card("9♠"), source="hand", target=card("4♥")))
    assert res.error is not None
    assert res.error.kind == "StagingViolation"


def test_finalize_builds_the_largest_value_held() -> None:
    s = _staged_state()
    res = apply(s, FinalizeStagingStackAction(player=0, stack_id="stack-1"))
    assert res.ok
    b = res.state.table[0]
    assert isinstance(b, Build)
    assert b.id == "build-2"
    assert b.value == 5
    assert b.cards == cards("3♥", "2♣")
    assert b.owner == 0
    assert b.extendable
    assert res.state.current_player == 1
    assert check_invariants(res.state) == []


def test_finalize_with_one_hand_card_captures() -> None:
    state = make_state(hand0=cards("7♦", "9♠"), hand1=cards("6♦"), table=[loose("3♥"), loose("4♥")])
    res = apply(state, CreateStagingStackAction(player=0, card=card("4♥"), source="table", target=card("3♥")))
    assert res.ok
    res = apply(res.state, AddToStagingStackAction(player=0, stack_id="stack-1", card=card("7♦"), source="hand"))
    assert res.ok
    assert res.state.current_player == 0

    res = apply(res.state, FinalizeStagingStackAction(player=0, stack_id="stack-1"))
    assert res.ok
    assert res.state.captures[0] == (CaptureGroup(cards("3♥", "4♥", "7♦")),)
    assert res.state.table == ()
    assert res.state.last_capturer == 0
    assert res.state.current_player == 1


def test_table_only_stack_can_be_captured_directly() -> None:
    state = make_state(hand0=cards("7♦", "9♠"), hand1=cards("6♦"), table=[loose("3♥"), loose("4♥")])
    res = apply(state, CreateStagingStackAction(player=0, card=card("4♥"), source="table", target=card("3♥")))
    res = apply(res.state, CaptureAction(player=0, card=card("7♦"), targets=(TargetRef.stack("stack-1"),)))
    assert res.ok
    assert res.state.captures[0] == (CaptureGroup(cards("3♥", "4♥", "7♦")),)


def test_cancel_returns_every_card_to_its_source() -> None:
    s = _staged_state()
    res = apply(s, CancelStagingStackAction(player=0, stack_id="stack-1"))
    assert res.ok
    assert res.state.table == (LooseCard(card("3♥")), LooseCard(card("4♥")))
    assert res.state.hands[0] == cards("5♦", "9♠", "2♣")
    assert res.state.current_player == 0
    assert res.events[0]["type"] == "STACK_CANCELLED"


def test_unresolvable_stack_is_rejected_without_change() -> None:
    state = make_state(hand0=cards("2♣", "9♠"), hand1=cards("6♦"), table=[loose("3♥")])
    staged = apply(state, CreateStagingStackAction(player=0, card=card("2♣"), source="hand", target=card("3♥"))).state

    res = apply(staged, FinalizeStagingStackAction(player=0, stack_id="stack-1"))
    assert not res.ok
    assert res.error is not None
    assert res.error.kind == "StagingViolation"
    assert res.state is staged

    res = apply(staged, CancelStagingStackAction(player=0, stack_id="stack-1"))
    assert res.ok
    assert sorted(map(str, res.state.hands[0])) == sorted(map(str, state.hands[0]))


def test_stack_card_limit() -> None:
    state = make_state(
        hand0=cards("9♠"),
        hand1=cards("6♦"),
        table=[loose("A♥"), loose("2♥"), loose("3♥"), loose("4♥"), loose("5♥"), loose("6♥")],
        config=RulesConfig(max_stack_cards=5),
    )
    res = apply(state, CreateStagingStackAction(player=0, card=card("2♥"), source="table", target=card("A♥")))
    for c in ("3♥", "4♥", "5♥"):
        res = apply(res.state, AddToStagingStackAction(player=0, stack_id="stack-1", card=card(c), source="table"))
        assert res.ok
    res = apply(res.state, AddToStagingStackAction(player=0, stack_id="stack-1", card=card("6♥"), source="table"))
    assert res.error is not None
    assert res.error.kind == "StagingViolation"


def test_opponent_cannot_touch_your_stack() -> None:
    s = _staged_state()
    res = apply(s, CancelStagingStackAction(player=1, stack_id="stack-1"))
    assert res.error is not None
    assert res.error.kind == "NotYourTurn"


def test_finalize_with_requested_value() -> None:
    state = make_state(hand0=cards("2♣", "5♦", "10♠"), hand1=cards("6♦"), table=[loose("3♥"), loose("5♥")])
    res = apply(state, CreateStagingStackAction(player=0, card=card("2♣"), source="hand", target=card("3♥")))
    res = apply(res.state, AddToStagingStackAction(player=0, stack_id="stack-1", card=card("5♥"), source="table"))

    # 3+2 and 5 make two fives, or one ten; the larger is the default.
    default = apply(res.state, FinalizeStagingStackAction(player=0, stack_id="stack-1"))
    assert default.ok
    b = default.state.table[0]
    assert isinstance(b, Build)
    assert b.value == 10

    fives = apply(res.state, FinalizeStagingStackAction(player=0, stack_id="stack-1", value=5))
    assert fives.ok
    b = fives.state.table[0]
    assert isinstance(b, Build)
    assert b.value == 5
    assert b.cards == cards("5♥", "3♥", "2♣")
    assert not b.extendable


def test_table_only_stack_cannot_be_finalized() -> None:
    state = make_state(hand0=cards("9♠"), hand1=cards("6♦"), table=[loose("3♥"), loose("4♥")])
    staged = apply(state, CreateStagingStackAction(player=0, card=card("4♥"), source="table", target=card("3♥"))).state

    res = apply(staged, FinalizeStagingStackAction(player=0, stack_id="stack-1"))
    assert res.error is not None
    assert res.error.kind == "StagingViolation"
    assert res.state is staged


def test_stack_holding_hand_cards_cannot_be_captured() -> None:
    s = _staged_state()
    res = apply(s, CaptureAction(player=0, card=card("5♦"), targets=(TargetRef.stack("stack-1"),)))
    assert res.error is not None
    assert res.error.kind == "InvalidCapture"
    assert res.state is s
