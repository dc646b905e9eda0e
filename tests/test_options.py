from __future__ import annotations

from cassino.engine.actions import CaptureAction, CreateStagingStackAction, TargetRef, TrailAction
from cassino.engine.match import apply
from cassino.engine.options import determine_options, legal_actions, stack_options

from factories import build, card, cards, loose, make_state


def test_drop_on_matching_loose_card_offers_capture_build_and_stage() -> None:
    state = make_state(hand0=cards("4♠", "8♦"), hand1=cards("5♦"), table=[loose("4♥")])
    opts = determine_options(state, 0, card("4♠"), TargetRef.loose(card("4♥")))
    assert opts.error is None
    assert opts.requires_choice
    assert [o.type for o in opts.options] == ["capture", "build", "createStagingStack"]
    assert [o.label for o in opts.options] == ["Capture 4♥", "Build 8 (4+4)", "Stage with 4♥"]


def test_open_table_forces_the_capture() -> None:
    state = make_state(hand0=cards("4♠", "8♦"), hand1=cards("5♦"), table=[loose("4♥")])
    opts = determine_options(state, 0, card("4♠"))
    assert [o.type for o in opts.options] == ["capture"]
    assert not opts.requires_choice

    free = determine_options(state, 0, card("8♦"))
    assert [o.action for o in free.options] == [TrailAction(0, card("8♦"))]


def test_drop_on_opponent_build_offers_merge() -> None:
    own = build("b0", ["5♥", "4♥"], 9, owner=0)
    theirs = build("b1", ["4♣", "3♣"], 7, owner=1)
    state = make_state(hand0=cards("2♣", "9♦"), hand1=cards("5♦"), table=[own, theirs])
    opts = determine_options(state, 0, card("2♣"), TargetRef.build("b1"))
    assert [o.type for o in opts.options] == ["addToOpponentBuild"]
    assert opts.options[0].priority == 2
    assert opts.options[0].label == "Merge into your build of 9"


def test_illegal_drop_reports_why() -> None:
    state = make_state(hand0=cards("4♠", "9♦"), hand1=cards("5♦"), table=[loose("7♥")])
    opts = determine_options(state, 0, card("4♠"), TargetRef.build("nope"))
    assert opts.options == []
    assert opts.error == "Target card not found"

    # 4+7 is over the build limit and there is nothing to capture or stage into.
    opts = determine_options(state, 0, card("4♠"), TargetRef.loose(card("7♥")))
    assert [o.type for o in opts.options] == ["createStagingStack"]


def test_stack_options_accept_and_cancel() -> None:
    state = make_state(hand0=cards("2♣", "5♦"), hand1=cards("6♦"), table=[loose("3♥")])
    s = apply(state, CreateStagingStackAction(player=0, card=card("2♣"), source="hand", target=card("3♥"))).state
    assert [o.label for o in stack_options(s, 0)] == ["Accept", "Cancel"]
    assert stack_options(s, 1) == []


def test_legal_actions_are_all_accepted() -> None:
    state = make_state(
        hand0=cards("4♠", "8♦", "2♣"),
        hand1=cards("5♦"),
        table=[loose("4♥"), loose("6♣")],
    )
    options = legal_actions(state, 0)
    assert options
    assert options[0].type == "capture"
    assert [o.priority for o in options] == sorted(o.priority for o in options)
    for opt in options:
        assert apply(state, opt.action).ok, opt.label
    assert legal_actions(state, 1) == []
    assert not any(isinstance(o.action, CaptureAction) and o.action.card == card("2♣") for o in options)
