"""State transitions for validated actions.

These functions assume :func:`cassino.engine.validate.validate` accepted the
action; they never check rules themselves. Each returns the successor state
and the events describing what moved. Turn and round handling lives in
:mod:`cassino.engine.turns`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import assert_never

from .actions import (
    Action,
    AddToOpponentBuildAction,
    AddToOwnBuildAction,
    AddToStagingStackAction,
    BuildAction,
    CancelStagingStackAction,
    CaptureAction,
    CreateStagingStackAction,
    FinalizeStagingStackAction,
    TrailAction,
)
from .partition import partition_cards
from .state import GameState, table_cards
from .types import Build, CaptureGroup, Card, LooseCard, Source, StagedCard, TableItem, TemporaryStack
from .validate import FinalizePlan, find_target, plan_finalize

Event = dict[str, object]


def _cards(cards: Iterable[Card]) -> list[str]:
    return [str(c) for c in cards]


def _without(cards: Sequence[Card], remove: Iterable[Card]) -> tuple[Card, ...]:
    gone = set(remove)
    return tuple(c for c in cards if c not in gone)


def _set_hand(state: GameState, player: int, hand: tuple[Card, ...]) -> tuple[tuple[Card, ...], tuple[Card, ...]]:
    if player == 0:
        return (hand, state.hands[1])
    return (state.hands[0], hand)


def _take_from_hand(state: GameState, player: int, *cards: Card) -> GameState:
    return replace(state, hands=_set_hand(state, player, _without(state.hands[player], cards)))


def _replace_table(
    table: Sequence[TableItem],
    remove: Iterable[int],
    put: dict[int, TableItem] | None = None,
) -> tuple[TableItem, ...]:
    """Drop the items at ``remove`` and swap in ``put`` at their indices, keeping order."""
    put = put or {}
    gone = set(remove)
    out: list[TableItem] = []
    for i, item in enumerate(table):
        if i in put:
            out.append(put[i])
        elif i not in gone:
            out.append(item)
    return tuple(out)


def _append_capture(state: GameState, player: int, group: CaptureGroup) -> GameState:
    captures = list(state.captures)
    captures[player] = captures[player] + (group,)
    return replace(state, captures=(captures[0], captures[1]), last_capturer=player)


def _new_id(state: GameState, prefix: str) -> tuple[GameState, str]:
    return replace(state, next_id=state.next_id + 1), f"{prefix}-{state.next_id}"


def _is_extendable(state: GameState, cards: Sequence[Card], value: int) -> bool:
    cfg = state.config
    return sum(c.value for c in cards) == value and value < cfg.max_build_value and len(cards) < cfg.max_build_cards


def _ordered_build_cards(table_part: Sequence[Card], hand_card: Card) -> tuple[Card, ...]:
    # Larger cards first; sorted() is stable so table cards lead on ties.
    return tuple(sorted([*table_part, hand_card], key=lambda c: -c.value))


def execute_trail(state: GameState, action: TrailAction) -> tuple[GameState, list[Event]]:
    state = _take_from_hand(state, action.player, action.card)
    state = replace(state, table=state.table + (LooseCard(action.card),))
    return state, [{"type": "CARD_TRAILED", "player": action.player, "card": str(action.card)}]


def execute_capture(state: GameState, action: CaptureAction) -> tuple[GameState, list[Event]]:
    p = action.player
    indices: list[int] = []
    captured: list[Card] = []
    for t in action.targets:
        idx = find_target(state, t)
        assert idx is not None
        indices.append(idx)
        captured.extend(table_cards(state.table[idx]))

    state = _take_from_hand(state, p, action.card)
    state = replace(state, table=_replace_table(state.table, indices))

    if action.opponent_card is not None:
        opp = state.opponent(p)
        groups = list(state.captures[opp])
        top = groups[-1]
        rest = top.cards[:-1]
        if rest:
            groups[-1] = CaptureGroup(rest)
        else:
            groups.pop()
        captures = list(state.captures)
        captures[opp] = tuple(groups)
        state = replace(state, captures=(captures[0], captures[1]))
        captured.append(action.opponent_card)

    group = CaptureGroup(tuple(captured) + (action.card,))
    state = _append_capture(state, p, group)
    event: Event = {"type": "CARDS_CAPTURED", "player": p, "card": str(action.card), "cards": _cards(group.cards)}
    if action.opponent_card is not None:
        event["from_opponent"] = str(action.opponent_card)
    return state, [event]


def execute_build(state: GameState, action: BuildAction) -> tuple[GameState, list[Event]]:
    p = action.player
    indices = [state.find_loose(t.card) for t in action.targets if t.card is not None]
    positions = [i for i in indices if i is not None]
    loose = [t.card for t in action.targets if t.card is not None]
    cards = _ordered_build_cards(loose, action.card)

    state, build_id = _new_id(state, "build")
    build = Build(
        id=build_id,
        cards=cards,
        value=action.value,
        owner=p,
        extendable=_is_extendable(state, cards, action.value),
    )
    first = min(positions)
    state = _take_from_hand(state, p, action.card)
    state = replace(state, table=_replace_table(state.table, positions, {first: build}))
    return state, [{"type": "BUILD_CREATED", "player": p, "build_id": build_id, "value": build.value, "cards": _cards(cards)}]


def execute_add_to_own_build(state: GameState, action: AddToOwnBuildAction) -> tuple[GameState, list[Event]]:
    p = action.player
    b_idx = state.find_item(action.build_id)
    assert b_idx is not None
    build = state.table[b_idx]
    assert isinstance(build, Build)

    loose = [t.card for t in action.targets if t.card is not None]
    positions = [i for i in (state.find_loose(c) for c in loose) if i is not None]
    cards = build.cards + tuple(loose) + (action.card,)
    value = build.value + sum(c.value for c in loose) + action.card.value
    extended = replace(build, cards=cards, value=value, extendable=_is_extendable(state, cards, value))

    state = _take_from_hand(state, p, action.card)
    state = replace(state, table=_replace_table(state.table, positions, {b_idx: extended}))
    return state, [
        {"type": "BUILD_EXTENDED", "player": p, "build_id": build.id, "value": value, "cards": _cards(cards)}
    ]


def execute_add_to_opponent_build(state: GameState, action: AddToOpponentBuildAction) -> tuple[GameState, list[Event]]:
    p = action.player
    b_idx = state.find_item(action.build_id)
    assert b_idx is not None
    build = state.table[b_idx]
    assert isinstance(build, Build)

    cards = build.cards + (action.card,)
    value = build.value + action.card.value
    own = state.build_of(p)
    state = _take_from_hand(state, p, action.card)

    if own is not None and own.value == value:
        own_idx = state.find_item(own.id)
        assert own_idx is not None
        merged = replace(own, cards=own.cards + cards, extendable=False)
        state = replace(state, table=_replace_table(state.table, [b_idx], {own_idx: merged}))
        return state, [
            {
                "type": "BUILDS_MERGED",
                "player": p,
                "build_id": own.id,
                "absorbed": build.id,
                "value": value,
                "cards": _cards(merged.cards),
            }
        ]

    extended = replace(build, cards=cards, value=value, owner=p, extendable=_is_extendable(state, cards, value))
    state = replace(state, table=_replace_table(state.table, [], {b_idx: extended}))
    return state, [
        {
            "type": "BUILD_EXTENDED",
            "player": p,
            "build_id": build.id,
            "value": value,
            "cards": _cards(cards),
            "previous_owner": build.owner,
        }
    ]


def _take_source(state: GameState, player: int, card: Card, source: Source) -> GameState:
    if source == "hand":
        return _take_from_hand(state, player, card)
    idx = state.find_loose(card)
    assert idx is not None
    return replace(state, table=_replace_table(state.table, [idx]))


def execute_create_staging_stack(state: GameState, action: CreateStagingStackAction) -> tuple[GameState, list[Event]]:
    p = action.player
    state, stack_id = _new_id(state, "stack")
    stack = TemporaryStack(
        id=stack_id,
        owner=p,
        staged=(StagedCard(action.target, "table"), StagedCard(action.card, action.source)),
    )
    target_idx = state.find_loose(action.target)
    assert target_idx is not None
    state = replace(state, table=_replace_table(state.table, [], {target_idx: stack}))
    state = _take_source(state, p, action.card, action.source)
    return state, [
        {"type": "STACK_CREATED", "player": p, "stack_id": stack_id, "cards": _cards(stack.cards)}
    ]


def execute_add_to_staging_stack(state: GameState, action: AddToStagingStackAction) -> tuple[GameState, list[Event]]:
    p = action.player
    s_idx = state.find_item(action.stack_id)
    assert s_idx is not None
    stack = state.table[s_idx]
    assert isinstance(stack, TemporaryStack)

    grown = replace(stack, staged=stack.staged + (StagedCard(action.card, action.source),))
    state = replace(state, table=_replace_table(state.table, [], {s_idx: grown}))
    state = _take_source(state, p, action.card, action.source)
    return state, [
        {
            "type": "STACK_ADDED",
            "player": p,
            "stack_id": stack.id,
            "card": str(action.card),
            "source": action.source,
        }
    ]


def _finalize_as_capture(state: GameState, stack: TemporaryStack, s_idx: int, plan: FinalizePlan) -> tuple[GameState, list[Event]]:
    assert plan.capturing_card is not None
    group = CaptureGroup(stack.from_source("table") + (plan.capturing_card,))
    state = replace(state, table=_replace_table(state.table, [s_idx]))
    state = _append_capture(state, stack.owner, group)
    return state, [
        {
            "type": "CARDS_CAPTURED",
            "player": stack.owner,
            "card": str(plan.capturing_card),
            "cards": _cards(group.cards),
            "stack_id": stack.id,
        }
    ]


def _finalize_as_build(state: GameState, stack: TemporaryStack, s_idx: int, plan: FinalizePlan) -> tuple[GameState, list[Event]]:
    groups = partition_cards(stack.cards, plan.value)
    assert groups is not None
    cards = tuple(c for g in groups for c in g)
    state, build_id = _new_id(state, "build")
    build = Build(
        id=build_id,
        cards=cards,
        value=plan.value,
        owner=stack.owner,
        extendable=_is_extendable(state, cards, plan.value),
    )
    state = replace(state, table=_replace_table(state.table, [], {s_idx: build}))
    return state, [
        {
            "type": "BUILD_CREATED",
            "player": stack.owner,
            "build_id": build_id,
            "value": build.value,
            "cards": _cards(cards),
            "stack_id": stack.id,
        }
    ]


def execute_finalize_staging_stack(state: GameState, action: FinalizeStagingStackAction) -> tuple[GameState, list[Event]]:
    s_idx = state.find_item(action.stack_id)
    assert s_idx is not None
    stack = state.table[s_idx]
    assert isinstance(stack, TemporaryStack)
    plan = plan_finalize(state, stack, action.value)
    assert isinstance(plan, FinalizePlan)
    if plan.kind == "capture":
        return _finalize_as_capture(state, stack, s_idx, plan)
    return _finalize_as_build(state, stack, s_idx, plan)


def execute_cancel_staging_stack(state: GameState, action: CancelStagingStackAction) -> tuple[GameState, list[Event]]:
    p = action.player
    s_idx = state.find_item(action.stack_id)
    assert s_idx is not None
    stack = state.table[s_idx]
    assert isinstance(stack, TemporaryStack)

    returned_hand = stack.from_source("hand")
    returned_table = tuple(LooseCard(c) for c in stack.from_source("table"))
    table = state.table[:s_idx] + returned_table + state.table[s_idx + 1 :]
    hands = _set_hand(state, p, state.hands[p] + returned_hand)
    state = replace(state, table=table, hands=hands)
    return state, [
        {
            "type": "STACK_CANCELLED",
            "player": p,
            "stack_id": stack.id,
            "to_hand": _cards(returned_hand),
            "to_table": _cards(c.card for c in returned_table),
        }
    ]


def execute(state: GameState, action: Action) -> tuple[GameState, list[Event]]:
    if isinstance(action, TrailAction):
        return execute_trail(state, action)
    if isinstance(action, CaptureAction):
        return execute_capture(state, action)
    if isinstance(action, BuildAction):
        return execute_build(state, action)
    if isinstance(action, AddToOwnBuildAction):
        return execute_add_to_own_build(state, action)
    if isinstance(action, AddToOpponentBuildAction):
        return execute_add_to_opponent_build(state, action)
    if isinstance(action, CreateStagingStackAction):
        return execute_create_staging_stack(state, action)
    if isinstance(action, AddToStagingStackAction):
        return execute_add_to_staging_stack(state, action)
    if isinstance(action, FinalizeStagingStackAction):
        return execute_finalize_staging_stack(state, action)
    if isinstance(action, CancelStagingStackAction):
        return execute_cancel_staging_stack(state, action)
    assert_never(action)
