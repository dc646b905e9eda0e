"""Legality checks for every action kind.

Each ``validate_*`` function is pure and returns ``None`` when the action may
be applied, or a :class:`Rejection` naming the first rule it breaks. Checks
run in a fixed order: turn ownership, payload shape, source integrity, open
staging stack, then the rules of the action itself, with capture forcing
last.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal, assert_never

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
    TargetRef,
    TrailAction,
)
from .errors import ErrorKind, Rejection
from .partition import can_partition
from .state import GameState
from .types import Build, Card, LooseCard, Source, TableItem, TemporaryStack


@dataclass(frozen=True)
class FinalizePlan:
    """How a staging stack resolves: a capture by one hand card, or a build."""

    kind: Literal["capture", "build"]
    value: int
    capturing_card: Card | None = None


def _reject(kind: ErrorKind, message: str) -> Rejection:
    return Rejection(kind=kind, message=message)


def describe(item: TableItem) -> str:
    if isinstance(item, LooseCard):
        return str(item.card)
    if isinstance(item, Build):
        return f"build of {item.value}"
    if isinstance(item, TemporaryStack):
        return f"staging stack {item.id}"
    assert_never(item)


def capture_value(item: TableItem) -> int | None:
    """Value a single card must have to take ``item``; stacks are never taken this way."""
    if isinstance(item, LooseCard):
        return item.card.value
    if isinstance(item, Build):
        return item.value
    if isinstance(item, TemporaryStack):
        return None
    assert_never(item)


def find_target(state: GameState, target: TargetRef) -> int | None:
    if target.kind == "loose":
        if target.card is None:
            return None
        return state.find_loose(target.card)
    if target.item_id is None:
        return None
    idx = state.find_item(target.item_id)
    if idx is None:
        return None
    item = state.table[idx]
    if target.kind == "build" and not isinstance(item, Build):
        return None
    if target.kind == "stack" and not isinstance(item, TemporaryStack):
        return None
    return idx


def _resolve_targets(state: GameState, targets: Sequence[TargetRef]) -> list[int] | Rejection:
    indices: list[int] = []
    for t in targets:
        idx = find_target(state, t)
        if idx is None:
            what = str(t.card) if t.kind == "loose" else f"{t.kind} {t.item_id}"
            return _reject("TargetNotFound", f"{what} is not on the table.")
        indices.append(idx)
    return indices


def _check_targets_shape(targets: Sequence[TargetRef], *, loose_only: bool, required: bool) -> Rejection | None:
    if required and not targets:
        return _reject("MalformedAction", "At least one table target is required.")
    if len(set(targets)) != len(targets):
        return _reject("MalformedAction", "The same table target was given twice.")
    for t in targets:
        if t.kind == "loose" and t.card is None:
            return _reject("MalformedAction", "Loose card targets need a card.")
        if t.kind != "loose" and not t.item_id:
            return _reject("MalformedAction", f"{t.kind} targets need an id.")
        if loose_only and t.kind != "loose":
            return _reject("MalformedAction", "Only loose table cards can be used here.")
    return None


def _in_hand(state: GameState, player: int, card: Card) -> Rejection | None:
    if card not in state.hands[player]:
        return _reject("TargetNotFound", f"{card} is not in your hand.")
    return None


def _open_stack(state: GameState, player: int) -> Rejection | None:
    stack = state.stack_of(player)
    if stack is not None:
        return _reject("StagingViolation", "Finalize or cancel your staging stack first.")
    return None


def forced_capture(state: GameState, card: Card, consumed: Iterable[int] = ()) -> TableItem | None:
    """First loose card or build, outside ``consumed``, that ``card`` could capture."""
    skip = set(consumed)
    for i, item in enumerate(state.table):
        if i in skip:
            continue
        if capture_value(item) == card.value:
            return item
    return None


def _keeps_capture_card(state: GameState, player: int, value: int, exclude: Iterable[Card] = ()) -> bool:
    excluded = set(exclude)
    return any(c.value == value and c not in excluded for c in state.hands[player])


def _forcing_rejection(state: GameState, card: Card, consumed: Iterable[int]) -> Rejection | None:
    item = forced_capture(state, card, consumed)
    if item is None:
        return None
    return _reject("InvalidCapture", f"{card} can capture {describe(item)}; you must capture it.")


def opponent_top_card(state: GameState, player: int) -> Card | None:
    groups = state.captures[state.opponent(player)]
    if not groups or not groups[-1].cards:
        return None
    return groups[-1].cards[-1]


def validate_trail(state: GameState, action: TrailAction) -> Rejection | None:
    p = action.player
    rej = _in_hand(state, p, action.card) or _open_stack(state, p)
    if rej:
        return rej

    own = state.build_of(p)
    if (
        state.config.first_round_build_lock
        and state.round == 1
        and own is not None
        and _keeps_capture_card(state, p, own.value)
    ):
        return _reject("InvalidTrail", f"Capture or extend your build of {own.value} before trailing.")

    item = forced_capture(state, action.card)
    if item is not None:
        return _reject("InvalidTrail", f"{action.card} can capture {describe(item)}; trailing is not allowed.")
    return None


def validate_capture(state: GameState, action: CaptureAction) -> Rejection | None:
    p = action.player
    rej = _check_targets_shape(action.targets, loose_only=False, required=True) or _in_hand(state, p, action.card)
    if rej:
        return rej
    resolved = _resolve_targets(state, action.targets)
    if isinstance(resolved, Rejection):
        return resolved

    own_stack = state.stack_of(p)
    if own_stack is not None and state.find_item(own_stack.id) not in resolved:
        return _reject("StagingViolation", "Finalize or cancel your staging stack first.")

    value = action.card.value
    for idx in resolved:
        item = state.table[idx]
        if isinstance(item, (LooseCard, Build)):
            if item.capture_value != value:
                return _reject("InvalidCapture", f"{action.card} cannot capture {describe(item)}.")
        elif isinstance(item, TemporaryStack):
            if item.owner != p:
                return _reject("InvalidCapture", "You can only capture your own staging stack.")
            if item.from_source("hand"):
                return _reject("InvalidCapture", "A stack holding hand cards must be finalized, not captured.")
            if not can_partition(item.cards, value):
                return _reject("InvalidCapture", f"The staged cards do not make {value}.")
        else:
            assert_never(item)

    if action.opponent_card is not None:
        if not state.config.allow_opponent_card_capture:
            return _reject("InvalidCapture", "Capturing from the opponent's pile is disabled.")
        if opponent_top_card(state, p) != action.opponent_card:
            return _reject("TargetNotFound", f"{action.opponent_card} is not on top of the opponent's captures.")
        if action.opponent_card.value != value:
            return _reject("InvalidCapture", f"{action.card} cannot capture {action.opponent_card}.")
    return None


def validate_build(state: GameState, action: BuildAction) -> Rejection | None:
    p = action.player
    cfg = state.config
    rej = _check_targets_shape(action.targets, loose_only=True, required=True) or _in_hand(state, p, action.card)
    if rej:
        return rej
    resolved = _resolve_targets(state, action.targets)
    if isinstance(resolved, Rejection):
        return resolved
    rej = _open_stack(state, p)
    if rej:
        return rej

    cards = [action.card] + [t.card for t in action.targets if t.card is not None]
    total = sum(c.value for c in cards)
    value = action.value
    if not 2 <= value <= cfg.max_build_value:
        return _reject("InvalidBuild", f"Build value must be between 2 and {cfg.max_build_value}.")
    if total != value:
        return _reject("InvalidBuild", f"Those cards add up to {total}, not {value}.")
    if len(cards) > cfg.max_build_cards:
        return _reject("InvalidBuild", f"A build holds at most {cfg.max_build_cards} cards.")
    if state.build_of(p) is not None:
        return _reject("InvalidBuild", "You can only have one active build at a time.")
    if any(b.value == value for b in state.builds()):
        return _reject("InvalidBuild", f"Opponent already has a build of {value}.")
    if not _keeps_capture_card(state, p, value, exclude=[action.card]):
        return _reject("InvalidBuild", f"You need a {value} in your hand to capture this build later.")
    return _forcing_rejection(state, action.card, resolved)


def _extension_limits(state: GameState, build: Build, added: int, new_value: int) -> Rejection | None:
    cfg = state.config
    if not build.extendable:
        return _reject("InvalidBuild", f"The build of {build.value} cannot be extended.")
    if new_value > cfg.max_build_value:
        return _reject("InvalidBuild", f"A build cannot exceed {cfg.max_build_value}.")
    if len(build.cards) + added > cfg.max_build_cards:
        return _reject("InvalidBuild", f"A build holds at most {cfg.max_build_cards} cards.")
    return None


def _target_build(state: GameState, build_id: str) -> tuple[int, Build] | Rejection:
    idx = state.find_item(build_id)
    if idx is None or not isinstance(state.table[idx], Build):
        return _reject("TargetNotFound", f"Build {build_id} is not on the table.")
    build = state.table[idx]
    assert isinstance(build, Build)
    return idx, build


def validate_add_to_own_build(state: GameState, action: AddToOwnBuildAction) -> Rejection | None:
    p = action.player
    rej = _check_targets_shape(action.targets, loose_only=True, required=False) or _in_hand(state, p, action.card)
    if rej:
        return rej
    found = _target_build(state, action.build_id)
    if isinstance(found, Rejection):
        return found
    resolved = _resolve_targets(state, action.targets)
    if isinstance(resolved, Rejection):
        return resolved
    rej = _open_stack(state, p)
    if rej:
        return rej

    b_idx, build = found
    if build.owner != p:
        return _reject("InvalidBuild", "That build belongs to your opponent.")
    added = [action.card] + [t.card for t in action.targets if t.card is not None]
    new_value = build.value + sum(c.value for c in added)
    rej = _extension_limits(state, build, len(added), new_value)
    if rej:
        return rej
    if any(b.value == new_value and b.id != build.id for b in state.builds()):
        return _reject("InvalidBuild", f"Opponent already has a build of {new_value}.")
    if not _keeps_capture_card(state, p, new_value, exclude=[action.card]):
        return _reject("InvalidBuild", f"You need a {new_value} in your hand to capture this build later.")
    return _forcing_rejection(state, action.card, [b_idx, *resolved])


def validate_add_to_opponent_build(state: GameState, action: AddToOpponentBuildAction) -> Rejection | None:
    p = action.player
    rej = _in_hand(state, p, action.card)
    if rej:
        return rej
    found = _target_build(state, action.build_id)
    if isinstance(found, Rejection):
        return found
    rej = _open_stack(state, p)
    if rej:
        return rej

    b_idx, build = found
    if build.owner == p:
        return _reject("InvalidBuild", "That build is already yours.")
    new_value = build.value + action.card.value
    own = state.build_of(p)
    merged_cards = len(own.cards) if own is not None and own.value == new_value else 0
    rej = _extension_limits(state, build, 1 + merged_cards, new_value)
    if rej:
        return rej
    if own is not None and own.value != new_value:
        return _reject("InvalidBuild", "You can only have one active build at a time.")
    if own is None and any(b.value == new_value and b.id != build.id for b in state.builds()):
        return _reject("InvalidBuild", f"There is already a build of {new_value}.")
    if not _keeps_capture_card(state, p, new_value, exclude=[action.card]):
        return _reject("InvalidBuild", f"You need a {new_value} in your hand to capture this build later.")

    consumed = [b_idx]
    if own is not None:
        own_idx = state.find_item(own.id)
        if own_idx is not None:
            consumed.append(own_idx)
    return _forcing_rejection(state, action.card, consumed)


def _source_present(state: GameState, player: int, card: Card, source: Source) -> Rejection | None:
    if source == "hand":
        return _in_hand(state, player, card)
    if state.find_loose(card) is None:
        return _reject("TargetNotFound", f"{card} is not a loose card on the table.")
    return None


def validate_create_staging_stack(state: GameState, action: CreateStagingStackAction) -> Rejection | None:
    p = action.player
    if action.card == action.target:
        return _reject("MalformedAction", "A card cannot be staged onto itself.")
    rej = _source_present(state, p, action.card, action.source)
    if rej:
        return rej
    if state.find_loose(action.target) is None:
        return _reject("TargetNotFound", f"{action.target} is not a loose card on the table.")
    if state.stack_of(p) is not None:
        return _reject("StagingViolation", "You already have a staging stack.")
    return None


def _own_stack(state: GameState, player: int, stack_id: str) -> TemporaryStack | Rejection:
    idx = state.find_item(stack_id)
    if idx is None or not isinstance(state.table[idx], TemporaryStack):
        return _reject("TargetNotFound", f"Staging stack {stack_id} is not on the table.")
    stack = state.table[idx]
    assert isinstance(stack, TemporaryStack)
    if stack.owner != player:
        return _reject("StagingViolation", "That staging stack belongs to your opponent.")
    return stack


def validate_add_to_staging_stack(state: GameState, action: AddToStagingStackAction) -> Rejection | None:
    p = action.player
    stack = _own_stack(state, p, action.stack_id)
    if isinstance(stack, Rejection):
        return stack
    rej = _source_present(state, p, action.card, action.source)
    if rej:
        return rej
    if len(stack.staged) + 1 > state.config.max_stack_cards:
        return _reject("StagingViolation", f"A staging stack holds at most {state.config.max_stack_cards} cards.")
    return None


def plan_finalize(state: GameState, stack: TemporaryStack, requested: int | None) -> FinalizePlan | Rejection:
    """Decide whether ``stack`` becomes a capture or a build.

    A stack with exactly one hand card whose table cards split into groups
    worth that card is a capture (unless a different value was requested).
    Otherwise every staged card must split into groups worth a value the
    player still holds; the requested value is used when given, else the
    largest such value.
    """
    p = stack.owner
    cfg = state.config
    hand_cards = stack.from_source("hand")
    table_part = stack.from_source("table")
    if not hand_cards or not table_part:
        return _reject("StagingViolation", "A staging stack needs at least one hand card and one table card.")

    if len(hand_cards) == 1:
        capturing = hand_cards[0]
        if (requested is None or requested == capturing.value) and can_partition(table_part, capturing.value):
            return FinalizePlan(kind="capture", value=capturing.value, capturing_card=capturing)

    cards = stack.cards
    if requested is not None:
        if not 2 <= requested <= cfg.max_build_value:
            return _reject("InvalidBuild", f"Build value must be between 2 and {cfg.max_build_value}.")
        if not can_partition(cards, requested):
            return _reject("StagingViolation", f"The staged cards cannot be grouped into {requested}s.")
        if not _keeps_capture_card(state, p, requested):
            return _reject("InvalidBuild", f"You need a {requested} in your hand to capture this build later.")
        value = requested
    else:
        candidates = [
            v
            for v in range(cfg.max_build_value, 1, -1)
            if can_partition(cards, v) and _keeps_capture_card(state, p, v)
        ]
        if not candidates:
            return _reject(
                "StagingViolation",
                "These cards make nothing you can capture; cancel the stack to take them back.",
            )
        value = candidates[0]

    if len(cards) > cfg.max_build_cards:
        return _reject("InvalidBuild", f"A build holds at most {cfg.max_build_cards} cards.")
    if state.build_of(p) is not None:
        return _reject("InvalidBuild", "You can only have one active build at a time.")
    if any(b.value == value for b in state.builds()):
        return _reject("InvalidBuild", f"Opponent already has a build of {value}.")

    stack_idx = state.find_item(stack.id)
    consumed = [stack_idx] if stack_idx is not None else []
    for c in hand_cards:
        rej = _forcing_rejection(state, c, consumed)
        if rej:
            return rej
    return FinalizePlan(kind="build", value=value)


def validate_finalize_staging_stack(state: GameState, action: FinalizeStagingStackAction) -> Rejection | None:
    stack = _own_stack(state, action.player, action.stack_id)
    if isinstance(stack, Rejection):
        return stack
    plan = plan_finalize(state, stack, action.value)
    if isinstance(plan, Rejection):
        return plan
    return None


def validate_cancel_staging_stack(state: GameState, action: CancelStagingStackAction) -> Rejection | None:
    stack = _own_stack(state, action.player, action.stack_id)
    if isinstance(stack, Rejection):
        return stack
    return None


def validate(state: GameState, action: Action) -> Rejection | None:
    """Return why ``action`` cannot be applied to ``state``, or ``None``."""
    if state.game_over:
        return _reject("NotYourTurn", "The game is over.")
    if action.player not in (0, 1):
        return _reject("MalformedAction", f"Unknown player {action.player}.")
    if action.player != state.current_player:
        return _reject("NotYourTurn", "Not your turn.")

    if isinstance(action, TrailAction):
        return validate_trail(state, action)
    if isinstance(action, CaptureAction):
        return validate_capture(state, action)
    if isinstance(action, BuildAction):
        return validate_build(state, action)
    if isinstance(action, AddToOwnBuildAction):
        return validate_add_to_own_build(state, action)
    if isinstance(action, AddToOpponentBuildAction):
        return validate_add_to_opponent_build(state, action)
    if isinstance(action, CreateStagingStackAction):
        return validate_create_staging_stack(state, action)
    if isinstance(action, AddToStagingStackAction):
        return validate_add_to_staging_stack(state, action)
    if isinstance(action, FinalizeStagingStackAction):
        return validate_finalize_staging_stack(state, action)
    if isinstance(action, CancelStagingStackAction):
        return validate_cancel_staging_stack(state, action)
    assert_never(action)
