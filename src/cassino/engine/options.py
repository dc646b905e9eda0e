"""What can this card do here?

Given a hand card and where it was dropped (a loose card, a build, a staging
stack, or the open table), list every legal action with a label for the
player to choose from. Captures come first, then merges, builds, build
extensions and staging; a trail is only offered on the open table.
"""

from __future__ import annotations

from dataclasses import dataclass

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
from .serialize import action_type
from .state import GameState
from .types import Build, Card, LooseCard, TemporaryStack
from .validate import capture_value, find_target, opponent_top_card, validate

PRIORITY = {
    "capture": 1,
    "merge": 2,
    "build": 3,
    "addToOwnBuild": 4,
    "addToOpponentBuild": 5,
    "createStagingStack": 6,
    "addToStagingStack": 6,
    "finalizeStagingStack": 6,
    "cancelStagingStack": 8,
    "trail": 7,
}


@dataclass(frozen=True)
class ActionOption:
    label: str
    action: Action
    priority: int

    @property
    def type(self) -> str:
        return action_type(self.action)


@dataclass(frozen=True)
class OptionSet:
    options: list[ActionOption]
    error: str | None = None

    @property
    def requires_choice(self) -> bool:
        return len(self.options) > 1


def _option(label: str, action: Action, key: str | None = None) -> ActionOption:
    return ActionOption(label=label, action=action, priority=PRIORITY[key or action_type(action)])


def _captures_for(state: GameState, player: int, card: Card) -> list[ActionOption]:
    out: list[ActionOption] = []
    for item in state.table:
        if capture_value(item) != card.value:
            continue
        if isinstance(item, LooseCard):
            out.append(_option(f"Capture {item.card}", CaptureAction(player, card, (TargetRef.loose(item.card),))))
        elif isinstance(item, Build):
            out.append(_option(f"Capture Build ({item.value})", CaptureAction(player, card, (TargetRef.build(item.id),))))
    top = opponent_top_card(state, player)
    if top is not None and top.value == card.value and state.config.allow_opponent_card_capture:
        for opt in list(out):
            a = opt.action
            assert isinstance(a, CaptureAction)
            out.append(_option(f"{opt.label} + {top} from opponent", CaptureAction(player, card, a.targets, top)))
    return out


def _on_loose(state: GameState, player: int, card: Card, target: LooseCard) -> list[ActionOption]:
    out: list[ActionOption] = []
    if target.card.value == card.value:
        out.append(_option(f"Capture {target.card}", CaptureAction(player, card, (TargetRef.loose(target.card),))))
    total = card.value + target.card.value
    out.append(
        _option(
            f"Build {total} ({card.value}+{target.card.value})",
            BuildAction(player, card, (TargetRef.loose(target.card),), total),
        )
    )
    out.append(_option(f"Stage with {target.card}", CreateStagingStackAction(player, card, "hand", target.card)))
    return out


def _on_build(state: GameState, player: int, card: Card, target: Build) -> list[ActionOption]:
    out: list[ActionOption] = []
    if target.value == card.value:
        out.append(_option(f"Capture Build ({target.value})", CaptureAction(player, card, (TargetRef.build(target.id),))))
    new_value = target.value + card.value
    if target.owner == player:
        out.append(_option(f"Add to Build ({new_value})", AddToOwnBuildAction(player, card, target.id)))
    else:
        own = state.build_of(player)
        if own is not None and own.value == new_value:
            out.append(_option(f"Merge into your build of {new_value}", AddToOpponentBuildAction(player, card, target.id), "merge"))
        else:
            out.append(_option(f"Extend to {new_value}", AddToOpponentBuildAction(player, card, target.id)))
    return out


def _on_stack(state: GameState, player: int, card: Card, target: TemporaryStack) -> list[ActionOption]:
    return [
        _option(f"Capture staged cards ({card.value})", CaptureAction(player, card, (TargetRef.stack(target.id),))),
        _option("Add to Temp Stack", AddToStagingStackAction(player, target.id, card, "hand")),
    ]


def determine_options(state: GameState, player: int, card: Card, target: TargetRef | None = None) -> OptionSet:
    """Legal actions for dropping hand ``card`` on ``target`` (``None`` = open table)."""
    candidates: list[ActionOption]
    if target is None:
        trail = _option("Trail Card", TrailAction(player, card))
        candidates = [trail] if validate(state, trail.action) is None else _captures_for(state, player, card)
    else:
        idx = find_target(state, target)
        if idx is None:
            return OptionSet(options=[], error="Target card not found")
        item = state.table[idx]
        if isinstance(item, LooseCard):
            candidates = _on_loose(state, player, card, item)
        elif isinstance(item, Build):
            candidates = _on_build(state, player, card, item)
        else:
            candidates = _on_stack(state, player, card, item)

    legal: list[ActionOption] = []
    first_error: str | None = None
    for opt in candidates:
        rej = validate(state, opt.action)
        if rej is None:
            legal.append(opt)
        elif first_error is None:
            first_error = rej.message
    legal.sort(key=lambda o: o.priority)
    if not legal:
        return OptionSet(options=[], error=first_error or "No valid actions available")
    return OptionSet(options=legal)


def stack_options(state: GameState, player: int) -> list[ActionOption]:
    """Finalize/cancel choices for the player's open staging stack, if any."""
    stack = state.stack_of(player)
    if stack is None:
        return []
    out: list[ActionOption] = []
    finalize = FinalizeStagingStackAction(player, stack.id)
    if validate(state, finalize) is None:
        out.append(_option("Accept", finalize))
    out.append(_option("Cancel", CancelStagingStackAction(player, stack.id)))
    return out


def legal_actions(state: GameState, player: int, *, staging: bool = True) -> list[ActionOption]:
    """Every distinct legal action for ``player`` right now."""
    if state.game_over or state.current_player != player:
        return []
    seen: set[Action] = set()
    out: list[ActionOption] = []

    def add(opts: list[ActionOption]) -> None:
        for o in opts:
            if o.action in seen:
                continue
            if not staging and isinstance(o.action, (CreateStagingStackAction, AddToStagingStackAction)):
                continue
            seen.add(o.action)
            out.append(o)

    add(stack_options(state, player))
    targets: list[TargetRef | None] = [None]
    for item in state.table:
        if isinstance(item, LooseCard):
            targets.append(TargetRef.loose(item.card))
        elif isinstance(item, Build):
            targets.append(TargetRef.build(item.id))
        else:
            targets.append(TargetRef.stack(item.id))
    for card in state.hands[player]:
        for t in targets:
            add(determine_options(state, player, card, t).options)
    out.sort(key=lambda o: o.priority)
    return out
