from __future__ import annotations

from collections.abc import Mapping
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
    TargetRef,
    TrailAction,
)
from .errors import MalformedActionError
from .state import GameState
from .types import RANKS, SUITS, Build, CaptureGroup, Card, LooseCard, PlayerScore, ScoreDetails, TableItem, TemporaryStack

ACTION_TYPES: dict[str, type] = {
    "trail": TrailAction,
    "capture": CaptureAction,
    "build": BuildAction,
    "addToOwnBuild": AddToOwnBuildAction,
    "addToOpponentBuild": AddToOpponentBuildAction,
    "createStagingStack": CreateStagingStackAction,
    "addToStagingStack": AddToStagingStackAction,
    "finalizeStagingStack": FinalizeStagingStackAction,
    "cancelStagingStack": CancelStagingStackAction,
}
_TYPE_NAMES = {cls: name for name, cls in ACTION_TYPES.items()}


def action_type(a: Action) -> str:
    return _TYPE_NAMES[type(a)]


def card_to_dict(c: Card) -> dict[str, object]:
    return {"rank": c.rank, "suit": c.suit, "value": c.value}


def _target_to_dict(t: TargetRef) -> dict[str, object]:
    if t.kind == "loose":
        assert t.card is not None
        return {"kind": "loose", "card": card_to_dict(t.card)}
    return {"kind": t.kind, "id": t.item_id}


def _payload(a: Action) -> dict[str, object]:
    if isinstance(a, TrailAction):
        return {"card": card_to_dict(a.card)}
    if isinstance(a, CaptureAction):
        out: dict[str, object] = {"card": card_to_dict(a.card), "targets": [_target_to_dict(t) for t in a.targets]}
        if a.opponent_card is not None:
            out["opponent_card"] = card_to_dict(a.opponent_card)
        return out
    if isinstance(a, BuildAction):
        return {"card": card_to_dict(a.card), "targets": [_target_to_dict(t) for t in a.targets], "value": a.value}
    if isinstance(a, AddToOwnBuildAction):
        return {"card": card_to_dict(a.card), "build_id": a.build_id, "targets": [_target_to_dict(t) for t in a.targets]}
    if isinstance(a, AddToOpponentBuildAction):
        return {"card": card_to_dict(a.card), "build_id": a.build_id}
    if isinstance(a, CreateStagingStackAction):
        return {"card": card_to_dict(a.card), "source": a.source, "target": card_to_dict(a.target)}
    if isinstance(a, AddToStagingStackAction):
        return {"stack_id": a.stack_id, "card": card_to_dict(a.card), "source": a.source}
    if isinstance(a, FinalizeStagingStackAction):
        return {"stack_id": a.stack_id, "value": a.value}
    if isinstance(a, CancelStagingStackAction):
        return {"stack_id": a.stack_id}
    assert_never(a)


def action_to_dict(a: Action) -> dict[str, object]:
    """Encode ``a`` as the ``{type, player, payload}`` action envelope."""
    return {"type": action_type(a), "player": a.player, "payload": _payload(a)}


def _require(obj: Mapping[str, object], key: str, kind: type) -> object:
    v = obj.get(key)
    # bool is an int subclass; never accept it where a number is expected
    if not isinstance(v, kind) or (kind is int and isinstance(v, bool)):
        raise MalformedActionError(f"Expected {kind.__name__} for {key}")
    return v


def _require_str(obj: Mapping[str, object], key: str) -> str:
    return _require(obj, key, str)  # type: ignore[return-value]


def _require_int(obj: Mapping[str, object], key: str) -> int:
    return _require(obj, key, int)  # type: ignore[return-value]


def _require_map(obj: Mapping[str, object], key: str) -> Mapping[str, object]:
    return _require(obj, key, dict)  # type: ignore[return-value]


def card_from_dict(raw: Mapping[str, object]) -> Card:
    rank = raw.get("rank")
    suit = raw.get("suit")
    if rank not in RANKS or suit not in SUITS:
        raise MalformedActionError(f"Not a card: {dict(raw)!r}")
    return Card(rank=rank, suit=suit)  # type: ignore[arg-type]


def _target_from_dict(raw: object) -> TargetRef:
    if not isinstance(raw, dict):
        raise MalformedActionError("Targets must be objects")
    kind = raw.get("kind")
    if kind == "loose":
        return TargetRef.loose(card_from_dict(_require_map(raw, "card")))
    if kind == "build":
        return TargetRef.build(_require_str(raw, "id"))
    if kind == "stack":
        return TargetRef.stack(_require_str(raw, "id"))
    raise MalformedActionError(f"Unknown target kind: {kind!r}")


def _targets(payload: Mapping[str, object], *, required: bool) -> tuple[TargetRef, ...]:
    raw = payload.get("targets")
    if raw is None and not required:
        return ()
    if not isinstance(raw, list):
        raise MalformedActionError("Expected list for targets")
    return tuple(_target_from_dict(t) for t in raw)


def _source(payload: Mapping[str, object]) -> str:
    source = _require_str(payload, "source")
    if source not in ("hand", "table"):
        raise MalformedActionError(f"Unknown source: {source!r}")
    return source


def action_from_dict(raw: Mapping[str, object]) -> Action:
    """Decode an inbound action envelope, raising :class:`MalformedActionError`."""
    if not isinstance(raw, Mapping):
        raise MalformedActionError("Action envelope must be an object")
    t = _require_str(raw, "type")
    player = _require_int(raw, "player")
    payload = _require_map(raw, "payload")

    if t == "trail":
        return TrailAction(player=player, card=card_from_dict(_require_map(payload, "card")))
    if t == "capture":
        opp = payload.get("opponent_card")
        if opp is not None and not isinstance(opp, dict):
            raise MalformedActionError("Expected object for opponent_card")
        return CaptureAction(
            player=player,
            card=card_from_dict(_require_map(payload, "card")),
            targets=_targets(payload, required=True),
            opponent_card=card_from_dict(opp) if opp is not None else None,
        )
    if t == "build":
        return BuildAction(
            player=player,
            card=card_from_dict(_require_map(payload, "card")),
            targets=_targets(payload, required=True),
            value=_require_int(payload, "value"),
        )
    if t == "addToOwnBuild":
        return AddToOwnBuildAction(
            player=player,
            card=card_from_dict(_require_map(payload, "card")),
            build_id=_require_str(payload, "build_id"),
            targets=_targets(payload, required=False),
        )
    if t == "addToOpponentBuild":
        return AddToOpponentBuildAction(
            player=player,
            card=card_from_dict(_require_map(payload, "card")),
            build_id=_require_str(payload, "build_id"),
        )
    if t == "createStagingStack":
        return CreateStagingStackAction(
            player=player,
            card=card_from_dict(_require_map(payload, "card")),
            source=_source(payload),  # type: ignore[arg-type]
            target=card_from_dict(_require_map(payload, "target")),
        )
    if t == "addToStagingStack":
        return AddToStagingStackAction(
            player=player,
            stack_id=_require_str(payload, "stack_id"),
            card=card_from_dict(_require_map(payload, "card")),
            source=_source(payload),  # type: ignore[arg-type]
        )
    if t == "finalizeStagingStack":
        value = payload.get("value")
        if value is not None:
            value = _require_int(payload, "value")
        return FinalizeStagingStackAction(player=player, stack_id=_require_str(payload, "stack_id"), value=value)
    if t == "cancelStagingStack":
        return CancelStagingStackAction(player=player, stack_id=_require_str(payload, "stack_id"))
    raise MalformedActionError(f"Unknown action type: {t!r}")


def _item_to_dict(item: TableItem) -> dict[str, object]:
    if isinstance(item, LooseCard):
        return {"type": "loose", **card_to_dict(item.card)}
    if isinstance(item, Build):
        return {
            "type": "build",
            "id": item.id,
            "cards": [card_to_dict(c) for c in item.cards],
            "value": item.value,
            "owner": item.owner,
            "extendable": item.extendable,
        }
    if isinstance(item, TemporaryStack):
        return {
            "type": "temporary_stack",
            "id": item.id,
            "owner": item.owner,
            "cards": [{**card_to_dict(s.card), "source": s.source} for s in item.staged],
        }
    assert_never(item)


def _group_to_list(g: CaptureGroup) -> list[dict[str, object]]:
    return [card_to_dict(c) for c in g.cards]


def _player_score_to_dict(s: PlayerScore) -> dict[str, object]:
    return {
        "cards": s.cards,
        "spades": s.spades,
        "aces": s.aces,
        "most_cards": s.most_cards,
        "most_spades": s.most_spades,
        "ace_points": s.ace_points,
        "big_casino": s.big_casino,
        "little_casino": s.little_casino,
        "total": s.total,
    }


def score_details_to_dict(d: ScoreDetails | None) -> list[dict[str, object]] | None:
    if d is None:
        return None
    return [_player_score_to_dict(s) for s in d.players]


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the game, both hands included."""
    return {
        "seed": state.seed,
        "deck": [card_to_dict(c) for c in state.deck],
        "hands": [[card_to_dict(c) for c in hand] for hand in state.hands],
        "table": [_item_to_dict(item) for item in state.table],
        "captures": [[_group_to_list(g) for g in groups] for groups in state.captures],
        "current_player": state.current_player,
        "round": state.round,
        "scores": list(state.scores),
        "game_over": state.game_over,
        "winner": state.winner,
        "last_capturer": state.last_capturer,
        "score_details": score_details_to_dict(state.score_details),
    }
