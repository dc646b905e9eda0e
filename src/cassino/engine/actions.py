from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .types import Card, Source

TargetKind = Literal["loose", "build", "stack"]


@dataclass(frozen=True)
class TargetRef:
    """Points at one table item: a loose card by its card, builds and stacks by id."""

    kind: TargetKind
    card: Card | None = None
    item_id: str | None = None

    @staticmethod
    def loose(card: Card) -> "TargetRef":
        return TargetRef(kind="loose", card=card, item_id=None)

    @staticmethod
    def build(build_id: str) -> "TargetRef":
        return TargetRef(kind="build", card=None, item_id=build_id)

    @staticmethod
    def stack(stack_id: str) -> "TargetRef":
        return TargetRef(kind="stack", card=None, item_id=stack_id)


@dataclass(frozen=True)
class TrailAction:
    player: int
    card: Card


@dataclass(frozen=True)
class CaptureAction:
    player: int
    card: Card
    targets: tuple[TargetRef, ...]
    opponent_card: Card | None = None


@dataclass(frozen=True)
class BuildAction:
    player: int
    card: Card
    targets: tuple[TargetRef, ...]
    value: int


@dataclass(frozen=True)
class AddToOwnBuildAction:
    player: int
    card: Card
    build_id: str
    targets: tuple[TargetRef, ...] = ()


@dataclass(frozen=True)
class AddToOpponentBuildAction:
    player: int
    card: Card
    build_id: str


@dataclass(frozen=True)
class CreateStagingStackAction:
    player: int
    card: Card
    source: Source
    target: Card


@dataclass(frozen=True)
class AddToStagingStackAction:
    player: int
    stack_id: str
    card: Card
    source: Source


@dataclass(frozen=True)
class FinalizeStagingStackAction:
    player: int
    stack_id: str
    value: int | None = None


@dataclass(frozen=True)
class CancelStagingStackAction:
    player: int
    stack_id: str


Action = (
    TrailAction
    | CaptureAction
    | BuildAction
    | AddToOwnBuildAction
    | AddToOpponentBuildAction
    | CreateStagingStackAction
    | AddToStagingStackAction
    | FinalizeStagingStackAction
    | CancelStagingStackAction
)

StagingAction = (
    CreateStagingStackAction
    | AddToStagingStackAction
    | FinalizeStagingStackAction
    | CancelStagingStackAction
)

# Actions after which the turn passes to the opponent.
TURN_ENDING = (
    TrailAction,
    CaptureAction,
    BuildAction,
    AddToOwnBuildAction,
    AddToOpponentBuildAction,
    FinalizeStagingStackAction,
)
