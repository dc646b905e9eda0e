"""Deterministic, headless rules engine for two-player Cassino.

IMPORTANT: This package must never do I/O, log, or import the services layer.
"""

from .actions import (
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
from .errors import MalformedActionError, Rejection
from .match import StepResult, apply, new_game, replay
from .state import GameState, RulesConfig, check_invariants
from .types import Build, CaptureGroup, Card, LooseCard, ScoreDetails, TemporaryStack

__all__ = [
    "AddToOpponentBuildAction",
    "AddToOwnBuildAction",
    "AddToStagingStackAction",
    "Build",
    "BuildAction",
    "CancelStagingStackAction",
    "CaptureAction",
    "CaptureGroup",
    "Card",
    "CreateStagingStackAction",
    "FinalizeStagingStackAction",
    "GameState",
    "LooseCard",
    "MalformedActionError",
    "Rejection",
    "RulesConfig",
    "ScoreDetails",
    "StepResult",
    "TargetRef",
    "TemporaryStack",
    "TrailAction",
    "apply",
    "check_invariants",
    "new_game",
    "replay",
]
