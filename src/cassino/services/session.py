from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from cassino.engine.actions import Action
from cassino.engine.errors import MalformedActionError, Rejection
from cassino.engine.match import apply, new_game
from cassino.engine.serialize import action_from_dict, action_type, snapshot
from cassino.engine.state import GameState, RulesConfig
from cassino.services.content import ContentService
from cassino.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)

Event = dict[str, object]


class SessionError(RuntimeError):
    pass


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    events: list[Event] = field(default_factory=list)
    error: Rejection | None = None

    def to_dict(self) -> dict[str, object]:
        if self.error is not None:
            return {"ok": False, **self.error.to_dict()}
        return {"ok": True, "events": list(self.events)}


def redact(snap: Mapping[str, object], viewer: int) -> dict[str, object]:
    """Hide the opponent's hand and the deck order from ``viewer``."""
    out = dict(snap)
    hands = snap["hands"]
    deck = snap["deck"]
    assert isinstance(hands, list) and isinstance(deck, list)
    out["hand_counts"] = [len(h) for h in hands]
    out["hands"] = [h if i == viewer else [] for i, h in enumerate(hands)]
    out["deck"] = []
    out["deck_count"] = len(deck)
    out["viewer"] = viewer
    return out


class GameSession:
    """Single-writer handle around one game.

    The engine assumes each action is validated against the latest state;
    ``submit`` holds a lock so two players cannot race past the turn check.
    """

    def __init__(
        self,
        session_id: str,
        *,
        config: RulesConfig | None = None,
        content: ContentService | None = None,
        telemetry: TelemetryService | None = None,
    ) -> None:
        self.session_id = session_id
        self._config = config
        self._content = content
        self._telemetry = telemetry
        self._lock = threading.Lock()
        self._players: tuple[str, ...] = ()
        self._connected: list[bool] = [False, False]
        self._state: GameState | None = None

    @property
    def players(self) -> tuple[str, ...]:
        return self._players

    @property
    def state(self) -> GameState:
        if self._state is None:
            raise SessionError(f"Session {self.session_id} has not started.")
        return self._state

    def start(self, players: Sequence[str], seed: int) -> GameState:
        if len(players) != 2:
            raise SessionError(f"A game needs exactly 2 players, got {len(players)}.")
        with self._lock:
            if self._state is not None:
                raise SessionError(f"Session {self.session_id} already started.")
            config = self._config
            if config is None and self._content is not None:
                config = self._content.load_rules()
            self._players = tuple(players)
            self._connected = [True, True]
            self._state = new_game(seed=seed, config=config)
        logger.info("session %s started: %s vs %s (seed=%d)", self.session_id, players[0], players[1], seed)
        self._record([{"type": "GAME_STARTED", "players": list(players), "seed": seed}])
        return self._state

    def submit(self, envelope: Mapping[str, object]) -> SubmitResult:
        """Decode an inbound envelope and apply it."""
        try:
            if self._content is not None:
                self._content.validate_action(envelope)
            action = action_from_dict(envelope)
        except MalformedActionError as e:
            rejection = e.to_rejection()
            logger.warning("session %s: malformed action rejected: %s", self.session_id, e)
            self._record([{"type": "ACTION_REJECTED", **rejection.to_dict()}])
            return SubmitResult(ok=False, error=rejection)
        return self.submit_action(action)

    def submit_action(self, action: Action) -> SubmitResult:
        with self._lock:
            result = apply(self.state, action)
            if result.ok:
                self._state = result.state

        kind = action_type(action)
        if result.error is not None:
            logger.info(
                "session %s: player %d %s rejected (%s): %s",
                self.session_id,
                action.player,
                kind,
                result.error.kind,
                result.error.message,
            )
            self._record([{"type": "ACTION_REJECTED", "player": action.player, "action": kind, **result.error.to_dict()}])
            return SubmitResult(ok=False, error=result.error)

        logger.debug("session %s: player %d %s accepted", self.session_id, action.player, kind)
        if result.state.game_over:
            logger.info("session %s finished: scores=%s winner=%s", self.session_id, result.state.scores, result.state.winner)
        self._record(result.events)
        return SubmitResult(ok=True, events=result.events)

    def view(self, player: int) -> dict[str, object]:
        """Snapshot as ``player`` may see it."""
        self._check_player(player)
        return redact(snapshot(self.state), player)

    def disconnect(self, player: int) -> None:
        # Transport concern only; the game itself is untouched.
        self._check_player(player)
        self._connected[player] = False
        logger.info("session %s: player %d disconnected", self.session_id, player)
        self._record([{"type": "PLAYER_DISCONNECTED", "player": player}])

    def reconnect(self, player: int) -> dict[str, object]:
        self._check_player(player)
        self._connected[player] = True
        logger.info("session %s: player %d reconnected", self.session_id, player)
        return self.view(player)

    def is_connected(self, player: int) -> bool:
        self._check_player(player)
        return self._connected[player]

    def _check_player(self, player: int) -> None:
        if player not in (0, 1):
            raise SessionError(f"Unknown player {player}.")

    def _record(self, events: Sequence[Event]) -> None:
        if self._telemetry is not None:
            self._telemetry.log_many(events)
