from __future__ import annotations

from pathlib import Path

import pytest

from cassino.engine.options import legal_actions
from cassino.engine.serialize import action_to_dict, card_to_dict
from cassino.paths import get_paths
from cassino.services.content import ContentService
from cassino.services.session import GameSession, SessionError
from cassino.services.telemetry import TelemetryService


def _session(tmp_path: Path) -> GameSession:
    paths = get_paths()
    return GameSession(
        "s1",
        content=ContentService(paths.data_dir, paths.schema_dir),
        telemetry=TelemetryService(tmp_path / "telemetry.jsonl", session_id="s1"),
    )


def test_game_needs_exactly_two_players(tmp_path: Path) -> None:
    session = _session(tmp_path)
    with pytest.raises(SessionError):
        session.start(["alice"], seed=1)
    with pytest.raises(SessionError):
        session.start(["a", "b", "c"], seed=1)
    with pytest.raises(SessionError):
        _ = session.state


def test_accepted_action_advances_the_game(tmp_path: Path) -> None:
    session = _session(tmp_path)
    state = session.start(["alice", "bob"], seed=11)
    option = legal_actions(state, 0)[0]

    result = session.submit(action_to_dict(option.action))
    assert result.ok
    assert result.to_dict()["ok"] is True
    assert session.state.current_player == 1
    assert len(session.state.hands[0]) == 9


def test_rejections_carry_a_kind_and_leave_state_alone(tmp_path: Path) -> None:
    session = _session(tmp_path)
    state = session.start(["alice", "bob"], seed=11)

    out_of_turn = {"type": "trail", "player": 1, "payload": {"card": card_to_dict(state.hands[1][0])}}
    result = session.submit(out_of_turn)
    assert not result.ok
    assert result.to_dict()["errorKind"] == "NotYourTurn"
    assert session.state is state

    garbage = {"type": "trail", "player": 0, "payload": {"card": {"rank": "Q", "suit": "♠"}}}
    result = session.submit(garbage)
    assert result.error is not None
    assert result.error.kind == "MalformedAction"
    assert session.state is state


def test_view_hides_opponent_hand_and_deck(tmp_path: Path) -> None:
    session = _session(tmp_path)
    state = session.start(["alice", "bob"], seed=5)

    view = session.view(0)
    assert view["hands"][0] == [card_to_dict(c) for c in state.hands[0]]
    assert view["hands"][1] == []
    assert view["hand_counts"] == [10, 10]
    assert view["deck"] == []
    assert view["deck_count"] == 20
    assert view["viewer"] == 0

    with pytest.raises(SessionError):
        session.view(2)


def test_reconnect_returns_current_view(tmp_path: Path) -> None:
    session = _session(tmp_path)
    session.start(["alice", "bob"], seed=5)
    session.disconnect(1)
    assert not session.is_connected(1)
    view = session.reconnect(1)
    assert session.is_connected(1)
    assert view["hands"][0] == []
    assert len(view["hands"][1]) == 10


def test_telemetry_records_events_in_order(tmp_path: Path) -> None:
    session = _session(tmp_path)
    state = session.start(["alice", "bob"], seed=11)
    session.submit(action_to_dict(legal_actions(state, 0)[0].action))
    session.submit({"type": "trail", "player": 0})

    records = TelemetryService(tmp_path / "telemetry.jsonl", session_id="s1").read()
    assert [r["seq"] for r in records] == list(range(1, len(records) + 1))
    types = [r["type"] for r in records]
    assert types[0] == "GAME_STARTED"
    assert types[-1] == "ACTION_REJECTED"
    assert TelemetryService(tmp_path / "telemetry.jsonl", session_id="other").read() == []


def test_connection_calls_reject_unknown_players(tmp_path: Path) -> None:
    session = _session(tmp_path)
    session.start(["alice", "bob"], seed=5)
    for player in (-1, 2):
        with pytest.raises(SessionError):
            session.disconnect(player)
        with pytest.raises(SessionError):
            session.reconnect(player)
        with pytest.raises(SessionError):
            session.is_connected(player)
    assert session.is_connected(0)
    assert session.is_connected(1)
