from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from cassino.engine.ai import AISpec, ai_take_turn
from cassino.engine.match import new_game
from cassino.engine.serialize import score_details_to_dict
from cassino.engine.state import GameState, RulesConfig, check_invariants
from cassino.paths import get_paths
from cassino.services.content import ContentError, ContentService
from cassino.services.telemetry import TelemetryService

logger = logging.getLogger("cassino")


def play_bot_game(
    seed: int,
    config: RulesConfig | None = None,
    specs: tuple[AISpec, AISpec] = (AISpec(), AISpec()),
    telemetry: TelemetryService | None = None,
) -> GameState:
    """Play one full game between two bots. Deterministic for a given seed."""
    state = new_game(seed=seed, config=config)
    rng = random.Random(seed)
    while not state.game_over:
        player = state.current_player
        results = ai_take_turn(state, player, rng, specs[player])
        if not results:
            raise RuntimeError(f"Bot {player} found no legal action (seed={seed}, round={state.round})")
        for r in results:
            if telemetry is not None:
                telemetry.log_many(r.events)
        state = results[-1].state
        problems = check_invariants(state)
        if problems:
            raise RuntimeError(f"Invariant broken (seed={seed}): {problems}")
    return state


def _load_config(content: ContentService, rules: Path | None) -> RulesConfig:
    return content.load_rules(rules)


def _cmd_simulate(args: argparse.Namespace, content: ContentService) -> int:
    config = _load_config(content, args.rules)
    telemetry = TelemetryService(args.telemetry, session_id=f"sim-{args.seed}") if args.telemetry else None
    specs = (AISpec(difficulty=args.difficulty), AISpec(difficulty=args.difficulty))
    wins = [0, 0, 0]
    for i in range(args.games):
        seed = args.seed + i
        state = play_bot_game(seed, config, specs, telemetry)
        wins[state.winner if state.winner is not None else 2] += 1
        logger.info("game %d (seed=%d): scores=%s winner=%s", i + 1, seed, state.scores, state.winner)
        print(
            json.dumps(
                {
                    "seed": seed,
                    "scores": list(state.scores),
                    "winner": state.winner,
                    "score_details": score_details_to_dict(state.score_details),
                },
                ensure_ascii=False,
            )
        )
    logger.info("summary: player0=%d player1=%d draws=%d", *wins)
    return 0


def _cmd_validate(args: argparse.Namespace, content: ContentService) -> int:
    config = _load_config(content, args.rules)
    content.validate_all()
    print(f"rules OK: {config}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="cassino")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="play bot-vs-bot games and print the scores")
    sim.add_argument("--seed", type=int, default=0)
    sim.add_argument("--games", type=int, default=1)
    sim.add_argument("--difficulty", type=int, default=2, choices=(0, 1, 2))
    sim.add_argument("--rules", type=Path, default=None)
    sim.add_argument("--telemetry", type=Path, default=None)

    val = sub.add_parser("validate", help="validate the rules file")
    val.add_argument("--rules", type=Path, default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    paths = get_paths()
    content = ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)
    try:
        if args.command == "simulate":
            return _cmd_simulate(args, content)
        return _cmd_validate(args, content)
    except ContentError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
