from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from take2.engine.session import GameSession
from take2.paths import get_paths
from take2.services.content import ContentService
from take2.services.stats import StatsService, format_duration
from take2.services.telemetry import TelemetryService


def _seat_name(seat: int) -> str:
    return "Seat 0 (tracked)" if seat == 0 else f"CPU {seat}"


def run_match(
    content: ContentService,
    num_players: int,
    hand_size: int | None,
    seed: int | None,
    stats: StatsService | None = None,
    telemetry: TelemetryService | None = None,
) -> GameSession:
    """Play one all-computer match to completion."""
    rules = content.load_rules()
    cfg = rules.match_config(num_players, hand_size)
    session = GameSession.new_game(
        cfg.num_players,
        cfg.hand_size,
        seed=seed,
        ai_seats=range(cfg.num_players),
        reporter=stats,
        notifier=telemetry,
        spec=rules.ai,
    )
    session.run_ai_until_human()
    if telemetry is not None:
        telemetry.log_events(session.state.event_log)
    return session


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="take2-sim", description="Play headless computer-only Take 2 matches.")
    parser.add_argument("--players", type=int, default=4)
    parser.add_argument("--hand-size", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--stats", type=Path, default=None, help="statistics file to update (default: userdata/stats.json)")
    parser.add_argument("--telemetry", type=Path, default=None, help="JSON-lines event log (default: userdata/telemetry.jsonl)")
    parser.add_argument("--no-record", action="store_true", help="skip stats and telemetry files")
    args = parser.parse_args(argv)

    paths = get_paths()
    content = ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)
    rules = content.load_rules()
    stats = None
    telemetry = None
    if not args.no_record:
        stats = StatsService(args.stats or paths.stats_path, rules.stats, rules.badges, content=content)
        telemetry = TelemetryService(args.telemetry or paths.telemetry_path)

    for i in range(args.games):
        seed = None if args.seed is None else args.seed + i
        session = run_match(content, args.players, args.hand_size, seed, stats, telemetry)
        if not session.is_game_over():
            print(f"Game {i + 1} (seed {session.state.seed}): abandoned, no seat can move")
            continue
        order = ", ".join(_seat_name(s) for s in session.get_rankings())
        print(f"Game {i + 1} (seed {session.state.seed}): {order}")

    if stats is not None:
        summary = stats.player_summary()
        longest = format_duration(stats.book.longest_game_ms)
        print(
            f"Tracked seat: {summary['wins']}/{summary['games']} wins, "
            f"badge {summary['badge']}, longest game {longest}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
