from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from take2.engine.session import MatchReport, SeatResult
from take2.paths import get_paths
from take2.services.content import ContentService, StatsConfig
from take2.services.stats import StatsError, StatsService, format_duration
from take2.services.telemetry import TelemetryService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def _report(rankings: list[int], seconds: int = 60) -> MatchReport:
    start = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    results = tuple(
        SeatResult(seat=seat, rank=rankings.index(seat) + 1, is_ai=seat != 0, moves_played=3)
        for seat in range(len(rankings))
    )
    return MatchReport(
        seat_results=results,
        start_timestamp=start,
        end_timestamp=start + timedelta(seconds=seconds),
        hand_size=7,
        num_players=len(rankings),
    )


def _service(path: Path, **cfg) -> StatsService:
    content = _content()
    rules = content.load_rules()
    return StatsService(path, StatsConfig(**cfg) if cfg else rules.stats, rules.badges, content=content)


def test_records_win_and_loss(tmp_path: Path) -> None:
    stats = _service(tmp_path / "stats.json")

    win = stats.record_match(_report([0, 1], seconds=65))
    loss = stats.record_match(_report([1, 2, 0], seconds=30))

    assert win.is_win and win.placement == 1
    assert not loss.is_win and loss.placement == 3
    assert stats.book.total_games == 2
    assert stats.book.total_wins == 1
    assert stats.book.total_losses == 1
    assert stats.book.longest_game_ms == 65_000

    rec = stats.book.player_stats["Player"]
    assert (rec.games, rec.wins, rec.losses) == (2, 1, 1)
    assert rec.best_time_ms == 65_000
    assert rec.win_rate == 50.0
    assert [g.is_win for g in stats.book.game_history] == [False, True]


def test_stats_persist_and_reload(tmp_path: Path) -> None:
    path = tmp_path / "stats.json"
    stats = _service(path)
    stats.report(_report([0, 1]))

    again = _service(path)
    assert again.book.to_dict() == stats.book.to_dict()
    _content().validate_stats(json.loads(path.read_text(encoding="utf-8")), context="stats")


def test_history_is_capped(tmp_path: Path) -> None:
    stats = _service(tmp_path / "stats.json", history_limit=3)
    for _ in range(5):
        stats.record_match(_report([1, 0]))
    assert len(stats.book.game_history) == 3
    assert stats.book.total_games == 5


def test_badges_follow_games_and_wins(tmp_path: Path) -> None:
    stats = _service(tmp_path / "stats.json")
    assert stats.badge().name == "Rookie"

    stats.record_match(_report([1, 0]))
    assert stats.badge().name == "Apprentice"

    stats.record_match(_report([0, 1]))
    stats.record_match(_report([1, 0]))
    assert stats.badge().name == "Challenger"
    assert stats.player_summary()["badge"] == "Challenger"


def test_global_summary_and_leaderboard(tmp_path: Path) -> None:
    stats = _service(tmp_path / "stats.json")
    for rankings in ([0, 1], [0, 1], [1, 0]):
        stats.record_match(_report(rankings))

    summary = stats.global_summary()
    assert summary["total_games"] == 3
    assert summary["win_rate"] == 66.7
    assert summary["most_wins"] == {"player": "Player", "count": 2}

    board = stats.leaderboard()
    assert [r["name"] for r in board["by_wins"]] == ["Player"]
    assert board["by_win_rate"] == []  # below the minimum game count
    assert board["by_best_time"][0]["best_time_ms"] == 60_000


def test_corrupt_stats_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "stats.json"
    path.write_text(json.dumps({"version": 1, "total_games": -1}), encoding="utf-8")
    with pytest.raises(StatsError):
        _service(path)

    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StatsError):
        _service(path)


def test_format_duration() -> None:
    assert format_duration(0) == "N/A"
    assert format_duration(None) == "N/A"
    assert format_duration(5_000) == "5s"
    assert format_duration(65_000) == "1m 5s"


def test_telemetry_sink_writes_json_lines(tmp_path: Path) -> None:
    telemetry = TelemetryService(tmp_path / "log" / "telemetry.jsonl")
    telemetry.notify("Penalty increased to 2")
    n = telemetry.log_events([{"type": "CARD_PLAYED", "player": 0, "card_ids": ["5♠"]}])

    assert n == 1
    recs = telemetry.read()
    assert [r["type"] for r in recs] == ["notification", "CARD_PLAYED"]
    assert recs[0]["payload"] == {"message": "Penalty increased to 2"}
    assert recs[1]["payload"] == {"player": 0, "card_ids": ["5♠"]}
