from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Sequence

from take2.engine.session import MatchReport
from take2.services.content import Badge, ContentError, ContentService, StatsConfig


class StatsError(RuntimeError):
    pass


@dataclass
class PlayerRecord:
    games: int = 0
    wins: int = 0
    losses: int = 0
    best_time_ms: int | None = None

    @property
    def win_rate(self) -> float:
        if self.games <= 0:
            return 0.0
        return round(self.wins / self.games * 100, 1)

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "PlayerRecord":
        best = d.get("best_time_ms")
        return PlayerRecord(
            games=int(d.get("games", 0) or 0),
            wins=int(d.get("wins", 0) or 0),
            losses=int(d.get("losses", 0) or 0),
            best_time_ms=int(best) if isinstance(best, int) else None,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "games": self.games,
            "wins": self.wins,
            "losses": self.losses,
            "best_time_ms": self.best_time_ms,
        }


@dataclass
class GameRecord:
    player_name: str
    is_win: bool
    duration_ms: int
    placement: int | None
    num_players: int
    hand_size: int
    timestamp: str

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "GameRecord":
        placement = d.get("placement")
        return GameRecord(
            player_name=str(d.get("player_name", "")),
            is_win=bool(d.get("is_win", False)),
            duration_ms=int(d.get("duration_ms", 0) or 0),
            placement=int(placement) if isinstance(placement, int) else None,
            num_players=int(d.get("num_players", 2) or 2),
            hand_size=int(d.get("hand_size", 1) or 1),
            timestamp=str(d.get("timestamp", "")),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "player_name": self.player_name,
            "is_win": self.is_win,
            "duration_ms": self.duration_ms,
            "placement": self.placement,
            "num_players": self.num_players,
            "hand_size": self.hand_size,
            "timestamp": self.timestamp,
        }


@dataclass
class StatsBook:
    version: int = 1
    total_games: int = 0
    total_wins: int = 0
    total_losses: int = 0
    longest_game_ms: int = 0
    player_stats: dict[str, PlayerRecord] = field(default_factory=dict)
    game_history: list[GameRecord] = field(default_factory=list)
    last_updated: str | None = None

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "StatsBook":
        players: dict[str, PlayerRecord] = {}
        raw_players = d.get("player_stats", {})
        if isinstance(raw_players, dict):
            for name, rec in raw_players.items():
                if isinstance(name, str) and isinstance(rec, dict):
                    players[name] = PlayerRecord.from_dict(rec)
        history: list[GameRecord] = []
        raw_history = d.get("game_history", [])
        if isinstance(raw_history, list):
            for g in raw_history:
                if isinstance(g, dict):
                    history.append(GameRecord.from_dict(g))
        updated = d.get("last_updated")
        return StatsBook(
            version=int(d.get("version", 1) or 1),
            total_games=int(d.get("total_games", 0) or 0),
            total_wins=int(d.get("total_wins", 0) or 0),
            total_losses=int(d.get("total_losses", 0) or 0),
            longest_game_ms=int(d.get("longest_game_ms", 0) or 0),
            player_stats=players,
            game_history=history,
            last_updated=updated if isinstance(updated, str) else None,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "total_games": self.total_games,
            "total_wins": self.total_wins,
            "total_losses": self.total_losses,
            "longest_game_ms": self.longest_game_ms,
            "player_stats": {k: v.to_dict() for k, v in self.player_stats.items()},
            "game_history": [g.to_dict() for g in self.game_history],
            "last_updated": self.last_updated,
        }


def format_duration(ms: int | None) -> str:
    if not ms:
        return "N/A"
    seconds = ms // 1000
    minutes, rem = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {rem}s"
    return f"{rem}s"


def badge_for(record: PlayerRecord | None, badges: Sequence[Badge]) -> Badge:
    """Highest badge the record qualifies for; badges are ordered easiest first."""
    if not badges:
        raise StatsError("No badge levels configured.")
    current = badges[0]
    if record is None:
        return current
    for badge in badges:
        if record.games >= badge.min_games and record.wins >= badge.min_wins:
            current = badge
        else:
            break
    return current


class StatsService:
    """Match reporter that keeps running statistics for one tracked seat."""

    def __init__(
        self,
        path: Path,
        config: StatsConfig,
        badges: Sequence[Badge],
        *,
        player_name: str = "Player",
        tracked_seat: int = 0,
        content: ContentService | None = None,
    ) -> None:
        self._path = path
        self.config = config
        self.badges = tuple(badges)
        self.player_name = player_name
        self.tracked_seat = tracked_seat
        self._content = content
        self.book = self._load_or_create()

    def _load_or_create(self) -> StatsBook:
        if not self._path.exists():
            return StatsBook()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StatsError(f"Invalid JSON in {self._path}: {e}") from e
        if self._content is not None:
            try:
                self._content.validate_stats(raw, context=str(self._path))
            except ContentError as e:
                raise StatsError(str(e)) from e
        if not isinstance(raw, dict):
            raise StatsError(f"{self._path} must hold an object")
        return StatsBook.from_dict(raw)

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self.book.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")

    # -------- Reporter --------
    def report(self, report: MatchReport) -> None:
        self.record_match(report)

    def record_match(self, report: MatchReport) -> GameRecord:
        rankings = report.rankings
        is_win = bool(rankings) and rankings[0] == self.tracked_seat
        placement = rankings.index(self.tracked_seat) + 1 if self.tracked_seat in rankings else None
        duration = max(0, report.duration_ms)

        book = self.book
        book.total_games += 1
        book.total_wins += 1 if is_win else 0
        book.total_losses += 0 if is_win else 1
        book.longest_game_ms = max(book.longest_game_ms, duration)
        book.last_updated = datetime.now(tz=timezone.utc).isoformat()

        rec = book.player_stats.setdefault(self.player_name, PlayerRecord())
        rec.games += 1
        rec.wins += 1 if is_win else 0
        rec.losses += 0 if is_win else 1
        if is_win:
            rec.best_time_ms = duration if rec.best_time_ms is None else min(rec.best_time_ms, duration)

        game = GameRecord(
            player_name=self.player_name,
            is_win=is_win,
            duration_ms=duration,
            placement=placement,
            num_players=report.num_players,
            hand_size=report.hand_size,
            timestamp=report.end_timestamp.isoformat(),
        )
        book.game_history.insert(0, game)
        del book.game_history[self.config.history_limit :]
        self.save()
        return game

    # -------- Queries --------
    def badge(self, player_name: str | None = None) -> Badge:
        return badge_for(self.book.player_stats.get(player_name or self.player_name), self.badges)

    def player_summary(self, player_name: str | None = None) -> dict[str, object]:
        name = player_name or self.player_name
        rec = self.book.player_stats.get(name) or PlayerRecord()
        return {
            "name": name,
            "games": rec.games,
            "wins": rec.wins,
            "losses": rec.losses,
            "best_time_ms": rec.best_time_ms,
            "win_rate": rec.win_rate,
            "badge": self.badge(name).name,
        }

    def global_summary(self) -> dict[str, object]:
        book = self.book
        most_wins: tuple[str | None, int] = (None, 0)
        most_losses: tuple[str | None, int] = (None, 0)
        for name, rec in book.player_stats.items():
            if rec.wins > most_wins[1]:
                most_wins = (name, rec.wins)
            if rec.losses > most_losses[1]:
                most_losses = (name, rec.losses)
        win_rate = round(book.total_wins / book.total_games * 100, 1) if book.total_games else 0.0
        return {
            "total_games": book.total_games,
            "total_wins": book.total_wins,
            "total_losses": book.total_losses,
            "longest_game_ms": book.longest_game_ms,
            "most_wins": {"player": most_wins[0], "count": most_wins[1]},
            "most_losses": {"player": most_losses[0], "count": most_losses[1]},
            "win_rate": win_rate,
        }

    def leaderboard(self) -> dict[str, list[dict[str, object]]]:
        rows = [self.player_summary(name) for name in self.book.player_stats]
        n = self.config.leaderboard_size
        timed = [r for r in rows if r["best_time_ms"] is not None]
        qualified = [r for r in rows if int(r["games"]) >= self.config.win_rate_min_games]  # type: ignore[call-overload]
        return {
            "by_wins": sorted(rows, key=lambda r: -int(r["wins"]))[:n],  # type: ignore[call-overload]
            "by_games": sorted(rows, key=lambda r: -int(r["games"]))[:n],  # type: ignore[call-overload]
            "by_win_rate": sorted(qualified, key=lambda r: -float(r["win_rate"]))[:n],  # type: ignore[arg-type]
            "by_best_time": sorted(timed, key=lambda r: int(r["best_time_ms"]))[:n],  # type: ignore[call-overload]
        }
