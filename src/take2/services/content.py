from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from take2.engine.ai import AISpec
from take2.engine.match import MatchConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _section(obj: Mapping[str, object], key: str) -> Mapping[str, object]:
    v = obj.get(key)
    if not isinstance(v, dict):
        raise ContentError(f"Expected object for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


@dataclass(frozen=True)
class Badge:
    name: str
    min_games: int
    min_wins: int
    icon: str = ""


@dataclass(frozen=True)
class StatsConfig:
    history_limit: int = 50
    leaderboard_size: int = 10
    win_rate_min_games: int = 5


@dataclass(frozen=True)
class RulesConfig:
    min_players: int
    max_players: int
    min_hand_size: int
    max_hand_size: int
    default_hand_size: int
    ai: AISpec
    stats: StatsConfig
    badges: tuple[Badge, ...]

    def match_config(self, num_players: int, hand_size: int | None = None) -> MatchConfig:
        """Build a MatchConfig, enforcing the configured table limits."""
        size = self.default_hand_size if hand_size is None else hand_size
        if not self.min_players <= num_players <= self.max_players:
            raise ValueError(f"Player count must be between {self.min_players} and {self.max_players}.")
        if not self.min_hand_size <= size <= self.max_hand_size:
            raise ValueError(f"Hand size must be between {self.min_hand_size} and {self.max_hand_size}.")
        cfg = MatchConfig(num_players=num_players, hand_size=size)
        cfg.validate()
        return cfg


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def schema(self, name: str) -> object:
        return _load_json(self._schema_dir / f"{name}.schema.json")

    def load_rules(self) -> RulesConfig:
        path = self._data_dir / "rules.json"
        raw = _load_json(path)
        validate_json(raw, self.schema("rules"), context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("rules.json must be an object")

        players = _section(raw, "players")
        hand = _section(raw, "hand_size")
        ai_raw = _section(raw, "ai")
        stats_raw = _section(raw, "stats")

        ratio = ai_raw.get("struggling_draw_ratio")
        if not isinstance(ratio, (int, float)):
            raise ContentError("struggling_draw_ratio must be number")
        ai = AISpec(
            endgame_hand_size=_require_int(ai_raw, "endgame_hand_size"),
            pressure_hand_size=_require_int(ai_raw, "pressure_hand_size"),
            human_low_hand=_require_int(ai_raw, "human_low_hand"),
            struggling_draw_streak=_require_int(ai_raw, "struggling_draw_streak"),
            struggling_draw_ratio=float(ratio),
        )
        stats = StatsConfig(
            history_limit=_require_int(stats_raw, "history_limit"),
            leaderboard_size=_require_int(stats_raw, "leaderboard_size"),
            win_rate_min_games=_require_int(stats_raw, "win_rate_min_games"),
        )

        badges: list[Badge] = []
        raw_badges = raw.get("badges", [])
        if isinstance(raw_badges, list):
            for b in raw_badges:
                if not isinstance(b, dict):
                    continue
                badges.append(
                    Badge(
                        name=str(b.get("name", "")),
                        min_games=_require_int(b, "min_games"),
                        min_wins=_require_int(b, "min_wins"),
                        icon=str(b.get("icon", "")),
                    )
                )

        rules = RulesConfig(
            min_players=_require_int(players, "min"),
            max_players=_require_int(players, "max"),
            min_hand_size=_require_int(hand, "min"),
            max_hand_size=_require_int(hand, "max"),
            default_hand_size=_require_int(hand, "default"),
            ai=ai,
            stats=stats,
            badges=tuple(badges),
        )
        if rules.min_players > rules.max_players or rules.min_hand_size > rules.max_hand_size:
            raise ContentError(f"Inverted bounds in {path}")
        if not rules.min_hand_size <= rules.default_hand_size <= rules.max_hand_size:
            raise ContentError(f"Default hand size out of bounds in {path}")
        return rules

    def validate_stats(self, raw: object, *, context: str) -> None:
        validate_json(raw, self.schema("stats"), context=context)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_rules()
        _ = self.schema("stats")
