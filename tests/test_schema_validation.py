from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from take2.engine.ai import AISpec
from take2.paths import get_paths
from take2.services.content import ContentError, ContentService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def test_content_schemas_validate() -> None:
    _content().validate_all()


def test_rules_defaults_match_engine_defaults() -> None:
    rules = _content().load_rules()
    assert rules.ai == AISpec()
    assert (rules.min_players, rules.max_players) == (2, 4)
    assert rules.stats.history_limit == 50
    assert rules.badges[0].name == "Rookie"


def test_match_config_respects_table_limits() -> None:
    rules = _content().load_rules()
    cfg = rules.match_config(3)
    assert cfg.hand_size == rules.default_hand_size

    with pytest.raises(ValueError):
        rules.match_config(5)
    with pytest.raises(ValueError):
        rules.match_config(2, rules.max_hand_size + 1)


def test_invalid_rules_file_is_reported(tmp_path: Path) -> None:
    paths = get_paths()
    data_dir = tmp_path / "data"
    shutil.copytree(paths.data_dir, data_dir)
    raw = json.loads((data_dir / "rules.json").read_text(encoding="utf-8"))
    raw["players"]["max"] = 9
    (data_dir / "rules.json").write_text(json.dumps(raw), encoding="utf-8")

    content = ContentService(data_dir, data_dir / "schemas")
    with pytest.raises(ContentError) as exc:
        content.load_rules()
    assert "players/max" in str(exc.value)


def test_missing_rules_file_is_reported(tmp_path: Path) -> None:
    content = ContentService(tmp_path, get_paths().schema_dir)
    with pytest.raises(ContentError):
        content.load_rules()
