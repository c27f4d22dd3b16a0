import json
from pathlib import Path

from douar_watch.feature_flags import load_feature_flags


def test_load_feature_flags_from_file(tmp_path: Path) -> None:
    path = tmp_path / "feature_flags.json"
    path.write_text(
        json.dumps(
            {
                "remote_sync_enabled": False,
                "ai_analysis_enabled": "yes",
                "map_fit_padding_px": "20",
                "unknown_flag": True,
            }
        ),
        encoding="utf-8",
    )
    flags = load_feature_flags(path)
    assert flags["remote_sync_enabled"] is False
    assert flags["ai_analysis_enabled"] is True
    assert flags["map_fit_padding_px"] == 20
    assert "unknown_flag" not in flags


def test_env_override_wins(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "feature_flags.json"
    path.write_text(json.dumps({"extended_schema_enabled": True}), encoding="utf-8")
    monkeypatch.setenv("DW_FLAG_EXTENDED_SCHEMA_ENABLED", "0")
    assert load_feature_flags(path)["extended_schema_enabled"] is False


def test_unreadable_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "feature_flags.json"
    path.write_text("{broken", encoding="utf-8")
    flags = load_feature_flags(path)
    assert flags["remote_sync_enabled"] is True
    assert flags["map_fit_padding_px"] == 50
