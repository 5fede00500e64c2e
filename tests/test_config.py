"""Tests for configuration loading."""

import logging

from snackboard.config import Config, get_config_path, get_data_dir, load_config, save_config


def test_data_dir_from_env(tmp_path):
    assert get_data_dir() == tmp_path
    assert get_config_path() == tmp_path / "config.json"


def test_defaults_without_file():
    config = load_config()

    assert config == Config()
    assert config.remote_enabled is False
    assert config.table == "boards"
    assert config.debounce_seconds == 0.5


def test_saved_config_is_loaded():
    save_config(Config(supabase_url="https://example.supabase.co", supabase_key="anon", poll_seconds=2.0))

    config = load_config()

    assert config.remote_enabled
    assert config.poll_seconds == 2.0


def test_env_overrides_file(monkeypatch):
    save_config(Config(supabase_url="https://file.example", supabase_key="file-key"))
    monkeypatch.setenv("SNACKBOARD_SUPABASE_URL", "https://env.example")

    config = load_config()

    assert config.supabase_url == "https://env.example"
    assert config.supabase_key == "file-key"


def test_unknown_keys_are_ignored(tmp_path):
    (tmp_path / "config.json").write_text('{"table": "kanban", "theme": "dark"}', encoding="utf-8")

    assert load_config().table == "kanban"


def test_malformed_config_falls_back(tmp_path, caplog):
    (tmp_path / "config.json").write_text("{oops", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        config = load_config()

    assert config == Config()
    assert "Ignoring malformed config" in caplog.text
