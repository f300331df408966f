"""
tests/test_config.py — Configuration & Admin File Tests
========================================================
"""

from __future__ import annotations

import json

import pytest

from creditbridge.config import AdminFileError, BridgeConfig, load_admins, load_config

MINIMAL_YAML = """\
discord_channel_id: 123456789012345678
telegram_chat_id: -1001234567890
admin_file: admins.json
"""


class TestLoadConfig:
    def test_minimal_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(MINIMAL_YAML)

        cfg = load_config(path)
        assert cfg.discord_channel_id == 123456789012345678
        assert cfg.telegram_chat_id == -1001234567890
        assert cfg.admin_file == "admins.json"
        assert cfg.ledger_file == "users.json"
        assert cfg.content_dir == "content"
        assert cfg.command_prefix == "!"
        assert cfg.leaderboard_size == 5
        assert cfg.award_interval_seconds == 30.0
        assert cfg.award_points == 1
        assert cfg.save_interval_seconds == 1.0
        assert cfg.poll_timeout == 60

    def test_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(MINIMAL_YAML + "award_interval_seconds: 5\ncommand_prefix: '/'\n")

        cfg = load_config(path)
        assert cfg.award_interval_seconds == 5.0
        assert cfg.command_prefix == "/"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("discord_channel_id: 1\n")
        with pytest.raises(KeyError):
            load_config(path)

    def test_config_is_frozen(self):
        cfg = BridgeConfig(discord_channel_id=1, telegram_chat_id=2, admin_file="a.json")
        with pytest.raises(AttributeError):
            cfg.discord_channel_id = 3  # type: ignore[misc]


class TestLoadAdmins:
    def test_ids_normalized_to_strings(self, tmp_path):
        path = tmp_path / "admins.json"
        path.write_text(json.dumps({"admin_ids": ["123", 456]}))
        assert load_admins(path) == frozenset({"123", "456"})

    def test_empty_list(self, tmp_path):
        path = tmp_path / "admins.json"
        path.write_text('{"admin_ids": []}')
        assert load_admins(path) == frozenset()

    def test_missing_file(self, tmp_path):
        with pytest.raises(AdminFileError, match="not found"):
            load_admins(tmp_path / "admins.json")

    @pytest.mark.parametrize("content", [
        "{broken",
        "[]",
        '{"admins": ["1"]}',
        '{"admin_ids": "1"}',
        '{"admin_ids": [1.5]}',
        '{"admin_ids": [null]}',
    ])
    def test_malformed(self, tmp_path, content):
        path = tmp_path / "admins.json"
        path.write_text(content)
        with pytest.raises(AdminFileError):
            load_admins(path)
