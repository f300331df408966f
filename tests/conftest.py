"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from pathlib import Path

import pytest

from creditbridge.config import BridgeConfig
from creditbridge.engine.ledger import ReputationLedger
from creditbridge.storage.store import JsonStore

ADMIN_ID = "900"
DISCORD_CHANNEL_ID = 111
TELEGRAM_CHAT_ID = -222


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    return tmp_path / "users.json"


@pytest.fixture
def store(ledger_path: Path) -> JsonStore:
    return JsonStore(ledger_path)


@pytest.fixture
def ledger(store: JsonStore) -> ReputationLedger:
    """An empty ledger backed by a temp file, with one admin (``ADMIN_ID``)."""
    return ReputationLedger(store, admins={ADMIN_ID})


@pytest.fixture
def cfg(tmp_path: Path, ledger_path: Path) -> BridgeConfig:
    """A BridgeConfig pointing every file at the test's temp dir."""
    return BridgeConfig(
        discord_channel_id=DISCORD_CHANNEL_ID,
        telegram_chat_id=TELEGRAM_CHAT_ID,
        admin_file=str(tmp_path / "admins.json"),
        ledger_file=str(ledger_path),
        content_dir=str(tmp_path / "content"),
    )
