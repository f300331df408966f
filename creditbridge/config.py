"""
creditbridge.config — YAML Configuration Loader
================================================

**Why this file exists:**
This module reads ``config.yaml`` for the bridge settings (which Discord
channel and Telegram chat are bridged, where the ledger lives, timer
intervals) and the admin allow-list file.  Secrets (bot tokens) stay in
``.env`` and are read by the entry point.

Usage::

    from creditbridge.config import load_admins, load_config

    cfg = load_config()                    # reads ./config.yaml by default
    admins = load_admins(cfg.admin_file)   # frozenset of user id strings
    print(cfg.discord_channel_id)          # 1468816181854081229
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from creditbridge.constants import (
    DEFAULT_AWARD_INTERVAL_SECONDS,
    DEFAULT_AWARD_POINTS,
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_CONTENT_DIR,
    DEFAULT_LEADERBOARD_SIZE,
    DEFAULT_LEDGER_FILE,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_SAVE_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)


class AdminFileError(RuntimeError):
    """The admin allow-list file is missing or malformed."""


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Bridged endpoints
    discord_channel_id: int
    telegram_chat_id: int

    # Files
    admin_file: str
    ledger_file: str = DEFAULT_LEDGER_FILE
    content_dir: str = DEFAULT_CONTENT_DIR  # Scratch dir for media in transit

    # Commands
    command_prefix: str = DEFAULT_COMMAND_PREFIX
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE

    # Timers
    award_interval_seconds: float = DEFAULT_AWARD_INTERVAL_SECONDS
    award_points: int = DEFAULT_AWARD_POINTS
    save_interval_seconds: float = DEFAULT_SAVE_INTERVAL_SECONDS
    poll_timeout: int = DEFAULT_POLL_TIMEOUT  # Telegram long-poll wait


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> BridgeConfig:
    """Read *path* and return a :class:`BridgeConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return BridgeConfig(
        discord_channel_id=int(raw["discord_channel_id"]),
        telegram_chat_id=int(raw["telegram_chat_id"]),
        admin_file=str(raw["admin_file"]),
        ledger_file=str(raw.get("ledger_file", DEFAULT_LEDGER_FILE)),
        content_dir=str(raw.get("content_dir", DEFAULT_CONTENT_DIR)),
        command_prefix=str(raw.get("command_prefix", DEFAULT_COMMAND_PREFIX)),
        leaderboard_size=int(raw.get("leaderboard_size", DEFAULT_LEADERBOARD_SIZE)),
        award_interval_seconds=float(
            raw.get("award_interval_seconds", DEFAULT_AWARD_INTERVAL_SECONDS)
        ),
        award_points=int(raw.get("award_points", DEFAULT_AWARD_POINTS)),
        save_interval_seconds=float(
            raw.get("save_interval_seconds", DEFAULT_SAVE_INTERVAL_SECONDS)
        ),
        poll_timeout=int(raw.get("poll_timeout", DEFAULT_POLL_TIMEOUT)),
    )


def load_admins(path: str | Path) -> frozenset[str]:
    """Read the admin allow-list from a JSON file.

    The file looks like ``{"admin_ids": ["123", 456]}``.  Ids are
    normalized to strings so they compare equal to ledger keys.

    Raises
    ------
    AdminFileError
        If the file is missing, is not valid JSON, or has the wrong shape.
    """
    admin_path = Path(path)
    try:
        with open(admin_path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError as exc:
        raise AdminFileError(f"Admin file not found: {admin_path.resolve()}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise AdminFileError(f"Failed to parse admin file {admin_path}: {exc}") from exc

    ids = raw.get("admin_ids") if isinstance(raw, dict) else None
    if not isinstance(ids, list) or not all(isinstance(i, (str, int)) for i in ids):
        raise AdminFileError(
            f"Admin file {admin_path} must contain an 'admin_ids' list of ids"
        )

    admins = frozenset(str(i) for i in ids)
    logger.info("Loaded %d admin(s) from %s", len(admins), admin_path)
    return admins
