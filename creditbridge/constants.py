"""
creditbridge.constants — Shared Constants
==========================================

Single source of truth for relay captions, markup rules, and the
defaults behind ``config.yaml``.  Import from here instead of
duplicating in cogs and services.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Telegram MarkdownV2: characters that must be backslash-escaped
# ---------------------------------------------------------------------------
MARKDOWN_V2_RESERVED: frozenset[str] = frozenset("_*[]()~>#+-=|{}.!")

# ---------------------------------------------------------------------------
# Relay captions
# ---------------------------------------------------------------------------
DISCORD_ORIGIN_MARK = "\U0001f3a7"  # 🎧, message came from Discord
TELEGRAM_ORIGIN_MARK = "\u27a4"     # ➤, message came from Telegram

# ---------------------------------------------------------------------------
# Defaults (overridable in config.yaml)
# ---------------------------------------------------------------------------
DEFAULT_COMMAND_PREFIX = "!"
DEFAULT_AWARD_INTERVAL_SECONDS = 30.0
DEFAULT_AWARD_POINTS = 1
DEFAULT_SAVE_INTERVAL_SECONDS = 1.0
DEFAULT_LEADERBOARD_SIZE = 5
DEFAULT_POLL_TIMEOUT = 60
DEFAULT_LEDGER_FILE = "users.json"
DEFAULT_CONTENT_DIR = "content"

# Command verbs recognised after the prefix
CMD_ADJUST = "adjust"
CMD_TOP = "top5"
CMD_RATING = "rating"

# ---------------------------------------------------------------------------
# Leaderboard presentation
# ---------------------------------------------------------------------------
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉
