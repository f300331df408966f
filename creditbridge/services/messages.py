"""
creditbridge.services.messages — Reply & Relay Text Builders
=============================================================

Every user-visible string lives here so cogs and services stay free of
formatting details, and tests can assert on a single source.
"""

from __future__ import annotations

from collections.abc import Sequence

from creditbridge.constants import DISCORD_ORIGIN_MARK, RANK_BADGES, TELEGRAM_ORIGIN_MARK
from creditbridge.engine.commands import usage_for
from creditbridge.engine.markup import discord_mention, escape_markdown_v2
from creditbridge.storage.models import UserRecord


# ---------------------------------------------------------------------------
# Command replies (Discord side)
# ---------------------------------------------------------------------------
def permission_denied() -> str:
    return "❌ Only bridge admins can change ratings."


def usage_reply(verb: str, reason: str, prefix: str) -> str:
    return f"❌ {reason.capitalize()}. Usage: `{usage_for(verb, prefix)}`"


def empty_leaderboard() -> str:
    return "The leaderboard is empty — nobody has earned any points yet."


def leaderboard(records: Sequence[UserRecord]) -> str:
    """Numbered leaderboard; the first three places get medal badges."""
    lines = [f"Top {len(records)}:"]
    for i, rec in enumerate(records):
        badge = f"{RANK_BADGES[i]} " if i < len(RANK_BADGES) else ""
        lines.append(
            f"{i + 1}. {badge}{discord_mention(rec.id)} - {rec.rating} points"
        )
    return "\n".join(lines)


def rating_reply(user_id: str, rating: int) -> str:
    return f"Rating of {discord_mention(user_id)}: {rating} points"


def adjust_confirmation(user_id: str, delta: int, new_rating: int) -> str:
    return (
        f"✅ Rating of {discord_mention(user_id)} changed by {delta:+d} "
        f"points (now {new_rating})."
    )


def save_failed() -> str:
    return "❌ The change was applied but could not be saved yet."


# ---------------------------------------------------------------------------
# Relay texts
# ---------------------------------------------------------------------------
def discord_to_telegram_text(author: str, text: str) -> str:
    """MarkdownV2 body for a Discord message relayed to Telegram."""
    return (
        f"{DISCORD_ORIGIN_MARK}:\n"
        f"*{escape_markdown_v2(author)}*: {escape_markdown_v2(text)}"
    )


def discord_image_caption(author: str) -> str:
    """Plain-text caption for a Discord image relayed to Telegram."""
    return f"{DISCORD_ORIGIN_MARK}:\n {author}"


def telegram_to_discord_text(author: str, text: str) -> str:
    return f"{TELEGRAM_ORIGIN_MARK} \n**{author}**: {text}"


def telegram_media_caption(author: str) -> str:
    return f"{TELEGRAM_ORIGIN_MARK} {author}:"
