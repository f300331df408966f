"""
creditbridge.engine.markup — Markup Escaping & Mention Helpers
===============================================================

Telegram's MarkdownV2 parse mode rejects any message containing an
unescaped reserved character, so everything relayed from Discord goes
through :func:`escape_markdown_v2` first.

Discord mentions (``<@123>`` / ``<@!123>``) are stripped back to the raw
user id before the id is used as a ledger key.
"""

from __future__ import annotations

from creditbridge.constants import MARKDOWN_V2_RESERVED

_MARKDOWN_V2_TABLE = str.maketrans({ch: "\\" + ch for ch in MARKDOWN_V2_RESERVED})


def escape_markdown_v2(text: str) -> str:
    """Backslash-escape every MarkdownV2 reserved character in *text*.

    Single pass: an escaped character is never escaped a second time.
    """
    return text.translate(_MARKDOWN_V2_TABLE)


def normalize_mention(token: str) -> str:
    """Turn a mention token into the canonical user id.

    >>> normalize_mention("<@123>")
    '123'
    >>> normalize_mention("<@!123>")
    '123'
    >>> normalize_mention("@alice")
    'alice'
    """
    token = token.strip()
    if token.startswith("<@") and token.endswith(">"):
        token = token[2:-1]
    token = token.removeprefix("!")
    return token.removeprefix("@")


def discord_mention(user_id: str) -> str:
    return f"<@{user_id}>"


def split_text(text: str, limit: int) -> list[str]:
    """Split *text* into chunks of at most *limit* characters.

    Cuts at the last line break inside the limit when there is one.  A
    cut never separates a backslash from the character it escapes, so
    each MarkdownV2 chunk is valid on its own.
    """
    chunks: list[str] = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
            if text[cut - 1] == "\\" and cut > 1:
                cut -= 1
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        chunks.append(text)
    return chunks
