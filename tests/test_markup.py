"""
tests/test_markup.py — Escaping, Mentions & Message Text Tests
===============================================================
"""

from __future__ import annotations

import pytest

from creditbridge.constants import MARKDOWN_V2_RESERVED
from creditbridge.engine.markup import (
    discord_mention,
    escape_markdown_v2,
    normalize_mention,
    split_text,
)
from creditbridge.services import messages
from creditbridge.storage.models import UserRecord


def _unescaped_reserved(text: str) -> list[str]:
    """Reserved characters in *text* that are not preceded by a backslash."""
    found = []
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch in MARKDOWN_V2_RESERVED:
            found.append(ch)
    return found


# ---------------------------------------------------------------------------
# MarkdownV2 escaping
# ---------------------------------------------------------------------------
class TestEscapeMarkdownV2:
    def test_plain_text_unchanged(self):
        assert escape_markdown_v2("hello world 123") == "hello world 123"

    def test_every_reserved_char_escaped_once(self):
        source = "".join(sorted(MARKDOWN_V2_RESERVED))
        escaped = escape_markdown_v2(source)
        assert escaped == "".join("\\" + ch for ch in sorted(MARKDOWN_V2_RESERVED))
        assert _unescaped_reserved(escaped) == []

    @pytest.mark.parametrize("text", [
        "Version 1.2.3 (beta)!",
        "a_b*c[d]e~f`g>h#i+j-k=l|m{n}o.p!",
        "user-name_42",
        "****",
    ])
    def test_no_reserved_char_left_bare(self, text):
        escaped = escape_markdown_v2(text)
        assert _unescaped_reserved(escaped) == []
        assert escaped.replace("\\", "") == text.replace("\\", "")

    def test_example_sentence(self):
        assert escape_markdown_v2("Hi. (ok)") == "Hi\\. \\(ok\\)"


# ---------------------------------------------------------------------------
# Mentions
# ---------------------------------------------------------------------------
class TestMentions:
    @pytest.mark.parametrize("token,expected", [
        ("<@123>", "123"),
        ("<@!123>", "123"),
        ("@123", "123"),
        ("123", "123"),
        ("  <@7>  ", "7"),
        ("<@>", ""),
    ])
    def test_normalize(self, token, expected):
        assert normalize_mention(token) == expected

    def test_discord_mention(self):
        assert discord_mention("42") == "<@42>"


# ---------------------------------------------------------------------------
# Message texts
# ---------------------------------------------------------------------------
class TestMessages:
    def test_discord_to_telegram_escapes_author_and_text(self):
        text = messages.discord_to_telegram_text("al_ice", "Version 1.2")
        assert text == "\U0001f3a7:\n*al\\_ice*: Version 1\\.2"

    def test_discord_image_caption(self):
        assert messages.discord_image_caption("alice") == "\U0001f3a7:\n alice"

    def test_telegram_to_discord_text(self):
        assert messages.telegram_to_discord_text("bob", "hi") == "➤ \n**bob**: hi"

    def test_telegram_media_caption(self):
        assert messages.telegram_media_caption("bob") == "➤ bob:"

    def test_leaderboard_badges_first_three(self):
        records = [UserRecord(id=str(i), rating=10 - i) for i in range(5)]
        lines = messages.leaderboard(records).splitlines()
        assert lines[0] == "Top 5:"
        assert lines[1] == "1. \U0001f947 <@0> - 10 points"
        assert lines[3].startswith("3. \U0001f949 ")
        assert lines[4] == "4. <@3> - 7 points"
        assert lines[5] == "5. <@4> - 6 points"

    def test_rating_reply(self):
        assert messages.rating_reply("42", -3) == "Rating of <@42>: -3 points"

    def test_adjust_confirmation_shows_sign(self):
        assert "+10" in messages.adjust_confirmation("42", 10, 10)
        assert "-15" in messages.adjust_confirmation("42", -15, -5)
        assert "(now -5)" in messages.adjust_confirmation("42", -15, -5)

    def test_usage_reply(self):
        reply = messages.usage_reply("rating", "expected exactly one user", "!")
        assert reply == "❌ Expected exactly one user. Usage: `!rating @user`"


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------
class TestSplitText:
    def test_short_text_single_chunk(self):
        assert split_text("hello", 10) == ["hello"]

    def test_empty_text(self):
        assert split_text("", 10) == []

    def test_prefers_line_breaks(self):
        text = "a" * 6 + "\n" + "b" * 6
        assert split_text(text, 10) == ["a" * 6, "b" * 6]

    def test_hard_split_without_newline(self):
        assert split_text("x" * 25, 10) == ["x" * 10, "x" * 10, "x" * 5]

    def test_escape_pair_kept_together(self):
        escaped = escape_markdown_v2("abcdefghi.")
        chunks = split_text(escaped, 10)
        assert chunks == ["abcdefghi", "\\."]
        assert _unescaped_reserved(chunks[1]) == []
