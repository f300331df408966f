"""
creditbridge.engine.commands — Chat Command Parser
===================================================

Turns a chat line into one of a closed set of command types in a single
parse step.  The relay pipeline dispatches on the type, so adding a
command means adding a class here and a branch there.

Only allow-listed verbs are commands.  ``!hello`` is not a command and
:func:`parse_command` returns ``None`` for it, which lets the line be
relayed as ordinary chat.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from creditbridge.constants import (
    CMD_ADJUST,
    CMD_RATING,
    CMD_TOP,
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_LEADERBOARD_SIZE,
)
from creditbridge.engine.markup import normalize_mention

__all__ = [
    "AdjustRating",
    "ShowTop",
    "ShowRating",
    "Malformed",
    "Command",
    "COMMAND_VERBS",
    "parse_command",
    "usage_for",
]

_SIGNED_INT = re.compile(r"^[+-]?\d+$")

COMMAND_VERBS: frozenset[str] = frozenset({CMD_ADJUST, CMD_TOP, CMD_RATING})


@dataclass(frozen=True, slots=True)
class AdjustRating:
    """Admin-only: change *target*'s rating by *delta*."""

    target: str
    delta: int


@dataclass(frozen=True, slots=True)
class ShowTop:
    limit: int = DEFAULT_LEADERBOARD_SIZE


@dataclass(frozen=True, slots=True)
class ShowRating:
    target: str


@dataclass(frozen=True, slots=True)
class Malformed:
    """A known verb with bad arguments.  ``verb`` decides the usage text."""

    verb: str
    reason: str


Command = AdjustRating | ShowTop | ShowRating | Malformed


def usage_for(verb: str, prefix: str = DEFAULT_COMMAND_PREFIX) -> str:
    """Return the one-line usage example for *verb*."""
    examples = {
        CMD_ADJUST: f"{prefix}{CMD_ADJUST} @user +10 or {prefix}{CMD_ADJUST} @user -10",
        CMD_TOP: f"{prefix}{CMD_TOP}",
        CMD_RATING: f"{prefix}{CMD_RATING} @user",
    }
    return examples.get(verb, prefix + verb)


def parse_command(
    text: str,
    prefix: str = DEFAULT_COMMAND_PREFIX,
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE,
) -> Command | None:
    """Parse *text* into a command, or return ``None`` if it isn't one."""
    text = text.strip()
    if not prefix or not text.startswith(prefix):
        return None

    parts = text[len(prefix):].split()
    if not parts:
        return None

    verb, args = parts[0].lower(), parts[1:]
    if verb not in COMMAND_VERBS:
        return None

    if verb == CMD_TOP:
        if args:
            return Malformed(verb, f"{CMD_TOP} takes no arguments")
        return ShowTop(limit=leaderboard_size)

    if verb == CMD_RATING:
        if len(args) != 1:
            return Malformed(verb, "expected exactly one user")
        target = normalize_mention(args[0])
        if not target:
            return Malformed(verb, "empty user mention")
        return ShowRating(target=target)

    # CMD_ADJUST
    if len(args) != 2:
        return Malformed(verb, "expected a user and a point delta")
    target = normalize_mention(args[0])
    if not target:
        return Malformed(verb, "empty user mention")
    if not _SIGNED_INT.match(args[1]):
        return Malformed(verb, f"not an integer: {args[1]!r}")
    return AdjustRating(target=target, delta=int(args[1]))
