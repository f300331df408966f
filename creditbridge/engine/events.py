"""
creditbridge.engine.events — RelayMessage and Attachment
=========================================================

The universal inbound envelope.  Every Discord message and every
Telegram update is normalized into a :class:`RelayMessage` before the
relay pipeline sees it, so the pipeline never imports either client
library.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

__all__ = ["Platform", "MediaKind", "Attachment", "RelayMessage"]


class Platform(enum.StrEnum):
    DISCORD = "discord"
    TELEGRAM = "telegram"


class MediaKind(enum.StrEnum):
    """What an attachment is, as far as relaying is concerned."""

    IMAGE = "image"           # Discord attachment with an image/* content type
    PHOTO = "photo"           # Telegram photo (largest size)
    VOICE = "voice"           # Telegram voice note
    VIDEO_NOTE = "video_note" # Telegram round video message
    OTHER = "other"


# Telegram media kinds → (temp-file prefix, extension)
MEDIA_FILE_NAMING: dict[MediaKind, tuple[str, str]] = {
    MediaKind.PHOTO: ("photo", ".jpg"),
    MediaKind.VIDEO_NOTE: ("video", ".mp4"),
    MediaKind.VOICE: ("voice", ".ogg"),
}


@dataclass(frozen=True, slots=True)
class Attachment:
    """One piece of media attached to a message.

    ``ref`` is a URL for Discord attachments and a ``file_id`` for
    Telegram media.
    """

    kind: MediaKind
    ref: str
    content_type: str | None = None
    filename: str | None = None


@dataclass(frozen=True, slots=True)
class RelayMessage:
    """Normalized chat message from either platform."""

    source: Platform
    author_id: str
    author_name: str
    channel_id: str
    text: str = ""
    attachments: tuple[Attachment, ...] = field(default_factory=tuple)
    message_id: str | None = None
