"""
creditbridge.services.relay_service — Relay Pipeline & Command Dispatch
========================================================================

Shared service called by both platform adapters.  Every inbound
:class:`RelayMessage` is classified, in this order:

1. **Dropped** — sent by the bridge itself, or not from a bridged channel.
2. **Command** — Discord text starting with the command prefix and an
   allow-listed verb.  Parsed once, dispatched by type, answered in the
   Discord channel.  Never relayed.
3. **Text** — forwarded to the other platform, attributed to its author.
4. **Media** — Discord images go to Telegram by URL; Telegram photos,
   voice notes and video notes are downloaded, uploaded to Discord, and
   deleted.

A failed send is logged and dropped; it never stops the rest of the
message (or the next one) from being processed.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from creditbridge.constants import CMD_ADJUST
from creditbridge.engine.commands import (
    AdjustRating,
    Command,
    Malformed,
    ShowRating,
    ShowTop,
    parse_command,
)
from creditbridge.engine.events import (
    MEDIA_FILE_NAMING,
    Attachment,
    MediaKind,
    Platform,
    RelayMessage,
)
from creditbridge.services import messages
from creditbridge.services.media_service import download_file, staged_media
from creditbridge.storage.store import StoreError, run_io

if TYPE_CHECKING:
    from creditbridge.config import BridgeConfig
    from creditbridge.engine.ledger import ReputationLedger

logger = logging.getLogger(__name__)


class DiscordOutbound(Protocol):
    """Sends into the bridged Discord channel."""

    async def send_text(self, text: str) -> None: ...

    async def send_file(self, path: Path, caption: str) -> None: ...


class TelegramOutbound(Protocol):
    """Sends into the bridged Telegram chat."""

    async def send_markdown(self, text: str) -> None: ...

    async def send_photo_url(self, url: str, caption: str) -> None: ...

    async def file_url(self, file_id: str) -> str: ...


class RelayOutcome(enum.StrEnum):
    DROPPED = "dropped"
    COMMAND = "command"
    RELAYED = "relayed"


class RelayPipeline:
    """Classifies inbound messages and drives the ledger or the other side.

    Parameters
    ----------
    ledger:
        The shared :class:`ReputationLedger`.
    cfg:
        Bridge configuration (channel ids, prefix, content dir).
    discord, telegram:
        Outbound ports for each platform.
    """

    def __init__(
        self,
        ledger: ReputationLedger,
        cfg: BridgeConfig,
        discord: DiscordOutbound,
        telegram: TelegramOutbound,
    ) -> None:
        self.ledger = ledger
        self.cfg = cfg
        self.discord = discord
        self.telegram = telegram
        self._channels: dict[Platform, str] = {
            Platform.DISCORD: str(cfg.discord_channel_id),
            Platform.TELEGRAM: str(cfg.telegram_chat_id),
        }
        # Filled in by each adapter once it knows its own account id
        self._self_ids: dict[Platform, str] = {}

    def set_self_id(self, platform: Platform, user_id: str) -> None:
        self._self_ids[platform] = user_id

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    async def handle(self, msg: RelayMessage) -> RelayOutcome:
        """Process one inbound message end to end."""
        if msg.author_id == self._self_ids.get(msg.source):
            return RelayOutcome.DROPPED
        if msg.channel_id != self._channels[msg.source]:
            return RelayOutcome.DROPPED

        if msg.source is Platform.DISCORD:
            command = parse_command(
                msg.text, self.cfg.command_prefix, self.cfg.leaderboard_size,
            )
            if command is not None:
                await self.dispatch(command, msg)
                return RelayOutcome.COMMAND
            await self._relay_from_discord(msg)
        else:
            await self._relay_from_telegram(msg)
        return RelayOutcome.RELAYED

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    async def dispatch(self, command: Command, msg: RelayMessage) -> None:
        """Run *command* on behalf of *msg*'s author and reply on Discord."""
        logger.info("Command %r from %s (%s)", command, msg.author_name, msg.author_id)

        wants_admin = isinstance(command, AdjustRating) or (
            isinstance(command, Malformed) and command.verb == CMD_ADJUST
        )
        if wants_admin and not self.ledger.is_admin(msg.author_id):
            logger.warning("Rejected rating change from non-admin %s", msg.author_id)
            await self._reply(messages.permission_denied())
            return

        if isinstance(command, Malformed):
            await self._reply(
                messages.usage_reply(command.verb, command.reason, self.cfg.command_prefix)
            )
        elif isinstance(command, AdjustRating):
            await self._adjust(command, msg)
        elif isinstance(command, ShowTop):
            top = self.ledger.top_n(command.limit)
            if not top:
                await self._reply(messages.empty_leaderboard())
            else:
                await self._reply(messages.leaderboard(top))
        elif isinstance(command, ShowRating):
            rating = self.ledger.get_rating(command.target)
            await self._reply(messages.rating_reply(command.target, rating))
        else:  # pragma: no cover
            raise TypeError(f"Unhandled command type: {type(command).__name__}")

    async def _adjust(self, command: AdjustRating, msg: RelayMessage) -> None:
        new_rating = self.ledger.adjust_rating(command.target, command.delta)
        logger.info(
            "Admin %s changed rating of %s by %+d (now %d)",
            msg.author_id, command.target, command.delta, new_rating,
        )
        try:
            await run_io(self.ledger.save_if_dirty)
        except StoreError:
            logger.exception("Failed to save ledger after rating change")
            await self._reply(messages.save_failed())
            return
        await self._reply(
            messages.adjust_confirmation(command.target, command.delta, new_rating)
        )

    async def _reply(self, text: str) -> None:
        await self._send(self.discord.send_text(text), "reply to Discord")

    # -------------------------------------------------------------------
    # Discord → Telegram
    # -------------------------------------------------------------------
    async def _relay_from_discord(self, msg: RelayMessage) -> None:
        if msg.text:
            await self._send(
                self.telegram.send_markdown(
                    messages.discord_to_telegram_text(msg.author_name, msg.text)
                ),
                "text to Telegram",
            )

        for att in msg.attachments:
            if att.kind is not MediaKind.IMAGE:
                logger.debug("Skipping non-image attachment %s", att.filename or att.ref)
                continue
            await self._send(
                self.telegram.send_photo_url(
                    att.ref, messages.discord_image_caption(msg.author_name)
                ),
                "image to Telegram",
            )

    # -------------------------------------------------------------------
    # Telegram → Discord
    # -------------------------------------------------------------------
    async def _relay_from_telegram(self, msg: RelayMessage) -> None:
        if msg.text:
            await self._send(
                self.discord.send_text(
                    messages.telegram_to_discord_text(msg.author_name, msg.text)
                ),
                "text to Discord",
            )

        for att in msg.attachments:
            if att.kind in MEDIA_FILE_NAMING:
                await self._forward_media(msg, att)

    async def _forward_media(self, msg: RelayMessage, att: Attachment) -> None:
        """Download one Telegram file, upload it to Discord, delete it."""
        caption = messages.telegram_media_caption(msg.author_name)
        async with staged_media(self.cfg.content_dir, att.kind) as path:
            try:
                url = await self.telegram.file_url(att.ref)
                await download_file(url, path)
            except Exception:
                logger.exception(
                    "Failed to download %s from Telegram message %s", att.kind, msg.message_id,
                )
                return

            await self._send(
                self.discord.send_file(path, caption), f"{att.kind} to Discord",
            )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    async def _send(call: Awaitable[None], what: str) -> bool:
        """Await one outbound call; log and swallow its failure."""
        try:
            await call
            return True
        except Exception:
            logger.exception("Failed to send %s", what)
            return False
