"""
creditbridge.bot.cogs.relay — Discord Message Intake
=====================================================

Listens for on_message events, normalizes them into RelayMessages, and
hands them to the relay pipeline.

Pipeline:
1. on_message fires → build a RelayMessage (text + attachments)
2. RelayPipeline.handle drops, dispatches a command, or relays to Telegram
3. Any failure is logged; the next message is unaffected

Messages are handled one at a time, in the order the gateway delivered them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from creditbridge.engine.events import Attachment, MediaKind, Platform, RelayMessage

if TYPE_CHECKING:
    from creditbridge.bot.core import BridgeBot

logger = logging.getLogger(__name__)


def build_relay_message(message: discord.Message) -> RelayMessage:
    """Build a RelayMessage from a Discord message."""
    attachments = tuple(
        Attachment(
            kind=(
                MediaKind.IMAGE
                if (a.content_type or "").startswith("image/")
                else MediaKind.OTHER
            ),
            ref=a.url,
            content_type=a.content_type,
            filename=a.filename,
        )
        for a in message.attachments
    )
    return RelayMessage(
        source=Platform.DISCORD,
        author_id=str(message.author.id),
        author_name=message.author.name,
        channel_id=str(message.channel.id),
        text=message.content,
        attachments=attachments,
        message_id=str(message.id),
    )


class Relay(commands.Cog, name="Relay"):
    """Feeds Discord messages from the bridged channel into the relay."""

    def __init__(self, bot: BridgeBot) -> None:
        self.bot = bot
        # discord.py runs each listener call as its own task; this keeps
        # messages relayed one at a time, in gateway order.
        self._intake_lock = asyncio.Lock()

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        logger.debug(
            "Gateway event: MESSAGE from %s in #%s",
            message.author.name,
            getattr(message.channel, "name", "DM"),
        )
        async with self._intake_lock:
            try:
                outcome = await self.bot.relay.handle(build_relay_message(message))
                logger.debug("Message %s → %s", message.id, outcome)
            except Exception:
                logger.exception(
                    "Error relaying message %s from user %s",
                    message.id,
                    message.author.id,
                )


async def setup(bot: BridgeBot) -> None:
    await bot.add_cog(Relay(bot))
