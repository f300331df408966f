"""
creditbridge.bot.core — Bot Instance & Cog Loader
==================================================

**Why this file exists:**
Defines :class:`BridgeBot`, a ``commands.Bot`` subclass that:

1. Carries the shared state every cog needs (``bot.cfg``, ``bot.ledger``,
   ``bot.relay``, ``bot.voice``).
2. Loads every cog in ``creditbridge/bot/cogs/``.
3. Is the Discord half of the relay: it implements the outbound port
   (``send_text`` / ``send_file``) for the bridged channel.
4. Answers presence lookups for the voice supervisor from the gateway's
   voice-state cache.

Chat commands (``!top5`` …) are parsed by the relay pipeline, not by
``discord.ext.commands``, so :meth:`on_message` is a no-op here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from creditbridge.config import BridgeConfig
from creditbridge.engine.events import Platform
from creditbridge.engine.markup import split_text
from creditbridge.engine.ledger import ReputationLedger
from creditbridge.services.relay_service import RelayPipeline
from creditbridge.services.voice_service import VoiceActivitySupervisor

if TYPE_CHECKING:
    from creditbridge.channels.telegram import TelegramChannel

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "creditbridge.bot.cogs.relay",
    "creditbridge.bot.cogs.voice",
    "creditbridge.bot.cogs.tasks",
]

DISCORD_MESSAGE_LIMIT = 2000

# Relayed Telegram text may name users, but never @everyone or a role
RELAY_MENTIONS = discord.AllowedMentions(everyone=False, roles=False, users=True)


class BridgeBot(commands.Bot):
    """Custom Bot subclass that carries the bridge's shared state.

    Parameters
    ----------
    cfg:
        The parsed :class:`BridgeConfig` from ``config.yaml``.
    ledger:
        The shared :class:`ReputationLedger`.
    telegram:
        The Telegram half of the bridge; receives the same pipeline.
    """

    def __init__(
        self,
        cfg: BridgeConfig,
        ledger: ReputationLedger,
        telegram: TelegramChannel,
    ) -> None:
        # GUILD_MESSAGES + MESSAGE_CONTENT to relay text,
        # GUILD_VOICE_STATES for presence (part of the defaults).
        intents = discord.Intents.default()
        intents.message_content = True    # Privileged: relayed text and commands
        intents.presences = False

        super().__init__(
            command_prefix=cfg.command_prefix,
            intents=intents,
            help_command=None,
        )

        # Attach shared state so Cogs can read it via self.bot.*
        self.cfg = cfg
        self.ledger = ledger
        self.telegram = telegram
        self.relay = RelayPipeline(ledger, cfg, discord=self, telegram=telegram)
        self.voice = VoiceActivitySupervisor(
            ledger,
            self.locate_voice,
            interval=cfg.award_interval_seconds,
            points=cfg.award_points,
        )
        telegram.attach(self.relay)

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Called once before the bot connects to Discord.

        If any extension fails to load, we log the error but keep going.
        """
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)
        self.relay.set_self_id(Platform.DISCORD, str(self.user.id))

        if self.get_channel(self.cfg.discord_channel_id) is None:
            logger.warning(
                "Bridged channel %d is not visible to the bot — relaying to "
                "Discord will fail until it is.",
                self.cfg.discord_channel_id,
            )

    async def on_message(self, message: discord.Message) -> None:
        # Commands are handled by the relay cog; skip process_commands.
        return

    # -----------------------------------------------------------------------
    # Outbound port for the relay pipeline
    # -----------------------------------------------------------------------
    async def _bridged_channel(self) -> discord.abc.Messageable:
        channel = self.get_channel(self.cfg.discord_channel_id)
        if channel is None:
            channel = await self.fetch_channel(self.cfg.discord_channel_id)
        return channel  # type: ignore[return-value]

    async def send_text(self, text: str) -> None:
        """Send *text* to the bridged channel, split to Discord's limit."""
        channel = await self._bridged_channel()
        for chunk in split_text(text, DISCORD_MESSAGE_LIMIT):
            await channel.send(chunk, allowed_mentions=RELAY_MENTIONS)

    async def send_file(self, path: Path, caption: str) -> None:
        """Upload *path* to the bridged channel with *caption*."""
        channel = await self._bridged_channel()
        await channel.send(
            content=caption, file=discord.File(path), allowed_mentions=RELAY_MENTIONS,
        )

    # -----------------------------------------------------------------------
    # Presence lookup for the voice supervisor
    # -----------------------------------------------------------------------
    def locate_voice(self, user_id: str) -> str | None:
        """Return the id of the voice channel *user_id* is in, if any.

        Searches every guild the bot can see.
        """
        uid = int(user_id)
        for guild in self.guilds:
            for vc in [*guild.voice_channels, *guild.stage_channels]:
                if uid in vc.voice_states:
                    return str(vc.id)
        return None
