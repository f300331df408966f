"""
creditbridge.bot.cogs.voice — Voice Presence Intake
====================================================

Turns voice-state updates into supervisor sessions.  Only *entering* a
channel matters here (from no channel or from a different one); leaving
is noticed by the supervisor's own presence checks.

On (re)connect, members already sitting in voice channels get a session
too, so a restart doesn't stop anyone earning.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from creditbridge.bot.core import BridgeBot

logger = logging.getLogger(__name__)


def entered_channel(
    before: discord.VoiceState, after: discord.VoiceState,
) -> discord.abc.Connectable | None:
    """Return the channel the member just entered, or None.

    Mute/deafen toggles inside the same channel and leaving are not entries.
    """
    if after.channel is None:
        return None
    if before.channel is not None and before.channel.id == after.channel.id:
        return None
    return after.channel


class Voice(commands.Cog, name="Voice"):
    """Starts a reputation supervisor for each member entering voice."""

    def __init__(self, bot: BridgeBot) -> None:
        self.bot = bot

    async def cog_unload(self) -> None:
        """Stop all supervisor tasks when the cog is unloaded."""
        self.bot.voice.stop_all()

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Track voice joins and moves."""
        before_ch = getattr(before.channel, "name", "None")
        after_ch = getattr(after.channel, "name", "None")
        logger.debug(
            "Gateway event: VOICE_STATE %s (%s → %s)", member.name, before_ch, after_ch,
        )
        try:
            if self.bot.user is not None and member.id == self.bot.user.id:
                return
            channel = entered_channel(before, after)
            if channel is not None:
                self.bot.voice.on_join(str(member.id), str(channel.id))
        except Exception:
            logger.exception("Error processing voice state update for user %s", member.id)

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        """Supervise members who were already in voice when we connected."""
        own_id = self.bot.user.id if self.bot.user else None
        started = 0
        for guild in self.bot.guilds:
            for vc in [*guild.voice_channels, *guild.stage_channels]:
                for user_id in vc.voice_states:
                    if user_id == own_id:
                        continue
                    if self.bot.voice.on_join(str(user_id), str(vc.id)):
                        started += 1
        if started:
            logger.info("Resumed %d voice session(s) after connect", started)


async def setup(bot: BridgeBot) -> None:
    await bot.add_cog(Voice(bot))
