"""
creditbridge.bot.cogs.tasks — Periodic Background Tasks
========================================================

Scheduled jobs that run on ``discord.ext.tasks`` loops:

- **Ledger save** — every ``save_interval_seconds`` (default 1 s), writes
  the ledger to disk if anything changed.  A clean ledger costs one lock
  acquisition and no I/O.

The save runs via ``run_io()`` to avoid blocking the event loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from creditbridge.constants import DEFAULT_SAVE_INTERVAL_SECONDS
from creditbridge.storage.store import run_io

if TYPE_CHECKING:
    from creditbridge.bot.core import BridgeBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background maintenance tasks."""

    def __init__(self, bot: BridgeBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        """Start task loops when the cog is loaded."""
        self.save_loop.change_interval(seconds=self.bot.cfg.save_interval_seconds)
        self.save_loop.start()

    async def cog_unload(self) -> None:
        """Cancel task loops on unload."""
        self.save_loop.cancel()

    # -------------------------------------------------------------------
    # Ledger save
    # -------------------------------------------------------------------
    @tasks.loop(seconds=DEFAULT_SAVE_INTERVAL_SECONDS)
    async def save_loop(self):
        """Persist the ledger if it is dirty."""
        try:
            if await run_io(self.bot.ledger.save_if_dirty):
                logger.debug("Periodic save wrote %d users", len(self.bot.ledger))
        except Exception:
            logger.exception("Periodic ledger save failed", extra={"task": "save"})


async def setup(bot: BridgeBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))
