"""
creditbridge.services.voice_service — Voice Presence Supervisor
================================================================

Awards reputation for staying in a voice channel.  Each user who joins a
voice channel gets one monitoring task that, every award interval,
re-checks where the user is:

- still in the channel they joined → ``+award_points`` and keep going;
- anywhere else, nowhere, or the lookup raised → the task ends.

This is polling, not departure detection: the last partial interval
before a user leaves is never paid.

Sessions are keyed by user id.  A repeated join for the channel a live
session already watches is ignored; a join to a different channel
replaces the old session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from creditbridge.constants import DEFAULT_AWARD_INTERVAL_SECONDS, DEFAULT_AWARD_POINTS

if TYPE_CHECKING:
    from creditbridge.engine.ledger import ReputationLedger

logger = logging.getLogger(__name__)

# user_id → id of the voice channel the user is in now, or None.  May raise.
PresenceLookup = Callable[[str], str | None]


@dataclass(slots=True)
class VoiceSession:
    user_id: str
    channel_id: str
    task: asyncio.Task | None = None


class VoiceActivitySupervisor:
    """Owns one monitoring task per user present in a voice channel.

    Parameters
    ----------
    ledger:
        The shared :class:`ReputationLedger`.
    locate:
        Presence lookup, called once per interval per session.
    interval:
        Seconds between presence checks.
    points:
        Rating awarded per confirmed interval.
    """

    def __init__(
        self,
        ledger: ReputationLedger,
        locate: PresenceLookup,
        interval: float = DEFAULT_AWARD_INTERVAL_SECONDS,
        points: int = DEFAULT_AWARD_POINTS,
    ) -> None:
        self.ledger = ledger
        self.locate = locate
        self.interval = interval
        self.points = points
        self._sessions: dict[str, VoiceSession] = {}

    @property
    def active_sessions(self) -> dict[str, str]:
        """``user_id → channel_id`` for every live session."""
        return {
            uid: s.channel_id
            for uid, s in self._sessions.items()
            if s.task is not None and not s.task.done()
        }

    def on_join(self, user_id: str, channel_id: str) -> bool:
        """Start supervising *user_id* in *channel_id*.

        Must be called from inside the running event loop.  Returns True
        if a new monitoring task was started.
        """
        existing = self._sessions.get(user_id)
        if existing is not None and existing.task is not None and not existing.task.done():
            if existing.channel_id == channel_id:
                logger.debug(
                    "User %s already supervised in voice channel %s", user_id, channel_id,
                )
                return False
            existing.task.cancel()
            logger.debug(
                "User %s moved %s → %s, replacing session",
                user_id, existing.channel_id, channel_id,
            )

        self.ledger.ensure_user(user_id)

        session = VoiceSession(user_id=user_id, channel_id=channel_id)
        session.task = asyncio.get_running_loop().create_task(
            self._monitor(session), name=f"voice-{user_id}",
        )
        self._sessions[user_id] = session
        logger.info("User %s joined voice channel %s", user_id, channel_id)
        return True

    def stop_all(self) -> None:
        """Cancel every live session."""
        for session in self._sessions.values():
            if session.task is not None:
                session.task.cancel()
        self._sessions.clear()

    async def _monitor(self, session: VoiceSession) -> None:
        """Award points until the user is no longer seen in the channel."""
        user_id, channel_id = session.user_id, session.channel_id
        try:
            while True:
                await asyncio.sleep(self.interval)

                try:
                    current = self.locate(user_id)
                except Exception:
                    logger.exception(
                        "Presence lookup failed for user %s, ending voice session",
                        user_id,
                    )
                    return

                if current != channel_id:
                    logger.info("User %s left voice channel %s", user_id, channel_id)
                    return

                rating = self.ledger.adjust_rating(user_id, self.points)
                logger.debug(
                    "User %s still in voice channel %s: +%d (now %d)",
                    user_id, channel_id, self.points, rating,
                )
        finally:
            if self._sessions.get(user_id) is session:
                del self._sessions[user_id]
