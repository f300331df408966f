"""
creditbridge.engine.ledger — Thread-Safe Reputation Ledger
===========================================================

The single owner of every user's rating.  Cogs, the Telegram channel,
the voice supervisor, and the periodic-save task all receive the same
:class:`ReputationLedger` instance and go through its methods; nothing
touches the record map directly.

Every read and every mutation takes ``self._lock`` for exactly one
operation.  A :class:`threading.Lock` (not an ``asyncio.Lock``) is used
because saves run on worker threads via :func:`run_io` while the event
loop keeps mutating.

Dirty tracking uses a revision counter: each mutation bumps
``_revision``; a successful save records the revision it wrote in
``_saved_revision``.  The ledger is dirty iff the two differ, so a
mutation that lands while a save is writing keeps the ledger dirty.

Lock nesting: ``load`` and ``save_if_dirty`` hold ``_save_lock`` for the
whole save and take ``_lock`` inside it, once for the snapshot and once to
record the saved revision.  This is the only nesting, always in the order
``_save_lock`` then ``_lock``; no code path takes ``_save_lock`` while
holding ``_lock``, so the two can't deadlock.  The outer lock keeps an
older snapshot from being written over a newer one, which the revision
counter relies on.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from creditbridge.storage.models import UserRecord
from creditbridge.storage.store import JsonStore

logger = logging.getLogger(__name__)


class ReputationLedger:
    """Concurrency-safe rating operations over a :class:`JsonStore`.

    Usage:
        ledger = ReputationLedger(JsonStore("users.json"), admins={"42"})
        ledger.load()

        ledger.adjust_rating("1001", +10)
        ledger.get_rating("1001")        # 10
        ledger.top_n(5)                  # [UserRecord(id='1001', rating=10)]
        ledger.save_if_dirty()           # True, file written
        ledger.save_if_dirty()           # False, nothing changed
    """

    def __init__(self, store: JsonStore, admins: Iterable[str] = ()) -> None:
        self._store = store
        # Read-only after construction, so lookups need no lock
        self._admins: frozenset[str] = frozenset(admins)

        self._lock = threading.Lock()
        # Serializes whole saves so an older snapshot can't overwrite a newer one.
        # Lock order: _save_lock, then _lock.
        self._save_lock = threading.Lock()

        self._users: dict[str, UserRecord] = {}
        self._revision = 0
        self._saved_revision = 0

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def ensure_user(self, user_id: str) -> bool:
        """Insert a zero-rating record for *user_id* if it doesn't exist.

        Returns True if a record was created.
        """
        with self._lock:
            if user_id in self._users:
                return False
            self._users[user_id] = UserRecord(id=user_id, rating=0)
            self._revision += 1
        logger.debug("Added user %s to the ledger", user_id)
        return True

    def adjust_rating(self, user_id: str, delta: int) -> int:
        """Add *delta* (may be negative) to *user_id*'s rating.

        Unknown users are created with ``rating=delta``.  Returns the new
        rating.
        """
        with self._lock:
            current = self._users.get(user_id)
            rating = delta if current is None else current.rating + delta
            self._users[user_id] = UserRecord(id=user_id, rating=rating)
            self._revision += 1
        return rating

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_rating(self, user_id: str) -> int:
        """Return *user_id*'s rating, or 0 if unknown.  Never creates a record."""
        with self._lock:
            record = self._users.get(user_id)
            return record.rating if record is not None else 0

    def top_n(self, n: int) -> list[UserRecord]:
        """Return at most *n* records, highest rating first.

        Equal ratings are ordered by id ascending.
        """
        if n <= 0:
            return []
        with self._lock:
            records = list(self._users.values())
        records.sort(key=lambda r: (-r.rating, r.id))
        return records[:n]

    def is_admin(self, user_id: str) -> bool:
        return user_id in self._admins

    def snapshot(self) -> dict[str, UserRecord]:
        """Return a copy of the record map."""
        with self._lock:
            return dict(self._users)

    @property
    def dirty(self) -> bool:
        with self._lock:
            return self._revision != self._saved_revision

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def load(self) -> int:
        """Replace the in-memory map with the store's contents.

        Returns the number of records loaded.  Propagates
        :class:`StoreDecodeError` for a corrupt file.
        """
        with self._save_lock:
            records = self._store.load()
            with self._lock:
                self._users = dict(records)
                self._revision += 1
                self._saved_revision = self._revision
        return len(records)

    def save_if_dirty(self) -> bool:
        """Write the ledger to disk if it changed since the last save.

        Returns True if the file was written, False if the ledger was
        clean (in which case the file is not touched).  Propagates
        :class:`StoreWriteError`; the ledger stays dirty in that case.
        """
        with self._save_lock:
            with self._lock:
                if self._revision == self._saved_revision:
                    return False
                records = dict(self._users)
                revision = self._revision

            self._store.save(records)

            with self._lock:
                self._saved_revision = revision
        logger.debug("Ledger saved at revision %d (%d users)", revision, len(records))
        return True
