"""
creditbridge.storage.store — JSON File Store & Async I/O Helper
================================================================

**Why this file exists:**
The ledger is small (one integer per user) so it lives in a single,
human-diffable JSON file instead of a database.  This module owns that
file: reading it at startup and rewriting it whenever the ledger is dirty.

Writes are atomic from a reader's point of view: the full record set goes
to a sibling temp file which then replaces the target with
:func:`os.replace`.  A crash mid-write leaves the previous file intact.

Discord and Telegram both run on the ``asyncio`` event loop, so blocking
disk I/O is shipped to a worker thread via :func:`run_io`::

    saved = await run_io(ledger.save_if_dirty)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import ParamSpec, TypeVar

from creditbridge.storage.models import UserRecord

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class StoreError(Exception):
    """Base class for ledger file failures."""


class StoreDecodeError(StoreError):
    """The ledger file exists but can't be decoded."""


class StoreWriteError(StoreError):
    """The ledger file couldn't be written."""


class JsonStore:
    """Durable ``id → UserRecord`` map backed by one JSON file.

    Parameters
    ----------
    path:
        Target file.  It doesn't need to exist yet.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, UserRecord]:
        """Read every record from disk.

        A missing file is not an error — the ledger simply starts empty.

        Raises
        ------
        StoreDecodeError
            If the file exists but isn't a JSON object of user records.
        """
        try:
            with open(self.path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError:
            logger.info("Ledger file %s does not exist — starting empty", self.path)
            return {}
        except json.JSONDecodeError as exc:
            raise StoreDecodeError(f"Failed to decode {self.path}: {exc}") from exc
        except OSError as exc:
            raise StoreDecodeError(f"Failed to read {self.path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise StoreDecodeError(f"{self.path} must contain a JSON object")

        records: dict[str, UserRecord] = {}
        for key, value in raw.items():
            try:
                records[key] = UserRecord.from_dict(key, value)
            except ValueError as exc:
                raise StoreDecodeError(f"{self.path}: {exc}") from exc

        logger.info("Loaded %d users from %s", len(records), self.path)
        return records

    def save(self, records: Mapping[str, UserRecord]) -> None:
        """Replace the file with *records*, indented for readability.

        Raises
        ------
        StoreWriteError
            If any step of the write fails.  The previous file is left
            untouched and the temp file is removed.
        """
        payload = {key: rec.to_dict() for key, rec in records.items()}
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, sort_keys=True)
                fh.write("\n")
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StoreWriteError(f"Failed to write {self.path}: {exc}") from exc

        logger.debug("Saved %d users to %s", len(payload), self.path)


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_io(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** I/O function on a background thread.

    Under the hood it calls :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor`` so the bot's event loop
    is never blocked by disk writes.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
