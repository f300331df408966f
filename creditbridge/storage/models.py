"""
creditbridge.storage.models — Persisted Record Types
=====================================================

The ledger file is a JSON object keyed by user id, each value a
``{"id": ..., "rating": ...}`` record.  :class:`UserRecord` is the
in-memory form of one value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

__all__ = ["UserRecord"]


@dataclass(frozen=True, slots=True)
class UserRecord:
    """One user's reputation.  Ratings may be negative."""

    id: str
    rating: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "rating": self.rating}

    @classmethod
    def from_dict(cls, key: str, raw: Any) -> UserRecord:
        """Build a record from one JSON value.

        Raises ``ValueError`` if *raw* doesn't look like a user record.
        The record's ``id`` falls back to the mapping *key* when absent.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"record {key!r} is not an object")
        rating = raw.get("rating", 0)
        # bool is an int subclass; a JSON true/false is not a rating
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValueError(f"record {key!r} has a non-integer rating: {rating!r}")
        record_id = raw.get("id", key)
        return cls(id=str(record_id), rating=rating)
