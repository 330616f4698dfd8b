"""
Base storage interface for tinylink.

Purpose:
    Define a small, stable contract that multiple storage backends
    (in-memory, PostgreSQL) can implement without requiring changes to
    the link manager or the HTTP layer.

    The store is the authority for every cross-request invariant:
    code uniqueness (`insert_link` raises CodeConflict), lost-update-free
    click accounting (`increment_clicks`) and set-based expiry
    reclamation (`delete_expired`).

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Link:
    """A stored short link. Only `clicks` and `last_clicked_at` ever change."""

    id: int
    code: str
    target_url: str
    clicks: int
    last_clicked_at: Optional[datetime]
    created_at: datetime
    expires_at: Optional[datetime]

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def get_link(self, code: str) -> Optional[Link]:
        """
        Retrieve a link by its code (case-sensitive).

        Returns:
            Optional[Link]: The record, or None when absent.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def insert_link(self, code: str, target_url: str, expires_at: Optional[datetime]) -> Link:
        """
        Insert a new link; `id` and `created_at` are assigned by the store.

        Raises:
            CodeConflict: If the code is already present. This check is
                enforced by the store itself, not by a prior lookup.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_link(self, code: str) -> bool:
        """Delete a link by code. Returns True if a row was removed."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_clicks(self, code: str) -> bool:
        """
        Atomically add one click and stamp `last_clicked_at` with the store's clock.

        Returns:
            bool: False if the code does not exist (no-op).
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_expired(self) -> int:
        """
        Remove every link whose `expires_at` is set and strictly before now.

        Returns:
            int: Number of rows actually removed.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_links(self) -> List[Link]:
        """Return all links, newest `created_at` first."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def ping(self) -> datetime:
        """Round-trip to the backing store and return its current time."""
        raise NotImplementedError
