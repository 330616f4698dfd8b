"""
Storage module for tinylink (in-memory implementation).

Responsibilities:
    - Save links keyed by their code and assign ids / creation times
    - Track click counts and the last click time
    - Remove links explicitly or in bulk once expired
    - Enforce code uniqueness at insert time

Design:
    - This is an in-memory reference implementation that satisfies the BaseStorage contract.
    - A single lock guards every read-modify-write, so concurrent redirects never
      lose an increment and concurrent inserts of the same code yield exactly one winner.
    - For production, replace with the PostgreSQL backend (see db_storage.py).
"""

import itertools
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..errors import CodeConflict
from .base import BaseStorage, Link, utcnow


class Storage(BaseStorage):
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        """
        Initialize empty storage.

        Internal schema:
            self.links = { code: Link }

        Args:
            clock: Source of "now" for created_at, last_clicked_at and expiry checks.
        """
        self.links: Dict[str, Link] = {}
        self._clock = clock
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get_link(self, code: str) -> Optional[Link]:
        with self._lock:
            return self.links.get(code)

    def insert_link(self, code: str, target_url: str, expires_at: Optional[datetime]) -> Link:
        """
        Insert a new link.

        Raises:
            CodeConflict: If `code` is already stored. Checked under the lock,
                so this is the authoritative uniqueness check.
        """
        with self._lock:
            if code in self.links:
                raise CodeConflict(f"Code {code!r} already exists")
            link = Link(
                id=next(self._ids),
                code=code,
                target_url=target_url,
                clicks=0,
                last_clicked_at=None,
                created_at=self._clock(),
                expires_at=expires_at,
            )
            self.links[code] = link
            return link

    def delete_link(self, code: str) -> bool:
        with self._lock:
            return self.links.pop(code, None) is not None

    def increment_clicks(self, code: str) -> bool:
        """
        Increment click count and stamp last_clicked_at for a given code.

        Returns:
            bool: True if incremented, False if the code is unknown.
        """
        with self._lock:
            link = self.links.get(code)
            if link is None:
                return False
            self.links[code] = replace(link, clicks=link.clicks + 1, last_clicked_at=self._clock())
            return True

    def delete_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [code for code, link in self.links.items() if link.is_expired(now)]
            for code in expired:
                del self.links[code]
            return len(expired)

    def list_links(self) -> List[Link]:
        with self._lock:
            links = list(self.links.values())
        # id breaks ties between links created within the same clock tick
        return sorted(links, key=lambda link: (link.created_at, link.id), reverse=True)

    def ping(self) -> datetime:
        return self._clock()
