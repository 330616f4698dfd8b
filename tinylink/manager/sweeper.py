"""
Expiry sweeper for tinylink.

A stateless, idempotent batch job: every run asks the store to drop all
links whose `expires_at` is set and already in the past. It keeps no state
between runs, so any trigger (cron endpoint, CLI, timer) can invoke it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from ..storage.base import BaseStorage, utcnow

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    deleted_count: int
    timestamp: datetime


class ExpirySweeper:
    def __init__(self, storage: BaseStorage, clock: Callable[[], datetime] = utcnow):
        self.storage = storage
        self._clock = clock

    def run(self) -> SweepResult:
        """
        Delete expired links in one store operation.

        Raises:
            StoreError: Propagated unchanged; the sweep is reported as failed.
        """
        deleted = self.storage.delete_expired()
        result = SweepResult(deleted_count=deleted, timestamp=self._clock())
        log.info("Expiry sweep removed %d link(s)", deleted)
        return result
