"""
Storage factory – switch storage backend from config
====================================================

This module centralizes selection of the storage backend (in-memory vs DB)
so the rest of the app can stay ignorant of where data lives.

- Reads environment **at call time** (through `get_settings()`) to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- TINYLINK_STORAGE_BACKEND: "memory" (default) or "postgres"
- TINYLINK_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
from typing import Optional

from tinylink.config import get_settings
from tinylink.storage.base import BaseStorage
from tinylink.storage.storage import Storage

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads TINYLINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args passed to the backend constructor. For postgres, use dsn="...".

    Returns
    -------
    BaseStorage-compatible instance
    """
    cfg = get_settings()
    be = (backend or cfg.STORAGE_BACKEND).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "postgres":
        dsn = kwargs.get("dsn") or cfg.DB_DSN
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env TINYLINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from tinylink.storage.db_storage import DBStorage
        return DBStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
