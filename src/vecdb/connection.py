"""Lazily opened, shared database handle for one collection."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Optional

from vecdb.config import storage as storage_cfg
from vecdb.errors import OpenError

from .storage import Database, open_database, store_name
from .storage.db import ensure_collection

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Open the database and the collection table exactly once.

    The first :meth:`get` starts a single open task; every caller, including
    ones arriving while it is still running, awaits that same task. Its
    outcome (the handle or the :class:`~vecdb.errors.OpenError`) is cached
    and replayed to later callers. Nothing is retried until :meth:`reset`.
    """

    def __init__(
        self,
        collection_name: str,
        dimension: int,
        *,
        path: Optional[str] = None,
        busy_timeout_ms: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        self.store_name = store_name(collection_name, dimension)
        self.path = path or storage_cfg.db_path()
        self.busy_timeout_ms = busy_timeout_ms or storage_cfg.BUSY_TIMEOUT_MS
        self.batch_size = batch_size or storage_cfg.CURSOR_BATCH_SIZE
        self._task: Optional[asyncio.Future] = None

    async def get(self) -> Database:
        # A task torn down with a previous event loop never produced an outcome.
        if self._task is None or self._task.cancelled():
            self._task = asyncio.ensure_future(self._open())
        # Shield so one cancelled caller does not cancel the shared open.
        return await asyncio.shield(self._task)

    async def _open(self) -> Database:
        name = self.store_name

        def _upgrade(conn: sqlite3.Connection) -> None:
            ensure_collection(conn, name)

        logger.info("Opening collection %s in %s", name, self.path)
        return await open_database(
            self.path,
            _upgrade,
            busy_timeout_ms=self.busy_timeout_ms,
            batch_size=self.batch_size,
        )

    async def reset(self) -> None:
        """Close the cached handle (if any) so the next :meth:`get` reopens."""
        task, self._task = self._task, None
        if task is None or task.cancelled():
            return
        try:
            db = await task
        except OpenError:
            return
        await db.close()
