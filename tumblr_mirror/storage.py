# tumblr_mirror/storage.py
"""
SQLite-backed store of mirrored content, one row per canonical URL.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional, Union

import aiosqlite

from tumblr_mirror.errors import StoreConsistencyError, StoreError
from tumblr_mirror.logger import logger

__all__ = ("ContentStore",)

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS pages("
    "id INTEGER PRIMARY KEY ASC AUTOINCREMENT, "
    "url TEXT UNIQUE NOT NULL, "
    "content BLOB)",
    "CREATE UNIQUE INDEX IF NOT EXISTS page_url_index ON pages(url)",
)

_UPSERT = (
    "INSERT INTO pages (url, content) VALUES (?, ?) "
    "ON CONFLICT(url) DO UPDATE SET content = excluded.content"
)


class ContentStore:
    """
    Persistent mapping from canonical URL to fetched bytes.

    Use :meth:`open` (or ``async with ContentStore(path)``) before calling
    any other method. Every storage-engine failure is raised as
    :class:`~tumblr_mirror.errors.StoreError`.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._conn: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()

    @classmethod
    async def open(cls, path: Union[str, Path]) -> ContentStore:
        store = cls(path)
        await store.connect()
        return store

    async def connect(self) -> None:
        try:
            # autocommit; transactions are opened explicitly in set_content
            self._conn = await aiosqlite.connect(str(self.path), isolation_level=None)
            for statement in _SCHEMA:
                await self._conn.execute(statement)
        except aiosqlite.Error as exc:
            await self.close()
            raise StoreError(f"cannot open page database {self.path}: {exc}") from exc
        logger.debug("Opened page database %s", self.path)

    async def close(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.close()

    async def __aenter__(self) -> ContentStore:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreError("page database is not open")
        return self._conn

    async def has_content(self, url: str) -> bool:
        """Return True if a record exists for *url*."""
        conn = self._require()
        try:
            async with conn.execute("SELECT count(*) FROM pages WHERE url = ?", (url,)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(f"error reading {url}: {exc}") from exc
        return bool(row and row[0] > 0)

    async def get_content(self, url: str) -> Optional[bytes]:
        """Return the stored bytes for *url*, or None."""
        conn = self._require()
        try:
            async with conn.execute("SELECT content FROM pages WHERE url = ?", (url,)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(f"error reading {url}: {exc}") from exc
        if row is None:
            return None
        return bytes(row[0]) if row[0] is not None else b""

    async def set_content(self, url: str, content: bytes) -> None:
        """
        Insert or replace the content for *url* in a single transaction.

        Raises StoreConsistencyError if the upsert did not touch exactly one
        row; the transaction is rolled back in that case.
        """
        conn = self._require()
        async with self._write_lock:
            try:
                await conn.execute("BEGIN IMMEDIATE")
                try:
                    async with conn.execute(_UPSERT, (url, bytes(content))) as cursor:
                        rows = cursor.rowcount
                    if rows != 1:
                        raise StoreConsistencyError(f"upsert of {url} affected {rows} rows")
                except BaseException:
                    await conn.execute("ROLLBACK")
                    raise
                await conn.execute("COMMIT")
            except aiosqlite.Error as exc:
                raise StoreError(f"error writing {url}: {exc}") from exc

    async def count(self) -> int:
        conn = self._require()
        try:
            async with conn.execute("SELECT count(*) FROM pages") as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(f"error counting pages: {exc}") from exc
        return int(row[0]) if row else 0

    async def urls(self) -> List[str]:
        """All stored URLs in insertion order."""
        conn = self._require()
        try:
            async with conn.execute("SELECT url FROM pages ORDER BY id") as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(f"error listing pages: {exc}") from exc
        return [row[0] for row in rows]
