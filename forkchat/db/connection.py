"""aiosqlite connection wrapper: WAL journal, schema bootstrap, small query helpers."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from forkchat.db.schema import SCHEMA_SQL


class Database:
    """One shared aiosqlite connection for the process."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection

    @classmethod
    async def connect(cls, path: str = "forkchat.db") -> "Database":
        """Open (or create) the database file and make sure the tables exist."""
        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")
        await conn.executescript(SCHEMA_SQL)
        await conn.commit()
        return cls(conn)

    async def execute(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Run one statement and commit it."""
        cursor = await self._conn.execute(sql, params)
        await self._conn.commit()
        return cursor

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Commit every statement issued inside the block together, or none."""
        try:
            yield self._conn
        except BaseException:
            await self._conn.rollback()
            raise
        await self._conn.commit()

    async def fetchone(self, sql: str, params: tuple = ()) -> aiosqlite.Row | None:
        cursor = await self._conn.execute(sql, params)
        return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple = ()) -> list[aiosqlite.Row]:
        cursor = await self._conn.execute(sql, params)
        return list(await cursor.fetchall())

    async def close(self) -> None:
        await self._conn.close()
