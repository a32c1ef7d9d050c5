"""
Spark Note Persistent Nullifier Store

SQLite-backed spent nullifier table for processes that must remember spends
across restarts. Uniqueness is enforced by the table's primary key, so the
database itself rejects a second spend of the same nullifier.

Usage:
    async with SqliteNullifierStore("data/spent_nullifiers.db") as store:
        await store.add_or_reject(nullifier)
"""

from __future__ import annotations
import asyncio
import logging
import sqlite3
import time
from pathlib import Path
from typing import Iterable, List, Optional, Union

import aiosqlite

from spark_note.constants import STORE_SCHEMA_VERSION
from spark_note.core.types import Nullifier
from spark_note.errors import AlreadySpentError, NullifierError, OperationError
from spark_note.state.nullifier_set import (
    NullifierLike, NullifierSet, NullifierSetStats, estimate_memory,
)

logger = logging.getLogger(__name__)


# ============================================================================
# SCHEMA
# ============================================================================

SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS spent_nullifiers (
    nullifier BLOB PRIMARY KEY CHECK (length(nullifier) = 32),
    spent_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_spent_at ON spent_nullifiers(spent_at);
"""

# SQLite host parameter limit is 999 on older builds
_QUERY_CHUNK = 500


class SqliteNullifierStore:
    """
    Persistent spent nullifier set.

    Mirrors the NullifierSet operations as coroutines. Writes are serialized
    through an asyncio lock; batch marking runs in a single IMMEDIATE
    transaction and is rolled back on any conflict.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        self._db: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def open(self) -> SqliteNullifierStore:
        if self._db is not None:
            return self

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # Autocommit mode; transactions are opened explicitly
        try:
            self._db = await aiosqlite.connect(self.db_path, isolation_level=None)
            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.execute("PRAGMA synchronous=NORMAL")
            await self._init_schema()
        except sqlite3.Error as e:
            await self.close()
            raise OperationError(f"Cannot open nullifier store {self.db_path}: {e}") from e
        except BaseException:
            await self.close()
            raise
        return self

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> SqliteNullifierStore:
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._db is not None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise OperationError("Nullifier store is not open")
        return self._db

    async def _init_schema(self) -> None:
        db = self._conn()
        async with db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        ) as cursor:
            exists = await cursor.fetchone() is not None

        if not exists:
            await db.executescript(SCHEMA)
            await db.execute("INSERT INTO schema_version VALUES (?)", (STORE_SCHEMA_VERSION,))
            logger.info(f"Nullifier store initialized with schema version {STORE_SCHEMA_VERSION}")
            return

        async with db.execute("SELECT version FROM schema_version") as cursor:
            row = await cursor.fetchone()
        version = row[0] if row else None
        if version != STORE_SCHEMA_VERSION:
            raise OperationError(
                f"Unsupported nullifier store schema version: {version} "
                f"(expected {STORE_SCHEMA_VERSION})"
            )

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def contains(self, nullifier: NullifierLike) -> bool:
        """Check if a nullifier is spent. Malformed input is never spent."""
        try:
            n = Nullifier.coerce(nullifier)
        except NullifierError:
            return False
        async with self._conn().execute(
            "SELECT 1 FROM spent_nullifiers WHERE nullifier = ?", (n.data,)
        ) as cursor:
            return await cursor.fetchone() is not None

    async def check_many(self, nullifiers: Iterable[NullifierLike]) -> List[bool]:
        """Membership of each nullifier, in input order."""
        candidates: List[Optional[bytes]] = []
        for n in nullifiers:
            try:
                candidates.append(Nullifier.coerce(n).data)
            except NullifierError:
                candidates.append(None)

        spent = await self._fetch_spent([c for c in candidates if c is not None])
        return [c is not None and c in spent for c in candidates]

    async def _fetch_spent(self, keys: List[bytes]) -> set:
        db = self._conn()
        found = set()
        for start in range(0, len(keys), _QUERY_CHUNK):
            chunk = keys[start:start + _QUERY_CHUNK]
            placeholders = ",".join("?" * len(chunk))
            async with db.execute(
                f"SELECT nullifier FROM spent_nullifiers WHERE nullifier IN ({placeholders})",
                chunk,
            ) as cursor:
                found.update(bytes(row[0]) for row in await cursor.fetchall())
        return found

    async def size(self) -> int:
        async with self._conn().execute("SELECT COUNT(*) FROM spent_nullifiers") as cursor:
            row = await cursor.fetchone()
        return row[0]

    async def export(self) -> List[bytes]:
        async with self._conn().execute("SELECT nullifier FROM spent_nullifiers") as cursor:
            return [bytes(row[0]) for row in await cursor.fetchall()]

    async def stats(self) -> NullifierSetStats:
        count = await self.size()
        return NullifierSetStats(count=count, memory_usage_bytes=estimate_memory(count))

    async def load_set(self) -> NullifierSet:
        """Load every stored nullifier into an in-memory set."""
        rows = await self.export()
        logger.debug(f"Loaded {len(rows)} nullifiers from {self.db_path}")
        return NullifierSet(rows)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def add(self, nullifier: NullifierLike) -> bool:
        """
        Insert a nullifier if absent.

        Returns:
            True if newly inserted, False if already stored
        """
        n = Nullifier.coerce(nullifier)
        async with self._write_lock:
            cursor = await self._conn().execute(
                "INSERT OR IGNORE INTO spent_nullifiers (nullifier, spent_at) VALUES (?, ?)",
                (n.data, int(time.time())),
            )
            inserted = cursor.rowcount == 1
            await cursor.close()
        if inserted:
            logger.debug(f"Nullifier stored: {n}")
        return inserted

    async def add_or_reject(self, nullifier: NullifierLike) -> None:
        """
        Record a nullifier as spent.

        Raises:
            AlreadySpentError: if the nullifier is already stored
        """
        n = Nullifier.coerce(nullifier)
        async with self._write_lock:
            try:
                await self._conn().execute(
                    "INSERT INTO spent_nullifiers (nullifier, spent_at) VALUES (?, ?)",
                    (n.data, int(time.time())),
                )
            except sqlite3.IntegrityError as e:
                logger.warning(f"Double-spend attempt rejected: {n}")
                raise AlreadySpentError() from e
        logger.debug(f"Nullifier spent: {n}")

    async def mark_many_spent(self, nullifiers: Iterable[NullifierLike]) -> None:
        """
        Record a batch of nullifiers in one transaction, all or nothing.

        Raises:
            NullifierError: malformed entry
            AlreadySpentError: conflict with the store or within the batch
        """
        batch = [Nullifier.coerce(n) for n in nullifiers]
        if len(set(batch)) != len(batch):
            raise AlreadySpentError("Batch contains the same nullifier more than once")
        if not batch:
            return

        now = int(time.time())
        async with self._write_lock:
            db = self._conn()
            await db.execute("BEGIN IMMEDIATE")
            try:
                await db.executemany(
                    "INSERT INTO spent_nullifiers (nullifier, spent_at) VALUES (?, ?)",
                    [(n.data, now) for n in batch],
                )
            except sqlite3.IntegrityError as e:
                await db.rollback()
                logger.warning(f"Batch of {len(batch)} rejected: already spent")
                raise AlreadySpentError("One or more nullifiers are already spent") from e
            except BaseException:
                await db.rollback()
                raise
            await db.commit()

        logger.debug(f"Batch of {len(batch)} nullifiers stored")

    async def merge_set(self, spent_set: Iterable[NullifierLike]) -> int:
        """
        Store every nullifier of a set that is not stored yet.

        Returns:
            Number of nullifiers newly stored
        """
        batch = [Nullifier.coerce(n) for n in spent_set]
        if not batch:
            return 0

        now = int(time.time())
        async with self._write_lock:
            db = self._conn()
            await db.execute("BEGIN IMMEDIATE")
            try:
                cursor = await db.executemany(
                    "INSERT OR IGNORE INTO spent_nullifiers (nullifier, spent_at) VALUES (?, ?)",
                    [(n.data, now) for n in batch],
                )
                # Ignored rows are not counted
                added = cursor.rowcount
                await cursor.close()
            except BaseException:
                await db.rollback()
                raise
            await db.commit()

        logger.info(f"Merged {added} new nullifiers into {self.db_path}")
        return added

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"SqliteNullifierStore({self.db_path!r}, {state})"
