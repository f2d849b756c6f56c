"""
SQLite-backed document store.

Reference implementation of the store boundary consumed by the
ExistenceChecker:
- WAL (Write-Ahead Logging) mode for concurrent readers
- Index on the checksum column for single-row fingerprint lookups
- Async operations with aiosqlite and a small connection pool
- Schema: documents(id TEXT PRIMARY KEY, source TEXT, filepath TEXT,
  checksum TEXT, last_modified REAL, created_at DATETIME)
"""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import aiosqlite
import structlog

from ..config.config import StoreConfig
from ..protocols import Document, DocumentSource, ExistingDocumentRef

logger = structlog.get_logger(__name__)


class SQLiteDocumentStore:
    """
    Minimal persisted view of indexed documents keyed by checksum.

    Features:
    - WAL mode for high-concurrency reads/writes
    - Connection pooling and proper cleanup
    - Upsert semantics on document id
    """

    def __init__(self, db_path: Path, wal_mode: bool = True):
        """
        Initialize the document store.

        Args:
            db_path: Path to SQLite database file
            wal_mode: Enable Write-Ahead Logging mode (recommended)
        """
        self.db_path = Path(db_path)
        self.wal_mode = wal_mode

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection_pool: List[aiosqlite.Connection] = []
        self._pool_size = 5
        self._pool_lock = asyncio.Lock()

        self._init_database()

    @classmethod
    def from_config(cls, config: StoreConfig) -> SQLiteDocumentStore:
        """Build a store from the ``store`` section of the application config."""
        return cls(config.db_path, wal_mode=config.wal_mode)

    def _init_database(self) -> None:
        """Initialize database schema synchronously."""
        with sqlite3.connect(self.db_path) as conn:
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    source TEXT NOT NULL,
                    filepath TEXT NOT NULL,
                    checksum TEXT NOT NULL,
                    last_modified REAL,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_documents_checksum
                ON documents(checksum)
            """
            )
            conn.commit()

        logger.info("Initialized document store", db_path=str(self.db_path), wal_mode=self.wal_mode)

    @asynccontextmanager
    async def _get_connection(self):
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._connection_pool:
                conn = self._connection_pool.pop()
            else:
                conn = await aiosqlite.connect(self.db_path)
                if self.wal_mode:
                    await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA synchronous=NORMAL")

        try:
            yield conn
        finally:
            async with self._pool_lock:
                if len(self._connection_pool) < self._pool_size:
                    self._connection_pool.append(conn)
                else:
                    await conn.close()

    async def add_document(self, document: Document, checksum: str) -> None:
        """
        Record a document as indexed under ``checksum``.

        Args:
            document: The canonical document that was persisted
            checksum: Its fingerprint
        """
        last_modified = document.metadata.last_modified
        if last_modified is not None and last_modified.tzinfo is None:
            last_modified = last_modified.replace(tzinfo=timezone.utc)
        async with self._get_connection() as conn:
            await conn.execute(
                "INSERT OR REPLACE INTO documents (id, source, filepath, checksum, last_modified) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    document.id,
                    document.source.value,
                    document.filepath,
                    checksum,
                    last_modified.timestamp() if last_modified is not None else None,
                ),
            )
            await conn.commit()
        logger.debug("Stored document", document_id=document.id, checksum=checksum)

    async def find_by_checksum(self, checksum: str) -> Optional[ExistingDocumentRef]:
        """
        Find at most one stored document whose checksum equals ``checksum``.

        Errors propagate; the ExistenceChecker decides how to degrade.
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT id, source, filepath, last_modified FROM documents WHERE checksum = ? LIMIT 1",
                (checksum,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None

        doc_id, source, filepath, last_modified = row
        return ExistingDocumentRef(
            id=doc_id,
            source=DocumentSource(source),
            filepath=filepath,
            last_modified=(
                datetime.fromtimestamp(last_modified, tz=timezone.utc) if last_modified is not None else None
            ),
        )

    async def count(self) -> int:
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM documents")
            return (await cursor.fetchone())[0]

    async def close(self) -> None:
        """Close all database connections."""
        async with self._pool_lock:
            for conn in self._connection_pool:
                await conn.close()
            self._connection_pool.clear()

        logger.info("Document store connections closed")
