# starchain/storage/sqlite.py
import os
import sqlite3
from pathlib import Path
from typing import List, Optional

from starchain.core.types import Block
from . import StorageBackend

DEFAULT_DB_NAME = "starchain.db"


class SQLiteStorage(StorageBackend):
    """SQLite persistent storage for ledger blocks."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            env_path = os.environ.get("STARCHAIN_DB_PATH")
            db_path = env_path if env_path else Path.cwd() / DEFAULT_DB_NAME

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_path.resolve()

        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self):
        # Appends are serialized by the owning Ledger, so the connection may cross threads
        self._conn = sqlite3.connect(str(self.db_path), isolation_level=None, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()

    def _create_schema(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS blocks (
                sequence_position  INTEGER PRIMARY KEY,
                previous_digest    TEXT,
                digest             TEXT    NOT NULL,
                created_at         INTEGER NOT NULL,
                content            TEXT    NOT NULL
            )
        """)
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_digest ON blocks(digest)")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Storage connection is closed")
        return self._conn

    def append(self, block: Block) -> None:
        if not block.is_finalized:
            raise ValueError("Cannot persist unfinalized block")

        self.conn.execute("""
            INSERT INTO blocks
            (sequence_position, previous_digest, digest, created_at, content)
            VALUES (?, ?, ?, ?, ?)
        """, (
            block.sequence_position, block.previous_digest, block.digest,
            block.created_at, block.content
        ))

    def load_blocks(self) -> List[Block]:
        """Stored blocks in chain order, exactly as written; nothing is recomputed or repaired."""
        cursor = self.conn.execute("""
            SELECT sequence_position, previous_digest, digest, created_at, content
            FROM blocks ORDER BY sequence_position ASC
        """)

        loaded = []
        for row in cursor:
            position, prev, digest, created_at, content = row
            loaded.append(Block(
                content=content,
                sequence_position=position,
                created_at=created_at,
                previous_digest=prev,
                digest=digest,
            ))
        return loaded

    def get_block_count(self) -> int:
        cursor = self.conn.execute("SELECT COUNT(*) FROM blocks")
        return cursor.fetchone()[0]

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
