"""SQLite-backed persistent store for descriptors and resource records.

Two independent tables share one database file:

- ``app_info``: serialised descriptors keyed by application id
- ``resource``: cache records keyed (non-uniquely) by source URL

Every public method opens a connection scoped to that call and closes it
before returning; the store object itself only remembers the database path.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from .errors import StoreError
from .models import CacheRecord

__all__ = ["CacheStore", "TABLE_APP_INFO", "TABLE_RESOURCE"]

logger = logging.getLogger(__name__)

TABLE_APP_INFO = "app_info"
TABLE_RESOURCE = "resource"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_APP_INFO} (
    id TEXT PRIMARY KEY,
    app_info BLOB
);
CREATE TABLE IF NOT EXISTS {TABLE_RESOURCE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL,
    path TEXT NOT NULL,
    hash_code TEXT NOT NULL,
    cache_ctrl TEXT NOT NULL
);
"""


class CacheStore:
    """Per-call SQLite access for the ``app_info`` and ``resource`` tables."""

    def __init__(self, db_path: Union[str, Path], *, timeout: float = 30.0):
        self.path = Path(db_path)
        self.timeout = timeout

    @contextlib.contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and always closes.

        Raises:
            StoreError: wrapping any ``sqlite3.Error`` raised while connecting
                or inside the ``with`` block.
        """
        try:
            conn = sqlite3.connect(str(self.path), timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreError(f"Unable to open database {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"SQLite failure on {self.path}: {e}")
            raise StoreError(f"SQLite failure on {self.path}: {e}") from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        """Create both tables if they are missing (safe to call on every operation)."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Unable to create database directory for {self.path}: {e}") from e
        with self.connect() as conn:
            conn.executescript(_SCHEMA)

    # --- descriptors -------------------------------------------------------

    def get_descriptor(self, app_id: str) -> Optional[bytes]:
        """Return the persisted descriptor blob for ``app_id``, if any."""
        with self.connect() as conn:
            row = conn.execute(
                f"SELECT app_info FROM {TABLE_APP_INFO} WHERE id = ?",
                (app_id,),
            ).fetchone()
        if row is None or row[0] is None:
            return None
        blob = row[0]
        return blob.encode("utf-8") if isinstance(blob, str) else bytes(blob)

    def put_descriptor(self, app_id: str, blob: bytes) -> None:
        """Insert or replace the descriptor blob for ``app_id``."""
        with self.connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {TABLE_APP_INFO} (id, app_info) VALUES (?, ?)",
                (app_id, sqlite3.Binary(blob)),
            )

    # --- resources ---------------------------------------------------------

    def find_resource(self, url: str) -> Optional[CacheRecord]:
        """Return the first record for ``url`` (lowest id), if any."""
        with self.connect() as conn:
            row = conn.execute(
                f"""
                SELECT id, url, path, hash_code, cache_ctrl
                FROM {TABLE_RESOURCE}
                WHERE url = ?
                ORDER BY id
                LIMIT 1
                """,
                (url,),
            ).fetchone()
        return self._row_to_record(row) if row is not None else None

    def delete_resource(self, record_id: int) -> None:
        with self.connect() as conn:
            conn.execute(f"DELETE FROM {TABLE_RESOURCE} WHERE id = ?", (record_id,))

    def insert_resource(self, url: str, path: str, hash_code: str, cache_ctrl: str = "") -> int:
        """Insert a new record and return its store-assigned id."""
        with self.connect() as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO {TABLE_RESOURCE} (url, path, hash_code, cache_ctrl)
                VALUES (?, ?, ?, ?)
                """,
                (url, path, hash_code, cache_ctrl),
            )
            return int(cursor.lastrowid)

    def list_resources(self) -> List[CacheRecord]:
        """Get all resource records, oldest first."""
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT id, url, path, hash_code, cache_ctrl FROM {TABLE_RESOURCE} ORDER BY id"
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def stats(self) -> Dict[str, int]:
        """Return row counts for both tables."""
        with self.connect() as conn:
            descriptors = conn.execute(f"SELECT COUNT(*) FROM {TABLE_APP_INFO}").fetchone()[0]
            resources = conn.execute(f"SELECT COUNT(*) FROM {TABLE_RESOURCE}").fetchone()[0]
        return {"descriptors": descriptors, "resources": resources}

    # --- lifecycle ---------------------------------------------------------

    def exists(self) -> bool:
        return self.path.exists()

    def destroy(self) -> bool:
        """Delete the database file. Returns ``True`` when a file was removed."""
        if not self.exists():
            return False
        try:
            self.path.unlink()
        except OSError as e:
            raise StoreError(f"Unable to delete database {self.path}: {e}") from e
        logger.info(f"Deleted cache database {self.path}")
        return True

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> CacheRecord:
        return CacheRecord(
            id=row["id"],
            url=row["url"],
            path=row["path"],
            hash_code=row["hash_code"],
            cache_ctrl=row["cache_ctrl"],
        )
