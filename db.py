"""Database helper module for the ddb index."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from entry import Entry
from errors import DBError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    path TEXT PRIMARY KEY NOT NULL,
    hash TEXT,
    type INTEGER NOT NULL,
    meta TEXT,
    mtime INTEGER NOT NULL,
    size INTEGER NOT NULL,
    depth INTEGER NOT NULL,
    point_geom TEXT,
    polygon_geom TEXT
);

CREATE INDEX IF NOT EXISTS idx_entries_type ON entries(type);
CREATE INDEX IF NOT EXISTS idx_entries_depth ON entries(depth);
"""

_ENTRY_COLUMNS = "path, hash, type, meta, mtime, size, depth, point_geom, polygon_geom"


def connect(db_path: str | Path) -> sqlite3.Connection:
    """Open a connection with explicit transaction control (autocommit mode)."""
    try:
        conn = sqlite3.connect(str(db_path), isolation_level=None)
    except sqlite3.Error as exc:
        raise DBError(f"Cannot open database {db_path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return conn


def create_database(db_path: str | Path) -> None:
    """Create a new database file with the index schema."""
    conn = connect(db_path)
    try:
        init_database(conn)
    finally:
        conn.close()


def init_database(conn: sqlite3.Connection) -> None:
    """Initialize the database with the schema."""
    try:
        conn.executescript(SCHEMA)
    except sqlite3.Error as exc:
        raise DBError(f"Cannot create tables: {exc}") from exc


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    cursor = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    )
    return cursor.fetchone() is not None


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """BEGIN ... COMMIT around the block; ROLLBACK on any exception.

    ``sqlite3.Error`` raised inside the block is re-raised as ``DBError``
    once the rollback is done.
    """
    try:
        conn.execute("BEGIN TRANSACTION")
    except sqlite3.Error as exc:
        raise DBError(f"Cannot begin transaction: {exc}") from exc

    try:
        yield conn
    except sqlite3.Error as exc:
        logger.debug("Rolling back after storage error: %s", exc)
        conn.execute("ROLLBACK")
        raise DBError(str(exc)) from exc
    except BaseException:
        logger.debug("Rolling back transaction")
        conn.execute("ROLLBACK")
        raise

    try:
        conn.execute("COMMIT")
    except sqlite3.Error as exc:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise DBError(f"Cannot commit transaction: {exc}") from exc


def get_fingerprint(conn: sqlite3.Connection, path: str) -> tuple[int, str] | None:
    """Recorded ``(mtime, hash)`` for an entry, or None if not indexed."""
    cursor = conn.execute("SELECT mtime, hash FROM entries WHERE path = ?", (path,))
    row = cursor.fetchone()
    if row is None:
        return None
    return row["mtime"], row["hash"] or ""


def list_fingerprints(conn: sqlite3.Connection) -> list[tuple[str, int, str]]:
    """``(path, mtime, hash)`` for every indexed entry, ordered by path."""
    cursor = conn.execute("SELECT path, mtime, hash FROM entries ORDER BY path")
    return [(row["path"], row["mtime"], row["hash"] or "") for row in cursor.fetchall()]


def insert_entry(conn: sqlite3.Connection, entry: Entry) -> None:
    conn.execute(
        f"""
        INSERT INTO entries ({_ENTRY_COLUMNS})
        VALUES (:path, :hash, :type, :meta, :mtime, :size, :depth, :point_geom, :polygon_geom)
        """,
        entry.to_db_params(),
    )


def update_entry(conn: sqlite3.Connection, entry: Entry) -> None:
    conn.execute(
        """
        UPDATE entries
        SET hash = :hash,
            type = :type,
            meta = :meta,
            mtime = :mtime,
            size = :size,
            depth = :depth,
            point_geom = :point_geom,
            polygon_geom = :polygon_geom
        WHERE path = :path
        """,
        entry.to_db_params(),
    )


def delete_entry(conn: sqlite3.Connection, path: str) -> int:
    """Delete an entry; returns the number of rows removed (0 or 1)."""
    cursor = conn.execute("DELETE FROM entries WHERE path = ?", (path,))
    return cursor.rowcount


def get_entry(conn: sqlite3.Connection, path: str) -> Entry | None:
    cursor = conn.execute(f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE path = ?", (path,))
    row = cursor.fetchone()
    return Entry.from_db_row(row) if row else None


def list_entries(conn: sqlite3.Connection) -> list[Entry]:
    """All entries ordered by path."""
    cursor = conn.execute(f"SELECT {_ENTRY_COLUMNS} FROM entries ORDER BY path")
    return [Entry.from_db_row(row) for row in cursor.fetchall()]


def count_entries(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]
