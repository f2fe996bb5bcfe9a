"""Index lifecycle and synchronization operations.

Every mutating operation follows the same shape: resolve paths, open one
transaction, decide add/update/delete per path, commit. Change lines
(``A``/``U``/``D`` + tab + path) are handed to ``output`` only after the
commit succeeded, so a failed call leaves both the index and the change
log untouched.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from tqdm import tqdm

import db
from camera import DEFAULT_SENSOR_TABLE, SensorTable
from config import DATABASE_FILENAME, DDB_FOLDER
from entry import Entry
from errors import DBError, FSError, InitError
from fingerprint import check_update
from parse import ParseEntryOpts, parse_entry
from paths import get_index_path_list, get_path_list, is_contained, to_entry_path

logger = logging.getLogger(__name__)

ADDED = "A"
UPDATED = "U"
DELETED = "D"


@dataclass(frozen=True)
class Change:
    op: str
    path: str

    def __str__(self) -> str:
        return f"{self.op}\t{self.path}"


def print_change(change: Change) -> None:
    print(change, flush=True)


ChangeOutput = Callable[[Change], None]


@dataclass
class Index:
    """An opened index: its root directory and the database connection."""

    root: Path
    conn: sqlite3.Connection
    sensors: SensorTable = field(default_factory=lambda: DEFAULT_SENSOR_TABLE)

    @property
    def ddb_dir(self) -> Path:
        return self.root / DDB_FOLDER

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> Index:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def init_index(directory: str | Path) -> Path:
    """Create ``<directory>/.ddb`` with an empty database.

    Returns:
        Path of the created ``.ddb`` directory

    Raises:
        FSError: If ``directory`` does not exist
        InitError: If an index already exists or cannot be created
    """
    dir_path = Path(directory)
    if not dir_path.is_dir():
        raise FSError(f"Invalid directory: {directory} (does not exist)")

    ddb_dir = dir_path / DDB_FOLDER
    db_path = ddb_dir / DATABASE_FILENAME

    logger.debug("Checking if %s exists...", ddb_dir)
    if ddb_dir.exists():
        raise InitError(f"Cannot initialize database: {ddb_dir} already exists")

    try:
        ddb_dir.mkdir()
    except OSError as exc:
        raise InitError(
            f"Cannot create directory: {ddb_dir}. Check that you have the proper permissions? ({exc})"
        ) from exc
    logger.debug("%s created", ddb_dir)

    logger.debug("Creating %s", db_path)
    db.create_database(db_path)
    return ddb_dir


def open_index(
    directory: str | Path,
    traverse_up: bool = False,
    sensors: SensorTable = DEFAULT_SENSOR_TABLE,
) -> Index:
    """Open the index rooted at ``directory`` (or the nearest ancestor).

    Raises:
        FSError: If no ``.ddb`` database is found
        DBError: If the database lacks the ``entries`` table
    """
    dir_path = Path(os.path.abspath(directory))

    while True:
        db_path = dir_path / DDB_FOLDER / DATABASE_FILENAME
        if db_path.exists():
            logger.debug("%s exists", db_path)
            conn = db.connect(db_path)
            if not db.table_exists(conn, "entries"):
                conn.close()
                raise DBError(f"Table 'entries' not found (not a valid database: {db_path})")
            return Index(root=dir_path, conn=conn, sensors=sensors)

        if not traverse_up or dir_path.parent == dir_path:
            raise FSError(f"Not a valid ddb directory, {DDB_FOLDER} does not exist. Did you run ddb init?")
        dir_path = dir_path.parent


def _emit(changes: list[Change], output: ChangeOutput | None) -> list[Change]:
    if output is not None:
        for change in changes:
            output(change)
    return changes


def _progress(items: list, show: bool, desc: str) -> Iterable:
    return tqdm(items, desc=desc, unit="entry", disable=not show, leave=False)


def add_to_index(
    index: Index,
    paths: Iterable[str | Path],
    output: ChangeOutput | None = print_change,
    show_progress: bool = False,
) -> list[Change]:
    """Add new objects under ``paths`` and refresh changed ones.

    Ancestor directories of every resolved object are indexed too.
    Unchanged objects produce no change record.
    """
    path_list = get_index_path_list(index.root, paths, include_dirs=True)
    opts = ParseEntryOpts(with_hash=True, sensors=index.sensors)
    changes: list[Change] = []

    with db.transaction(index.conn) as conn:
        for p in _progress(path_list, show_progress, "add"):
            rel = to_entry_path(p, index.root)
            fingerprint = db.get_fingerprint(conn, rel)

            if fingerprint is None:
                entry = parse_entry(p, index.root, opts)
                db.insert_entry(conn, entry)
                changes.append(Change(ADDED, entry.path))
                continue

            check = check_update(p, *fingerprint)
            if check.changed:
                entry = parse_entry(p, index.root, opts, file_hash=check.hash)
                db.update_entry(conn, entry)
                changes.append(Change(UPDATED, entry.path))

    return _emit(changes, output)


def remove_from_index(
    index: Index,
    paths: Iterable[str | Path],
    output: ChangeOutput | None = print_change,
) -> list[Change]:
    """Delete the entries for ``paths`` (and everything below directories).

    Ancestor directories are left alone. Paths with no entry are ignored.
    """
    path_list = get_index_path_list(index.root, paths, include_dirs=False)
    changes: list[Change] = []

    with db.transaction(index.conn) as conn:
        for p in path_list:
            rel = to_entry_path(p, index.root)
            if db.delete_entry(conn, rel) >= 1:
                changes.append(Change(DELETED, rel))

    return _emit(changes, output)


def sync_index(
    index: Index,
    output: ChangeOutput | None = print_change,
    show_progress: bool = False,
) -> list[Change]:
    """Reconcile every recorded entry with the filesystem.

    Entries whose object changed are re-extracted; entries whose object
    no longer exists are deleted.
    """
    opts = ParseEntryOpts(with_hash=True, sensors=index.sensors)
    changes: list[Change] = []

    with db.transaction(index.conn) as conn:
        recorded = db.list_fingerprints(conn)
        for rel, mtime, file_hash in _progress(recorded, show_progress, "sync"):
            p = index.root / rel

            if os.path.exists(p):
                check = check_update(p, mtime, file_hash)
                if check.changed:
                    entry = parse_entry(p, index.root, opts, file_hash=check.hash)
                    db.update_entry(conn, entry)
                    changes.append(Change(UPDATED, entry.path))
            else:
                db.delete_entry(conn, rel)
                changes.append(Change(DELETED, rel))

    return _emit(changes, output)


def get_entries_info(
    paths: Iterable[str | Path],
    recursive: bool = False,
    max_depth: int = 0,
    with_hash: bool = False,
    sensors: SensorTable = DEFAULT_SENSOR_TABLE,
) -> list[Entry]:
    """Parse entries for ``paths`` without touching any index.

    Without ``recursive`` only the named objects are described (directories
    are not expanded). Entry paths are relative to the working directory
    when the object lies within it, otherwise relative to the filesystem
    root.
    """
    paths = list(paths)
    if recursive:
        path_list = get_path_list(paths, include_dirs=True, max_depth=max_depth)
    else:
        path_list = []
        for raw in paths:
            p = Path(raw)
            if not os.path.exists(p):
                raise FSError(f"Path does not exist: {raw}")
            path_list.append(p)

    cwd = Path.cwd()
    opts = ParseEntryOpts(with_hash=with_hash, sensors=sensors)
    entries = []
    for p in path_list:
        root = cwd if is_contained(cwd, p) else Path(os.path.abspath(p)).anchor
        entries.append(parse_entry(p, root, opts))
    return entries
