"""Change detection based on the ``(mtime, hash)`` fingerprint."""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from config import HASH_CHUNK_SIZE

logger = logging.getLogger(__name__)


class Decision(Enum):
    UNCHANGED = "unchanged"
    CHANGED = "changed"


@dataclass(frozen=True)
class UpdateCheck:
    """Outcome of ``check_update``.

    Attributes:
        decision: Whether the object must be re-extracted
        mtime: Modification time observed on disk
        hash: Content hash, when one had to be computed (files only)
    """

    decision: Decision
    mtime: int
    hash: str | None = None

    @property
    def changed(self) -> bool:
        return self.decision is Decision.CHANGED


def get_modified_time(path: str | Path) -> int:
    """Modification time in whole seconds."""
    return int(os.stat(path).st_mtime)


def compute_file_hash(path: str | Path) -> str:
    """SHA-256 hex digest of a file's contents."""
    hasher = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def check_update(path: str | Path, recorded_mtime: int, recorded_hash: str | None) -> UpdateCheck:
    """Decide whether ``path`` differs from its recorded fingerprint.

    The modification time is compared first. Only when it differs is a
    file's content hashed; a matching hash means the file was merely
    touched and is reported unchanged. Directories are never hashed.
    """
    mtime = get_modified_time(path)
    if mtime == recorded_mtime:
        return UpdateCheck(Decision.UNCHANGED, mtime)

    logger.debug("%s modified time (%s) differs from file value: %s", path, recorded_mtime, mtime)

    if os.path.isdir(path):
        return UpdateCheck(Decision.CHANGED, mtime)

    file_hash = compute_file_hash(path)
    if file_hash != (recorded_hash or ""):
        logger.debug("%s hash differs (old: %s | new: %s)", path, recorded_hash, file_hash)
        return UpdateCheck(Decision.CHANGED, mtime, file_hash)

    return UpdateCheck(Decision.UNCHANGED, mtime, file_hash)
