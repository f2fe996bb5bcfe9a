"""
Path resolution for index operations.

Expands user supplied paths into the concrete set of filesystem objects an
operation works on. Two modes exist:

- root-scoped (``get_index_path_list``): used by add/remove; every path must
  live under the index root and ancestor directories can be pulled in.
- unscoped (``get_path_list``): used by read-only listing; supports a
  maximum recursion depth.

The reserved ``.ddb`` folder is never yielded and never descended into.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Iterator

from config import DDB_FOLDER
from errors import FSError, PathContainmentError

logger = logging.getLogger(__name__)

# Decides whether to recurse into a directory found at the given walk depth
DescendPredicate = Callable[[Path, int], bool]


def _absolute(path: str | Path) -> Path:
    return Path(os.path.abspath(path))


def to_entry_path(path: str | Path, root: str | Path) -> str:
    """Return the canonical entry key for ``path``: relative to ``root``, forward slashes.

    Raises:
        PathContainmentError: If ``path`` is not inside ``root``.
    """
    try:
        rel = _absolute(path).relative_to(_absolute(root))
    except ValueError as exc:
        raise PathContainmentError(f"{path} is not contained within {root}") from exc
    return rel.as_posix()


def path_depth(entry_path: str) -> int:
    """Number of components in a relative entry path ("a/b.jpg" -> 2)."""
    if entry_path in ("", "."):
        return 0
    return len(Path(entry_path).parts)


def is_contained(root: str | Path, path: str | Path) -> bool:
    """True if ``path`` is ``root`` or lies below it."""
    abs_root = _absolute(root)
    abs_path = _absolute(path)
    return abs_path == abs_root or abs_root in abs_path.parents


def paths_are_children(root: str | Path, paths: Iterable[str | Path]) -> bool:
    return all(is_contained(root, p) for p in paths)


def _is_reserved(path: Path) -> bool:
    return DDB_FOLDER in path.parts


def _descend_always(path: Path, depth: int) -> bool:
    return True


def walk(top: str | Path, descend: DescendPredicate | None = None, _depth: int = 0) -> Iterator[tuple[Path, int]]:
    """Lazily yield ``(path, depth)`` for everything below ``top``.

    Entries within a directory are yielded in name order, each directory
    before its contents. ``depth`` is 0 for direct children of ``top``.
    ``descend(path, depth)`` is asked before recursing into a directory;
    the directory itself is yielded either way. Symlinked directories are
    yielded but not followed; dangling symlinks are skipped.
    """
    if descend is None:
        descend = _descend_always

    try:
        with os.scandir(top) as it:
            children = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise FSError(f"Cannot read directory {top}: {exc}") from exc

    for child in children:
        if child.name == DDB_FOLDER:
            continue
        child_path = Path(child.path)
        if child.is_symlink() and not os.path.exists(child_path):
            logger.warning("Skipping dangling symlink %s", child_path)
            continue
        yield child_path, _depth
        if child.is_dir(follow_symlinks=False) and descend(child_path, _depth):
            yield from walk(child_path, descend, _depth + 1)


def get_index_path_list(
    root: str | Path,
    paths: Iterable[str | Path],
    include_dirs: bool,
) -> list[Path]:
    """Resolve ``paths`` into the objects an add/remove call works on.

    Every path must be inside ``root`` (checked first, for all paths) and
    must exist. Directories named in ``paths`` are always part of the
    result. When ``include_dirs`` is true, directories found while walking
    and all ancestors of every result (up to, not including, ``root``) are
    added too, so that directory entries exist for every level above a
    changed file. The root itself is never returned.

    Returns:
        Files in discovery order, followed by directories. Each object
        appears once.

    Raises:
        PathContainmentError: If any path lies outside ``root``.
        FSError: If any path does not exist.
    """
    paths = list(paths)
    abs_root = _absolute(root)

    if not paths_are_children(abs_root, paths):
        raise PathContainmentError(
            f"Some paths are not contained within: {abs_root}. Did you run ddb init?"
        )

    files: dict[Path, None] = {}
    directories: dict[Path, None] = {}

    def add_ancestors(p: Path) -> None:
        if p == abs_root:
            return
        for parent in p.parents:
            if parent == abs_root:
                break
            directories[parent] = None

    for raw in paths:
        p = _absolute(raw)
        if _is_reserved(p.relative_to(abs_root)):
            logger.debug("Skipping reserved path %s", p)
            continue

        if p.is_dir():
            for rp, _ in walk(p):
                if include_dirs and rp.is_dir():
                    directories[rp] = None
                else:
                    files[rp] = None
                if include_dirs:
                    add_ancestors(rp)

            if p != abs_root:
                directories[p] = None
            if include_dirs:
                add_ancestors(p)
        elif p.exists():
            files[p] = None
            if include_dirs:
                add_ancestors(p)
        else:
            raise FSError(f"Path does not exist: {raw}")

    return list(files) + [d for d in directories if d not in files]


def get_path_list(
    paths: Iterable[str | Path],
    include_dirs: bool,
    max_depth: int = 0,
) -> list[Path]:
    """Resolve ``paths`` without any root containment check.

    ``max_depth`` limits recursion (0 = unlimited). With ``max_depth=N``
    directories at walk depth ``N - 1`` are still listed but not entered.

    Raises:
        FSError: If any path does not exist.
    """

    def descend(path: Path, depth: int) -> bool:
        return max_depth <= 0 or depth < max_depth - 1

    result: list[Path] = []
    seen: set[Path] = set()

    def push(p: Path) -> None:
        if p not in seen:
            seen.add(p)
            result.append(p)

    for raw in paths:
        p = Path(raw)
        if p.name == DDB_FOLDER:
            continue

        if p.is_dir():
            for rp, _ in walk(p, descend):
                if rp.is_dir():
                    if include_dirs:
                        push(rp)
                else:
                    push(rp)
        elif p.exists():
            push(p)
        else:
            raise FSError(f"Path does not exist: {raw}")

    return result
