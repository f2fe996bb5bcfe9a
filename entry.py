"""
Core data types for the ddb index.

This module defines the ``Entry`` record (one row per indexed filesystem
object) and the ``EntryType`` categories assigned by the extractor.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class EntryType(IntEnum):
    """Category of an indexed object. Values are persisted; never renumber."""

    UNDEFINED = 0
    DIRECTORY = 1
    GENERIC = 2
    GEOIMAGE = 3
    GEORASTER = 4
    POINTCLOUD = 5
    IMAGE = 6

    @property
    def label(self) -> str:
        return self.name.lower()


def dump_meta(meta: dict[str, Any]) -> str:
    """Serialize a meta document the way it is stored (stable key order)."""
    return json.dumps(meta, sort_keys=True, separators=(",", ":"))


@dataclass
class Entry:
    """An indexed filesystem object.

    Attributes:
        path: POSIX path relative to the index root (primary key)
        hash: SHA-256 hex digest of the contents ("" for directories or
            when hashing was not requested)
        type: Category assigned by the extractor
        meta: Format-specific metadata (camera, focal, raster bands...)
        mtime: Modification time in whole seconds
        size: Byte length (0 for directories)
        depth: Number of components in ``path``
        point_geom: WKT point (camera location) or ""
        polygon_geom: WKT polygon (ground footprint / raster bounds) or ""
    """

    path: str
    hash: str = ""
    type: EntryType = EntryType.UNDEFINED
    meta: dict[str, Any] = field(default_factory=dict)
    mtime: int = 0
    size: int = 0
    depth: int = 0
    point_geom: str = ""
    polygon_geom: str = ""

    @classmethod
    def from_db_row(cls, row) -> Entry:
        """Create an Entry from an ``entries`` table row."""
        meta = row["meta"]
        return cls(
            path=row["path"],
            hash=row["hash"] or "",
            type=EntryType(row["type"]),
            meta=json.loads(meta) if meta else {},
            mtime=row["mtime"],
            size=row["size"],
            depth=row["depth"],
            point_geom=row["point_geom"] or "",
            polygon_geom=row["polygon_geom"] or "",
        )

    def to_db_params(self) -> dict:
        """Named parameters for INSERT/UPDATE statements."""
        return {
            "path": self.path,
            "hash": self.hash,
            "type": int(self.type),
            "meta": dump_meta(self.meta),
            "mtime": self.mtime,
            "size": self.size,
            "depth": self.depth,
            "point_geom": self.point_geom or None,
            "polygon_geom": self.polygon_geom or None,
        }

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary (used by ``ddb info``)."""
        return {
            "path": self.path,
            "hash": self.hash,
            "type": int(self.type),
            "type_name": self.type.label,
            "meta": self.meta,
            "mtime": self.mtime,
            "size": self.size,
            "depth": self.depth,
            "point_geom": self.point_geom,
            "polygon_geom": self.polygon_geom,
        }
