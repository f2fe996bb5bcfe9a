"""
Entry metadata extraction.

``parse_entry`` turns a filesystem object into a fresh ``Entry``: type,
size, depth, optional content hash, and for imagery the camera/focal
metadata plus point and footprint geometries. Problems reading tags never
abort the caller; the affected fields keep their defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple

from PIL import Image
from pydantic import BaseModel, Field

import config
from camera import DEFAULT_SENSOR_TABLE, ExifParser, SensorTable
from camera.geo import to_float
from entry import Entry, EntryType
from fingerprint import compute_file_hash
from geometry import geotiff_bounds, image_footprint, point_wkt
from paths import path_depth, to_entry_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseEntryOpts:
    """Options for ``parse_entry``.

    Attributes:
        with_hash: Compute the SHA-256 of file contents
        sensors: Sensor width table used for focal derivation
    """

    with_hash: bool = False
    sensors: SensorTable = field(default_factory=lambda: DEFAULT_SENSOR_TABLE)


class ImageMeta(BaseModel):
    """Camera metadata stored in ``Entry.meta`` for (geo)images."""

    image_width: int = -1
    image_height: int = -1
    make: str = config.UNKNOWN
    model: str = config.UNKNOWN
    sensor: str = ""
    sensor_width: float = Field(default=0.0, ge=0.0)
    focal_length: float | None = None
    focal35: float = 0.0
    focal_ratio: float = 0.0
    capture_time: int | None = None
    altitude: float | None = None
    relative_altitude: float | None = None
    camera_yaw: float | None = None
    camera_pitch: float | None = None
    camera_roll: float | None = None

    def to_meta(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RasterMeta(BaseModel):
    """Raster properties stored in ``Entry.meta`` for GeoTIFFs."""

    width: int
    height: int
    bands: int
    pixel_scale: list[float] = Field(default_factory=list)
    tiepoint: list[float] = Field(default_factory=list)
    geographic: bool = False

    def to_meta(self) -> dict[str, Any]:
        return self.model_dump()


class Extracted(NamedTuple):
    type: EntryType
    meta: dict[str, Any]
    point_geom: str = ""
    polygon_geom: str = ""


def _geotiff_tags(img: Image.Image) -> dict[int, Any]:
    tag_v2 = getattr(img, "tag_v2", None)
    if not tag_v2:
        return {}
    wanted = config.GEOTIFF_TAGS + (config.GEOTIFF_GEOKEY_DIRECTORY_TAG,)
    return {tag: tag_v2[tag] for tag in wanted if tag in tag_v2}


def _geokey(directory: Any, key_id: int) -> int | None:
    """Inline value of a GeoKey from a GeoKeyDirectory tag, if present."""
    if not directory or len(directory) < 4:
        return None
    count = int(directory[3])
    for i in range(count):
        start = 4 + i * 4
        entry = directory[start:start + 4]
        if len(entry) < 4:
            break
        key, location, _, value = (int(v) for v in entry)
        if key == key_id and location == 0:
            return value
    return None


def _classify_image(img: Image.Image) -> EntryType:
    if any(tag in _geotiff_tags(img) for tag in config.GEOTIFF_TAGS):
        return EntryType.GEORASTER
    if ExifParser.from_image(img).has_geo():
        return EntryType.GEOIMAGE
    return EntryType.IMAGE


def classify(path: str | Path) -> EntryType:
    """Category of a filesystem object (extension first, then Pillow sniffing)."""
    path = Path(path)
    if path.is_dir():
        return EntryType.DIRECTORY

    ext = path.suffix.lower()
    if ext in config.POINTCLOUD_EXTENSIONS:
        return EntryType.POINTCLOUD
    if ext not in config.IMAGE_EXTENSIONS:
        return EntryType.GENERIC

    try:
        with Image.open(path) as img:
            return _classify_image(img)
    except (OSError, ValueError, SyntaxError) as exc:
        logger.warning("Cannot read image %s: %s", path, exc)
        return EntryType.GENERIC


def _extract_raster(img: Image.Image, tags: dict[int, Any]) -> Extracted:
    width, height = img.size
    pixel_scale = [float(v) for v in tags.get(config.GEOTIFF_PIXEL_SCALE_TAG, ())]
    tiepoint = [float(v) for v in tags.get(config.GEOTIFF_TIEPOINT_TAG, ())]
    model_type = _geokey(tags.get(config.GEOTIFF_GEOKEY_DIRECTORY_TAG), config.GEOKEY_MODEL_TYPE)
    geographic = model_type == config.GEOKEY_MODEL_TYPE_GEOGRAPHIC

    meta = RasterMeta(
        width=width,
        height=height,
        bands=len(img.getbands()),
        pixel_scale=pixel_scale,
        tiepoint=tiepoint,
        geographic=geographic,
    )

    # Projected rasters would need reprojection; only lon/lat bounds are stored
    polygon = geotiff_bounds(width, height, tiepoint, pixel_scale) if geographic else ""
    return Extracted(EntryType.GEORASTER, meta.to_meta(), polygon_geom=polygon)


def _extract_image(img: Image.Image, opts: ParseEntryOpts) -> Extracted:
    parser = ExifParser.from_image(img, sensors=opts.sensors)
    entry_type = EntryType.GEOIMAGE if parser.has_geo() else EntryType.IMAGE

    width, height = parser.extract_image_size()
    sensor = parser.extract_sensor()
    meta = ImageMeta(
        image_width=width,
        image_height=height,
        make=parser.extract_make(),
        model=parser.extract_model(),
        sensor=sensor,
        sensor_width=max(parser.extract_sensor_width() or opts.sensors.width_for(sensor), 0.0),
        focal_length=to_float(parser.find_key("Photo.FocalLength", "Image.FocalLength")),
        capture_time=parser.extract_capture_time(),
    )

    try:
        focal = parser.compute_focal()
        meta.focal35 = focal.f35
        meta.focal_ratio = focal.ratio
    except (TypeError, ValueError, ArithmeticError) as exc:
        logger.warning("Cannot compute focal length: %s", exc)

    orientation = parser.extract_camera_orientation()
    meta.relative_altitude = orientation.get("relative_altitude")
    meta.camera_yaw = orientation.get("yaw")
    meta.camera_pitch = orientation.get("pitch")
    meta.camera_roll = orientation.get("roll")

    if entry_type != EntryType.GEOIMAGE:
        return Extracted(entry_type, meta.to_meta())

    geo = parser.extract_geo()
    meta.altitude = geo.altitude
    point = point_wkt(geo.longitude, geo.latitude, geo.altitude)

    polygon = ""
    pitch = meta.camera_pitch
    nadir = pitch is None or abs(pitch + 90.0) <= config.NADIR_PITCH_TOLERANCE
    if meta.relative_altitude and nadir:
        polygon = image_footprint(
            geo.longitude,
            geo.latitude,
            geo.altitude - meta.relative_altitude,
            meta.relative_altitude,
            meta.focal_ratio,
            width,
            height,
            yaw=meta.camera_yaw or 0.0,
        )

    return Extracted(entry_type, meta.to_meta(), point_geom=point, polygon_geom=polygon)


def extract_metadata(path: str | Path, opts: ParseEntryOpts | None = None) -> Extracted:
    """Type, meta and geometries of a file. Never raises for unreadable tags."""
    opts = opts or ParseEntryOpts()
    path = Path(path)
    ext = path.suffix.lower()

    if ext in config.POINTCLOUD_EXTENSIONS:
        return Extracted(EntryType.POINTCLOUD, {})
    if ext not in config.IMAGE_EXTENSIONS:
        return Extracted(EntryType.GENERIC, {})

    try:
        with Image.open(path) as img:
            geotiff = _geotiff_tags(img)
            if any(tag in geotiff for tag in config.GEOTIFF_TAGS):
                return _extract_raster(img, geotiff)
            return _extract_image(img, opts)
    except (OSError, SyntaxError) as exc:
        logger.warning("Cannot read image %s: %s", path, exc)
        return Extracted(EntryType.GENERIC, {})
    except (TypeError, ValueError, ArithmeticError) as exc:
        logger.warning("Cannot extract metadata from %s: %s", path, exc)
        return Extracted(classify(path), {})


def parse_entry(
    path: str | Path,
    root: str | Path,
    opts: ParseEntryOpts | None = None,
    file_hash: str | None = None,
) -> Entry:
    """Build a new ``Entry`` for ``path`` relative to the index ``root``.

    ``file_hash`` lets the caller pass a hash it already computed; otherwise
    files are hashed only when ``opts.with_hash`` is set. Directories are
    never hashed.
    """
    opts = opts or ParseEntryOpts()
    path = Path(path)
    rel = to_entry_path(path, root)
    stat = path.stat()

    if path.is_dir():
        return Entry(
            path=rel,
            type=EntryType.DIRECTORY,
            mtime=int(stat.st_mtime),
            size=0,
            depth=path_depth(rel),
        )

    if file_hash is None and opts.with_hash:
        file_hash = compute_file_hash(path)

    extracted = extract_metadata(path, opts)
    return Entry(
        path=rel,
        hash=file_hash or "",
        type=extracted.type,
        meta=extracted.meta,
        mtime=int(stat.st_mtime),
        size=stat.st_size,
        depth=path_depth(rel),
        point_geom=extracted.point_geom,
        polygon_geom=extracted.polygon_geom,
    )
