"""Geometry helpers: WKT builders, image ground footprints and raster bounds.

All coordinates are lon/lat degrees (SRID 4326) with an elevation.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from config import EARTH_RADIUS

# (lon, lat, z)
Coord = tuple[float, float, float]


def _fmt(value: float) -> str:
    return format(float(value), ".15g")


def point_wkt(x: float, y: float, z: float = 0.0) -> str:
    return f"POINT Z ({_fmt(x)} {_fmt(y)} {_fmt(z)})"


def polygon_wkt(ring: Sequence[Coord]) -> str:
    """WKT polygon from an outer ring; the ring is closed if needed."""
    if not ring:
        return ""
    ring = list(ring)
    if ring[0] != ring[-1]:
        ring.append(ring[0])
    coords = ", ".join(f"{_fmt(x)} {_fmt(y)} {_fmt(z)}" for x, y, z in ring)
    return f"POLYGON Z (({coords}))"


def offsets_to_degrees(lat: float, east: np.ndarray, north: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Convert metric east/north offsets around ``lat`` into degree deltas."""
    dlat = np.degrees(north / EARTH_RADIUS)
    dlon = np.degrees(east / (EARTH_RADIUS * math.cos(math.radians(lat))))
    return dlon, dlat


def image_footprint(
    lon: float,
    lat: float,
    ground_altitude: float,
    relative_altitude: float,
    focal_ratio: float,
    width: int,
    height: int,
    yaw: float = 0.0,
) -> str:
    """Ground footprint of a nadir image as a WKT polygon ("" if not computable).

    The covered ground width is ``relative_altitude / focal_ratio`` (focal
    ratio = focal length / sensor width); the height follows the image
    aspect ratio. Corners are rotated by ``yaw`` (degrees clockwise from
    north) around the camera position.
    """
    if relative_altitude <= 0 or focal_ratio <= 0 or width <= 0 or height <= 0:
        return ""
    if abs(lat) >= 90.0:
        return ""

    ground_width = relative_altitude / focal_ratio
    ground_height = ground_width * height / width

    # Camera frame: x to the right, y forward (top edge of the image)
    half_w = ground_width / 2.0
    half_h = ground_height / 2.0
    corners = np.array([
        [-half_w, half_h],
        [half_w, half_h],
        [half_w, -half_h],
        [-half_w, -half_h],
    ])

    theta = math.radians(yaw)
    rotation = np.array([
        [math.cos(theta), math.sin(theta)],
        [-math.sin(theta), math.cos(theta)],
    ])
    east_north = corners @ rotation.T

    dlon, dlat = offsets_to_degrees(lat, east_north[:, 0], east_north[:, 1])
    ring = [
        (lon + float(dx), lat + float(dy), ground_altitude)
        for dx, dy in zip(dlon, dlat)
    ]
    return polygon_wkt(ring)


def geotiff_bounds(
    width: int,
    height: int,
    tiepoint: Sequence[float],
    pixel_scale: Sequence[float],
) -> str:
    """Bounds of a north-up raster from its GeoTIFF tiepoint and pixel scale."""
    if len(tiepoint) < 6 or len(pixel_scale) < 2 or width <= 0 or height <= 0:
        return ""

    i, j, _, x, y, _ = tiepoint[:6]
    scale_x, scale_y = pixel_scale[0], pixel_scale[1]
    if scale_x <= 0 or scale_y <= 0:
        return ""

    min_x = x - i * scale_x
    max_y = y + j * scale_y
    max_x = min_x + width * scale_x
    min_y = max_y - height * scale_y

    return polygon_wkt([
        (min_x, max_y, 0.0),
        (max_x, max_y, 0.0),
        (max_x, min_y, 0.0),
        (min_x, min_y, 0.0),
    ])
