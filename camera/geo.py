"""
Geolocation and focal length derivation from parsed tag values.

Everything here is a pure function of its arguments so it can be tested
without image files. Rationals may be given as ``(numerator,
denominator)`` tuples or as objects with ``numerator``/``denominator``
attributes (Pillow's ``IFDRational``, ``fractions.Fraction``, ints).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from config import FILM_35MM_WIDTH, MM_PER_RESOLUTION_UNIT, UNKNOWN

from .sensors import DEFAULT_SENSOR_TABLE, SensorTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Focal:
    """35mm-equivalent focal length and focal/sensor-width ratio (0 = unknown)."""

    f35: float = 0.0
    ratio: float = 0.0


@dataclass(frozen=True)
class GeoLocation:
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0


def as_rational(value: Any) -> tuple[float, float]:
    """Split a rational-like value into ``(numerator, denominator)``."""
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return value[0], value[1]
    numerator = getattr(value, "numerator", None)
    denominator = getattr(value, "denominator", None)
    if numerator is not None and denominator is not None:
        return numerator, denominator
    return float(value), 1


def eval_frac(value: Any) -> float:
    """Evaluate a rational; a zero denominator yields 0.0."""
    numerator, denominator = as_rational(value)
    if denominator == 0:
        return 0.0
    return float(numerator) / float(denominator)


def to_float(value: Any) -> float | None:
    """Best effort numeric conversion of a tag value (None when impossible)."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    try:
        return eval_frac(value)
    except (TypeError, ValueError):
        return None


def _ref_string(ref: Any) -> str:
    if ref is None:
        return ""
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    return str(ref).strip("\x00 ").upper()


def geo_to_decimal(dms: Sequence[Any] | None, ref: Any = None) -> float:
    """Convert a degrees/minutes/seconds triple to signed decimal degrees.

    South and West references are negative; an absent or unrecognized
    reference is treated as North/East.
    """
    if dms is None:
        return 0.0

    sign = -1.0 if _ref_string(ref) in ("S", "W") else 1.0

    parts = list(dms)[:3]
    parts += [0] * (3 - len(parts))
    degrees, minutes, seconds = (eval_frac(p) for p in parts)

    return sign * (degrees + minutes / 60.0 + seconds / 3600.0)


def sensor_key(make: str | None, model: str | None) -> str:
    """Canonical ``"<make> <model>"`` lookup key.

    Both parts are lowercased and stripped; repeated make strings inside
    the model are removed ("DJI", "DJI FC6310" -> "dji fc6310"). A missing
    make yields ``"unknown <model>"``.
    """
    make = (make or UNKNOWN).lower().strip()
    model = (model or UNKNOWN).lower()

    if make and make != UNKNOWN:
        while make in model:
            model = model.replace(make, "")

    model = model.strip()
    return f"{make or UNKNOWN} {model}"


def mm_per_unit(resolution_unit: Any) -> float:
    """Length in millimeters of an EXIF resolution unit (0.0 if unknown)."""
    try:
        unit = int(resolution_unit)
    except (TypeError, ValueError):
        unit = None
    mm = MM_PER_RESOLUTION_UNIT.get(unit, 0.0)
    if mm == 0.0:
        logger.warning("Unknown EXIF resolution unit: %s", resolution_unit)
    return mm


def sensor_width_from_resolution(
    image_width: float | None,
    pixels_per_unit: float | None,
    resolution_unit: Any,
) -> float:
    """Physical sensor width in millimeters from focal plane resolution tags.

    ``image_width * (1 / pixels_per_unit) * mm_per_unit``; 0.0 when any
    input is missing or unusable.
    """
    if resolution_unit is None or pixels_per_unit is None:
        return 0.0

    mm = mm_per_unit(resolution_unit)
    if mm == 0.0:
        return 0.0

    if pixels_per_unit <= 0 or not image_width or image_width <= 0:
        return 0.0

    units_per_pixel = 1.0 / pixels_per_unit
    return image_width * units_per_pixel * mm


def compute_focal(
    focal35: float | None,
    focal: float | None,
    sensor_width: float = 0.0,
    sensor: str = "",
    sensors: SensorTable = DEFAULT_SENSOR_TABLE,
) -> Focal:
    """Derive the 35mm-equivalent focal length and the focal ratio.

    A stated 35mm-equivalent value wins. Otherwise the raw focal length is
    divided by the sensor width, taken from the resolution tags or, failing
    that, from the sensor table. Returns ``Focal(0, 0)`` when unknown.
    """
    if focal35 is not None and focal35 > 0:
        return Focal(f35=focal35, ratio=focal35 / FILM_35MM_WIDTH)

    if sensor_width <= 0.0:
        sensor_width = sensors.width_for(sensor)

    if sensor_width > 0.0 and focal is not None:
        ratio = focal / sensor_width
        return Focal(f35=FILM_35MM_WIDTH * ratio, ratio=ratio)

    return Focal()
