"""
EXIF/XMP tag access for images.

``ExifParser`` wraps already decoded tag values (Pillow does the binary
decoding) and derives camera, focal and geolocation information from
them. Tag keys are ``"<group>.<name>"`` where group is ``Image`` (IFD0),
``Photo`` (Exif sub-IFD) or ``GPSInfo`` and name is spelled as in
``PIL.ExifTags``.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Mapping

from PIL import ExifTags, Image

from config import UNKNOWN

from .geo import (
    Focal,
    GeoLocation,
    compute_focal,
    eval_frac,
    geo_to_decimal,
    sensor_key,
    sensor_width_from_resolution,
    to_float,
)
from .sensors import DEFAULT_SENSOR_TABLE, SensorTable

logger = logging.getLogger(__name__)

EXIF_IFD = 0x8769
GPS_IFD = 0x8825

# DJI (and compatible) XMP attributes, e.g. drone-dji:RelativeAltitude="+35.20"
_XMP_ATTRIBUTE = r'(?:[\w-]+:)?{name}\s*=\s*"([^"]*)"|<(?:[\w-]+:)?{name}>([^<]*)<'

_XMP_KEYS = {
    "relative_altitude": "RelativeAltitude",
    "yaw": ("GimbalYawDegree", "FlightYawDegree"),
    "pitch": ("GimbalPitchDegree", "FlightPitchDegree"),
    "roll": ("GimbalRollDegree", "FlightRollDegree"),
}


def _group_tags(group: str, ifd: Mapping[int, Any], names: Mapping[int, str]) -> dict[str, Any]:
    tags = {}
    for tag_id, value in ifd.items():
        name = names.get(tag_id)
        if name is not None:
            tags[f"{group}.{name}"] = value
    return tags


def _as_text(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    return str(value).strip("\x00 ").strip()


class ExifParser:
    """Lookup and derivations over a single image's tags.

    Args:
        tags: ``"<group>.<name>"`` -> decoded value
        image_size: Decoded ``(width, height)`` used when the EXIF pixel
            dimensions are missing
        xmp: Raw XMP packet, if any
        sensors: Sensor width table used by ``compute_focal``
    """

    def __init__(
        self,
        tags: Mapping[str, Any],
        image_size: tuple[int, int] | None = None,
        xmp: bytes | str | None = None,
        sensors: SensorTable = DEFAULT_SENSOR_TABLE,
    ):
        self.tags = dict(tags)
        self.image_size = image_size
        if isinstance(xmp, bytes):
            xmp = xmp.decode("utf-8", errors="ignore")
        self.xmp = xmp or ""
        self.sensors = sensors

    @classmethod
    def from_image(cls, img: Image.Image, sensors: SensorTable = DEFAULT_SENSOR_TABLE) -> ExifParser:
        """Build a parser from an opened Pillow image."""
        exif = img.getexif()
        tags = _group_tags("Image", exif, ExifTags.TAGS)
        tags.update(_group_tags("Photo", exif.get_ifd(EXIF_IFD), ExifTags.TAGS))
        tags.update(_group_tags("GPSInfo", exif.get_ifd(GPS_IFD), ExifTags.GPSTAGS))

        xmp = img.info.get("xmp") or img.info.get("XML:com.adobe.xmp")
        return cls(tags, image_size=img.size, xmp=xmp, sensors=sensors)

    def find_key(self, *keys: str) -> Any:
        """Value of the first key present, or None if none exist."""
        for key in keys:
            value = self.tags.get(key)
            if value is not None:
                return value
        return None

    def has_geo(self) -> bool:
        return (
            self.find_key("GPSInfo.GPSLatitude") is not None
            and self.find_key("GPSInfo.GPSLongitude") is not None
        )

    def extract_image_size(self) -> tuple[int, int]:
        """``(width, height)`` in pixels, or ``(-1, -1)`` when unknown."""
        width = to_float(self.find_key("Photo.ExifImageWidth"))
        height = to_float(self.find_key("Photo.ExifImageHeight"))
        if width and height:
            return int(width), int(height)
        if self.image_size:
            return self.image_size
        return -1, -1

    def extract_make(self) -> str:
        value = self.find_key("Photo.LensMake", "Image.Make")
        return _as_text(value) if value is not None else UNKNOWN

    def extract_model(self) -> str:
        value = self.find_key("Photo.LensModel", "Image.Model")
        return _as_text(value) if value is not None else UNKNOWN

    def extract_sensor(self) -> str:
        """Canonical ``"make model"`` key, lowercase."""
        return sensor_key(self.extract_make(), self.extract_model())

    def extract_sensor_width(self) -> float:
        """Sensor width (mm) from focal plane resolution tags; 0.0 on failure."""
        unit = self.find_key("Photo.FocalPlaneResolutionUnit", "Image.FocalPlaneResolutionUnit")
        x_res = self.find_key("Photo.FocalPlaneXResolution", "Image.FocalPlaneXResolution")
        if unit is None or x_res is None:
            return 0.0

        width, _ = self.extract_image_size()
        return sensor_width_from_resolution(width, to_float(x_res), unit)

    def compute_focal(self) -> Focal:
        focal35 = to_float(self.find_key("Photo.FocalLengthIn35mmFilm", "Image.FocalLengthIn35mmFilm"))
        focal = to_float(self.find_key("Photo.FocalLength", "Image.FocalLength"))
        return compute_focal(
            focal35,
            focal,
            sensor_width=self.extract_sensor_width(),
            sensor=self.extract_sensor(),
            sensors=self.sensors,
        )

    def extract_geo(self) -> GeoLocation:
        latitude = geo_to_decimal(
            self.find_key("GPSInfo.GPSLatitude"),
            self.find_key("GPSInfo.GPSLatitudeRef"),
        )
        longitude = geo_to_decimal(
            self.find_key("GPSInfo.GPSLongitude"),
            self.find_key("GPSInfo.GPSLongitudeRef"),
        )

        altitude = 0.0
        raw_altitude = self.find_key("GPSInfo.GPSAltitude")
        if raw_altitude is not None:
            altitude = eval_frac(raw_altitude)
            # AltitudeRef 1 = below sea level
            ref = self.find_key("GPSInfo.GPSAltitudeRef")
            if isinstance(ref, bytes):
                ref = ref[0] if ref else 0
            if to_float(ref) == 1:
                altitude = -altitude

        return GeoLocation(latitude=latitude, longitude=longitude, altitude=altitude)

    def extract_capture_time(self) -> int | None:
        """Capture time as a POSIX timestamp (camera clock taken as UTC)."""
        value = self.find_key("Photo.DateTimeOriginal", "Photo.DateTimeDigitized", "Image.DateTime")
        if value is None:
            return None
        try:
            captured = datetime.strptime(_as_text(value), "%Y:%m:%d %H:%M:%S")
        except ValueError:
            logger.debug("Unparseable capture time: %r", value)
            return None
        return int(captured.replace(tzinfo=timezone.utc).timestamp())

    def _xmp_value(self, *names: str) -> float | None:
        for name in names:
            pattern = _XMP_ATTRIBUTE.format(name=re.escape(name))
            match = re.search(pattern, self.xmp)
            if match:
                return to_float(match.group(1) if match.group(1) is not None else match.group(2))
        return None

    def extract_camera_orientation(self) -> dict[str, float]:
        """Relative altitude and gimbal yaw/pitch/roll found in XMP (may be empty)."""
        if not self.xmp:
            return {}
        result = {}
        for field_name, names in _XMP_KEYS.items():
            if isinstance(names, str):
                names = (names,)
            value = self._xmp_value(*names)
            if value is not None:
                result[field_name] = value
        return result
