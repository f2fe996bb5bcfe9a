"""
Camera metadata derivation.

- ``exif``: tag lookup over Pillow-decoded EXIF/XMP
- ``geo``: pure geolocation / focal length math
- ``sensors``: sensor width lookup table
"""

from .exif import ExifParser
from .geo import Focal, GeoLocation, compute_focal, eval_frac, geo_to_decimal, sensor_key
from .sensors import DEFAULT_SENSOR_TABLE, SensorTable, load_sensor_table

__all__ = [
    "ExifParser",
    "Focal",
    "GeoLocation",
    "compute_focal",
    "eval_frac",
    "geo_to_decimal",
    "sensor_key",
    "DEFAULT_SENSOR_TABLE",
    "SensorTable",
    "load_sensor_table",
]
