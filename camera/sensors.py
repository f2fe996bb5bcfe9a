"""
Sensor width lookup.

Maps a canonical ``"<make> <model>"`` sensor key (see
``camera.geo.sensor_key``) to the physical sensor width in millimeters.
Used when an image carries neither a 35mm-equivalent focal length nor
focal plane resolution tags.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping

# Widths in millimeters for common drone and survey cameras
DEFAULT_SENSOR_WIDTHS = {
    "dji fc220": 6.17,
    "dji fc300c": 6.17,
    "dji fc300s": 6.17,
    "dji fc300x": 6.17,
    "dji fc330": 6.17,
    "dji fc350": 6.17,
    "dji fc6310": 13.2,
    "dji fc6310s": 13.2,
    "dji fc6510": 13.2,
    "dji fc6520": 17.3,
    "dji fc7203": 6.3,
    "dji fc3170": 6.3,
    "dji fc3411": 13.2,
    "dji l1d-20c": 13.2,
    "dji zenmuse p1": 35.9,
    "hasselblad l1d-20c": 13.2,
    "gopro hero4 black": 6.17,
    "gopro hero4 silver": 6.17,
    "parrot anafi": 6.17,
    "parrot sequoia": 4.8,
    "micasense rededge-m": 4.8,
    "sony dsc-rx100m2": 13.2,
    "sony dsc-rx1rm2": 35.9,
    "sony ilce-5100": 23.5,
    "sony ilce-6000": 23.5,
    "sony ilce-7rm2": 35.9,
    "canon powershot s100": 7.44,
    "canon powershot s110": 7.44,
    "canon eos 5d mark iii": 36.0,
    "nikon d800": 35.9,
}


class SensorTable(Mapping[str, float]):
    """Immutable sensor key -> width (mm) lookup."""

    def __init__(self, widths: Mapping[str, float] | None = None):
        data = DEFAULT_SENSOR_WIDTHS if widths is None else widths
        self._widths = MappingProxyType({k.lower().strip(): float(v) for k, v in data.items()})

    def __getitem__(self, key: str) -> float:
        return self._widths[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._widths)

    def __len__(self) -> int:
        return len(self._widths)

    def width_for(self, sensor: str) -> float:
        """Width for ``sensor`` or 0.0 when unknown."""
        return self._widths.get(sensor, 0.0)

    def merged(self, extra: Mapping[str, float]) -> SensorTable:
        """Return a new table with ``extra`` entries overriding this one."""
        combined = dict(self._widths)
        combined.update(extra)
        return SensorTable(combined)


DEFAULT_SENSOR_TABLE = SensorTable()


def load_sensor_table(path: str | Path, base: SensorTable | None = None) -> SensorTable:
    """Load ``{"make model": width_mm}`` pairs from a JSON file.

    Entries override those of ``base`` (the built-in table by default).

    Raises:
        ValueError: If the file does not contain a JSON object of numbers.
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Sensor data must be a JSON object: {path}")
    try:
        extra = {str(k): float(v) for k, v in data.items()}
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid sensor width in {path}: {exc}") from exc
    return (base or DEFAULT_SENSOR_TABLE).merged(extra)
