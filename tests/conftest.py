"""Pytest configuration: shared index and image fixtures."""

from __future__ import annotations

import os

import pytest
from PIL import Image, TiffImagePlugin, TiffTags
from PIL.TiffImagePlugin import IFDRational

from index import init_index, open_index


def _dms(value: float) -> tuple[IFDRational, IFDRational, IFDRational]:
    degrees = int(value)
    minutes_float = (value - degrees) * 60
    minutes = int(minutes_float)
    seconds = round((minutes_float - minutes) * 60 * 100)
    return IFDRational(degrees, 1), IFDRational(minutes, 1), IFDRational(seconds, 100)


def write_jpeg(
    path,
    lat: float | None = None,
    lon: float | None = None,
    lat_ref: str = "N",
    lon_ref: str = "E",
    altitude: float | None = None,
    make: str | None = None,
    model: str | None = None,
    focal: float | None = None,
    focal35: int | None = None,
    size: tuple[int, int] = (64, 48),
    color: tuple[int, int, int] = (120, 120, 120),
):
    """Write a small JPEG carrying the given EXIF tags."""
    exif = Image.Exif()
    if make is not None:
        exif[0x010F] = make
    if model is not None:
        exif[0x0110] = model

    exif_ifd = {}
    if focal is not None:
        exif_ifd[0x920A] = IFDRational(int(focal * 100), 100)
    if focal35 is not None:
        exif_ifd[0xA405] = focal35
    if exif_ifd:
        exif[0x8769] = exif_ifd

    if lat is not None and lon is not None:
        gps = {
            1: lat_ref,
            2: _dms(abs(lat)),
            3: lon_ref,
            4: _dms(abs(lon)),
        }
        if altitude is not None:
            gps[6] = IFDRational(int(altitude * 100), 100)
        exif[0x8825] = gps

    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, "JPEG", exif=exif)
    return path


def write_geotiff(path, tiepoint, pixel_scale, model_type: int = 2, size=(10, 5)):
    """Write a small GeoTIFF with tiepoint/pixel scale and a GeoKey directory."""
    info = TiffImagePlugin.ImageFileDirectory_v2()
    info[33550] = tuple(float(v) for v in pixel_scale)
    info.tagtype[33550] = TiffTags.DOUBLE
    info[33922] = tuple(float(v) for v in tiepoint)
    info.tagtype[33922] = TiffTags.DOUBLE
    info[34735] = (1, 1, 0, 1, 1024, 0, 1, model_type)
    info.tagtype[34735] = TiffTags.SHORT

    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, (10, 200, 10)).save(path, "TIFF", tiffinfo=info)
    return path


def set_mtime(path, mtime: int) -> None:
    os.utime(path, (mtime, mtime))


@pytest.fixture
def index_root(tmp_path):
    """An initialized, empty index root."""
    root = tmp_path / "project"
    root.mkdir()
    init_index(root)
    return root


@pytest.fixture
def ddb_index(index_root):
    index = open_index(index_root)
    yield index
    index.close()

