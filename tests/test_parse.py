"""Tests for entry metadata extraction (parse.py)."""

from __future__ import annotations

import hashlib

import pytest

from camera import DEFAULT_SENSOR_TABLE, SensorTable
from conftest import set_mtime, write_geotiff, write_jpeg
from entry import EntryType
from parse import ImageMeta, ParseEntryOpts, classify, extract_metadata, parse_entry


class TestParseEntry:
    def test_directory(self, tmp_path):
        (tmp_path / "a" / "b").mkdir(parents=True)
        set_mtime(tmp_path / "a" / "b", 1_600_000_000)

        entry = parse_entry(tmp_path / "a" / "b", tmp_path, ParseEntryOpts(with_hash=True))

        assert entry.path == "a/b"
        assert entry.type == EntryType.DIRECTORY
        assert entry.hash == ""
        assert entry.size == 0
        assert entry.depth == 2
        assert entry.mtime == 1_600_000_000

    def test_generic_file_without_hash(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        entry = parse_entry(path, tmp_path)

        assert entry.type == EntryType.GENERIC
        assert entry.hash == ""
        assert entry.size == 5
        assert entry.depth == 1
        assert entry.meta == {}
        assert entry.point_geom == ""

    def test_generic_file_with_hash(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        entry = parse_entry(path, tmp_path, ParseEntryOpts(with_hash=True))

        assert entry.hash == hashlib.sha256(b"hello").hexdigest()

    def test_precomputed_hash_is_used(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        entry = parse_entry(path, tmp_path, ParseEntryOpts(with_hash=True), file_hash="abc")

        assert entry.hash == "abc"

    def test_geoimage(self, tmp_path):
        path = write_jpeg(
            tmp_path / "photos" / "geo.jpg",
            lat=45.0,
            lon=9.0,
            make="DJI",
            model="FC6310",
            focal=8.8,
            size=(400, 300),
        )

        entry = parse_entry(path, tmp_path)

        assert entry.path == "photos/geo.jpg"
        assert entry.type == EntryType.GEOIMAGE
        assert entry.point_geom == "POINT Z (9 45 0)"
        assert entry.polygon_geom == ""
        assert entry.meta["sensor"] == "dji fc6310"
        assert entry.meta["sensor_width"] == pytest.approx(13.2)
        assert entry.meta["focal_ratio"] == pytest.approx(8.8 / 13.2)
        assert entry.meta["image_width"] == 400
        assert entry.meta["image_height"] == 300

    def test_geoimage_altitude(self, tmp_path):
        path = write_jpeg(tmp_path / "geo.jpg", lat=45.5, lon=-9.25, lon_ref="W", altitude=120.5)

        entry = parse_entry(path, tmp_path)

        assert entry.point_geom == "POINT Z (-9.25 45.5 120.5)"
        assert entry.meta["altitude"] == pytest.approx(120.5)

    def test_plain_image(self, tmp_path):
        path = write_jpeg(tmp_path / "plain.jpg")

        entry = parse_entry(path, tmp_path)

        assert entry.type == EntryType.IMAGE
        assert entry.point_geom == ""
        assert entry.meta["make"] == "unknown"

    def test_corrupt_image_is_generic(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"definitely not a jpeg")

        entry = parse_entry(path, tmp_path)

        assert entry.type == EntryType.GENERIC
        assert entry.meta == {}

    def test_pointcloud(self, tmp_path):
        path = tmp_path / "scan.LAZ"
        path.write_bytes(b"\x00" * 16)

        assert parse_entry(path, tmp_path).type == EntryType.POINTCLOUD

    def test_geographic_geotiff(self, tmp_path):
        path = write_geotiff(tmp_path / "ortho.tif", (0, 0, 0, 9.0, 46.0, 0), (0.01, 0.01, 0))

        entry = parse_entry(path, tmp_path)

        assert entry.type == EntryType.GEORASTER
        assert entry.polygon_geom.startswith("POLYGON Z ((9 46 0, 9.1 46 0,")
        assert entry.meta["geographic"] is True
        assert entry.meta["width"] == 10
        assert entry.meta["height"] == 5
        assert entry.meta["bands"] == 3

    def test_projected_geotiff_has_no_polygon(self, tmp_path):
        path = write_geotiff(
            tmp_path / "utm.tif", (0, 0, 0, 500000.0, 5000000.0, 0), (0.1, 0.1, 0), model_type=1
        )

        entry = parse_entry(path, tmp_path)

        assert entry.type == EntryType.GEORASTER
        assert entry.polygon_geom == ""
        assert entry.meta["geographic"] is False


class TestExtractMetadata:
    def test_sensor_table_injection(self, tmp_path):
        path = write_jpeg(tmp_path / "x.jpg", make="Acme", model="Cam1", focal=5.0)
        opts = ParseEntryOpts(sensors=SensorTable({"acme cam1": 10.0}))

        extracted = extract_metadata(path, opts)

        assert extracted.meta["focal_ratio"] == pytest.approx(0.5)
        assert extracted.meta["focal35"] == pytest.approx(18.0)

    def test_35mm_tag_wins(self, tmp_path):
        path = write_jpeg(tmp_path / "x.jpg", make="DJI", model="FC6310", focal=8.8, focal35=24)

        extracted = extract_metadata(path)

        assert extracted.meta["focal35"] == pytest.approx(24.0)
        assert extracted.meta["focal_ratio"] == pytest.approx(24.0 / 36.0)

    def test_classify(self, tmp_path):
        (tmp_path / "d").mkdir()
        assert classify(tmp_path / "d") == EntryType.DIRECTORY
        assert classify(write_jpeg(tmp_path / "g.jpg", lat=1.0, lon=1.0)) == EntryType.GEOIMAGE
        assert classify(write_jpeg(tmp_path / "p.jpg")) == EntryType.IMAGE


def test_default_opts_use_builtin_sensor_table():
    opts = ParseEntryOpts()
    assert opts.sensors is DEFAULT_SENSOR_TABLE
    assert opts.with_hash is False


def test_image_meta_rejects_negative_sensor_width():
    with pytest.raises(ValueError):
        ImageMeta(sensor_width=-1.0)


def test_image_meta_omits_unset_optionals():
    meta = ImageMeta(image_width=10, image_height=10).to_meta()
    assert "relative_altitude" not in meta
    assert meta["focal35"] == 0.0
