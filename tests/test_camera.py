"""Tests for geolocation / focal derivation and EXIF tag lookup."""

from __future__ import annotations

import json
import logging
from fractions import Fraction

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from camera import ExifParser, SensorTable, compute_focal, eval_frac, geo_to_decimal, load_sensor_table, sensor_key
from camera.geo import mm_per_unit, sensor_width_from_resolution
from conftest import write_jpeg


class TestEvalFrac:
    def test_tuple(self):
        assert eval_frac((3, 4)) == 0.75

    def test_zero_denominator_is_zero(self):
        assert eval_frac((5, 0)) == 0.0
        assert eval_frac(IFDRational(5, 0)) == 0.0

    def test_rational_objects(self):
        assert eval_frac(Fraction(1, 8)) == 0.125
        assert eval_frac(IFDRational(45, 2)) == 22.5
        assert eval_frac(7) == 7.0


class TestGeoToDecimal:
    def test_south_is_negative(self):
        result = geo_to_decimal(((10, 1), (30, 1), (0, 1)), "S")
        assert result == pytest.approx(-10.5, abs=1e-9)

    def test_west_is_negative(self):
        assert geo_to_decimal(((9, 1), (0, 1), (0, 1)), "W") == pytest.approx(-9.0)

    def test_missing_reference_is_positive(self):
        assert geo_to_decimal(((10, 1), (30, 1), (0, 1)), None) == pytest.approx(10.5)

    def test_lowercase_and_bytes_reference(self):
        assert geo_to_decimal(((1, 1), (0, 1), (0, 1)), "s") == pytest.approx(-1.0)
        assert geo_to_decimal(((1, 1), (0, 1), (0, 1)), b"W\x00") == pytest.approx(-1.0)

    def test_seconds(self):
        result = geo_to_decimal(((46, 1), (50, 1), (2457, 100)), "N")
        assert result == pytest.approx(46 + 50 / 60 + 24.57 / 3600, abs=1e-9)

    def test_zero_denominator_component(self):
        assert geo_to_decimal(((10, 1), (30, 0), (0, 1)), "N") == pytest.approx(10.0)

    def test_absent_tag(self):
        assert geo_to_decimal(None, "S") == 0.0


class TestSensorKey:
    def test_removes_duplicated_make(self):
        assert sensor_key("DJI", "DJI FC6310") == "dji fc6310"

    def test_strips_whitespace(self):
        assert sensor_key("  Canon ", "Canon PowerShot S100 ") == "canon powershot s100"

    def test_interior_whitespace_is_kept(self):
        assert sensor_key("Acme", "Acme Cam  One ") == "acme cam  one"

    def test_interior_whitespace_matches_sensor_table(self):
        table = SensorTable({"acme cam  one": 10.0})
        focal = compute_focal(None, 5.0, sensor=sensor_key("Acme", "Cam  One"), sensors=table)
        assert focal.ratio == pytest.approx(0.5)

    def test_unknown_make(self):
        assert sensor_key(None, "FC6310") == "unknown fc6310"

    def test_unknown_both(self):
        assert sensor_key(None, None) == "unknown unknown"


class TestSensorWidth:
    def test_inch_resolution(self):
        width = sensor_width_from_resolution(4000, 300, 2)
        assert width == pytest.approx(4000 * (1 / 300) * 25.4)

    def test_centimeter_resolution(self):
        assert sensor_width_from_resolution(1000, 100, 3) == pytest.approx(100.0)

    def test_unknown_unit_warns_and_returns_zero(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert sensor_width_from_resolution(4000, 300, 4) == 0.0
        assert "Unknown EXIF resolution unit" in caplog.text

    def test_mm_per_unit(self):
        assert mm_per_unit(2) == 25.4
        assert mm_per_unit(3) == 10.0

    def test_missing_inputs(self):
        assert sensor_width_from_resolution(4000, None, 2) == 0.0
        assert sensor_width_from_resolution(-1, 300, 2) == 0.0


class TestComputeFocal:
    def test_35mm_equivalent_wins(self):
        focal = compute_focal(24.0, 4.5, sensor_width=6.17)
        assert focal.f35 == 24.0
        assert focal.ratio == pytest.approx(24.0 / 36.0)

    def test_resolution_fallback_chain(self):
        sensor_width = sensor_width_from_resolution(4000, 300, 2)
        focal = compute_focal(None, 20.0, sensor_width=sensor_width)

        assert sensor_width == pytest.approx(338.6667, abs=1e-3)
        assert focal.ratio == pytest.approx(20.0 / sensor_width)
        assert focal.ratio == pytest.approx(0.059, abs=1e-3)
        assert focal.f35 == pytest.approx(36.0 * 20.0 / sensor_width)
        assert focal.f35 == pytest.approx(2.13, abs=1e-2)

    def test_sensor_table_fallback(self):
        table = SensorTable({"acme cam1": 10.0})
        focal = compute_focal(None, 5.0, sensor="acme cam1", sensors=table)
        assert focal.ratio == pytest.approx(0.5)
        assert focal.f35 == pytest.approx(18.0)

    def test_zero_35mm_value_is_ignored(self):
        focal = compute_focal(0.0, 5.0, sensor_width=10.0)
        assert focal.ratio == pytest.approx(0.5)

    def test_unknown_focal(self):
        focal = compute_focal(None, None, sensor="nobody nothing")
        assert (focal.f35, focal.ratio) == (0.0, 0.0)


class TestSensorTable:
    def test_immutable_lookup(self):
        table = SensorTable({"A B": 1.5})
        assert table["a b"] == 1.5
        assert table.width_for("missing") == 0.0
        with pytest.raises(TypeError):
            table["x"] = 2.0

    def test_load_from_json(self, tmp_path):
        path = tmp_path / "sensors.json"
        path.write_text(json.dumps({"acme cam1": 12.3}))
        table = load_sensor_table(path)
        assert table["acme cam1"] == 12.3
        assert table["dji fc6310"] == 13.2

    def test_load_rejects_non_numbers(self, tmp_path):
        path = tmp_path / "sensors.json"
        path.write_text(json.dumps({"acme cam1": "wide"}))
        with pytest.raises(ValueError):
            load_sensor_table(path)


class TestExifParser:
    def test_find_key_fallback_order(self):
        parser = ExifParser({"Image.Make": "Acme", "Photo.LensMake": "Lens Co"})
        assert parser.find_key("Photo.LensMake", "Image.Make") == "Lens Co"
        assert parser.find_key("Photo.Missing", "Image.Make") == "Acme"
        assert parser.find_key("Photo.Missing") is None

    def test_focal_from_resolution_tags(self):
        parser = ExifParser({
            "Photo.FocalPlaneResolutionUnit": 2,
            "Photo.FocalPlaneXResolution": IFDRational(300, 1),
            "Photo.ExifImageWidth": 4000,
            "Photo.ExifImageHeight": 3000,
            "Photo.FocalLength": IFDRational(20, 1),
        })
        focal = parser.compute_focal()
        assert parser.extract_sensor_width() == pytest.approx(338.6667, abs=1e-3)
        assert focal.f35 == pytest.approx(2.126, abs=1e-3)

    def test_image_size_falls_back_to_decoded_size(self):
        parser = ExifParser({}, image_size=(640, 480))
        assert parser.extract_image_size() == (640, 480)
        assert ExifParser({}).extract_image_size() == (-1, -1)

    def test_unknown_make_and_model(self):
        parser = ExifParser({})
        assert parser.extract_make() == "unknown"
        assert parser.extract_sensor() == "unknown unknown"

    def test_geo_with_altitude(self):
        parser = ExifParser({
            "GPSInfo.GPSLatitude": ((45, 1), (0, 1), (0, 1)),
            "GPSInfo.GPSLatitudeRef": "N",
            "GPSInfo.GPSLongitude": ((9, 1), (0, 1), (0, 1)),
            "GPSInfo.GPSLongitudeRef": "E",
            "GPSInfo.GPSAltitude": (12050, 100),
        })
        geo = parser.extract_geo()
        assert parser.has_geo()
        assert (geo.latitude, geo.longitude) == pytest.approx((45.0, 9.0))
        assert geo.altitude == pytest.approx(120.5)

    def test_capture_time(self):
        parser = ExifParser({"Photo.DateTimeOriginal": "2020:01:02 03:04:05"})
        assert parser.extract_capture_time() == 1577934245
        assert ExifParser({"Photo.DateTimeOriginal": "garbage"}).extract_capture_time() is None

    def test_dji_xmp_orientation(self):
        xmp = (
            '<rdf:Description drone-dji:RelativeAltitude="+50.30" '
            'drone-dji:GimbalYawDegree="-12.5" drone-dji:GimbalPitchDegree="-90.0" '
            'drone-dji:GimbalRollDegree="0.00"/>'
        )
        orientation = ExifParser({}, xmp=xmp).extract_camera_orientation()
        assert orientation == {
            "relative_altitude": 50.3,
            "yaw": -12.5,
            "pitch": -90.0,
            "roll": 0.0,
        }

    def test_no_xmp(self):
        assert ExifParser({}).extract_camera_orientation() == {}

    def test_from_image_reads_written_tags(self, tmp_path):
        path = write_jpeg(
            tmp_path / "geo.jpg",
            lat=10.5,
            lon=9.0,
            lat_ref="S",
            lon_ref="W",
            make="DJI",
            model="DJI FC6310",
            focal=8.8,
        )
        with Image.open(path) as img:
            parser = ExifParser.from_image(img)

        geo = parser.extract_geo()
        assert geo.latitude == pytest.approx(-10.5, abs=1e-9)
        assert geo.longitude == pytest.approx(-9.0, abs=1e-9)
        assert parser.extract_sensor() == "dji fc6310"
        assert parser.compute_focal().ratio == pytest.approx(8.8 / 13.2)
