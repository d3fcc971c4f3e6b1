import os

import pytest

from gpx_tiler.parser import GpxParseError, drop_unreadable_values, parse_gpx, parse_gpx_text

from conftest import SAMPLE_GPX_PATH, TRACK_GPX, WAYPOINT_ONLY_GPX, make_gpx

ROUTE_ONLY_GPX_PATH = os.path.join(
    os.path.dirname(__file__), "..", "functional", "data", "route_only.gpx"
)


class TestParseGpxText:
    def test_track_points_in_order(self):
        parsed = parse_gpx_text(TRACK_GPX)
        assert [(pt.lat, pt.lon) for pt in parsed.points] == [
            (45.0, 10.0), (45.001, 10.0), (45.001, 10.001)
        ]
        assert [pt.elevation for pt in parsed.points] == [100.0, 120.0, 110.0]

    def test_route_points_are_read(self):
        gpx = make_gpx(
            '<rte><name>Errand</name>'
            '<rtept lat="1.0" lon="2.0"/><rtept lat="1.5" lon="2.5"/></rte>'
        )
        parsed = parse_gpx_text(gpx)
        assert len(parsed.points) == 2
        assert parsed.name == "Errand"

    def test_track_and_route_points_keep_document_order(self):
        gpx = make_gpx(
            '<rte><rtept lat="1.0" lon="1.0"/></rte>'
            '<trk><trkseg><trkpt lat="2.0" lon="2.0"/></trkseg></trk>'
        )
        parsed = parse_gpx_text(gpx)
        assert [pt.lat for pt in parsed.points] == [1.0, 2.0]

    def test_points_without_namespace(self):
        gpx = '<gpx><trk><trkseg><trkpt lat="3" lon="4"><ele>7</ele></trkpt></trkseg></trk></gpx>'
        parsed = parse_gpx_text(gpx)
        assert parsed.points[0].lat == 3.0
        assert parsed.points[0].elevation == 7.0

    @pytest.mark.parametrize("lat,lon", [
        ("abc", "10.0"),
        ("45.0", ""),
        ("nan", "10.0"),
        ("45.0", "inf"),
    ])
    def test_invalid_coordinates_dropped(self, lat, lon):
        gpx = make_gpx(
            "<trk><trkseg>"
            f'<trkpt lat="{lat}" lon="{lon}"/>'
            '<trkpt lat="45.0" lon="10.0"/>'
            "</trkseg></trk>"
        )
        parsed = parse_gpx_text(gpx)
        assert len(parsed.points) == 1
        assert parsed.points[0].lat == 45.0

    def test_missing_coordinate_attribute_dropped(self):
        gpx = make_gpx('<trk><trkseg><trkpt lat="45.0"/></trkseg></trk>')
        assert parse_gpx_text(gpx).points == []

    def test_missing_elevation_is_none(self):
        gpx = make_gpx('<trk><trkseg><trkpt lat="45.0" lon="10.0"/></trkseg></trk>')
        assert parse_gpx_text(gpx).points[0].elevation is None

    def test_non_numeric_elevation_is_none(self):
        gpx = make_gpx('<trk><trkseg><trkpt lat="45.0" lon="10.0"><ele>high</ele></trkpt></trkseg></trk>')
        assert parse_gpx_text(gpx).points[0].elevation is None

    def test_zero_elevation_is_kept(self):
        gpx = make_gpx('<trk><trkseg><trkpt lat="45.0" lon="10.0"><ele>0</ele></trkpt></trkseg></trk>')
        assert parse_gpx_text(gpx).points[0].elevation == 0.0

    def test_track_name_beats_route_and_metadata_names(self):
        gpx = make_gpx(
            "<rte><name>Route Name</name></rte>"
            "<trk><name>Track Name</name></trk>",
            name="Metadata Name",
        )
        assert parse_gpx_text(gpx).name == "Track Name"

    def test_route_name_beats_metadata_name(self):
        gpx = make_gpx("<rte><name>Route Name</name></rte>", name="Metadata Name")
        assert parse_gpx_text(gpx).name == "Route Name"

    def test_metadata_name_used_last(self):
        gpx = make_gpx("<trk><trkseg/></trk>", name="Metadata Name")
        assert parse_gpx_text(gpx).name == "Metadata Name"

    def test_no_name(self):
        assert parse_gpx_text(make_gpx("<trk><trkseg/></trk>")).name is None

    def test_waypoint_only_has_no_points(self):
        parsed = parse_gpx_text(WAYPOINT_ONLY_GPX)
        assert parsed.points == []
        assert parsed.name is None

    def test_malformed_xml_raises_parse_error(self):
        with pytest.raises(GpxParseError):
            parse_gpx_text("<gpx><trk><trkseg><trkpt lat='1' lon='2'></trkseg></gpx>")

    def test_empty_text_raises_parse_error(self):
        with pytest.raises(GpxParseError):
            parse_gpx_text("")


class TestParseGpx:
    def test_parse_sample_file(self):
        parsed = parse_gpx(SAMPLE_GPX_PATH)
        assert len(parsed.points) == 8
        assert parsed.points[0].lat == pytest.approx(37.7749)
        assert parsed.points[0].lon == pytest.approx(-122.4194)
        assert parsed.points[0].elevation == pytest.approx(10.0)
        assert parsed.name == "Bay Loop"

    def test_gpx_10_document_name(self):
        parsed = parse_gpx(ROUTE_ONLY_GPX_PATH)
        assert parsed.name == "Coast Route"
        assert len(parsed.points) == 3
        assert all(pt.elevation is None for pt in parsed.points)

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            parse_gpx("/nonexistent/path/file.gpx")

    def test_declared_latin1_encoding(self, tmp_path):
        path = tmp_path / "latin1.gpx"
        path.write_bytes(
            '<?xml version="1.0" encoding="ISO-8859-1"?>'
            '<gpx><trk><name>Col de la Croix-Fry é</name><trkseg>'
            '<trkpt lat="45.9" lon="6.4"/></trkseg></trk></gpx>'.encode("latin-1")
        )
        parsed = parse_gpx(str(path))
        assert parsed.name == "Col de la Croix-Fry é"
        assert len(parsed.points) == 1

    def test_undecodable_bytes_raise_parse_error(self, tmp_path):
        path = tmp_path / "broken.gpx"
        path.write_bytes(b'<gpx><trk><name>\xff\xfe</name></trk></gpx>')
        with pytest.raises(GpxParseError):
            parse_gpx(str(path))


class TestDropUnreadableValues:
    def test_bad_points_and_elevations_removed(self):
        gpx = make_gpx(
            "<trk><trkseg>"
            '<trkpt lat="1" lon="1"><ele>x</ele></trkpt>'
            '<trkpt lat="north" lon="1"><ele>5</ele></trkpt>'
            '<trkpt lat="2" lon="1"><ele>7</ele></trkpt>'
            "</trkseg></trk>"
        )
        parsed = parse_gpx_text(drop_unreadable_values(gpx))
        assert [(pt.lat, pt.elevation) for pt in parsed.points] == [(1.0, None), (2.0, 7.0)]
        assert parsed.points == parse_gpx_text(gpx).points

    def test_keeps_gpx_namespace_as_default(self):
        cleaned = drop_unreadable_values(TRACK_GPX)
        assert 'xmlns="http://www.topografix.com/GPX/1/1"' in cleaned
        assert "<trkpt" in cleaned

    def test_malformed_xml_raises_parse_error(self):
        with pytest.raises(GpxParseError):
            drop_unreadable_values("<gpx><trk>")
