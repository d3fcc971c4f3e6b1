import dataclasses
from datetime import datetime, timezone

import pytest

from gpx_tiler.models import (
    UNKNOWN_ELEVATION,
    PointRecord,
    RouteRecord,
    RouteStats,
    TrackPoint,
)


class TestTrackPoint:
    def test_construction(self):
        pt = TrackPoint(lat=37.7749, lon=-122.4194, elevation=10.0)
        assert pt.lat == 37.7749
        assert pt.lon == -122.4194
        assert pt.elevation == 10.0

    def test_immutable(self):
        pt = TrackPoint(lat=0.0, lon=0.0, elevation=None)
        with pytest.raises(dataclasses.FrozenInstanceError):
            pt.lat = 1.0


class TestRouteStats:
    def test_to_dict_with_unknown_elevation(self):
        stats = RouteStats(distance_km="0.0", elev_gain=0, elev_loss=0,
                           min_ele=UNKNOWN_ELEVATION, max_ele=UNKNOWN_ELEVATION)
        assert stats.to_dict()["minEle"] == UNKNOWN_ELEVATION
        assert stats.to_dict()["maxEle"] == UNKNOWN_ELEVATION


class TestRouteRecord:
    def test_from_document(self):
        uploaded = datetime(2024, 6, 15, tzinfo=timezone.utc)
        record = RouteRecord.from_document("r1", {
            "fileName": "ride.gpx",
            "storagePath": "gpx/ride.gpx",
            "metadata": {"name": "Ride"},
            "uploadedAt": uploaded,
        })
        assert record.id == "r1"
        assert record.file_name == "ride.gpx"
        assert record.storage_path == "gpx/ride.gpx"
        assert record.gpx_content is None
        assert record.display_name == "Ride"
        assert record.uploaded_at == uploaded

    def test_empty_strings_become_none(self):
        record = RouteRecord.from_document("r2", {"fileName": "x.gpx", "storagePath": "", "gpxContent": ""})
        assert record.storage_path is None
        assert record.gpx_content is None
        assert record.display_name == "x.gpx"

    def test_missing_metadata(self):
        record = RouteRecord.from_document("r3", {"metadata": None})
        assert record.name is None
        assert record.display_name is None


class TestPointRecord:
    def test_from_document(self):
        record = PointRecord.from_document("p1", {
            "name": "Cafe",
            "lat": 1.0,
            "lon": 2.0,
            "url": "",
            "metadata": {"kind": "food"},
            "fileName": "pois.gpx",
        })
        assert record.name == "Cafe"
        assert record.url is None
        assert record.metadata == {"kind": "food"}
        assert record.file_name == "pois.gpx"
