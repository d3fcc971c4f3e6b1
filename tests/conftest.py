import os
from datetime import datetime, timedelta, timezone

import pytest

from gpx_tiler.models import PointRecord, RouteRecord, TrackPoint
from gpx_tiler.stores import StorageError

SAMPLE_GPX_PATH = os.path.join(
    os.path.dirname(__file__), "functional", "data", "sample_ride.gpx"
)

BASE_TIME = datetime(2024, 6, 15, 8, 0, 0, tzinfo=timezone.utc)


def make_gpx(body: str, name: str | None = None) -> str:
    metadata = f"<metadata><name>{name}</name></metadata>" if name else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">'
        f"{metadata}{body}</gpx>"
    )


TRACK_GPX = make_gpx(
    "<trk><name>Morning Loop</name><trkseg>"
    '<trkpt lat="45.0" lon="10.0"><ele>100</ele></trkpt>'
    '<trkpt lat="45.001" lon="10.0"><ele>120</ele></trkpt>'
    '<trkpt lat="45.001" lon="10.001"><ele>110</ele></trkpt>'
    "</trkseg></trk>"
)

WAYPOINT_ONLY_GPX = make_gpx('<wpt lat="45.0" lon="10.0"><name>Cafe</name></wpt>')


class FakeObjectStore:
    """In-memory stand-in for BucketObjectStore."""

    def __init__(self, objects: dict[str, str] | None = None):
        self.objects = dict(objects or {})
        self.uploads: dict[str, dict] = {}
        self.public: set[str] = set()
        self.fail_downloads: set[str] = set()
        self.fail_make_public = False

    def list_names(self, prefix: str = "") -> list[str]:
        return sorted(name for name in self.objects if name.startswith(prefix))

    def download_text(self, path: str) -> str:
        if path in self.fail_downloads or path not in self.objects:
            raise StorageError(f"Failed to download {path}")
        return self.objects[path]

    def upload_file(self, local_path, destination, content_type, cache_control):
        with open(local_path, "rb") as f:
            data = f.read()
        self.uploads[destination] = {"data": data, "content_type": content_type, "cache_control": cache_control}

    def upload_bytes(self, data, destination, content_type, cache_control):
        self.uploads[destination] = {"data": data, "content_type": content_type, "cache_control": cache_control}

    def make_public(self, path):
        if self.fail_make_public:
            raise StorageError("uniform bucket-level access is enabled")
        self.public.add(path)


class FakeRouteStore:
    def __init__(self, records: list[RouteRecord]):
        self.records = records

    def fetch_routes(self) -> list[RouteRecord]:
        return sorted(self.records, key=lambda r: r.uploaded_at, reverse=True)


class FakePointStore:
    """Pages through records using the index after the last record as continuation."""

    def __init__(self, records: list[PointRecord]):
        self.records = records
        self.calls: list[tuple[int, object]] = []

    def fetch_page(self, limit, continuation=None):
        self.calls.append((limit, continuation))
        start = continuation or 0
        page = self.records[start:start + limit]
        next_continuation = start + len(page) if len(page) == limit else None
        return page, next_continuation


def make_route(route_id: str, minutes_ago: int, **kwargs) -> RouteRecord:
    return RouteRecord(
        id=route_id,
        file_name=kwargs.pop("file_name", f"{route_id}.gpx"),
        uploaded_at=BASE_TIME - timedelta(minutes=minutes_ago),
        **kwargs,
    )


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def scenario_points():
    """Three points: +20 m climb then -10 m descent."""
    return [
        TrackPoint(lat=45.0, lon=10.0, elevation=100.0),
        TrackPoint(lat=45.001, lon=10.0, elevation=120.0),
        TrackPoint(lat=45.001, lon=10.001, elevation=110.0),
    ]


@pytest.fixture
def flat_points_no_elevation():
    return [
        TrackPoint(lat=37.7749, lon=-122.4194, elevation=None),
        TrackPoint(lat=37.7758, lon=-122.4183, elevation=None),
        TrackPoint(lat=37.7767, lon=-122.4172, elevation=None),
    ]
