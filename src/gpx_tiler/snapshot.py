"""Flattened JSON snapshot of all point records.

The map page loads this one cached file instead of paginating through the
points collection itself.
"""

import base64
import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Iterator

from gpx_tiler.models import PointRecord
from gpx_tiler.stores import StorageError

logger = logging.getLogger(__name__)

BATCH_SIZE = 1000
SNAPSHOT_DESTINATION = "points/points.json"
SNAPSHOT_CONTENT_TYPE = "application/json"
SNAPSHOT_CACHE_CONTROL = "public, max-age=300"

FetchPage = Callable[[int, Any], tuple[list, Any]]


def iter_pages(fetch_page: FetchPage, batch_size: int = BATCH_SIZE) -> Iterator[list]:
    """Yield pages from `fetch_page(limit, continuation)` until the last one.

    A page shorter than `batch_size`, or a missing continuation, ends the loop.
    """
    continuation = None
    while True:
        records, continuation = fetch_page(batch_size, continuation)
        if records:
            yield records
        if len(records) < batch_size or continuation is None:
            return


def project_point(record: PointRecord) -> dict:
    return {
        "id": record.id,
        "name": record.name or "",
        "lat": record.lat,
        "lon": record.lon,
        "url": record.url or None,
        "metadata": record.metadata or {},
        "fileName": record.file_name or None,
    }


def collect_points(point_store, batch_size: int = BATCH_SIZE) -> list[dict]:
    points = []
    for page in iter_pages(point_store.fetch_page, batch_size):
        points.extend(project_point(record) for record in page)
        logger.info("Fetched %d point(s) so far", len(points))
    return points


def _firestore_value(value):
    """JSON form of the non-JSON values Firestore returns inside metadata."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "latitude") and hasattr(value, "longitude"):
        return {"latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if hasattr(value, "path"):
        return value.path
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_snapshot(points: list[dict]) -> bytes:
    """Compact JSON with sorted keys, so an unchanged store gives identical bytes.

    Timestamps are written as ISO 8601 strings, geo points as
    {"latitude", "longitude"} and document references as their path.
    """
    return json.dumps(
        points, separators=(",", ":"), sort_keys=True, ensure_ascii=False, default=_firestore_value,
    ).encode("utf-8")


def export_points_snapshot(point_store, object_store, batch_size: int = BATCH_SIZE) -> int:
    """Publish every point record as points/points.json. Returns the point count.

    Raises:
        StorageError: If the upload fails.
    """
    points = collect_points(point_store, batch_size)
    data = serialize_snapshot(points)
    logger.info("Total: %d point(s), snapshot size %.1f KB", len(points), len(data) / 1024)

    object_store.upload_bytes(
        data,
        SNAPSHOT_DESTINATION,
        content_type=SNAPSHOT_CONTENT_TYPE,
        cache_control=SNAPSHOT_CACHE_CONTROL,
    )

    try:
        object_store.make_public(SNAPSHOT_DESTINATION)
        logger.info("%s made publicly readable", SNAPSHOT_DESTINATION)
    except StorageError as e:
        logger.warning(
            "Could not set public ACL on %s (fine if uniform bucket-level access grants "
            "allUsers Storage Object Viewer): %s", SNAPSHOT_DESTINATION, e,
        )

    return len(points)
