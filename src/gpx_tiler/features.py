"""GPX to GeoJSON line features."""

import logging
import posixpath
import re

import gpxpy
import gpxpy.gpx

from gpx_tiler.models import ResolvedRoute
from gpx_tiler.palette import DEFAULT_ROUTE_COLOR
from gpx_tiler.parser import GpxParseError, drop_unreadable_values

logger = logging.getLogger(__name__)

_GPX_SUFFIX = re.compile(r"\.gpx$", re.IGNORECASE)


def _line(points) -> list[list[float]]:
    return [[pt.longitude, pt.latitude] for pt in points]


def _base_properties(item) -> dict:
    properties = {}
    for key in ("name", "description", "type"):
        value = getattr(item, key, None)
        if value:
            properties[key] = value
    return properties


def gpx_to_features(gpx_text: str) -> list[dict]:
    """Convert GPX tracks and routes into GeoJSON features.

    A track with one usable segment becomes a LineString, a track with
    several becomes a MultiLineString. Segments with fewer than two points
    and all waypoints are ignored. Points with unreadable coordinates and
    unreadable elevations are dropped first, as the stats parser does.

    Raises:
        GpxParseError: If the text is not well-formed GPX.
    """
    try:
        gpx = gpxpy.parse(drop_unreadable_values(gpx_text))
    except (gpxpy.gpx.GPXException, ValueError) as e:
        raise GpxParseError(str(e)) from e

    features = []
    for track in gpx.tracks:
        lines = [_line(seg.points) for seg in track.segments if len(seg.points) >= 2]
        if not lines:
            continue
        if len(lines) == 1:
            geometry = {"type": "LineString", "coordinates": lines[0]}
        else:
            geometry = {"type": "MultiLineString", "coordinates": lines}
        features.append({"type": "Feature", "geometry": geometry, "properties": _base_properties(track)})

    for route in gpx.routes:
        if len(route.points) < 2:
            continue
        geometry = {"type": "LineString", "coordinates": _line(route.points)}
        features.append({"type": "Feature", "geometry": geometry, "properties": _base_properties(route)})

    return features


def flatten_route(route: ResolvedRoute) -> list[dict]:
    """Convert one resolved route and stamp filename, color and name on each feature."""
    file_name = posixpath.basename(route.source_path or route.file_name or "unknown.gpx")
    color = route.meta.color if route.meta else DEFAULT_ROUTE_COLOR
    name = (route.meta.name if route.meta else None) or _GPX_SUFFIX.sub("", file_name)

    features = gpx_to_features(route.gpx_text)
    for feature in features:
        properties = feature.setdefault("properties", {})
        properties["filename"] = file_name
        properties["color"] = color
        properties["name"] = name

    if not features:
        logger.warning("Zero features produced from %s, file may contain only waypoints",
                       route.source_path or route.file_name)
    return features


def flatten_routes(routes: list[ResolvedRoute]) -> list[dict]:
    """Flatten every route, skipping any that fail to parse."""
    features = []
    for route in routes:
        try:
            features.extend(flatten_route(route))
        except GpxParseError as e:
            logger.warning("Failed to process %s: %s", route.source_path or route.file_name, e)
    logger.info("Converted %d feature(s) from %d source(s)", len(features), len(routes))
    return features
