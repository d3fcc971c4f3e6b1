"""Distance and elevation statistics for a parsed route."""

import math

from gpx_tiler.distance import path_distance
from gpx_tiler.formatters import format_distance_km
from gpx_tiler.models import UNKNOWN_ELEVATION, RouteStats, TrackPoint


def round_meters(value: float) -> int:
    """Round half up, matching the map page's Math.round."""
    return math.floor(value + 0.5)


def elevation_totals(points: list[TrackPoint]) -> tuple[float, float]:
    """Return (gain, loss) in meters.

    Only pairs where both points carry an elevation contribute, so a gap in
    elevation data never produces a phantom climb or descent.
    """
    gain = 0.0
    loss = 0.0
    for i in range(1, len(points)):
        elev_prev = points[i - 1].elevation
        elev_curr = points[i].elevation
        if elev_prev is None or elev_curr is None:
            continue
        delta = elev_curr - elev_prev
        if delta > 0:
            gain += delta
        else:
            loss += abs(delta)
    return gain, loss


def elevation_range(points: list[TrackPoint]) -> tuple[float, float] | None:
    """Return (min, max) elevation, or None if no point has one."""
    elevations = [pt.elevation for pt in points if pt.elevation is not None]
    if not elevations:
        return None
    return min(elevations), max(elevations)


def compute_stats(points: list[TrackPoint]) -> RouteStats:
    """Compute RouteStats for an ordered list of TrackPoints."""
    gain, loss = elevation_totals(points)
    ele_range = elevation_range(points)
    if ele_range is None:
        min_ele = max_ele = UNKNOWN_ELEVATION
    else:
        min_ele, max_ele = round_meters(ele_range[0]), round_meters(ele_range[1])

    return RouteStats(
        distance_km=format_distance_km(path_distance(points)),
        elev_gain=round_meters(gain),
        elev_loss=round_meters(loss),
        min_ele=min_ele,
        max_ele=max_ele,
    )
