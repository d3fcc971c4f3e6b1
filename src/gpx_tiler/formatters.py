"""Formatting utilities for display."""

from gpx_tiler.models import RouteStats


def format_distance_km(meters: float) -> str:
    """Format meters as kilometers with exactly one decimal place."""
    return f"{meters / 1000:.1f}"


def format_elevation(value: int | str) -> str:
    """Format an elevation in meters, passing the unknown marker through."""
    if isinstance(value, str):
        return value
    return f"{value} m"


def format_stats(stats: RouteStats) -> list[str]:
    """Format route statistics as aligned report lines."""
    return [
        f"Distance:       {stats.distance_km} km",
        f"Elevation Gain: {stats.elev_gain} m",
        f"Elevation Loss: {stats.elev_loss} m",
        f"Min Elevation:  {format_elevation(stats.min_ele)}",
        f"Max Elevation:  {format_elevation(stats.max_ele)}",
    ]
