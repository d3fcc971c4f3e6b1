"""Route ordering and color assignment.

The interactive map and the tile job both color routes with this module, so a
route gets the same color in both places. Changing the palette or the ordering
rule is a breaking change for already-published tiles: bump PALETTE_VERSION.
"""

from datetime import datetime, timezone

from gpx_tiler.models import ColoredRouteMeta, RouteRecord

PALETTE_VERSION = 1

ROUTE_COLORS = [
    "#ff6b6b",
    "#4ecdc4",
    "#ffe66d",
    "#a29bfe",
    "#fd79a8",
    "#00b894",
    "#e17055",
    "#0984e3",
    "#6c5ce7",
    "#fdcb6e",
]

# Used for features whose route cannot be matched to any record
DEFAULT_ROUTE_COLOR = "#2A9D8F"

ORDER_FIELD = "uploadedAt"


def _timestamp(value: datetime | None) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def order_routes(records: list[RouteRecord]) -> list[RouteRecord]:
    """Order records newest first, ties broken by ascending record id.

    Records without an upload time sort last.
    """
    by_id = sorted(records, key=lambda r: str(r.id))
    return sorted(by_id, key=lambda r: _timestamp(r.uploaded_at), reverse=True)


def color_for_position(position: int) -> str:
    return ROUTE_COLORS[position % len(ROUTE_COLORS)]


def assign_colors(records: list[RouteRecord]) -> list[tuple[RouteRecord, ColoredRouteMeta]]:
    """Pair every record with its color and display name.

    Every record takes one palette slot, whether or not it later yields
    any geometry.
    """
    return [
        (record, ColoredRouteMeta(color=color_for_position(i), name=record.display_name))
        for i, record in enumerate(order_routes(records))
    ]


def color_assignment_payload(records: list[RouteRecord]) -> dict:
    """Serializable color assignment for the map page."""
    return {
        "paletteVersion": PALETTE_VERSION,
        "orderBy": ORDER_FIELD,
        "routes": [
            {
                "id": record.id,
                "fileName": record.file_name,
                "storagePath": record.storage_path,
                "color": meta.color,
                "name": meta.name,
            }
            for record, meta in assign_colors(records)
        ],
    }
