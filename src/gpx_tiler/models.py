from dataclasses import dataclass, field
from datetime import datetime

# Reported for min/max elevation when no point carries an elevation
UNKNOWN_ELEVATION = "—"


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    elevation: float | None  # meters


@dataclass
class ParsedGpx:
    points: list[TrackPoint]
    name: str | None = None


@dataclass
class RouteStats:
    distance_km: str  # formatted to one decimal place, e.g. "12.3"
    elev_gain: int  # meters
    elev_loss: int  # meters
    min_ele: int | str  # meters, or UNKNOWN_ELEVATION
    max_ele: int | str  # meters, or UNKNOWN_ELEVATION

    def to_dict(self) -> dict:
        """Convert to the camelCase mapping consumed by the map page."""
        return {
            "distanceKm": self.distance_km,
            "elevGain": self.elev_gain,
            "elevLoss": self.elev_loss,
            "minEle": self.min_ele,
            "maxEle": self.max_ele,
        }


@dataclass
class RouteRecord:
    """A document from the `routes` collection."""
    id: str
    file_name: str | None
    storage_path: str | None = None
    gpx_content: str | None = None  # XML captured inline at upload time
    name: str | None = None  # metadata.name
    uploaded_at: datetime | None = None

    @property
    def display_name(self) -> str | None:
        return self.name or self.file_name

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> "RouteRecord":
        metadata = data.get("metadata") or {}
        return cls(
            id=doc_id,
            file_name=data.get("fileName") or None,
            storage_path=data.get("storagePath") or None,
            gpx_content=data.get("gpxContent") or None,
            name=metadata.get("name") or None,
            uploaded_at=data.get("uploadedAt"),
        )


@dataclass(frozen=True)
class ColoredRouteMeta:
    color: str
    name: str | None


@dataclass
class ResolvedRoute:
    """GPX text for one route, ready to be converted into features."""
    source_path: str | None
    file_name: str | None
    gpx_text: str
    meta: ColoredRouteMeta | None
    origin: str  # "storage", "cached" or "unreferenced"


@dataclass
class PointRecord:
    """A document from the `points` collection."""
    id: str
    name: str
    lat: float | None
    lon: float | None
    url: str | None = None
    metadata: dict = field(default_factory=dict)
    file_name: str | None = None

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> "PointRecord":
        return cls(
            id=doc_id,
            name=data.get("name") or "",
            lat=data.get("lat"),
            lon=data.get("lon"),
            url=data.get("url") or None,
            metadata=data.get("metadata") or {},
            file_name=data.get("fileName") or None,
        )
