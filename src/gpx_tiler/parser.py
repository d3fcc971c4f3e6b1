import math
import xml.etree.ElementTree as ET

from gpx_tiler.models import ParsedGpx, TrackPoint

POINT_TAGS = ("trkpt", "rtept")

# Parent elements whose <name> child is used as the route name, in priority order.
# GPX 1.0 has no <metadata>, so the document-level <gpx><name> is the fallback.
NAME_PARENTS = ("trk", "rte", "metadata", "gpx")


class GpxParseError(ValueError):
    """Raised when GPX text is not well-formed XML."""


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _parse_float(text: str | None) -> float | None:
    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _find_child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _read_elevation(point: ET.Element) -> float | None:
    for element in point.iter():
        if element is not point and _local_name(element.tag) == "ele":
            return _parse_float(element.text)
    return None


def _read_name(root: ET.Element) -> str | None:
    for parent_name in NAME_PARENTS:
        if parent_name == "gpx":
            candidates = [root] if _local_name(root.tag) == "gpx" else []
        else:
            candidates = [el for el in root.iter() if _local_name(el.tag) == parent_name]
        for parent in candidates:
            name_el = _find_child(parent, "name")
            if name_el is not None and name_el.text and name_el.text.strip():
                return name_el.text.strip()
    return None


def _parse_root(text: str | bytes) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise GpxParseError(str(e)) from e


def parse_gpx_text(text: str | bytes) -> ParsedGpx:
    """Parse GPX text into ordered TrackPoints and an optional route name.

    Track points and route points are read uniformly in document order.
    Points without a finite lat/lon are skipped.

    Raises:
        GpxParseError: If the text is not well-formed XML.
    """
    root = _parse_root(text)

    points: list[TrackPoint] = []
    for element in root.iter():
        if _local_name(element.tag) not in POINT_TAGS:
            continue
        lat = _parse_float(element.get("lat"))
        lon = _parse_float(element.get("lon"))
        if lat is None or lon is None:
            continue
        points.append(TrackPoint(lat=lat, lon=lon, elevation=_read_elevation(element)))

    return ParsedGpx(points=points, name=_read_name(root))


def parse_gpx(filepath: str) -> ParsedGpx:
    """Parse a GPX file from disk, honouring its XML encoding declaration."""
    with open(filepath, "rb") as f:
        return parse_gpx_text(f.read())


def drop_unreadable_values(text: str | bytes) -> str:
    """Return GPX text without the points and elevations parse_gpx_text skips.

    Points (including waypoints) without a finite lat/lon are removed, as are
    <ele> elements that are not finite numbers, so stricter GPX readers see
    the same geometry the stats do.

    Raises:
        GpxParseError: If the text is not well-formed XML.
    """
    root = _parse_root(text)
    for parent in list(root.iter()):
        for child in list(parent):
            name = _local_name(child.tag)
            if name in POINT_TAGS or name == "wpt":
                if _parse_float(child.get("lat")) is None or _parse_float(child.get("lon")) is None:
                    parent.remove(child)
            elif name == "ele" and _parse_float(child.text) is None:
                parent.remove(child)

    namespace = root.tag[1:].split("}", 1)[0] if root.tag.startswith("{") else None
    try:
        return ET.tostring(root, encoding="unicode", default_namespace=namespace)
    except ValueError:
        # Unqualified elements under a namespaced root cannot share a default namespace
        return ET.tostring(root, encoding="unicode")
