"""Route collation: colors, name lookup and GPX source resolution."""

import logging
import posixpath
from dataclasses import dataclass, field

from gpx_tiler.models import ColoredRouteMeta, ResolvedRoute, RouteRecord
from gpx_tiler.palette import assign_colors
from gpx_tiler.stores import StorageError

logger = logging.getLogger(__name__)

GPX_PREFIX = "gpx/"


def _normalize_path(path: str | None) -> str | None:
    if not path:
        return None
    return path.strip().lstrip("/")


def _bare_name(path: str | None) -> str | None:
    if not path:
        return None
    return posixpath.basename(path.strip())


class RouteResolver:
    """Looks up a route's color and name by storage path or file name.

    Entries are keyed by normalized storage path, with the bare file name as a
    secondary key. When two records claim the same key, the first one added
    (the most recent upload) wins.
    """

    def __init__(self):
        self._by_path: dict[str, ColoredRouteMeta] = {}
        self._by_file_name: dict[str, ColoredRouteMeta] = {}

    def add(self, record: RouteRecord, meta: ColoredRouteMeta) -> None:
        path = _normalize_path(record.storage_path)
        if path:
            self._by_path.setdefault(path, meta)
        file_name = _bare_name(record.file_name)
        if file_name:
            self._by_file_name.setdefault(file_name, meta)

    def resolve(self, storage_path: str | None, fallback_file_name: str | None = None) -> ColoredRouteMeta | None:
        path = _normalize_path(storage_path)
        if path and path in self._by_path:
            return self._by_path[path]
        for candidate in (_bare_name(fallback_file_name), _bare_name(storage_path)):
            if candidate and candidate in self._by_file_name:
                return self._by_file_name[candidate]
        return None

    def __len__(self) -> int:
        return len(self._by_path.keys() | self._by_file_name.keys())


@dataclass
class CollatedRoutes:
    assignments: list[tuple[RouteRecord, ColoredRouteMeta]]
    resolver: RouteResolver

    @property
    def records(self) -> list[RouteRecord]:
        return [record for record, _ in self.assignments]


def collate_routes(records: list[RouteRecord]) -> CollatedRoutes:
    """Assign colors to records and index them for lookup."""
    assignments = assign_colors(records)
    resolver = RouteResolver()
    for record, meta in assignments:
        resolver.add(record, meta)
    return CollatedRoutes(assignments=assignments, resolver=resolver)


@dataclass
class ResolutionReport:
    resolved: list[ResolvedRoute] = field(default_factory=list)
    cached: list[RouteRecord] = field(default_factory=list)
    unresolvable: list[RouteRecord] = field(default_factory=list)


def _describe(record: RouteRecord) -> str:
    return f"{record.file_name or '(unknown)'} (storagePath: {record.storage_path or 'null'})"


def resolve_sources(collated: CollatedRoutes, object_store, prefix: str = GPX_PREFIX) -> ResolutionReport:
    """Find the GPX text for every collated route.

    Each route is read from the object store when its storage path exists
    there, else from its cached inline content, else it is skipped with a
    warning. GPX objects under `prefix` that no record refers to are
    included as well, colored through the resolver.
    """
    available = [name for name in object_store.list_names(prefix) if name.lower().endswith(".gpx")]
    available_set = set(available)
    claimed: set[str] = set()
    report = ResolutionReport()

    for record, meta in collated.assignments:
        path = _normalize_path(record.storage_path)
        if path:
            claimed.add(path)

        if path and path in available_set:
            try:
                text = object_store.download_text(path)
            except StorageError as e:
                logger.warning("Failed to download %s: %s", path, e)
            else:
                report.resolved.append(ResolvedRoute(
                    source_path=path,
                    file_name=record.file_name,
                    gpx_text=text,
                    meta=meta,
                    origin="storage",
                ))
                continue

        if record.gpx_content:
            logger.warning("No storage file for %s, using cached gpxContent", _describe(record))
            report.cached.append(record)
            report.resolved.append(ResolvedRoute(
                source_path=path,
                file_name=record.file_name,
                gpx_text=record.gpx_content,
                meta=meta,
                origin="cached",
            ))
            continue

        logger.warning("No storage file and no cached gpxContent for %s, route will be missing from tiles",
                       _describe(record))
        report.unresolvable.append(record)

    for name in available:
        if name in claimed:
            continue
        try:
            text = object_store.download_text(name)
        except StorageError as e:
            logger.warning("Failed to download %s: %s", name, e)
            continue
        logger.info("Storage file %s has no route record", name)
        report.resolved.append(ResolvedRoute(
            source_path=name,
            file_name=None,
            gpx_text=text,
            meta=collated.resolver.resolve(name),
            origin="unreferenced",
        ))

    logger.info(
        "Resolved %d of %d route(s): %d from cached content, %d unresolvable",
        len(report.resolved), len(collated.assignments), len(report.cached), len(report.unresolvable),
    )
    return report
