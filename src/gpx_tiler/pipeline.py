"""The route tile batch job: collate, flatten, tile, publish."""

import logging
from dataclasses import dataclass
from typing import Callable

from gpx_tiler.collator import collate_routes, resolve_sources
from gpx_tiler.features import flatten_routes
from gpx_tiler.tiles import build_and_publish_tiles, run_tippecanoe

logger = logging.getLogger(__name__)


@dataclass
class TileJobSummary:
    routes: int
    sources: int
    cached: int
    unresolvable: int
    features: int
    published: bool


def run_tile_job(
    route_store,
    object_store,
    runner: Callable[[list[str]], int] = run_tippecanoe,
    tippecanoe_bin: str = "tippecanoe",
) -> TileJobSummary:
    """Run the whole tile job once.

    Per-route failures are logged and skipped; only tippecanoe and upload
    failures propagate.
    """
    records = route_store.fetch_routes()
    logger.info("Loaded %d route(s)", len(records))

    collated = collate_routes(records)
    report = resolve_sources(collated, object_store)

    features = []
    if report.resolved:
        features = flatten_routes(report.resolved)
    else:
        logger.warning("No GPX sources found anywhere")

    published = build_and_publish_tiles(features, object_store, runner=runner, tippecanoe_bin=tippecanoe_bin)
    return TileJobSummary(
        routes=len(records),
        sources=len(report.resolved),
        cached=len(report.cached),
        unresolvable=len(report.unresolvable),
        features=len(features),
        published=published,
    )
