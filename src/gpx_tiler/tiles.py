"""Vector tile synthesis with tippecanoe."""

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

TILES_DESTINATION = "tiles/routes.pmtiles"
TILES_CONTENT_TYPE = "application/vnd.pmtiles"
TILES_CACHE_CONTROL = "public, max-age=3600"
TILES_LAYER = "routes"
MIN_ZOOM = 2

GEOJSON_FILENAME = "routes.geojson"
PMTILES_FILENAME = "routes.pmtiles"


class TileBuildError(RuntimeError):
    """Raised when tippecanoe fails or produces no output."""


def tippecanoe_args(input_path: Path, output_path: Path, tippecanoe_bin: str = "tippecanoe") -> list[str]:
    """Build the tippecanoe argument list.

    -zg                                 auto-select max zoom from data density
    -Z2                                 minimum zoom level 2
    --drop-densest-as-needed            thin points at lower zooms to keep tiles small
    --extend-zooms-if-still-dropping    add zoom levels until all features fit
    -l routes                           layer name the map page references
    --force                             overwrite the output file
    """
    return [
        tippecanoe_bin,
        "-zg",
        f"-Z{MIN_ZOOM}",
        "--drop-densest-as-needed",
        "--extend-zooms-if-still-dropping",
        "-l", TILES_LAYER,
        "-o", str(output_path),
        "--force",
        str(input_path),
    ]


def run_tippecanoe(args: list[str]) -> int:
    """Run tippecanoe, logging its output line by line. Returns the exit code."""
    logger.info("Running: %s", " ".join(args))
    try:
        process = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise TileBuildError(f"tippecanoe executable not found: {args[0]}") from e

    with process:
        for line in process.stdout:
            line = line.rstrip()
            if line:
                logger.info("tippecanoe: %s", line)
    return process.returncode


def write_feature_collection(features: list[dict], path: Path) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump({"type": "FeatureCollection", "features": features}, f)


def build_and_publish_tiles(
    features: list[dict],
    object_store,
    runner: Callable[[list[str]], int] = run_tippecanoe,
    tippecanoe_bin: str = "tippecanoe",
) -> bool:
    """Compile features into routes.pmtiles and upload it.

    Returns False without touching the published tiles when there are no
    features.

    Raises:
        TileBuildError: If tippecanoe exits non-zero or writes no output.
        StorageError: If the upload fails.
    """
    if not features:
        logger.warning("No GeoJSON features to tile, leaving published tiles unchanged")
        return False

    with tempfile.TemporaryDirectory(prefix="pmtiles-") as tmp:
        tmp_dir = Path(tmp)
        logger.debug("Working directory: %s", tmp_dir)

        geojson_path = tmp_dir / GEOJSON_FILENAME
        write_feature_collection(features, geojson_path)
        logger.info("Wrote %d feature(s) to %s", len(features), geojson_path)

        output_path = tmp_dir / PMTILES_FILENAME
        returncode = runner(tippecanoe_args(geojson_path, output_path, tippecanoe_bin))
        if returncode != 0:
            raise TileBuildError(f"tippecanoe exited with status {returncode}")
        if not output_path.exists():
            raise TileBuildError(f"tippecanoe exited cleanly but did not write {output_path}")

        logger.info("Uploading %s (%.1f KB)", TILES_DESTINATION, output_path.stat().st_size / 1024)
        object_store.upload_file(
            output_path,
            TILES_DESTINATION,
            content_type=TILES_CONTENT_TYPE,
            cache_control=TILES_CACHE_CONTROL,
        )
        logger.info("Uploaded %s", TILES_DESTINATION)

    return True
