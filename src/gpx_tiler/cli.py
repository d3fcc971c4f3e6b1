import argparse
import json
import logging
import sys

from gpx_tiler.config import (
    CredentialsError,
    get_storage_bucket,
    get_tippecanoe_bin,
    load_service_account,
)
from gpx_tiler.formatters import format_stats
from gpx_tiler.parser import GpxParseError, parse_gpx
from gpx_tiler.stats import compute_stats

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def _add_job_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--credentials",
        default=None,
        help="Path to a Firebase service account key (default: $FIREBASE_SERVICE_ACCOUNT or ./serviceAccountKey.json)",
    )
    parser.add_argument(
        "--bucket",
        default=None,
        help="Firebase Storage bucket (default: $FIREBASE_STORAGE_BUCKET or config)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpx-tiler",
        description="GPX route statistics and vector tile generation.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Print distance and elevation stats for a GPX file")
    analyze.add_argument("gpx_file", help="Path to GPX file")
    analyze.add_argument("--json", action="store_true", help="Print the stats as JSON")

    tiles = subparsers.add_parser("build-tiles", help="Build and publish routes.pmtiles")
    _add_job_arguments(tiles)
    tiles.add_argument(
        "--tippecanoe",
        default=None,
        help="tippecanoe executable (default: $TIPPECANOE_BIN or tippecanoe)",
    )

    points = subparsers.add_parser("export-points", help="Publish the points/points.json snapshot")
    _add_job_arguments(points)
    return parser


def _connect(args):
    """Load credentials and return (firestore client, bucket), exiting on failure."""
    try:
        service_account = load_service_account(args.credentials)
    except CredentialsError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    from gpx_tiler.stores import init_firebase
    return init_firebase(service_account, args.bucket or get_storage_bucket())


def run_analyze(args) -> None:
    try:
        parsed = parse_gpx(args.gpx_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.gpx_file}", file=sys.stderr)
        sys.exit(1)
    except GpxParseError as e:
        print(f"Error parsing GPX file: {e}", file=sys.stderr)
        sys.exit(1)

    stats = compute_stats(parsed.points)
    if args.json:
        print(json.dumps({"name": parsed.name, "points": len(parsed.points), "stats": stats.to_dict()}))
        return

    print("=== GPX Route Stats ===")
    print(f"Name:           {parsed.name or '(unnamed)'}")
    print(f"Points:         {len(parsed.points)}")
    for line in format_stats(stats):
        print(line)


def run_build_tiles(args) -> None:
    from gpx_tiler.pipeline import run_tile_job
    from gpx_tiler.stores import BucketObjectStore, FirestoreRouteStore, StorageError
    from gpx_tiler.tiles import TileBuildError

    configure_logging(args.verbose)
    db, bucket = _connect(args)
    try:
        summary = run_tile_job(
            FirestoreRouteStore(db),
            BucketObjectStore(bucket),
            tippecanoe_bin=args.tippecanoe or get_tippecanoe_bin(),
        )
    except (TileBuildError, StorageError) as e:
        logging.getLogger(__name__).error("Tile build failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if summary.published:
        print(f"Published {summary.features} feature(s) from {summary.sources} source(s).")
    else:
        print("Nothing to publish.")


def run_export_points(args) -> None:
    from gpx_tiler.snapshot import SNAPSHOT_DESTINATION, export_points_snapshot
    from gpx_tiler.stores import BucketObjectStore, FirestorePointStore, StorageError

    configure_logging(args.verbose)
    db, bucket = _connect(args)
    try:
        count = export_points_snapshot(FirestorePointStore(db), BucketObjectStore(bucket))
    except StorageError as e:
        logging.getLogger(__name__).error("Snapshot export failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Done. {count} point(s) written to {SNAPSHOT_DESTINATION}.")


COMMANDS = {
    "analyze": run_analyze,
    "build-tiles": run_build_tiles,
    "export-points": run_export_points,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    COMMANDS[args.command](args)


def build_tiles_main(argv: list[str] | None = None) -> None:
    """Entry point for the standalone tile job."""
    main(["build-tiles", *(sys.argv[1:] if argv is None else argv)])


def export_points_main(argv: list[str] | None = None) -> None:
    """Entry point for the standalone points snapshot job."""
    main(["export-points", *(sys.argv[1:] if argv is None else argv)])
