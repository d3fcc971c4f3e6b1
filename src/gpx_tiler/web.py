"""HTTP endpoints the map page calls for uploads and route colors."""

import logging
import os

from flask import Flask, jsonify, request

from gpx_tiler import __version_date__, get_git_hash
from gpx_tiler.palette import color_assignment_payload
from gpx_tiler.worker import DEFAULT_MAX_WORKERS, GpxWorker, process_job

logger = logging.getLogger(__name__)

# Largest GPX upload accepted, in bytes
MAX_GPX_BYTES = 20 * 1024 * 1024

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_GPX_BYTES

_worker = GpxWorker(max_workers=int(os.environ.get("GPX_TILER_WORKERS", DEFAULT_MAX_WORKERS)))
_route_store = None


def get_route_store():
    """Lazily connect to the routes collection."""
    global _route_store
    if _route_store is None:
        from gpx_tiler.config import get_storage_bucket, load_service_account
        from gpx_tiler.stores import FirestoreRouteStore, init_firebase

        db, _ = init_firebase(load_service_account(), get_storage_bucket())
        _route_store = FirestoreRouteStore(db)
    return _route_store


def _job_payload():
    """Return (job_id, gpx_text, error_response) from the request body."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None, None, (jsonify({"error": "Expected a JSON object"}), 400)
    job_id = payload.get("id")
    gpx_text = payload.get("gpxText")
    if job_id is None or job_id == "":
        return None, None, (jsonify({"error": "Missing job id"}), 400)
    if not isinstance(gpx_text, str):
        return None, None, (jsonify({"id": job_id, "error": "Missing gpxText"}), 400)
    return job_id, gpx_text, None


@app.route("/health")
def health():
    return {"status": "ok", "version_date": __version_date__, "git_hash": get_git_hash()}


@app.route("/api/parse", methods=["POST"])
def api_parse():
    """Parse one upload and return its points, stats and name.

    Bad GPX is reported as {"id", "error"} with status 200 so the page can
    show it next to the upload.
    """
    job_id, gpx_text, error = _job_payload()
    if error:
        return error
    return jsonify(process_job(job_id, gpx_text))


@app.route("/api/jobs", methods=["POST"])
def api_submit_job():
    """Queue a parse job. Poll /api/jobs/<id> for the result."""
    job_id, gpx_text, error = _job_payload()
    if error:
        return error
    _worker.submit(job_id, gpx_text)
    return jsonify({"id": job_id, "status": "pending"}), 202


@app.route("/api/jobs/<job_id>")
def api_job_result(job_id):
    """Deliver a finished job once. Later polls for the same id return 404."""
    # Checked before popping so a job finishing in between is not reported unknown
    pending = _worker.is_pending(job_id)
    result = _worker.pop_result(job_id)
    if result is not None:
        return jsonify(result)
    if pending:
        return jsonify({"id": job_id, "status": "pending"}), 202
    return jsonify({"id": job_id, "error": "Unknown job"}), 404


@app.route("/api/route-colors")
def api_route_colors():
    """Color and display name for every route, in map order."""
    records = get_route_store().fetch_routes()
    return jsonify(color_assignment_payload(records))


def main():
    """Run the web server."""
    logging.basicConfig(level=logging.INFO)
    port = int(os.environ.get("PORT", 5060))
    print("Starting GPX Tiler web server...")
    print(f"Listening on http://localhost:{port}")
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
