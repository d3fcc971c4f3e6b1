"""Off-thread GPX parsing for interactive uploads.

Each job is identified by a caller-supplied id. Results are routed back by
that id, so jobs may complete in any order.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Callable

from gpx_tiler.parser import GpxParseError, parse_gpx_text
from gpx_tiler.stats import compute_stats

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def process_job(job_id, gpx_text: str) -> dict:
    """Parse GPX text and compute stats for one upload.

    Returns {"id", "latlngs", "stats", "name"} on success or {"id", "error"}
    when the text cannot be parsed. Never raises for bad input.
    """
    if not isinstance(gpx_text, str):
        return {"id": job_id, "error": "GPX text must be a string"}
    try:
        parsed = parse_gpx_text(gpx_text)
    except GpxParseError as e:
        return {"id": job_id, "error": str(e)}

    return {
        "id": job_id,
        "latlngs": [[pt.lat, pt.lon] for pt in parsed.points],
        "stats": compute_stats(parsed.points).to_dict(),
        "name": parsed.name,
    }


class GpxWorker:
    """Thread pool that runs parse jobs and keeps their results by job id."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gpx-worker")
        self._lock = Lock()
        self._results: dict[str, dict] = {}
        self._pending: set[str] = set()

    def submit(self, job_id, gpx_text: str, callback: Callable[[dict], None] | None = None) -> Future:
        """Queue a job. The returned future resolves to the job's result dict."""
        key = str(job_id)
        with self._lock:
            self._pending.add(key)
            self._results.pop(key, None)

        future = self._executor.submit(self._run, job_id, gpx_text)
        if callback is not None:
            future.add_done_callback(lambda f: callback(f.result()))
        return future

    def _run(self, job_id, gpx_text: str) -> dict:
        try:
            result = process_job(job_id, gpx_text)
        except Exception as e:
            # Any failure must still resolve the job for its caller
            logger.exception("Parse job %s failed", job_id)
            result = {"id": job_id, "error": str(e) or e.__class__.__name__}
        key = str(job_id)
        with self._lock:
            self._pending.discard(key)
            self._results[key] = result
        if "error" in result:
            logger.info("Parse job %s finished with error: %s", job_id, result["error"])
        else:
            logger.debug("Parse job %s finished with %d points", job_id, len(result["latlngs"]))
        return result

    def is_pending(self, job_id) -> bool:
        with self._lock:
            return str(job_id) in self._pending

    def result(self, job_id) -> dict | None:
        """Return a finished job's result, or None if unknown or still running."""
        with self._lock:
            return self._results.get(str(job_id))

    def pop_result(self, job_id) -> dict | None:
        """Return and forget a finished job's result."""
        with self._lock:
            return self._results.pop(str(job_id), None)

    def pending(self) -> list[str]:
        with self._lock:
            return sorted(self._pending)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
