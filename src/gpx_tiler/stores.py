"""Firebase-backed stores used by the batch jobs.

The jobs only talk to these small classes, so tests can swap in in-memory
fakes with the same methods.
"""

import logging
from pathlib import Path
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore, storage
from google.api_core.exceptions import GoogleAPIError

from gpx_tiler.models import PointRecord, RouteRecord

logger = logging.getLogger(__name__)

ROUTES_COLLECTION = "routes"
POINTS_COLLECTION = "points"
ORDER_FIELD = "uploadedAt"


class StorageError(Exception):
    """Raised when a read or write against the object store fails."""


def init_firebase(service_account: dict, storage_bucket: str):
    """Initialize (or reuse) the default Firebase app.

    Returns (firestore client, storage bucket).
    """
    try:
        app = firebase_admin.get_app()
        logger.debug("Using existing Firebase app")
    except ValueError:
        cred = credentials.Certificate(service_account)
        app = firebase_admin.initialize_app(cred, {"storageBucket": storage_bucket})
        logger.info("Firebase app initialized for bucket: %s", storage_bucket)
    return firestore.client(app), storage.bucket(storage_bucket, app=app)


class FirestoreRouteStore:
    """Reads route records from the `routes` collection."""

    def __init__(self, db, collection: str = ROUTES_COLLECTION):
        self.db = db
        self.collection = collection

    def fetch_routes(self) -> list[RouteRecord]:
        """All route records, newest upload first."""
        query = self.db.collection(self.collection).order_by(
            ORDER_FIELD, direction=firestore.Query.DESCENDING
        )
        return [RouteRecord.from_document(doc.id, doc.to_dict() or {}) for doc in query.stream()]


class FirestorePointStore:
    """Reads point records from the `points` collection one page at a time."""

    def __init__(self, db, collection: str = POINTS_COLLECTION):
        self.db = db
        self.collection = collection

    def fetch_page(self, limit: int, continuation: Any = None) -> tuple[list[PointRecord], Any]:
        """Fetch up to `limit` records after `continuation`.

        Returns (records, next continuation). The continuation is the last
        document snapshot of the page and is None once a short page is read.
        """
        query = self.db.collection(self.collection).order_by(
            ORDER_FIELD, direction=firestore.Query.DESCENDING
        ).limit(limit)
        if continuation is not None:
            query = query.start_after(continuation)

        docs = list(query.stream())
        records = [PointRecord.from_document(doc.id, doc.to_dict() or {}) for doc in docs]
        next_continuation = docs[-1] if len(docs) == limit and docs else None
        return records, next_continuation


class BucketObjectStore:
    """Object store on a Cloud Storage bucket."""

    def __init__(self, bucket):
        self.bucket = bucket

    def list_names(self, prefix: str = "") -> list[str]:
        try:
            return sorted(blob.name for blob in self.bucket.list_blobs(prefix=prefix))
        except GoogleAPIError as e:
            raise StorageError(f"Failed to list objects under {prefix!r}: {e}") from e

    def download_text(self, path: str) -> str:
        try:
            data = self.bucket.blob(path).download_as_bytes()
        except GoogleAPIError as e:
            raise StorageError(f"Failed to download {path}: {e}") from e
        return data.decode("utf-8")

    def upload_file(self, local_path: Path, destination: str, content_type: str, cache_control: str) -> None:
        blob = self.bucket.blob(destination)
        blob.cache_control = cache_control
        try:
            blob.upload_from_filename(str(local_path), content_type=content_type)
        except GoogleAPIError as e:
            raise StorageError(f"Failed to upload {destination}: {e}") from e

    def upload_bytes(self, data: bytes, destination: str, content_type: str, cache_control: str) -> None:
        blob = self.bucket.blob(destination)
        blob.cache_control = cache_control
        try:
            blob.upload_from_string(data, content_type=content_type)
        except GoogleAPIError as e:
            raise StorageError(f"Failed to upload {destination}: {e}") from e

    def make_public(self, path: str) -> None:
        try:
            self.bucket.blob(path).make_public()
        except GoogleAPIError as e:
            raise StorageError(f"Failed to make {path} public: {e}") from e
