"""Configuration and Firebase credentials for the batch jobs."""

import json
import os
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "gpx-tiler"
CONFIG_PATH = CONFIG_DIR / "gpx-tiler.json"
LOCAL_CONFIG_PATH = Path("gpx-tiler.json")
DEFAULT_KEY_PATH = Path("serviceAccountKey.json")

DEFAULT_STORAGE_BUCKET = "roots-eddf5.firebasestorage.app"
DEFAULT_TIPPECANOE_BIN = "tippecanoe"

SERVICE_ACCOUNT_ENV = "FIREBASE_SERVICE_ACCOUNT"
STORAGE_BUCKET_ENV = "FIREBASE_STORAGE_BUCKET"
TIPPECANOE_ENV = "TIPPECANOE_BIN"


class CredentialsError(Exception):
    """Raised when no usable Firebase service account is configured."""


def _load_config() -> dict:
    """Load configuration from config files.

    Merges config from global and local files:
    1. ~/.config/gpx-tiler/gpx-tiler.json (global, loaded first)
    2. ./gpx-tiler.json (local, overrides global)

    Returns:
        Dict with merged config values, empty dict if no files exist.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config


def load_service_account(key_path: str | Path | None = None, env: dict | None = None) -> dict:
    """Load the Firebase service account.

    An explicit `key_path` (the --credentials flag) wins. Next comes the
    FIREBASE_SERVICE_ACCOUNT environment variable (inline JSON), then the
    config file's "service_account_key_path", then ./serviceAccountKey.json.

    Raises:
        CredentialsError: If no credentials are found or they are not valid JSON.
    """
    if env is None:
        env = os.environ

    if key_path is None:
        inline = env.get(SERVICE_ACCOUNT_ENV)
        if inline:
            try:
                return json.loads(inline)
            except json.JSONDecodeError as e:
                raise CredentialsError(f"{SERVICE_ACCOUNT_ENV} is not valid JSON.") from e
        key_path = _load_config().get("service_account_key_path") or DEFAULT_KEY_PATH
    key_path = Path(key_path).expanduser()
    if not key_path.exists():
        raise CredentialsError(
            "No Firebase credentials found.\n"
            f"Set the {SERVICE_ACCOUNT_ENV} environment variable to a JSON string,\n"
            f"or place a service account key at {key_path}."
        )
    try:
        with key_path.open(encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise CredentialsError(f"Could not read service account key {key_path}: {e}") from e


def get_storage_bucket(env: dict | None = None) -> str:
    if env is None:
        env = os.environ
    return env.get(STORAGE_BUCKET_ENV) or _load_config().get("storage_bucket") or DEFAULT_STORAGE_BUCKET


def get_tippecanoe_bin(env: dict | None = None) -> str:
    if env is None:
        env = os.environ
    return env.get(TIPPECANOE_ENV) or _load_config().get("tippecanoe_bin") or DEFAULT_TIPPECANOE_BIN
