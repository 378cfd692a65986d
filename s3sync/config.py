"""Configuration management for s3sync.

Settings are resolved from environment variables first and then from an
optional JSON file (``~/.config/s3sync/config.json`` by default, or the
path given in ``S3SYNC_CONFIG``).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from .exceptions import S3SyncConfigError
from .utils import DEFAULT_MTIME_TOLERANCE, DEFAULT_REMOTE_QUEUE_SIZE, DEFAULT_WORKERS

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "S3SYNC_CONFIG"


class Config:
    """Resolved s3sync settings."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to the JSON config file. Defaults to
                ``$S3SYNC_CONFIG`` or ``~/.config/s3sync/config.json``
        """
        self._config_path = config_path
        self._file_values: Optional[dict[str, Any]] = None

    def get_config_path(self) -> Path:
        """Get the path of the JSON config file."""
        if self._config_path is not None:
            return self._config_path
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path).expanduser()
        return Path.home() / ".config" / "s3sync" / "config.json"

    def _load_file(self) -> dict[str, Any]:
        if self._file_values is not None:
            return self._file_values

        path = self.get_config_path()
        values: dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise S3SyncConfigError(
                    f"Failed to read config file {path}: {e}"
                ) from e
            if not isinstance(data, dict):
                raise S3SyncConfigError(
                    f"Config file {path} must contain a JSON object"
                )
            values = data
            logger.debug("Loaded config from %s", path)

        self._file_values = values
        return values

    def reload(self) -> None:
        """Forget cached file values so the next access re-reads the file."""
        self._file_values = None

    def _get(self, key: str, *env_vars: str) -> Any:
        for env_var in env_vars:
            value = os.environ.get(env_var)
            if value:
                return value
        return self._load_file().get(key)

    def _get_number(self, key: str, env_var: str, default: Any, cast: type) -> Any:
        value = self._get(key, env_var)
        if value is None or value == "":
            return default
        try:
            return cast(value)
        except (TypeError, ValueError) as e:
            raise S3SyncConfigError(
                f"Invalid value for {key}: {value!r} (expected {cast.__name__})"
            ) from e

    @property
    def endpoint_url(self) -> Optional[str]:
        """Custom S3 endpoint (MinIO, localstack, R2, ...)."""
        return self._get("endpoint_url", "S3SYNC_ENDPOINT_URL")

    @property
    def profile(self) -> Optional[str]:
        """AWS profile name used to create the boto3 session."""
        return self._get("profile", "AWS_PROFILE")

    @property
    def region(self) -> Optional[str]:
        """AWS region name."""
        return self._get("region", "AWS_REGION", "AWS_DEFAULT_REGION")

    @property
    def workers(self) -> int:
        """Number of concurrent downloads."""
        workers = self._get_number("workers", "S3SYNC_WORKERS", DEFAULT_WORKERS, int)
        if workers < 1:
            raise S3SyncConfigError(f"workers must be at least 1, got {workers}")
        return workers

    @property
    def mtime_tolerance(self) -> float:
        """Clock skew tolerance in seconds for the "remote is newer" check."""
        tolerance = self._get_number(
            "mtime_tolerance", "S3SYNC_MTIME_TOLERANCE", DEFAULT_MTIME_TOLERANCE, float
        )
        if tolerance < 0:
            raise S3SyncConfigError(
                f"mtime_tolerance must not be negative, got {tolerance}"
            )
        return tolerance

    @property
    def remote_queue_size(self) -> int:
        """Maximum number of listed remote objects buffered ahead of the diff."""
        size = self._get_number(
            "remote_queue_size",
            "S3SYNC_REMOTE_QUEUE_SIZE",
            DEFAULT_REMOTE_QUEUE_SIZE,
            int,
        )
        if size < 1:
            raise S3SyncConfigError(f"remote_queue_size must be at least 1, got {size}")
        return size


# Global config instance
config = Config()
