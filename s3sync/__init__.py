"""s3sync - one-way synchronization of S3 prefixes to local directories."""

import logging

from .client import S3Client
from .exceptions import (
    AddressParseError,
    S3DownloadError,
    S3ListingError,
    S3SyncConfigError,
    S3SyncError,
    SyncFailedError,
    SyncNotSupportedError,
)
from .sync import SyncEngine, SyncOptions, SyncResult

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "S3Client",
    "SyncEngine",
    "SyncOptions",
    "SyncResult",
    "S3SyncError",
    "S3SyncConfigError",
    "AddressParseError",
    "SyncNotSupportedError",
    "S3ListingError",
    "S3DownloadError",
    "SyncFailedError",
    "__version__",
]
