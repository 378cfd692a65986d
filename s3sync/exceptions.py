"""Exceptions raised by s3sync."""

from typing import Optional


class S3SyncError(Exception):
    """Base exception for all s3sync errors."""


class S3SyncConfigError(S3SyncError):
    """Raised when a configuration value is missing or invalid."""


class AddressParseError(S3SyncError):
    """Raised when a source or destination address cannot be parsed."""


class SyncNotSupportedError(S3SyncError):
    """Raised when the requested sync direction is not supported."""


class S3ListingError(S3SyncError):
    """Raised when a page of an S3 listing cannot be fetched."""


class S3DownloadError(S3SyncError):
    """Raised when an S3 object cannot be streamed to its destination."""


class SyncFailedError(S3SyncError):
    """Raised when one or more files could not be synchronized.

    The message is the newline-joined list of the individual failures,
    in the order they were collected.
    """

    def __init__(self, errors: list[str], result: Optional[object] = None):
        super().__init__("\n".join(errors))
        self.errors = list(errors)
        self.result = result
