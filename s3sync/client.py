"""S3 client used by the sync engine for listing and fetching objects."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO

import boto3
from boto3.exceptions import Boto3Error
from boto3.s3.transfer import TransferConfig
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import S3DownloadError, S3ListingError
from .utils import to_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteObject:
    """One object returned by a listing page."""

    key: str
    """Full object key"""

    size: int
    """Object size in bytes"""

    last_modified: datetime
    """Last modification time (UTC)"""


@dataclass(frozen=True)
class ListPage:
    """One page of an object listing."""

    objects: list[RemoteObject] = field(default_factory=list)
    """Objects on this page, in listing order"""

    next_token: str | None = None
    """Continuation token for the next page, None on the last page"""


def _describe_error(e: Exception) -> str:
    """Build a short message for a botocore error."""
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        code = error.get("Code", "Unknown")
        message = error.get("Message") or str(e)
        return f"{code}: {message}"
    return str(e)


class S3Client:
    """Thin wrapper around a boto3 S3 client.

    Retries are disabled both in botocore and in the transfer manager, so
    every failure surfaces to the caller on the first attempt.
    """

    def __init__(
        self,
        endpoint_url: str | None = None,
        profile: str | None = None,
        region: str | None = None,
        connect_timeout: float = 10.0,
        read_timeout: float = 60.0,
        client: Any = None,
    ):
        """Initialize the S3 client.

        Args:
            endpoint_url: Optional custom endpoint for S3-compatible stores
            profile: Optional AWS profile name
            region: Optional AWS region
            connect_timeout: Connection timeout in seconds (default: 10.0)
            read_timeout: Read timeout in seconds (default: 60.0)
            client: Pre-built boto3 S3 client (skips client creation)
        """
        self.endpoint_url = endpoint_url
        self.profile = profile
        self.region = region
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._client = client
        self._client_lock = threading.Lock()
        self._transfer_config = TransferConfig(num_download_attempts=1)

    def _get_client(self) -> Any:
        """Get or create the boto3 client (shared by lister and fetch threads)."""
        with self._client_lock:
            if self._client is None:
                boto_config = BotoConfig(
                    connect_timeout=self.connect_timeout,
                    read_timeout=self.read_timeout,
                    retries={"total_max_attempts": 1, "mode": "standard"},
                )
                session_kwargs: dict[str, Any] = {}
                if self.profile:
                    session_kwargs["profile_name"] = self.profile
                if self.region:
                    session_kwargs["region_name"] = self.region
                session = boto3.session.Session(**session_kwargs)
                self._client = session.client(
                    "s3", endpoint_url=self.endpoint_url, config=boto_config
                )
            return self._client

    def list_objects_page(
        self, bucket: str, prefix: str, token: str | None = None
    ) -> ListPage:
        """Fetch one page of objects under a prefix.

        Args:
            bucket: Bucket name
            prefix: Key prefix
            token: Continuation token from the previous page

        Returns:
            ListPage with the objects and the next continuation token

        Raises:
            S3ListingError: If the listing request fails
        """
        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if token:
            params["ContinuationToken"] = token

        try:
            response = self._get_client().list_objects_v2(**params)
        except (ClientError, BotoCoreError) as e:
            raise S3ListingError(
                f"Failed to list s3://{bucket}/{prefix}: {_describe_error(e)}"
            ) from e

        objects = [
            RemoteObject(
                key=item["Key"],
                size=int(item.get("Size", 0)),
                last_modified=to_utc(item["LastModified"]),
            )
            for item in response.get("Contents", []) or []
        ]
        next_token = response.get("NextContinuationToken")
        if not response.get("IsTruncated", next_token is not None):
            next_token = None

        logger.debug(
            "Listed %d object(s) from s3://%s/%s (more: %s)",
            len(objects),
            bucket,
            prefix,
            next_token is not None,
        )
        return ListPage(objects=objects, next_token=next_token)

    def download_fileobj(self, bucket: str, key: str, fileobj: BinaryIO) -> None:
        """Stream an object into a writable binary file object.

        Args:
            bucket: Bucket name
            key: Object key
            fileobj: Destination opened for binary writing

        Raises:
            S3DownloadError: If the transfer fails
        """
        try:
            self._get_client().download_fileobj(
                bucket, key, fileobj, Config=self._transfer_config
            )
        except (ClientError, BotoCoreError, Boto3Error) as e:
            raise S3DownloadError(
                f"Failed to download s3://{bucket}/{key}: {_describe_error(e)}"
            ) from e
