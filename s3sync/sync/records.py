"""Records flowing through the sync pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from ..exceptions import AddressParseError
from ..utils import S3_SCHEME


@dataclass(frozen=True)
class FileRecord:
    """A file found by one of the listers, local or remote."""

    name: str
    """Path relative to the synchronized root (forward slashes), the join key"""

    path: str
    """Object key for remote files, filesystem path for local files"""

    size: int
    """File size in bytes"""

    last_modified: datetime
    """Last modification time (UTC)"""


@dataclass(frozen=True)
class ListingError:
    """A failure reported in place of a record by a lister."""

    reason: str
    """Human-readable failure description"""

    path: str = ""
    """Location the failure relates to, if known"""

    def __str__(self) -> str:
        return self.reason


ListedItem = Union[FileRecord, ListingError]
"""Item of a record stream: either a file or the error that ended/interrupted it."""


@dataclass(frozen=True)
class RemoteLocation:
    """A parsed ``s3://bucket/prefix`` address."""

    bucket: str
    prefix: str = ""

    def __str__(self) -> str:
        return f"{S3_SCHEME}://{self.bucket}/{self.prefix}"


@dataclass
class SyncResult:
    """Outcome of one sync call."""

    downloaded: list[str] = field(default_factory=list)
    """Names fetched successfully (or planned, on a dry run)"""

    errors: list[str] = field(default_factory=list)
    """Failure messages in the order they were collected"""

    skipped: int = 0
    """Number of remote files already in sync"""

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_message(self) -> str:
        return "\n".join(self.errors)


def is_remote_address(address: str) -> bool:
    """Check whether an address uses the S3 scheme.

    Examples:
        >>> is_remote_address("s3://bucket/key")
        True
        >>> is_remote_address("/home/user/data")
        False
    """
    scheme, separator, _ = address.partition("://")
    return bool(separator) and scheme.lower() == S3_SCHEME


def parse_remote_location(address: str) -> RemoteLocation:
    """Parse an ``s3://bucket/prefix`` address.

    The path is taken verbatim after the bucket (only the separating slash is
    removed), so keys containing ``?`` or ``#`` survive.

    Args:
        address: Remote address

    Returns:
        RemoteLocation

    Raises:
        AddressParseError: If the address is not an S3 URL or has no bucket

    Examples:
        >>> parse_remote_location("s3://bucket/photos/2024")
        RemoteLocation(bucket='bucket', prefix='photos/2024')
    """
    if not is_remote_address(address):
        raise AddressParseError(f"not an s3 url: {address}")

    rest = address.split("://", 1)[1]
    bucket, _, prefix = rest.partition("/")
    if not bucket:
        raise AddressParseError("s3 url is missing bucket name")
    return RemoteLocation(bucket=bucket, prefix=prefix)
