"""Shared fixtures for s3sync tests."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from s3sync.client import ListPage, RemoteObject
from s3sync.exceptions import S3DownloadError, S3ListingError

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeS3Client:
    """In-memory stand-in for S3Client.

    Objects are kept in key order and listed ``page_size`` at a time.
    """

    def __init__(self, page_size: int = 1000):
        self.page_size = page_size
        self.objects: dict[str, tuple[bytes, datetime]] = {}
        self.list_calls: list[tuple[str, str, Optional[str]]] = []
        self.downloads: list[tuple[str, str]] = []
        self.fail_list_on_page: Optional[int] = None
        self.fail_download: set[str] = set()
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes, modified: Optional[datetime] = None) -> None:
        self.objects[key] = (data, modified or BASE_TIME)

    def list_objects_page(
        self, bucket: str, prefix: str, token: Optional[str] = None
    ) -> ListPage:
        self.list_calls.append((bucket, prefix, token))
        page_number = int(token) if token else 0
        failing = self.fail_list_on_page
        if failing is not None and page_number >= failing:
            raise S3ListingError(f"Failed to list s3://{bucket}/{prefix}: AccessDenied")

        keys = sorted(k for k in self.objects if k.startswith(prefix))
        start = page_number * self.page_size
        chunk = keys[start : start + self.page_size]
        objects = [
            RemoteObject(
                key=k, size=len(self.objects[k][0]), last_modified=self.objects[k][1]
            )
            for k in chunk
        ]
        more = start + self.page_size < len(keys)
        next_token = str(page_number + 1) if more else None
        return ListPage(objects=objects, next_token=next_token)

    def download_fileobj(self, bucket: str, key: str, fileobj) -> None:
        with self._lock:
            self.downloads.append((bucket, key))
        if key in self.fail_download:
            raise S3DownloadError(f"Failed to download s3://{bucket}/{key}: NoSuchKey")
        fileobj.write(self.objects[key][0])


@pytest.fixture
def fake_s3():
    """Provide an empty in-memory S3 client."""
    return FakeS3Client()


@pytest.fixture
def later():
    """Timestamp clearly newer than any local file written by a test."""
    return datetime.now(timezone.utc) + timedelta(days=1)


@pytest.fixture
def earlier():
    """Timestamp clearly older than any local file written by a test."""
    return BASE_TIME
