"""Tests for the S3 client wrapper."""

import io
import threading
import time
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from s3sync.client import ListPage, RemoteObject, S3Client
from s3sync.exceptions import S3DownloadError, S3ListingError

MODIFIED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class TestListObjectsPage:
    """Tests for listing one page of objects."""

    @pytest.fixture
    def boto_client(self):
        return Mock()

    def test_parses_page(self, boto_client):
        boto_client.list_objects_v2.return_value = {
            "Contents": [
                {"Key": "data/a.txt", "Size": 5, "LastModified": MODIFIED},
                {"Key": "data/b.txt", "Size": 7, "LastModified": MODIFIED},
            ],
            "IsTruncated": True,
            "NextContinuationToken": "tok-1",
        }

        page = S3Client(client=boto_client).list_objects_page("bucket", "data")

        assert page == ListPage(
            objects=[
                RemoteObject("data/a.txt", 5, MODIFIED),
                RemoteObject("data/b.txt", 7, MODIFIED),
            ],
            next_token="tok-1",
        )
        boto_client.list_objects_v2.assert_called_once_with(
            Bucket="bucket", Prefix="data"
        )

    def test_passes_continuation_token(self, boto_client):
        boto_client.list_objects_v2.return_value = {"IsTruncated": False}

        page = S3Client(client=boto_client).list_objects_page("bucket", "", "tok-1")

        assert page.objects == []
        assert page.next_token is None
        boto_client.list_objects_v2.assert_called_once_with(
            Bucket="bucket", Prefix="", ContinuationToken="tok-1"
        )

    def test_last_page_has_no_token(self, boto_client):
        boto_client.list_objects_v2.return_value = {
            "Contents": [{"Key": "a", "Size": 1, "LastModified": MODIFIED}],
            "IsTruncated": False,
        }

        page = S3Client(client=boto_client).list_objects_page("bucket", "")

        assert page.next_token is None

    def test_naive_timestamp_is_utc(self, boto_client):
        naive = datetime(2024, 1, 2, 3, 4, 5)
        boto_client.list_objects_v2.return_value = {
            "Contents": [{"Key": "a", "Size": 1, "LastModified": naive}],
        }

        page = S3Client(client=boto_client).list_objects_page("bucket", "")

        assert page.objects[0].last_modified == MODIFIED

    def test_client_error_wrapped(self, boto_client):
        boto_client.list_objects_v2.side_effect = _client_error(
            "NoSuchBucket", "The specified bucket does not exist", "ListObjectsV2"
        )

        with pytest.raises(S3ListingError) as exc_info:
            S3Client(client=boto_client).list_objects_page("bucket", "data")

        assert str(exc_info.value) == (
            "Failed to list s3://bucket/data: "
            "NoSuchBucket: The specified bucket does not exist"
        )

    def test_connection_error_wrapped(self, boto_client):
        boto_client.list_objects_v2.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:9000"
        )

        with pytest.raises(S3ListingError, match="localhost:9000"):
            S3Client(client=boto_client).list_objects_page("bucket", "")


class TestDownloadFileobj:
    """Tests for streaming an object into a file."""

    def test_streams_with_single_attempt(self):
        boto_client = Mock()
        client = S3Client(client=boto_client)
        buffer = io.BytesIO()

        client.download_fileobj("bucket", "data/a.txt", buffer)

        args, kwargs = boto_client.download_fileobj.call_args
        assert args == ("bucket", "data/a.txt", buffer)
        assert kwargs["Config"].num_download_attempts == 1

    def test_error_wrapped(self):
        boto_client = Mock()
        boto_client.download_fileobj.side_effect = _client_error(
            "404", "Not Found", "HeadObject"
        )

        with pytest.raises(S3DownloadError) as exc_info:
            S3Client(client=boto_client).download_fileobj(
                "bucket", "a.txt", io.BytesIO()
            )

        assert str(exc_info.value) == (
            "Failed to download s3://bucket/a.txt: 404: Not Found"
        )


class TestClientCreation:
    """Tests for lazily building the boto3 client."""

    def test_client_created_once_without_retries(self):
        with patch("s3sync.client.boto3.session.Session") as session_cls:
            client = S3Client(
                endpoint_url="http://localhost:9000", profile="dev", region="eu-west-1"
            )
            first = client._get_client()
            second = client._get_client()

        assert first is second
        session_cls.assert_called_once_with(profile_name="dev", region_name="eu-west-1")
        _, kwargs = session_cls.return_value.client.call_args
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["config"].retries == {
            "total_max_attempts": 1,
            "mode": "standard",
        }

    def test_default_session(self):
        with patch("s3sync.client.boto3.session.Session") as session_cls:
            S3Client()._get_client()

        session_cls.assert_called_once_with()

    def test_concurrent_first_use_creates_one_client(self):
        """Lister and fetch threads racing on first use share one client."""
        created = []

        def slow_session(**kwargs):
            time.sleep(0.05)
            session = Mock()
            created.append(session)
            return session

        client = S3Client()
        with patch("s3sync.client.boto3.session.Session", side_effect=slow_session):
            threads = [threading.Thread(target=client._get_client) for _ in range(4)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert len(created) == 1
