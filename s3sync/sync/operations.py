"""File transfer operations used by the fetch pipeline."""

import os
from pathlib import Path
from typing import Union

from ..client import S3Client
from .records import FileRecord, RemoteLocation


def local_target(destination: Union[str, Path], name: str) -> Path:
    """Compute where a remote file lands below the destination root.

    Examples:
        >>> local_target("/data", "dir/b.txt").as_posix()
        '/data/dir/b.txt'
        >>> local_target("/data/file.csv", ".").as_posix()
        '/data/file.csv'
    """
    return Path(os.path.normpath(os.path.join(destination, name)))


class SyncOperations:
    """Transfers single files from S3 to the local filesystem."""

    def __init__(self, client: S3Client):
        """Initialize sync operations.

        Args:
            client: S3 client
        """
        self.client = client

    def download_file(
        self,
        remote_file: FileRecord,
        location: RemoteLocation,
        local_path: Path,
    ) -> Path:
        """Download a remote file to local storage.

        Missing parent directories are created and an existing file is
        truncated before the object is streamed into it.

        Args:
            remote_file: Remote file to download
            location: Remote location the file was listed from
            local_path: Local path where file should be saved

        Returns:
            Path where file was saved

        Raises:
            OSError: If the directory or the file cannot be created
            S3DownloadError: If the transfer fails
        """
        local_path.parent.mkdir(parents=True, exist_ok=True)

        with open(local_path, "wb") as f:
            self.client.download_fileobj(location.bucket, remote_file.path, f)

        return local_path
