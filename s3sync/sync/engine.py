"""Core sync engine for executing sync operations."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from ..client import S3Client
from ..exceptions import SyncFailedError, SyncNotSupportedError
from ..utils import DEFAULT_MTIME_TOLERANCE, DEFAULT_REMOTE_QUEUE_SIZE, DEFAULT_WORKERS
from .comparator import FileComparator, SyncDecision, filter_files_for_sync
from .operations import SyncOperations
from .pipeline import FetchPipeline
from .records import (
    RemoteLocation,
    SyncResult,
    is_remote_address,
    parse_remote_location,
)
from .scanner import DirectoryScanner, RecordStream

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)


@dataclass
class SyncOptions:
    """Tunables of the sync engine."""

    max_workers: int = DEFAULT_WORKERS
    """Number of parallel downloads"""

    mtime_tolerance: float = DEFAULT_MTIME_TOLERANCE
    """Seconds a remote file may be newer than the local file and still be in sync"""

    remote_queue_size: int = DEFAULT_REMOTE_QUEUE_SIZE
    """Remote listing items buffered ahead of the diff"""

    @classmethod
    def from_config(cls, config: "Config") -> "SyncOptions":
        """Create options from the resolved configuration."""
        return cls(
            max_workers=config.workers,
            mtime_tolerance=config.mtime_tolerance,
            remote_queue_size=config.remote_queue_size,
        )


class SyncEngine:
    """Core sync engine that orchestrates file synchronization.

    Only S3 to local sync is implemented. Every other direction fails
    before anything is listed.

    Examples:
        >>> engine = SyncEngine(S3Client())
        >>> result = engine.sync("s3://bucket/photos", "/home/user/photos")
        >>> print(f"Downloaded {len(result.downloaded)} files")
    """

    def __init__(
        self,
        client: S3Client,
        options: Optional[SyncOptions] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize sync engine.

        Args:
            client: S3 client
            options: Engine tunables (defaults if not given)
            logger: Logger receiving transfer notices. Defaults to the
                ``s3sync`` logger, which discards records unless the
                application configures logging.
        """
        self.client = client
        self.options = options or SyncOptions()
        self.logger = logger or logging.getLogger("s3sync")
        self.operations = SyncOperations(client)
        self.comparator = FileComparator(self.options.mtime_tolerance)

    def sync(
        self,
        source: str,
        destination: str,
        dry_run: bool = False,
    ) -> SyncResult:
        """Sync files from source to destination.

        Args:
            source: ``s3://bucket/prefix`` address or local path
            destination: ``s3://bucket/prefix`` address or local path
            dry_run: If True, only report what would be downloaded

        Returns:
            SyncResult of a fully successful sync

        Raises:
            AddressParseError: If an S3 address is malformed
            SyncNotSupportedError: If the sync direction is not supported
            SyncFailedError: If any file could not be listed or downloaded
        """
        if is_remote_address(source):
            source_location = parse_remote_location(source)
            if is_remote_address(destination):
                return self._sync_s3_to_s3(
                    source_location, parse_remote_location(destination)
                )
            return self._sync_s3_to_local(source_location, destination, dry_run)

        if is_remote_address(destination):
            return self._sync_local_to_s3(source, parse_remote_location(destination))

        raise SyncNotSupportedError("local to local sync is not supported")

    def _sync_s3_to_s3(
        self, source: RemoteLocation, destination: RemoteLocation
    ) -> SyncResult:
        raise SyncNotSupportedError("S3 to S3 sync feature is not implemented")

    def _sync_local_to_s3(self, source: str, destination: RemoteLocation) -> SyncResult:
        raise SyncNotSupportedError("Local to S3 sync feature is not implemented")

    def _sync_s3_to_local(
        self,
        source: RemoteLocation,
        destination: Union[str, Path],
        dry_run: bool,
    ) -> SyncResult:
        """Sync the given S3 location into the given local path.

        Args:
            source: Remote location
            destination: Local directory (or single file)
            dry_run: If True, only report what would be downloaded

        Returns:
            SyncResult

        Raises:
            SyncFailedError: If any error was collected
        """
        start_time = time.time()
        logger.debug("Starting sync %s -> %s", source, destination)

        scanner = DirectoryScanner(
            self.client, remote_queue_size=self.options.remote_queue_size
        )
        pipeline = FetchPipeline(
            self.operations,
            max_workers=self.options.max_workers,
            notifier=self.logger,
        )
        result = SyncResult()

        def count_skip(decision: SyncDecision) -> None:
            result.skipped += 1

        remote_files = scanner.scan_remote(source)
        local_files = scanner.scan_local(destination)
        try:
            to_fetch = filter_files_for_sync(
                remote_files, local_files, self.comparator, on_skip=count_skip
            )
            pipeline.run(to_fetch, source, destination, dry_run=dry_run, result=result)
        finally:
            remote_files.close()
            local_files.close()

        logger.debug(
            "Sync finished in %.2fs: %d downloaded, %d skipped, %d error(s)",
            time.time() - start_time,
            len(result.downloaded),
            result.skipped,
            len(result.errors),
        )

        if result.errors:
            raise SyncFailedError(result.errors, result=result)
        return result

    def list_remote(self, address: str) -> RecordStream:
        """List the files below an S3 address.

        Args:
            address: ``s3://bucket/prefix`` address

        Returns:
            RecordStream of FileRecord and ListingError items

        Raises:
            AddressParseError: If the address is malformed
        """
        location = parse_remote_location(address)
        scanner = DirectoryScanner(
            self.client, remote_queue_size=self.options.remote_queue_size
        )
        return scanner.scan_remote(location)
