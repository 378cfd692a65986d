"""Concurrent fetching of the files selected for sync."""

import logging
import threading
import time
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from ..utils import DEFAULT_WORKERS
from .operations import SyncOperations, local_target
from .records import FileRecord, ListedItem, ListingError, RemoteLocation, SyncResult

logger = logging.getLogger(__name__)


class ErrorCollector:
    """Thread-safe list of failure messages, kept in append order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._errors: list[str] = []

    def add(self, message: str) -> None:
        with self._lock:
            self._errors.append(message)

    @property
    def errors(self) -> list[str]:
        with self._lock:
            return list(self._errors)

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)


class FetchPipeline:
    """Downloads a stream of remote files with a bounded worker pool.

    At most ``max_workers`` downloads are in flight; reading further items
    from the stream waits for a free slot. A failing download is recorded
    and never stops its siblings. ``run`` returns once every dispatched
    download has finished.
    """

    def __init__(
        self,
        operations: SyncOperations,
        max_workers: int = DEFAULT_WORKERS,
        notifier: Optional[logging.Logger] = None,
    ):
        """Initialize the fetch pipeline.

        Args:
            operations: Per-file transfer operations
            max_workers: Number of parallel downloads (default: 8)
            notifier: Logger receiving one notice per transfer
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.operations = operations
        self.max_workers = max_workers
        self.notifier = notifier or logger

    def run(
        self,
        items: Iterable[ListedItem],
        location: RemoteLocation,
        destination: Union[str, Path],
        dry_run: bool = False,
        result: Optional[SyncResult] = None,
    ) -> SyncResult:
        """Fetch every file of the stream into the destination.

        Args:
            items: Files to fetch and listing errors to report
            location: Remote location the files were listed from
            destination: Local destination root
            dry_run: If True, only report what would be downloaded
            result: Result to fill in (a new one by default)

        Returns:
            SyncResult with downloaded names and collected errors
        """
        result = result if result is not None else SyncResult()
        errors = ErrorCollector()
        downloaded: list[str] = []
        downloaded_lock = threading.Lock()
        slots = threading.BoundedSemaphore(self.max_workers)

        def fetch(remote_file: FileRecord) -> None:
            target = local_target(destination, remote_file.name)
            self.notifier.info("Downloading %s to %s", remote_file.name, target)
            start = time.time()
            try:
                self.operations.download_file(remote_file, location, target)
            except Exception as e:
                errors.add(f"{remote_file.name}: {e}")
                logger.debug(
                    "Failed %s in %.2fs: %s", remote_file.name, time.time() - start, e
                )
                return
            with downloaded_lock:
                downloaded.append(remote_file.name)
            logger.debug("Completed %s in %.2fs", remote_file.name, time.time() - start)

        def release(_future: "Future[None]") -> None:
            slots.release()

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="s3sync-fetch"
        ) as executor:
            for item in items:
                if isinstance(item, ListingError):
                    errors.add(str(item))
                    continue

                if dry_run:
                    self.notifier.info(
                        "Would download %s to %s",
                        item.name,
                        local_target(destination, item.name),
                    )
                    downloaded.append(item.name)
                    continue

                slots.acquire()
                try:
                    future = executor.submit(fetch, item)
                except BaseException:
                    slots.release()
                    raise
                future.add_done_callback(release)

        result.downloaded.extend(sorted(downloaded))
        result.errors.extend(errors.errors)
        return result
