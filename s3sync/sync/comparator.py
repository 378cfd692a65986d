"""File comparison logic for sync operations."""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable, Optional

from ..utils import DEFAULT_MTIME_TOLERANCE
from .records import FileRecord, ListedItem, ListingError

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Actions that can be taken for a remote file."""

    DOWNLOAD = "download"
    """Download remote file to local"""

    SKIP = "skip"
    """Skip file (already in sync)"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    remote_file: FileRecord
    """Remote file being judged"""

    local_file: Optional[FileRecord]
    """Local counterpart (if exists)"""


class FileComparator:
    """Decides whether a remote file has to be fetched.

    A remote file is fetched when no local file has its name, when the sizes
    differ, or when the remote file is newer than the local one. Equal size
    with an equal or older remote timestamp means the file is in sync.
    """

    def __init__(self, mtime_tolerance: float = DEFAULT_MTIME_TOLERANCE):
        """Initialize file comparator.

        Args:
            mtime_tolerance: Seconds the remote file may be newer than the
                local file and still count as in sync (default: 0, strict)
        """
        if mtime_tolerance < 0:
            raise ValueError("mtime_tolerance must not be negative")
        self.mtime_tolerance = mtime_tolerance
        self._tolerance = timedelta(seconds=mtime_tolerance)

    def compare(
        self, remote_file: FileRecord, local_file: Optional[FileRecord]
    ) -> SyncDecision:
        """Compare a remote file with its local counterpart.

        Args:
            remote_file: Remote file
            local_file: Local file with the same name (if exists)

        Returns:
            SyncDecision for this file
        """
        if local_file is None:
            return SyncDecision(
                action=SyncAction.DOWNLOAD,
                reason="New remote file",
                remote_file=remote_file,
                local_file=None,
            )

        if remote_file.size != local_file.size:
            return SyncDecision(
                action=SyncAction.DOWNLOAD,
                reason=f"Size differs ({remote_file.size} vs {local_file.size})",
                remote_file=remote_file,
                local_file=local_file,
            )

        if remote_file.last_modified > local_file.last_modified + self._tolerance:
            return SyncDecision(
                action=SyncAction.DOWNLOAD,
                reason="Remote file is newer",
                remote_file=remote_file,
                local_file=local_file,
            )

        return SyncDecision(
            action=SyncAction.SKIP,
            reason="Files are in sync",
            remote_file=remote_file,
            local_file=local_file,
        )


def _close(items: Iterable[ListedItem]) -> None:
    close = getattr(items, "close", None)
    if close is not None:
        close()


def index_local_files(
    local_items: Iterable[ListedItem],
) -> tuple[dict[str, FileRecord], Optional[ListingError]]:
    """Accumulate a local listing into a name lookup.

    Args:
        local_items: Local listing

    Returns:
        Tuple of (name -> record index, first ListingError or None). On error
        the index is empty and the listing is closed.
    """
    index: dict[str, FileRecord] = {}
    for item in local_items:
        if isinstance(item, ListingError):
            _close(local_items)
            return {}, item
        index[item.name] = item
    return index, None


def filter_files_for_sync(
    remote_items: Iterable[ListedItem],
    local_items: Iterable[ListedItem],
    comparator: Optional[FileComparator] = None,
    on_skip: Optional[Callable[[SyncDecision], None]] = None,
) -> Iterator[ListedItem]:
    """Yield the remote files that have to be fetched.

    The local listing is read completely before the first remote file is
    judged. If it contains an error, that single error is yielded and
    nothing else. Errors from the remote listing are passed through.

    Args:
        remote_items: Remote listing
        local_items: Local listing of the destination
        comparator: Comparator to judge files (default: strict comparator)
        on_skip: Called for every remote file that is already in sync

    Yields:
        FileRecord items to fetch and ListingError items to report
    """
    comparator = comparator or FileComparator()

    local_index, error = index_local_files(local_items)
    if error is not None:
        logger.debug("Local listing failed, aborting diff: %s", error)
        _close(remote_items)
        yield error
        return
    logger.debug("Indexed %d local file(s)", len(local_index))

    try:
        for item in remote_items:
            if isinstance(item, ListingError):
                yield item
                continue

            decision = comparator.compare(item, local_index.get(item.name))
            logger.debug(
                "%s: %s (%s)", item.name, decision.action.value, decision.reason
            )
            if decision.action == SyncAction.DOWNLOAD:
                yield item
            elif on_skip is not None:
                on_skip(decision)
    finally:
        _close(remote_items)
