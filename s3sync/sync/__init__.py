"""Sync engine for s3sync - one-way S3 to local synchronization."""

from .comparator import (
    FileComparator,
    SyncAction,
    SyncDecision,
    filter_files_for_sync,
    index_local_files,
)
from .engine import SyncEngine, SyncOptions
from .operations import SyncOperations, local_target
from .pipeline import ErrorCollector, FetchPipeline
from .records import (
    FileRecord,
    ListedItem,
    ListingError,
    RemoteLocation,
    SyncResult,
    is_remote_address,
    parse_remote_location,
)
from .scanner import DirectoryScanner, RecordStream, relative_key

__all__ = [
    "SyncEngine",
    "SyncOptions",
    "SyncOperations",
    "FetchPipeline",
    "ErrorCollector",
    "DirectoryScanner",
    "RecordStream",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "FileRecord",
    "ListedItem",
    "ListingError",
    "RemoteLocation",
    "SyncResult",
    "filter_files_for_sync",
    "index_local_files",
    "is_remote_address",
    "local_target",
    "parse_remote_location",
    "relative_key",
]
