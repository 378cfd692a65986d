"""Local and remote file listing for sync operations.

Both listers run on a background thread and hand their results over
through a queue, so the remote listing and the local walk proceed
concurrently while the consumer reads them as plain iterators.
"""

import logging
import os
import queue
import stat
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from ..client import RemoteObject, S3Client
from ..exceptions import S3ListingError
from ..utils import DEFAULT_REMOTE_QUEUE_SIZE, to_utc
from .records import FileRecord, ListedItem, ListingError, RemoteLocation

logger = logging.getLogger(__name__)

_END = object()

Emit = Callable[[ListedItem], bool]
"""Callback handing one item to the stream; returns False once the stream is closed."""


class RecordStream:
    """Iterator over items produced by a function running on its own thread.

    The producer receives an ``emit`` callback. With a bounded queue, ``emit``
    blocks while the queue is full, so a fast producer stalls instead of
    dropping items. After ``close()`` every pending and future ``emit``
    returns False and the producer is expected to stop.

    Examples:
        >>> stream = RecordStream(lambda emit: [emit(i) for i in range(3)])
        >>> list(stream)
        [0, 1, 2]
    """

    def __init__(
        self,
        producer: Callable[[Emit], None],
        maxsize: int = 0,
        name: str = "s3sync-lister",
    ):
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self._stop = threading.Event()
        self._finished = False
        self._thread = threading.Thread(
            target=self._run, args=(producer,), name=name, daemon=True
        )
        self._thread.start()

    def _emit(self, item: object) -> bool:
        while not self._stop.is_set():
            try:
                self._queue.put(item, timeout=0.1)
                return True
            except queue.Full:
                continue
        return False

    def _run(self, producer: Callable[[Emit], None]) -> None:
        try:
            producer(self._emit)
        except Exception as e:
            logger.debug("Lister %s failed: %s", self._thread.name, e, exc_info=True)
            self._emit(ListingError(reason=f"listing failed: {e}"))
        finally:
            self._emit(_END)

    def __iter__(self) -> "RecordStream":
        return self

    def __next__(self) -> ListedItem:
        if self._finished:
            raise StopIteration
        item = self._queue.get()
        if item is _END:
            self._finished = True
            raise StopIteration
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Stop consuming; the producer stops at its next emit."""
        self._finished = True
        self._stop.set()

    def __enter__(self) -> "RecordStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def relative_key(prefix: str, key: str) -> Optional[str]:
    """Compute the name of an object key relative to a listing prefix.

    The prefix is treated as a directory and the key is never normalized,
    so distinct keys always map to distinct names. A key equal to the
    prefix yields ``"."`` (a single object synced onto a single file).

    Args:
        prefix: Listing prefix
        key: Object key

    Returns:
        Relative name using forward slashes, or None if the key only shares
        the prefix text and lies outside the prefix directory

    Raises:
        ValueError: If the relative part has an empty, ``.`` or ``..`` segment

    Examples:
        >>> relative_key("photos/", "photos/2024/a.jpg")
        '2024/a.jpg'
        >>> relative_key("", "a.txt")
        'a.txt'
        >>> relative_key("data/file.csv", "data/file.csv")
        '.'
        >>> relative_key("photos", "photos2/a.jpg") is None
        True
    """
    if not prefix:
        name = key
    else:
        prefix_dir = prefix[:-1] if prefix.endswith("/") else prefix
        if key == prefix_dir:
            return "."
        if not key.startswith(prefix_dir + "/"):
            return None
        name = key[len(prefix_dir) + 1 :]

    if any(segment in ("", ".", "..") for segment in name.split("/")):
        raise ValueError(f"key {key!r} has an empty, '.' or '..' path segment")
    return name


class DirectoryScanner:
    """Lists the files on both sides of a sync.

    Examples:
        >>> scanner = DirectoryScanner(S3Client())
        >>> remote = scanner.scan_remote(RemoteLocation("bucket", "photos/"))
        >>> local = scanner.scan_local("/home/user/photos")
    """

    def __init__(
        self,
        client: Optional[S3Client] = None,
        remote_queue_size: int = DEFAULT_REMOTE_QUEUE_SIZE,
    ):
        """Initialize directory scanner.

        Args:
            client: S3 client used for remote listings
            remote_queue_size: Number of remote items buffered ahead of the consumer
        """
        self.client = client
        self.remote_queue_size = remote_queue_size

    def scan_remote(self, location: RemoteLocation) -> RecordStream:
        """List every object below a remote location.

        Pages are requested one after another using the continuation token.
        A failed page request ends the stream with a single ListingError.

        Args:
            location: Remote location to list

        Returns:
            RecordStream of FileRecord and ListingError items
        """
        if self.client is None:
            raise ValueError("DirectoryScanner needs an S3 client to scan remote files")
        client = self.client

        def produce(emit: Emit) -> None:
            token: Optional[str] = None
            pages = 0
            while True:
                try:
                    page = client.list_objects_page(
                        location.bucket, location.prefix, token
                    )
                except S3ListingError as e:
                    emit(ListingError(reason=str(e), path=str(location)))
                    return
                pages += 1

                for obj in page.objects:
                    item = self._remote_item(location, obj)
                    if item is not None and not emit(item):
                        return

                token = page.next_token
                if token is None:
                    logger.debug(
                        "Remote listing of %s done (%d page(s))", location, pages
                    )
                    return

        return RecordStream(
            produce, maxsize=self.remote_queue_size, name="s3sync-remote-lister"
        )

    def _remote_item(
        self, location: RemoteLocation, obj: RemoteObject
    ) -> Optional[ListedItem]:
        # Folder placeholders cannot be materialized as files
        if obj.key.endswith("/"):
            logger.debug("Skipping folder placeholder: %s", obj.key)
            return None

        try:
            name = relative_key(location.prefix, obj.key)
        except ValueError as e:
            return ListingError(reason=str(e), path=obj.key)
        if name is None:
            # Sibling sharing the prefix text, e.g. "photos2/x" under "photos"
            logger.debug("Skipping key outside %s: %s", location, obj.key)
            return None

        return FileRecord(
            name=name,
            path=obj.key,
            size=obj.size,
            last_modified=obj.last_modified,
        )

    def scan_local(self, root: Union[str, Path]) -> RecordStream:
        """Recursively list the regular files below a local path.

        A missing root yields nothing. A root that is a regular file yields
        exactly one record named ``"."``. If the walk fails, a ListingError
        follows the records already listed and the stream ends.

        Args:
            root: Local directory (or single file)

        Returns:
            RecordStream of FileRecord and ListingError items
        """
        root_path = Path(root)

        def produce(emit: Emit) -> None:
            try:
                root_stat = root_path.stat()
            except FileNotFoundError:
                logger.debug("Local path %s does not exist yet", root_path)
                return
            except OSError as e:
                emit(
                    ListingError(
                        reason=f"Failed to scan {root_path}: {e}", path=str(root_path)
                    )
                )
                return

            if not stat.S_ISDIR(root_stat.st_mode):
                if stat.S_ISREG(root_stat.st_mode):
                    emit(self._local_record(root_path, ".", root_stat))
                return

            try:
                self._walk(root_path, emit)
            except OSError as e:
                emit(
                    ListingError(
                        reason=f"Failed to scan {root_path}: {e}", path=str(root_path)
                    )
                )

        return RecordStream(produce, name="s3sync-local-lister")

    def _walk(self, root_path: Path, emit: Emit) -> None:
        def _raise(error: OSError) -> None:
            raise error

        count = 0
        for dirpath, dirnames, filenames in os.walk(root_path, onerror=_raise):
            dirnames.sort()
            for filename in sorted(filenames):
                file_path = Path(dirpath) / filename
                try:
                    file_stat = file_path.stat()
                except FileNotFoundError:
                    # Vanished during the walk or a dangling symlink
                    logger.debug("Skipping unreadable entry: %s", file_path)
                    continue
                if not stat.S_ISREG(file_stat.st_mode):
                    continue

                name = file_path.relative_to(root_path).as_posix()
                if not emit(self._local_record(file_path, name, file_stat)):
                    return
                count += 1

        logger.debug("Local scan of %s found %d file(s)", root_path, count)

    @staticmethod
    def _local_record(
        file_path: Path, name: str, file_stat: os.stat_result
    ) -> FileRecord:
        return FileRecord(
            name=name,
            path=str(file_path),
            size=file_stat.st_size,
            last_modified=to_utc(file_stat.st_mtime),
        )
