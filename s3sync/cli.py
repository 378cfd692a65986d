"""CLI interface for s3sync."""

import logging
from typing import Any, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from .client import S3Client
from .config import config
from .exceptions import S3SyncConfigError, S3SyncError, SyncFailedError
from .output import OutputFormatter
from .sync import FileRecord, ListingError, SyncEngine, SyncOptions
from .utils import format_size, format_timestamp

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool, quiet: bool) -> None:
    """Route log records through rich on stderr.

    Transfer notices are logged at INFO on the ``s3sync`` logger, so they
    are shown by default, hidden with ``--quiet`` and joined by debug
    output with ``--verbose``.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        show_time=verbose,
        markup=False,
    )
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[handler],
    )
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.getLogger("s3sync").setLevel(level)


def _create_client(ctx: Any) -> S3Client:
    """Build the S3 client from command line options and configuration.

    Raises:
        S3SyncConfigError: If the configuration file cannot be read
    """
    return S3Client(
        endpoint_url=ctx.obj["endpoint_url"] or config.endpoint_url,
        profile=ctx.obj["profile"] or config.profile,
        region=ctx.obj["region"] or config.region,
    )


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.option(
    "--endpoint-url",
    default=None,
    help="Custom S3 endpoint (e.g. MinIO or localstack)",
)
@click.option("--profile", default=None, help="AWS profile to use")
@click.option("--region", default=None, help="AWS region to use")
@click.version_option(package_name="s3sync")
@click.pass_context
def main(
    ctx: Any,
    quiet: bool,
    json: bool,
    verbose: bool,
    endpoint_url: Optional[str],
    profile: Optional[str],
    region: Optional[str],
) -> None:
    """s3sync - Mirror S3 prefixes into local directories."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["endpoint_url"] = endpoint_url
    ctx.obj["profile"] = profile
    ctx.obj["region"] = region
    ctx.obj["verbose"] = verbose

    _setup_logging(verbose, quiet or json)


@main.command()
@click.argument("source")
@click.argument("destination")
@click.option(
    "--workers",
    "-j",
    type=int,
    default=None,
    help="Number of parallel downloads (default: 8)",
)
@click.option(
    "--mtime-tolerance",
    type=float,
    default=None,
    help="Seconds a remote file may be newer and still count as in sync",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be downloaded without downloading",
)
@click.pass_context
def sync(
    ctx: Any,
    source: str,
    destination: str,
    workers: Optional[int],
    mtime_tolerance: Optional[float],
    dry_run: bool,
) -> None:
    """Sync files from SOURCE to DESTINATION.

    Only S3 to local sync is supported. Remote files that are missing
    locally, differ in size or are newer than the local copy are
    downloaded. Nothing is ever deleted.

    The prefix is treated as a folder: keys that merely start with the same
    text (photos2/ for photos) are ignored. Keys with empty, "." or ".."
    path segments are reported as errors and never downloaded.

    Examples:
        s3sync sync s3://my-bucket/photos ./photos
        s3sync sync s3://my-bucket/data/file.csv ./file.csv
        s3sync sync s3://my-bucket/logs ./logs --dry-run
        s3sync sync s3://my-bucket/logs ./logs -j 16
    """
    out: OutputFormatter = ctx.obj["out"]

    if workers is not None and workers < 1:
        out.error("Workers must be at least 1")
        ctx.exit(1)
    if mtime_tolerance is not None and mtime_tolerance < 0:
        out.error("Modification time tolerance must not be negative")
        ctx.exit(1)

    try:
        options = SyncOptions.from_config(config)
        client = _create_client(ctx)
    except S3SyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return  # Unreachable, but helps type checker

    if workers is not None:
        options.max_workers = workers
    if mtime_tolerance is not None:
        options.mtime_tolerance = mtime_tolerance

    engine = SyncEngine(client, options)

    failed: Optional[SyncFailedError] = None
    try:
        result = engine.sync(source, destination, dry_run=dry_run)
    except SyncFailedError as e:
        failed = e
        result = e.result
    except S3SyncError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except KeyboardInterrupt:
        out.warning("Sync cancelled by user")
        ctx.exit(130)
        return

    if out.json_output:
        out.output_json(
            {
                "source": source,
                "destination": destination,
                "dry_run": dry_run,
                "downloaded": result.downloaded if result else [],
                "skipped": result.skipped if result else 0,
                "errors": failed.errors if failed else [],
            }
        )
    else:
        if failed is not None:
            for message in failed.errors:
                out.error(message)
        if result is not None:
            label = "Would download" if dry_run else "Downloaded"
            out.print_summary(
                "Dry run summary" if dry_run else "Sync summary",
                {
                    label: len(result.downloaded),
                    "Skipped": result.skipped,
                    "Errors": len(failed.errors) if failed else 0,
                },
            )

    if failed is not None:
        ctx.exit(1)


@main.command(name="ls")
@click.argument("s3_url")
@click.pass_context
def ls(ctx: Any, s3_url: str) -> None:
    """List files below an S3 location.

    Names are shown relative to the given prefix.

    Examples:
        s3sync ls s3://my-bucket
        s3sync ls s3://my-bucket/photos/2024
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        engine = SyncEngine(_create_client(ctx), SyncOptions.from_config(config))
        stream = engine.list_remote(s3_url)
    except S3SyncError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    files: list[FileRecord] = []
    errors: list[ListingError] = []
    with stream:
        for item in stream:
            if isinstance(item, ListingError):
                errors.append(item)
            else:
                files.append(item)

    if out.json_output:
        out.output_json(
            {
                "files": [
                    {
                        "name": f.name,
                        "key": f.path,
                        "size": f.size,
                        "last_modified": f.last_modified.isoformat(),
                    }
                    for f in files
                ],
                "errors": [str(e) for e in errors],
            }
        )
    elif files:
        out.output_table(
            ["Name", "Size", "Modified"],
            [
                [f.name, format_size(f.size), format_timestamp(f.last_modified)]
                for f in files
            ],
        )
        if not out.quiet:
            total = sum(f.size for f in files)
            out.info(f"{len(files)} file(s), {format_size(total)}")

    if errors:
        for error in errors:
            out.error(str(error))
        ctx.exit(1)


if __name__ == "__main__":
    main()
