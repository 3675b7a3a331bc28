"""CLI commands for podtrim.

Provides commands for:
- Syncing a feed and trimming its new episodes
- Viewing per-show processing status
- Trimming a local MP3 file
"""

import argparse
import logging
import sys

from ..argparse_shared import (
    add_log_level_argument,
    add_skip_arguments,
    add_threads_argument,
    add_url_argument,
    configure_logging,
    get_base_parser,
)
from ..audio.trim import seconds_to_micros, trim
from ..config import Config
from ..db.factory import create_repository_from_config
from ..errors import DecodeError, FetchError, StoreError
from ..podcast.feed_sync import FeedSyncService
from ..podcast.http import HttpClient
from ..workflow.config import SyncConfig
from ..workflow.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


def sync_feed(args, config: Config) -> int:
    """
    Run one sync cycle for the feed at args.url.

    Parameters:
        args: CLI arguments with `url`, `start`, `end`, `threads` and `no_wait`. Unset flags fall back to the PODTRIM_* environment settings.
        config (Config): Application configuration.

    Returns:
        int: Exit status. 1 if the settings are invalid, the store cannot be opened, the feed cannot be fetched or the show directory cannot be created; episode failures do not change it.
    """
    try:
        sync_config = SyncConfig.from_env().with_overrides(
            head_skip_seconds=args.start,
            tail_skip_seconds=args.end,
            max_workers=args.threads,
            wait_for_workers=False if args.no_wait else None,
        )
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        repository = create_repository_from_config(config)
    except StoreError as e:
        print(f"Error: could not open episode store: {e}", file=sys.stderr)
        return 1

    http_client = HttpClient.from_config(config)
    pending = []
    try:
        orchestrator = SyncOrchestrator(
            config=config,
            sync_config=sync_config,
            repository=repository,
            http_client=http_client,
        )
        result = orchestrator.run(args.url)
        pending = result.pending

        print(f"\nSync complete: {result.show_title}")
        print(f"  Directory: {result.show_dir}")
        print(f"  Selected: {result.to_process}")
        print(f"  Trimmed: {result.result.processed}")
        print(f"  Failed: {result.result.failed}")
        if result.store_errors:
            print(f"  Not recorded: {len(result.store_errors)}")
        if pending:
            print(f"  Still running: {len(pending)}")
        return 0

    except FetchError as e:
        print(f"Error: could not fetch feed {args.url}: {e}", file=sys.stderr)
        return 1
    except StoreError as e:
        print(f"Error: episode store failure: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    finally:
        # Background workers still need the store and the HTTP session
        if not pending:
            http_client.close()
            repository.close()


def show_status(args, config: Config) -> int:
    """
    Print processed and unprocessed counts per show.

    Parameters:
        args: Parsed command-line arguments. If `args.title` is given only that show is reported, including its unprocessed titles.
        config (Config): Application configuration.

    Returns:
        int: Exit status; 1 if the store cannot be opened or the show is unknown.
    """
    try:
        repository = create_repository_from_config(config)
    except StoreError as e:
        print(f"Error: could not open episode store: {e}", file=sys.stderr)
        return 1

    try:
        service = FeedSyncService(
            repository=repository,
            download_directory=config.PODCAST_DOWNLOAD_DIRECTORY,
        )

        if args.title:
            show = repository.get_show_by_title(args.title)
            if not show:
                print(f"Show not found: {args.title}")
                return 1
            shows = [show]
        else:
            shows = repository.list_shows()
            if not shows:
                print("No shows synced yet")
                return 0

        for show in shows:
            status = service.get_status(show)
            print(f"\nShow: {status['title']}")
            print(f"  Directory: {status['directory']}")
            print(f"  Total episodes: {status['total']}")
            print(f"  Processed: {status['processed']}")
            print(f"  Unprocessed: {status['unprocessed']}")
            if args.title and status["pending_titles"]:
                print("\n  Waiting:")
                for title in status["pending_titles"]:
                    print(f"    - {title}")
        return 0

    except StoreError as e:
        print(f"Error: episode store failure: {e}", file=sys.stderr)
        return 1

    finally:
        repository.close()


def trim_file(args, config: Config) -> int:
    """
    Trim a local MP3 file with the same engine the sync uses.

    Returns:
        int: Exit status; 1 if the input cannot be read or decoded.
    """
    if not config.is_mp3_file(args.input):
        print(f"Error: not an MP3 file: {args.input}", file=sys.stderr)
        return 1

    head_skip_us = seconds_to_micros(args.start or 0)
    tail_skip_us = seconds_to_micros(args.end or 0)

    try:
        with open(args.input, "rb") as f:
            data = f.read()
        with open(args.output, "wb") as out:
            written = trim(data, head_skip_us, tail_skip_us, out)
    except (DecodeError, OSError) as e:
        print(f"Error: could not trim {args.input}: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {written} bytes to {args.output}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = get_base_parser("Sync a podcast feed and keep trimmed copies of its episodes")
    add_log_level_argument(parser)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sync command
    sync_parser = subparsers.add_parser(
        "sync",
        help="Fetch a feed, record new episodes and trim them",
    )
    add_url_argument(sync_parser)
    add_skip_arguments(sync_parser)
    add_threads_argument(sync_parser)
    sync_parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Return once episodes are dispatched instead of waiting for them",
    )

    # status command
    status_parser = subparsers.add_parser(
        "status",
        help="Show processing status",
    )
    status_parser.add_argument(
        "--title",
        help="Show title to report on (default: all shows)",
    )

    # trim command
    trim_parser = subparsers.add_parser(
        "trim",
        help="Trim a local MP3 file",
    )
    trim_parser.add_argument("input", help="Source MP3 file")
    trim_parser.add_argument("output", help="Destination file")
    add_skip_arguments(trim_parser)

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Load configuration
    config = Config(env_file=args.env_file)
    configure_logging(args.log_level or config.LOG_LEVEL)

    # Route to appropriate command
    commands = {
        "sync": sync_feed,
        "status": show_status,
        "trim": trim_file,
    }

    command_func = commands.get(args.command)
    if command_func:
        sys.exit(command_func(args, config))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
