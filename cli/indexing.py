"""Add/remove/sync command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import logging

from camera import DEFAULT_SENSOR_TABLE, load_sensor_table
from errors import DDBError
from index import Index, add_to_index, open_index, remove_from_index, sync_index

logger = logging.getLogger(__name__)


def add_index_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by commands that operate on an existing index."""
    parser.add_argument(
        "-w", "--working-dir",
        default=".",
        help="Directory inside the index (default: current directory)",
    )
    parser.add_argument(
        "--sensor-data",
        metavar="JSON",
        help="JSON file of additional {\"make model\": sensor_width_mm} pairs",
    )


def open_from_args(args: argparse.Namespace) -> Index:
    sensors = DEFAULT_SENSOR_TABLE
    if getattr(args, "sensor_data", None):
        sensors = load_sensor_table(args.sensor_data)
    return open_index(args.working_dir, traverse_up=True, sensors=sensors)


def add_index_subparsers(subparsers: argparse._SubParsersAction) -> None:
    add_parser = subparsers.add_parser(
        "add",
        aliases=["a"],
        help="Add files and directories to the index",
    )
    add_parser.add_argument("paths", nargs="+", help="Files or directories to add")
    add_parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar on stderr",
    )
    add_index_options(add_parser)
    add_parser.set_defaults(_cmd=cmd_add)

    remove_parser = subparsers.add_parser(
        "remove",
        aliases=["rm", "r"],
        help="Remove files and directories from the index",
    )
    remove_parser.add_argument("paths", nargs="+", help="Files or directories to remove")
    add_index_options(remove_parser)
    remove_parser.set_defaults(_cmd=cmd_remove)

    sync_parser = subparsers.add_parser(
        "sync",
        aliases=["s"],
        help="Sync the index with the filesystem (updates and deletions)",
    )
    sync_parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar on stderr",
    )
    add_index_options(sync_parser)
    sync_parser.set_defaults(_cmd=cmd_sync)


def cmd_add(args: argparse.Namespace) -> int:
    try:
        with open_from_args(args) as index:
            add_to_index(index, args.paths, show_progress=args.progress)
    except (DDBError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    try:
        with open_from_args(args) as index:
            remove_from_index(index, args.paths)
    except (DDBError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    try:
        with open_from_args(args) as index:
            changes = sync_index(index, show_progress=args.progress)
    except (DDBError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Sync complete: %s change(s)", len(changes))
    return 0
