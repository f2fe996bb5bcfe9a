"""Init command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import logging

from errors import DDBError
from index import init_index

logger = logging.getLogger(__name__)


def add_init_subparser(subparsers: argparse._SubParsersAction) -> None:
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize an index in a directory",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to index (default: current directory)",
    )
    init_parser.set_defaults(_cmd=cmd_init)


def cmd_init(args: argparse.Namespace) -> int:
    try:
        ddb_dir = init_index(args.directory)
    except DDBError as exc:
        logger.error("%s", exc)
        return 1

    print(ddb_dir)
    return 0
