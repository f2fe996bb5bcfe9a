#!/usr/bin/env python3
"""
Command line interface for the ddb geospatial filesystem index.

Usage:
    ddb init [dir]               # Create .ddb/ in a directory
    ddb add <paths...>           # Index new files, refresh changed ones
    ddb remove <paths...>        # Drop entries from the index
    ddb sync                     # Reconcile the whole index with disk
    ddb info <paths...> [-r]     # Describe files without an index

Change lines (A/U/D, a tab, the entry path) go to stdout; logs go to stderr.
"""

import argparse
import logging
import sys

from logging_utils import configure_logging, add_logging_args
from cli.init import add_init_subparser
from cli.indexing import add_index_subparsers
from cli.info import add_info_subparser

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ddb",
        description="Index a directory tree with hashes and geospatial metadata",
    )
    add_logging_args(parser)
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_init_subparser(subparsers)
    add_index_subparsers(subparsers)
    add_info_subparser(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    cmd = getattr(args, "_cmd", None)
    if cmd is None:
        parser.print_help()
        return 1
    return cmd(args)


if __name__ == "__main__":
    sys.exit(main())
