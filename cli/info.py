"""Info command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import json
import logging

from camera import DEFAULT_SENSOR_TABLE, load_sensor_table
from entry import Entry
from errors import DDBError
from index import get_entries_info
from utils import bytes_to_human, format_mtime

logger = logging.getLogger(__name__)


def add_info_subparser(subparsers: argparse._SubParsersAction) -> None:
    info_parser = subparsers.add_parser(
        "info",
        aliases=["i"],
        help="Describe files and directories (no index required)",
    )
    info_parser.add_argument("paths", nargs="+", help="Files or directories to describe")
    info_parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Recurse into directories",
    )
    info_parser.add_argument(
        "-d", "--depth",
        type=int,
        default=0,
        help="Maximum recursion depth with --recursive (default: 0 = unlimited)",
    )
    info_parser.add_argument(
        "-f", "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text)",
    )
    info_parser.add_argument(
        "--with-hash",
        action="store_true",
        help="Compute SHA-256 of file contents",
    )
    info_parser.add_argument(
        "--sensor-data",
        metavar="JSON",
        help="JSON file of additional {\"make model\": sensor_width_mm} pairs",
    )
    info_parser.set_defaults(_cmd=cmd_info)


def format_entry_text(entry: Entry) -> str:
    lines = [
        f"Path: {entry.path}",
        f"Type: {entry.type.label} ({int(entry.type)})",
    ]
    if entry.hash:
        lines.append(f"Hash: {entry.hash}")
    lines.append(f"Size: {bytes_to_human(entry.size)}")
    lines.append(f"Depth: {entry.depth}")
    lines.append(f"Modified Time: {format_mtime(entry.mtime)}")
    for key in sorted(entry.meta):
        lines.append(f"{key}: {entry.meta[key]}")
    if entry.point_geom:
        lines.append(f"Point: {entry.point_geom}")
    if entry.polygon_geom:
        lines.append(f"Polygon: {entry.polygon_geom}")
    return "\n".join(lines)


def cmd_info(args: argparse.Namespace) -> int:
    try:
        sensors = load_sensor_table(args.sensor_data) if args.sensor_data else DEFAULT_SENSOR_TABLE
        entries = get_entries_info(
            args.paths,
            recursive=args.recursive,
            max_depth=args.depth,
            with_hash=args.with_hash,
            sensors=sensors,
        )
    except (DDBError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    if args.format == "json":
        print(json.dumps([e.to_dict() for e in entries], indent=2))
    else:
        print("\n\n".join(format_entry_text(e) for e in entries))
    return 0
