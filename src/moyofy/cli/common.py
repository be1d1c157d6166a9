from __future__ import annotations

import argparse
import os
from typing import Any

from rich.console import Console

# Human-facing output; diagnostics go through logging
RENDER = Console()


def add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--verbose", action="store_true", help="Verbose console output")
    parser.add_argument("--quiet", action="store_true", help="Suppress console output")


def say(renderable: Any) -> None:
    """Print for humans unless the run was started with --quiet."""
    if os.environ.get("MOYOFY_QUIET") != "1":
        RENDER.print(renderable)


def dispatch_subparser_help(
    parser: argparse.ArgumentParser, path: list[str] | None
) -> int:
    """`moyofy <group> help [sub ...]` prints the help of that subtree."""
    if not path:
        parser.print_help()
        return 0

    # argparse exits after printing --help
    try:
        parser.parse_args(path + ["--help"])
    except SystemExit:
        pass
    return 0
