from __future__ import annotations

import argparse
import sys

from moyofy.bootstrap import bootstrap_base_env, bootstrap_run_context


def _dispatch_help(parser: argparse.ArgumentParser, argv: list[str]) -> int:
    # Support:
    #   moyofy help
    #   moyofy help serve
    if argv and argv[0] == "help":
        argv = argv[1:]

    if not argv:
        parser.print_help()
        return 0

    try:
        build_parser().parse_args(argv + ["--help"])
    except SystemExit:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="moyofy", description="MOYOFY jukebox backend")

    sub = p.add_subparsers(dest="command", required=True)

    help_cmd = sub.add_parser("help", help="Show help")
    help_cmd.add_argument("path", nargs="*", help="Command path to show help for")
    help_cmd.set_defaults(_help=True)

    # Keep imports inside builder to avoid early side effects.
    from moyofy.cli.cli_auth import build_auth_parser
    from moyofy.cli.cli_env import build_env_parser
    from moyofy.cli.cli_serve import build_serve_parser

    build_serve_parser(sub)
    build_auth_parser(sub)
    build_env_parser(sub)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # Load .env and base environment early
    bootstrap_base_env()

    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "_help", False):
        return _dispatch_help(parser, argv)

    # Stamp run context before logging reads it
    bootstrap_run_context(
        command=args.command,
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
    )

    from moyofy.logger import get_logger, init_logging

    init_logging()

    log = get_logger(__name__)
    log.info("MOYOFY starting")
    log.info(f"Command: {args.command}")

    if args.command == "serve":
        from moyofy.cli.cli_serve import handle_serve

        return handle_serve(args)

    if args.command == "auth":
        from moyofy.cli.cli_auth import handle_auth

        return handle_auth(args)

    if args.command == "env":
        from moyofy.cli.cli_env import handle_env

        return handle_env(args)

    raise RuntimeError(f"Unknown command: {args.command}")
