from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List, Tuple

from rich.table import Table

from moyofy.cli.common import RENDER, dispatch_subparser_help
from moyofy.env import ConfigError, Environment, get_env
from moyofy.env.paths import auth_client_secrets_file


def build_env_parser(subparsers: argparse._SubParsersAction) -> None:
    env = subparsers.add_parser("env", help="Inspect the jukebox configuration")
    sub = env.add_subparsers(dest="env_cmd", required=True)

    help_p = sub.add_parser("help", help="Show help for env")
    help_p.add_argument("path", nargs="*", help="Subcommand path")
    help_p.set_defaults(action="help", _help_parser=env)

    dump_p = sub.add_parser("dump", help="Show resolved runtime environment")
    dump_p.add_argument("--json", action="store_true", help="Print as JSON")
    dump_p.set_defaults(action="dump")

    check_p = sub.add_parser(
        "check", help="Report whether search and suggestions can run with this config"
    )
    check_p.set_defaults(action="check")


def handle_env(args: argparse.Namespace) -> int:
    if args.action == "help":
        return dispatch_subparser_help(
            args._help_parser, list(getattr(args, "path", []) or [])
        )

    try:
        env = get_env()
    except ConfigError as e:
        RENDER.print(f"[red]Configuration error:[/red] {e}")
        return 1

    if args.action == "dump":
        return handle_env_dump(env, as_json=bool(getattr(args, "json", False)))
    if args.action == "check":
        return handle_env_check(env)

    raise RuntimeError(f"Unknown env action: {args.action}")


def handle_env_dump(env: Environment, as_json: bool = False) -> int:
    data = env.as_dict()

    if as_json:
        RENDER.print_json(json.dumps(data, default=str))
        return 0

    table = Table(title="Runtime Environment", show_lines=False)
    table.add_column("Section", style="bold cyan")
    table.add_column("Key")
    table.add_column("Value")

    for section, values in data.items():
        for i, (key, value) in enumerate(values.items()):
            table.add_row(section if i == 0 else "", key, str(value))

    RENDER.print(table)
    return 0


def readiness_checks(env: Environment) -> List[Tuple[str, bool, str]]:
    """(name, passed, detail) for everything `serve` needs to be fully useful."""
    from moyofy.services import build_owner_provider

    checks: List[Tuple[str, bool, str]] = [
        ("api keys", bool(env.youtube_api_keys), f"{len(env.youtube_api_keys)} loaded"),
        (
            "playlist",
            bool(env.playlist_id),
            env.playlist_id or "DEFAULT_PLAYLIST_ID is not set; suggestions are disabled",
        ),
    ]

    secrets_file = auth_client_secrets_file()
    has_client = bool(env.oauth_client_id and env.oauth_client_secret) or secrets_file.exists()
    checks.append(
        (
            "oauth client",
            has_client,
            "configured" if has_client else f"set OAUTH_CLIENT_ID/SECRET or add {secrets_file}",
        )
    )

    if env.filter_file:
        exists = Path(env.filter_file).exists()
        checks.append(("filter file", exists, env.filter_file if exists else "file not found"))

    try:
        ready = build_owner_provider(env).is_ready()
        checks.append(
            (
                "owner token",
                ready,
                f"stored ({env.token_store})" if ready else "run `moyofy auth --login`",
            )
        )
    except ConfigError as e:
        checks.append(("token store", False, str(e)))

    return checks


def handle_env_check(env: Environment) -> int:
    checks = readiness_checks(env)

    table = Table(title="Jukebox readiness")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Detail")
    for name, passed, detail in checks:
        table.add_row(name, "[green]ok[/green]" if passed else "[red]missing[/red]", detail)
    RENDER.print(table)

    return 0 if all(passed for _, passed, _ in checks) else 2
