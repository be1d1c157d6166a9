from __future__ import annotations

import argparse
import os

from rich.text import Text

from moyofy.auth import AuthHealthResult, AuthInvalid, check
from moyofy.cli.common import add_output_flags, say
from moyofy.env import ConfigError, get_env, reset_env_caches
from moyofy.logger import get_logger
from moyofy.services import build_owner_provider

logger = get_logger("auth")


def build_auth_parser(subparsers: argparse._SubParsersAction) -> None:
    auth = subparsers.add_parser(
        "auth",
        help="Check, authorize or clear the playlist owner's Google account",
    )
    add_output_flags(auth)

    mode = auth.add_mutually_exclusive_group()
    mode.add_argument(
        "--login",
        action="store_true",
        help="Open the Google consent page and store the owner token",
    )
    mode.add_argument(
        "--logout",
        action="store_true",
        help="Delete the stored owner token",
    )

    auth.set_defaults(action="auth")


def _ensure_api_key_placeholder() -> None:
    # Environment() insists on API keys; the owner check only uses OAuth
    if not (os.environ.get("YOUTUBE_API_KEYS") or os.environ.get("YOUTUBE_API_KEY")):
        os.environ["YOUTUBE_API_KEYS"] = "AUTH_CHECK"
        reset_env_caches()


def _render_health(result: AuthHealthResult, verbose: bool) -> Text:
    if not result.healthy:
        hint = " - run `moyofy auth --login`" if result.needs_login else ""
        return Text(result.message + hint, style="red")

    msg = Text("OAuth OK", style="green")
    if result.message != "OAuth OK":
        msg.append(result.message.removeprefix("OAuth OK"), style="yellow")
    elif verbose:
        msg.append(" (owner can add songs to the playlist)", style="dim")
    return msg


def handle_auth(args: argparse.Namespace) -> int:
    """
    Exit codes: 0 healthy or logged out, 1 bad configuration,
    2 the owner needs to (re)authorize or Google could not be reached.
    """
    _ensure_api_key_placeholder()

    try:
        env = get_env()
        provider = build_owner_provider(env)
    except ConfigError as e:
        logger.error(f"auth.config_error: {e}")
        say(Text(f"Configuration error: {e}", style="red"))
        return 1

    if args.logout:
        provider.logout()
        say(Text("Owner token cleared", style="green"))
        return 0

    if args.login:
        try:
            provider.login()
        except AuthInvalid as e:
            say(Text(f"OAuth login failed: {e}", style="red"))
            return 2

    if not provider.is_ready():
        say(Text("Owner not authorized - run `moyofy auth --login`", style="red"))
        return 2

    result = check(provider)
    logger.info(f"auth.check status={result.status.value}")
    say(_render_health(result, env.verbose))
    return 0 if result.healthy else 2
