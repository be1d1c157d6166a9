from __future__ import annotations

import argparse

from waitress import serve

from moyofy import config
from moyofy.api import create_app
from moyofy.cli.common import add_output_flags, say
from moyofy.env import ConfigError, get_env
from moyofy.logger import get_logger
from moyofy.services import build_services


def build_serve_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("serve", help="Run the HTTP API")
    add_output_flags(p)

    p.add_argument("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
    p.add_argument("--port", type=int, default=None, help="Bind port (default: $PORT or 8080)")
    p.add_argument(
        "--threads",
        type=int,
        default=config.DEFAULT_SERVER_THREADS,
        help=f"Worker threads (default: {config.DEFAULT_SERVER_THREADS})",
    )
    p.add_argument(
        "--dev",
        action="store_true",
        help="Use Flask's development server instead of waitress",
    )

    p.set_defaults(action="serve")


def handle_serve(args: argparse.Namespace) -> int:
    log = get_logger("serve")

    try:
        env = get_env()
    except ConfigError as e:
        log.error(f"serve.config_error: {e}")
        say(f"[red]Configuration error:[/red] {e}")
        return 1

    host = args.host or env.host
    port = args.port or env.port

    services = build_services(env)
    app = create_app(services)

    if not env.playlist_id:
        log.warning("DEFAULT_PLAYLIST_ID is not set; /suggest-song is disabled")
    if not services.owner.is_ready():
        log.warning("Owner account not authorized; run `moyofy auth --login`")

    log.info(f"{config.SERVICE_NAME} listening on http://{host}:{port} ({env.environment})")

    if args.dev:
        app.run(host=host, port=port, threaded=True, debug=False)
    else:
        serve(app, host=host, port=port, threads=max(1, args.threads))
    return 0
