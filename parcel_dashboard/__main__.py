"""CLI entrypoint for running the Parcel dashboard."""
from __future__ import annotations

import argparse
import os
from typing import List, Optional

import uvicorn

from .config import _env_bool, _env_int

APP_IMPORT_PATH = "parcel_dashboard.main:app"
UVICORN_LOG_LEVELS = ["critical", "error", "warning", "info", "debug", "trace"]


def build_parser() -> argparse.ArgumentParser:
    host = os.getenv("APP_HOST", "127.0.0.1")
    port = _env_int("APP_PORT", 8000) or 8000
    workers = _env_int("APP_WORKERS")
    log_level = os.getenv("UVICORN_LOG_LEVEL", "info")

    parser = argparse.ArgumentParser(
        prog="parcel-dashboard",
        description="Serve the Parcel delivery dashboard with Uvicorn.",
    )
    server = parser.add_argument_group("server")
    server.add_argument("--host", default=host, help=f"Interface to bind (default: {host!r}).")
    server.add_argument("--port", type=int, default=port, help=f"Port to bind (default: {port}).")
    server.add_argument(
        "--workers",
        type=int,
        default=workers,
        help="Worker processes; ignored with --reload (default: APP_WORKERS or 1).",
    )
    server.add_argument(
        "--log-level",
        default=log_level,
        choices=UVICORN_LOG_LEVELS,
        help=f"Uvicorn log level (default: {log_level}).",
    )
    reload_flags = server.add_mutually_exclusive_group()
    reload_flags.add_argument(
        "--reload", dest="reload", action="store_true", help="Restart on code changes."
    )
    reload_flags.add_argument(
        "--no-reload", dest="reload", action="store_false", help="Never restart on code changes."
    )
    parser.set_defaults(reload=_env_bool("APP_RELOAD", False))

    upstream = parser.add_argument_group("parcel api")
    upstream.add_argument(
        "--api-base-url",
        default=None,
        help="Override PARCEL_API_BASE_URL for this run.",
    )
    upstream.add_argument(
        "--api-timeout",
        type=int,
        default=None,
        help="Override PARCEL_API_TIMEOUT (seconds) for this run.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Parse CLI arguments and launch Uvicorn."""

    args = build_parser().parse_args(argv)

    # Settings are read when the app module is imported, including in workers.
    if args.api_base_url:
        os.environ["PARCEL_API_BASE_URL"] = args.api_base_url
    if args.api_timeout:
        os.environ["PARCEL_API_TIMEOUT"] = str(args.api_timeout)

    uvicorn.run(
        APP_IMPORT_PATH,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
