"""Command-line entry point.

Usage:
    tessera serve --host 0.0.0.0 --port 3000
    tessera --version
"""

from __future__ import annotations

import argparse
import logging
from typing import TYPE_CHECKING

from tessera.infra.fastapi.settings import package_version

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"  # noqa: S104
DEFAULT_PORT = 3000
APP_IMPORT_PATH = "tessera.infra.fastapi.main:app"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tessera",
        description="Multi-tenant API key management service",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {package_version()}")
    subcommands = parser.add_subparsers(dest="command", required=True)

    serve = subcommands.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=DEFAULT_HOST, help="Interface to bind to")
    serve.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to listen on")
    serve.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="uvicorn log level",
    )
    return parser


def serve(host: str, port: int, log_level: str = "info") -> None:
    """Run the ASGI app with uvicorn until interrupted.

    The app is passed by import path so uvicorn builds it in its own
    event loop; lifespan hooks run there.
    """
    import uvicorn

    logger.info("server_starting", extra={"host": host, "port": port})
    uvicorn.run(APP_IMPORT_PATH, host=host, port=port, log_level=log_level)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        serve(args.host, args.port, args.log_level)
    return 0
