"""Command line launcher for the DevDocBot Engine (``devdocbot-engine``)."""

from __future__ import annotations

import argparse
import os

import uvicorn

DEFAULT_PORT = 8742
LOCAL_HOST = "127.0.0.1"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devdocbot-engine",
        description="Serve DevDocBot vector search over HTTP",
    )
    parser.add_argument("--host", default=LOCAL_HOST, help=f"Bind host (default: {LOCAL_HOST})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Bind port (default: {DEFAULT_PORT})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Uvicorn log level (default: info)",
    )
    parser.add_argument(
        "--service",
        action="store_true",
        help="Serve other machines: bind 0.0.0.0 unless --host is given, enable CORS",
    )
    parser.add_argument(
        "--cors-origins",
        default=None,
        help="Comma-separated CORS origins for service mode (default: *)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run the app factory under uvicorn."""
    args = build_parser().parse_args(argv)

    host = args.host
    if args.service:
        if host == LOCAL_HOST:
            host = "0.0.0.0"
        # create_app() reads these; uvicorn calls the factory in this process
        os.environ["DEVDOCBOT_SERVICE_MODE"] = "1"
        if args.cors_origins:
            os.environ["DEVDOCBOT_CORS_ORIGINS"] = args.cors_origins

    uvicorn.run(
        "devdocbot_engine.app:create_app",
        factory=True,
        host=host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
