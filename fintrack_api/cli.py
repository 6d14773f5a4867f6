"""Console entry point for running the finance tracker API."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from fintrack.config import Config
from fintrack.database import init_db, make_engine
from fintrack.logger import get_logger, setup_logging


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid port '{value}'") from exc
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError("Port must be between 1 and 65535")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fintrack", description="Personal finance tracker API")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=_port, default=8080)
    serve.add_argument("--debug", action="store_true", help="Enable the Flask debugger and reloader")

    subparsers.add_parser("init-db", help="Create the relational schema")
    return parser


def _serve(args: argparse.Namespace, config: Config) -> int:
    from .app import create_app

    app = create_app(config)
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def _init_db(config: Config) -> int:
    logger = get_logger()
    if config.storage != "sql":
        logger.error("init-db only applies to the sql storage backend (configured: %s)", config.storage)
        return 1
    engine = make_engine(config.database_url)
    init_db(engine)
    logger.info("Schema ready at %s", engine.url)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = Config.from_env()
    except ValueError as exc:
        parser.error(str(exc))
    setup_logging(config)

    if args.command == "serve":
        return _serve(args, config)
    return _init_db(config)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
