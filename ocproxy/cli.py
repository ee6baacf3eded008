"""Command-line entry point.

Usage:
  ocproxy server-openai --port 4040 --api-key secret
  ocproxy server-openai --backend mock --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .backend import BACKEND_TYPES
from .config_loader import DEFAULT_CONFIG_PATH, ProxySettings, load_settings
from .core.exceptions import ConfigurationError
from .logging import setup_logging
from .main import ENDPOINTS, create_app
from .server import ProxyServer

logger = logging.getLogger("ocproxy")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ocproxy",
        description="OpenAI compatible proxy for OpenCode models",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser(
        "server-openai",
        help="Run the OpenAI compatible HTTP proxy",
    )
    serve.add_argument("-p", "--port", type=int, help="Listen port (default: 4040)")
    serve.add_argument("--host", help="Listen host (default: 127.0.0.1)")
    serve.add_argument(
        "--api-key",
        help="Require 'Authorization: Bearer <key>' on every request",
    )
    serve.add_argument(
        "--timeout",
        type=int,
        dest="timeout_ms",
        help="Backend deadline in milliseconds (default: 60000)",
    )
    serve.add_argument(
        "--config",
        help=f"Path to config YAML (default: OPENAI_PROXY_CONFIG or {DEFAULT_CONFIG_PATH})",
    )
    serve.add_argument("--backend", choices=BACKEND_TYPES, help="Backend type")
    serve.add_argument("--backend-url", help="Base URL of the opencode server")
    serve.add_argument("--log-level", help="Log level (default: INFO)")
    return parser


def settings_from_args(args: argparse.Namespace) -> ProxySettings:
    overrides = {
        "host": args.host,
        "port": args.port,
        "api_key": args.api_key,
        "timeout_ms": args.timeout_ms,
        "backend": args.backend,
        "backend_url": args.backend_url,
        "log_level": args.log_level,
    }
    return load_settings(args.config, overrides=overrides)


def log_endpoints(settings: ProxySettings) -> None:
    logger.info(f"OpenAI proxy listening on {settings.base_url}")
    logger.info("Endpoints:")
    for method, path in ENDPOINTS:
        logger.info(f"  {method:<5} {settings.base_url}{path}")
    if settings.auth_enabled:
        logger.info("Authentication: Bearer API key required")
    else:
        logger.info("Authentication: disabled")


def serve_openai(args: argparse.Namespace) -> int:
    setup_logging(args.log_level or "INFO")
    try:
        settings = settings_from_args(args)
        setup_logging(settings.log_level)
        app = create_app(settings)
        server = ProxyServer(app, settings)
        server.check_transport()
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        return 1

    log_endpoints(settings)
    try:
        server.run()
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "server-openai":
        return serve_openai(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
