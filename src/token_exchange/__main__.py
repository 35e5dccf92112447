"""
Run the token exchange server.

Usage:
    python -m src.token_exchange
    python -m src.token_exchange --provider tiktok_shop --port 8080

Prerequisites:
    export OAUTH_CLIENT_KEY="your_client_key"
    export OAUTH_CLIENT_SECRET="your_client_secret"
    export OAUTH_REDIRECT_URI="https://your.host/oauth/callback"
"""

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from typing import Optional

from .config import ProviderConfig, ServerConfig
from .exceptions import ConfigurationError
from .handler import TokenExchangeHandler
from .providers import PROVIDERS
from .server import CallbackServer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="token-exchange-server",
        description="OAuth callback server that exchanges authorization codes for tokens",
    )
    parser.add_argument("--host", help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Listen port (overrides PORT)")
    parser.add_argument(
        "--provider",
        choices=sorted(PROVIDERS),
        help="Provider profile (overrides OAUTH_PROVIDER)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def load_config(args: argparse.Namespace) -> tuple[ServerConfig, ProviderConfig]:
    """
    Load server and provider configuration, applying command line overrides.

    Raises:
        ConfigurationError: If configuration is missing or invalid
    """
    server_config = ServerConfig.from_env()
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if overrides:
        server_config = dataclasses.replace(server_config, **overrides)

    provider_config = ProviderConfig.from_env(provider=args.provider)
    return server_config, provider_config


def install_signal_handlers(server: CallbackServer) -> None:
    """Shut the server down gracefully on SIGTERM and SIGINT."""

    def handle_signal(signum, frame):
        logger.info(f"{signal.Signals(signum).name} received, shutting down")
        # shutdown() blocks until serve_forever() returns, so it cannot
        # run on the serving thread that received the signal
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for clean shutdown, 1 for configuration or startup failure)
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        server_config, provider_config = load_config(args)
    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1

    handler = TokenExchangeHandler(provider_config)
    server = CallbackServer(server_config, handler)

    logger.info(f"Provider: {handler.provider.name} ({provider_config.token_endpoint})")
    logger.info(f"Callback path: {server_config.callback_path}")
    logger.info(f"Environment: {server_config.environment}")
    logger.info(f"Railway: {'YES' if server_config.on_railway else 'NO'}")

    install_signal_handlers(server)

    try:
        server.serve_forever()
    except OSError as e:
        logger.error(f"❌ Server failed to start: {e}")
        return 1

    logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
