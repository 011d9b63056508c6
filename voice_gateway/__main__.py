"""Command-line entry point: ``python -m voice_gateway``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from voice_gateway.core.interfaces import GatewayError
from voice_gateway.main import serve, setup_logging
from voice_gateway.services.config_loader import load_config

logger = logging.getLogger("voice_gateway")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="voice-gateway",
        description="Turn voice and text commands into home automation actions",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="YAML config file (environment variables are used otherwise)",
    )
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Load configuration and run the gateway.

    Returns:
        Process exit code
    """
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (GatewayError, ValidationError) as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        return 2

    if args.log_level:
        config.log_level = args.log_level
    setup_logging(config.log_level, config.log_format)

    try:
        asyncio.run(serve(config))
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Interrupted")
    except GatewayError as e:
        logger.error(f"Fatal: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
