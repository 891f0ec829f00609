"""
Run script for starting the Twilio Realtime Voice Relay server.

This script validates the configuration and starts the FastAPI server with
WebSocket settings suited to real-time audio streaming between Twilio and OpenAI.

Usage:
    python run.py [--port PORT] [--host HOST] [--outbound]
"""

import argparse
import sys

import uvicorn

from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import ConfigurationError, get_settings


def parse_args(argv=None):
    """Parse command line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Start the Twilio Realtime Voice Relay server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help="Port to run the server on (default: 5050 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--outbound",
        action="store_true",
        help="Require Twilio credentials and phone numbers for outbound calls",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point: exit with a diagnostic if required configuration is missing."""
    args = parse_args(argv)
    logger = configure_logging(args.log_level)

    try:
        get_settings().validate_required(require_twilio=args.outbound)
    except ConfigurationError as e:
        logger.error(f"{e}. Please set them in the environment or the .env file.")
        sys.exit(1)

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    uvicorn.run(
        "voice_relay.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        websocket_ping_interval=5,
        websocket_ping_timeout=20,
        access_log=False,
    )


if __name__ == "__main__":
    main()
