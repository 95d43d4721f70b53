"""
Voice server entry point.

Sets up logging, loads configuration, selects a TTS backend and serves the
HTTP API. Exits with status 1 if no backend is available.
"""

import argparse
import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

# Load .env file FIRST (before any config imports)
load_dotenv()

from voiceserver.config import load_config
from voiceserver.core.backends import BackendRegistry
from voiceserver.core.errors import BackendUnavailable
from voiceserver.core.service import VoiceNotifier
from voiceserver.version import __version__

logger = logging.getLogger("voiceserver")


def setup_logging(log_dir: Optional[str] = None, level_name: Optional[str] = None):
    """Configure console and daily rotating file logging for voiceserver and uvicorn."""
    log_dir = Path(log_dir or os.getenv("LOG_DIR", "data/logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_handler = TimedRotatingFileHandler(
        str(log_dir / "voiceserver.log"),
        when="midnight",
        interval=1,
        backupCount=7,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    level_name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    for name in ("voiceserver", "uvicorn", "uvicorn.error", "uvicorn.access"):
        log = logging.getLogger(name)
        log.handlers.clear()
        log.setLevel(log_level)
        log.addHandler(console_handler)
        log.addHandler(file_handler)
        log.propagate = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voiceserver", description="Speak notifications through a TTS backend")
    parser.add_argument("--config", help="Path to the JSON config file")
    parser.add_argument("--host", help="Interface to bind (overrides config)")
    parser.add_argument("--port", type=int, help="Port to listen on (overrides config)")
    parser.add_argument("--check-backends", action="store_true",
                        help="Print backend availability and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def check_backends(registry: BackendRegistry) -> int:
    for name, available in registry.check_backend_availability().items():
        print(f"{name:<12} {'available' if available else 'unavailable'}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    registry = BackendRegistry()
    if args.check_backends:
        return check_backends(registry)

    logger.info(f"Voice server {__version__} starting...")
    config = load_config(args.config)
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port

    try:
        notifier = VoiceNotifier.from_config(config, registry)
    except BackendUnavailable as e:
        logger.critical(f"{e.log_message}. Install or configure a backend and restart.")
        return 1

    # Imported here so --check-backends does not need the web stack
    from voiceserver.web.app import create_app, run_server

    app = create_app(notifier)
    logger.info(f"Listening on http://{config.server.host}:{config.server.port}")
    run_server(app, host=config.server.host, port=config.server.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
