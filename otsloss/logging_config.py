"""Logging configuration for the OTS loss tool."""

import logging
import os
import sys


def configure_logging() -> None:
    """Send run diagnostics to stderr at the OTSLOSS_LOG_LEVEL level.

    Unknown level names fall back to INFO. Per-request and per-worker traces
    only appear at DEBUG, e.g. ``OTSLOSS_LOG_LEVEL=debug otsloss -i 10.0.0.1``.
    """
    log_level_str = os.environ.get("OTSLOSS_LOG_LEVEL", "INFO").upper()

    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    log_level = log_level_map.get(log_level_str, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,  # Override any existing configuration
    )

    # urllib3 connection pool messages are only useful when debugging
    if log_level > logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured: level=%s", logging.getLevelName(log_level))
