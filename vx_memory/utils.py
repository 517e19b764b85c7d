"""VX Memory Utilities — Shared helpers and constants."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

VERSION = "0.3.0"
CLIENT_TAG = f"vx-mcp/{VERSION}"

DEFAULT_API_URL = "https://api.vessel.nyc"
DEFAULT_CLIENT_NAME = "mcp-server"
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_TIMEOUT_MS = 30000

VX_DIR = Path.home() / ".vx"
CONFIG_DIR = Path.home() / ".config" / "vx"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Create a consistently-formatted logger.

    Output goes to stderr; stdout is reserved for the MCP stdio transport.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            "[%(asctime)s] %(name)s %(levelname)s — %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
