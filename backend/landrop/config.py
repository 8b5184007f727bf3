"""Application configuration."""

import logging
import os
from pathlib import Path

HOST = os.environ.get("LANDROP_HOST", "0.0.0.0").strip()
PORT = int(os.environ.get("LANDROP_PORT", "8080"))

UPLOAD_DIR = Path(os.environ.get("LANDROP_UPLOAD_DIR", str(Path.cwd() / "uploads")))

# 4 GiB per file field
MAX_UPLOAD_SIZE = int(os.environ.get("LANDROP_MAX_UPLOAD_SIZE", str(4 * 1024**3)))

# Per-subscriber event backlog before the oldest events are dropped
EVENT_QUEUE_SIZE = 100

LOG_LEVEL = os.environ.get("LANDROP_LOG_LEVEL", "INFO").strip().upper()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Install a single console handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
