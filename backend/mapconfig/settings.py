from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def config_path() -> Path:
    # Keep the default next to the repo so the config service and tests agree.
    return Path(
        os.getenv("MAPSELECT_CONFIG_PATH") or (_repo_root() / "config" / "map.yaml")
    )


def log_level() -> str:
    return (os.getenv("MAPSELECT_LOG_LEVEL") or "INFO").strip().upper()


def cors_origins() -> list[str]:
    raw = os.getenv("MAPSELECT_CORS_ORIGINS") or "http://localhost:3000"
    return [o.strip() for o in raw.split(",") if o.strip()]


def configure_logging(level: str | None = None) -> None:
    """
    Install a single stderr sink.

    loguru ships with a DEBUG sink on import; replacing it keeps the engine's
    per-geometry debug chatter out of the host's console unless asked for.
    """
    logger.remove()
    logger.add(sys.stderr, level=level or log_level())
