from __future__ import annotations

import logging
import os

ROOT_LOGGER = "embedding_space"

_FORMAT = "%(levelname)s | %(name)s | %(message)s"


def configured_level() -> int:
    """Level named by EMBSPACE_LOG_LEVEL (e.g. ``DEBUG``); unknown names fall back to INFO."""
    name = os.getenv("EMBSPACE_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``embedding_space`` hierarchy; sets up the root handler on first use."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=configured_level(), format=_FORMAT)
    return logger
