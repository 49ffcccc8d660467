from __future__ import annotations

import os
from typing import Optional


def env_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    try:
        return int(env_str(name, str(default)))
    except Exception:
        return default


def worker_count() -> int:
    """
    Number of threads used by each parallel call when none is passed explicitly.
    Read at the start of every call; defaults to 20 when EMBSPACE_THREADS is not set or invalid.
    """
    return env_int("EMBSPACE_THREADS", 20)


def default_top_k() -> int:
    return env_int("EMBSPACE_TOP_K", 10)


def min_frequency() -> Optional[int]:
    raw = os.getenv("EMBSPACE_MIN_FREQ", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except Exception:
        return None
