"""Configuration utilities for the frontpage feed core."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_DATA_DIR = Path(os.getenv("FRONTPAGE_DATA_DIR", "data"))
DEFAULT_STATE_FILE = DEFAULT_DATA_DIR / "read_state.json"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

# Feeds shown to callers without an identity.
DEFAULT_GUEST_FEEDS: Tuple[str, ...] = (
    "https://hnrss.org/frontpage",
    "https://feeds.arstechnica.com/arstechnica/index",
    "https://www.theverge.com/rss/index.xml",
)


@dataclass(frozen=True)
class Config:
    """Runtime configuration handed to the fetcher and the batch flows."""

    fetch_timeout: float = 5.0
    og_image_timeout: float = 3.0
    og_image_lookup: bool = True
    og_image_workers: int = 4
    max_workers: int = 8
    search_limit: int = 50
    user_agent: str = DEFAULT_USER_AGENT
    guest_feeds: Tuple[str, ...] = DEFAULT_GUEST_FEEDS
    state_file: Path = DEFAULT_STATE_FILE


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number if set") from None


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer if set") from None
    if parsed <= 0:
        raise ValueError(f"{name} must be positive")
    return parsed


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _split_csv(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_config() -> Config:
    """Load configuration from environment variables and defaults."""

    guest_feeds = _split_csv(os.getenv("FRONTPAGE_GUEST_FEEDS")) or DEFAULT_GUEST_FEEDS
    return Config(
        fetch_timeout=_env_float("FRONTPAGE_FETCH_TIMEOUT", 5.0),
        og_image_timeout=_env_float("FRONTPAGE_OG_IMAGE_TIMEOUT", 3.0),
        og_image_lookup=_env_bool("FRONTPAGE_OG_IMAGE_LOOKUP", True),
        og_image_workers=_env_int("FRONTPAGE_OG_IMAGE_WORKERS", 4),
        max_workers=_env_int("FRONTPAGE_MAX_WORKERS", 8),
        search_limit=_env_int("FRONTPAGE_SEARCH_LIMIT", 50),
        user_agent=os.getenv("FRONTPAGE_USER_AGENT") or DEFAULT_USER_AGENT,
        guest_feeds=guest_feeds,
        state_file=Path(os.getenv("FRONTPAGE_STATE_FILE", str(DEFAULT_STATE_FILE))),
    )
