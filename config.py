"""Configuration: endpoints, HTTP settings, cache window, paths."""

from __future__ import annotations

import logging
import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

log = logging.getLogger(__name__)

# Load .env from the project root (won't override existing env vars)
load_dotenv(Path(__file__).parent / ".env")

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ROOT = Path(os.environ.get("MATCHER_ROOT", str(Path(__file__).parent)))
DATA_DIR = Path(os.environ.get("MATCHER_DATA_DIR", str(ROOT / "data")))
STATE_DB = DATA_DIR / "state.db"

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
YOUTUBE_SEARCH_URL = os.environ.get("YOUTUBE_SEARCH_URL", "https://www.youtube.com/results")
NEBULA_CREATORS_URL = os.environ.get("NEBULA_CREATORS_URL", "https://talent.nebula.tv/creators/")

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "20.0"))
HTTP_RETRIES = int(os.environ.get("HTTP_RETRIES", "2"))

# ---------------------------------------------------------------------------
# Channel mapping cache: read from environment each call so tests / late-set vars work
# ---------------------------------------------------------------------------
DEFAULT_CHANNEL_CACHE_TTL_HOURS = 24.0


def get_channel_cache_ttl() -> timedelta:
    """How long a scraped Nebula -> YouTube channel mapping stays fresh."""
    raw = os.environ.get("CHANNEL_CACHE_TTL_HOURS", "")
    if not raw:
        return timedelta(hours=DEFAULT_CHANNEL_CACHE_TTL_HOURS)
    try:
        hours = float(raw)
    except ValueError:
        log.warning("Ignoring invalid CHANNEL_CACHE_TTL_HOURS=%r, using %sh",
                    raw, DEFAULT_CHANNEL_CACHE_TTL_HOURS)
        return timedelta(hours=DEFAULT_CHANNEL_CACHE_TTL_HOURS)
    if hours < 0:
        log.warning("Ignoring negative CHANNEL_CACHE_TTL_HOURS=%r, using %sh",
                    raw, DEFAULT_CHANNEL_CACHE_TTL_HOURS)
        return timedelta(hours=DEFAULT_CHANNEL_CACHE_TTL_HOURS)
    return timedelta(hours=hours)
