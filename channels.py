"""Nebula -> YouTube channel mapping, scraped from the Nebula creators directory.

The directory lists every Nebula creator with a link to their Nebula page and
the id of their YouTube channel. Scraping it is slow, so the full mapping is
cached in the state store and only re-scraped once the cached copy is older
than the configured window (24 hours by default).
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import NamedTuple
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup, Tag

import config
from utils import RetrievalError, fetch_text

log = logging.getLogger(__name__)

CACHE_NAME = "nebula_channel_mapping"

_TALENT_HOST = "talent.nebula.tv"


class ChannelMapping(NamedTuple):
    nebula_channel: str   # channel slug, the last path segment of the Nebula channel URL
    youtube_channel: str  # YouTube channel id (UC...)


def _nebula_slug(block: Tag) -> str | None:
    for link in block.find_all("a", href=True):
        parsed = urlparse(link["href"])
        if parsed.netloc != _TALENT_HOST:
            continue
        slug = parsed.path.strip("/")
        if slug and "/" not in slug:
            return slug
    return None


def _youtube_channel(block: Tag) -> str | None:
    if block.has_attr("data-video"):
        value = block["data-video"]
    else:
        el = block.find(attrs={"data-video": True})
        if el is None:
            return None
        value = el["data-video"]
    return value.strip() or None


def extract_channel_mappings(html: str) -> list[ChannelMapping]:
    """Pull (nebula slug, youtube channel id) pairs out of the creators page.

    Creator blocks missing either half are skipped.
    """
    soup = BeautifulSoup(html, "lxml")
    mappings = []
    for block in soup.select("div.grid-item.youtube-creator"):
        nebula_channel = _nebula_slug(block)
        youtube_channel = _youtube_channel(block)
        if not nebula_channel or not youtube_channel:
            log.debug("Skipping creator block without slug/channel: %s",
                      block.get_text(" ", strip=True)[:60])
            continue
        mappings.append(ChannelMapping(nebula_channel, youtube_channel))
    return mappings


def refresh_channel_mappings(store, client: httpx.Client | None = None,
                             now: datetime | None = None) -> list[ChannelMapping]:
    """Re-scrape the creators directory and overwrite the cached mapping.

    The cache is replaced even when nothing was extracted. Raises
    RetrievalError if the directory can't be fetched or the cache can't be
    written.
    """
    html = fetch_text(config.NEBULA_CREATORS_URL, client=client)
    mappings = extract_channel_mappings(html)
    if not mappings:
        log.warning("Creators directory yielded no channel mappings (%s)",
                    config.NEBULA_CREATORS_URL)
    try:
        store.set_cache(
            CACHE_NAME,
            [m._asdict() for m in mappings],
            updated_at=now or datetime.now(timezone.utc),
        )
    except sqlite3.Error as e:
        raise RetrievalError(f"Could not store channel mapping: {e}") from e
    log.info("Channel mapping refreshed: %d creators", len(mappings))
    return mappings


def _load_cached(store, now: datetime) -> list[ChannelMapping] | None:
    """Return the cached mapping if it is still fresh, else None.

    Raises RetrievalError if the store can't be read or holds something other
    than a timestamped list.
    """
    try:
        cached = store.get_cache(CACHE_NAME)
    except (sqlite3.Error, ValueError) as e:
        raise RetrievalError(f"Could not read channel mapping cache: {e}") from e
    if cached is None:
        return None
    try:
        entries, last_updated = cached
        age = now - last_updated
        if age >= config.get_channel_cache_ttl():
            log.debug("Channel mapping cache is stale (%s old)", age)
            return None
        mappings = []
        for entry in entries:
            try:
                mappings.append(ChannelMapping(entry["nebula_channel"], entry["youtube_channel"]))
            except (KeyError, TypeError):
                log.debug("Ignoring malformed cached mapping entry: %r", entry)
    except (TypeError, ValueError) as e:
        raise RetrievalError(f"Malformed channel mapping cache: {e}") from e
    return mappings


def resolve_target_channel(channel_id: str, store, client: httpx.Client | None = None,
                           now: datetime | None = None) -> str | None:
    """Map a Nebula channel slug to its YouTube channel id, or None if unmapped.

    Uses the cached mapping while it's fresh; otherwise refreshes it first.
    """
    now = now or datetime.now(timezone.utc)
    mappings = _load_cached(store, now)
    if mappings is None:
        mappings = refresh_channel_mappings(store, client=client, now=now)

    for m in mappings:
        if m.nebula_channel == channel_id:
            return m.youtube_channel
    return None
