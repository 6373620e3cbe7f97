"""Find the YouTube upload of a Nebula video.

Entry points, from lowest to highest level:

- lookup_video: raises RetrievalError when a page can't be fetched or parsed
- match_video: same lookup, failures logged and returned as None
- search_youtube: message handler returning {"success", "value"} /
  {"success", "errorMessage"} so callers can tell "no match" from "couldn't look"
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import httpx

from channels import resolve_target_channel
from matcher import find_youtube_match
from state import State
from utils import ParseError, RetrievalError
from youtube import get_youtube_results

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceVideo:
    title: str
    channel_name: str
    channel_id: str   # Nebula channel slug
    duration: float   # seconds

    @classmethod
    def from_request(cls, request: dict) -> SourceVideo:
        """Build from a {title, channelName, channelId, videoLength} request.

        ``channelId`` may be the channel's full profile URL; only its last
        path segment is kept. Raises ValueError on missing or invalid fields.
        """
        try:
            title = request["title"]
            channel_name = request["channelName"]
            channel_id = request["channelId"]
            video_length = request["videoLength"]
        except KeyError as e:
            raise ValueError(f"Missing request field: {e.args[0]}") from e
        if not isinstance(title, str) or not title.strip():
            raise ValueError("title must be a non-empty string")
        if not isinstance(channel_name, str) or not isinstance(channel_id, str):
            raise ValueError("channelName and channelId must be strings")
        channel_id = channel_id.rstrip("/").split("/")[-1]
        if not channel_id:
            raise ValueError("channelId is empty")
        try:
            duration = float(video_length)
        except (TypeError, ValueError) as e:
            raise ValueError(f"videoLength must be a number, got {video_length!r}") from e
        return cls(title=title.strip(), channel_name=channel_name.strip(),
                   channel_id=channel_id, duration=duration)


def lookup_video(source: SourceVideo, store, client: httpx.Client | None = None) -> str | None:
    """Search YouTube and resolve the channel mapping concurrently, then pick a match.

    Returns the YouTube video id, or None when nothing matches.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        results_future = pool.submit(get_youtube_results, source.channel_name,
                                     source.title, client)
        channel_future = pool.submit(resolve_target_channel, source.channel_id,
                                     store, client)
        results = results_future.result()
        channel_match = channel_future.result()

    log.debug("%d YouTube results, channel %s -> %s",
              len(results), source.channel_id, channel_match)
    match = find_youtube_match(results, channel_match, source.title,
                               source.channel_name, source.duration)
    if match is None:
        log.info("No YouTube match for %r (%s)", source.title[:60], source.channel_name)
        return None
    log.info("YouTube match for %r: %s (%s)", source.title[:60], match.url, match.title[:60])
    return match.video_id


def match_video(source: SourceVideo, store=None, client: httpx.Client | None = None) -> str | None:
    """Like lookup_video, but a failed lookup is logged and reported as no match."""
    if store is None:
        with State() as own_store:
            return match_video(source, own_store, client=client)
    try:
        return lookup_video(source, store, client=client)
    except (RetrievalError, ParseError) as e:
        log.warning("YouTube lookup failed for %r: %s", source.title[:60], e)
        return None


def search_youtube(request: dict, store=None, client: httpx.Client | None = None) -> dict:
    """Handle a searchYouTube request from the page script."""
    try:
        source = SourceVideo.from_request(request)
    except ValueError as e:
        log.warning("Invalid searchYouTube request: %s", e)
        return {"success": False, "errorMessage": str(e)}

    if store is None:
        with State() as own_store:
            return search_youtube(request, own_store, client=client)
    try:
        video_id = lookup_video(source, store, client=client)
    except (RetrievalError, ParseError) as e:
        log.warning("YouTube lookup failed for %r: %s", source.title[:60], e)
        return {"success": False, "errorMessage": str(e)}
    return {"success": True, "value": video_id}
