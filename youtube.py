"""YouTube search scraping: turn a results page into match candidates.

YouTube's results page embeds the whole result list as a JSON blob assigned
to ``ytInitialData`` in an inline script, so no API key is needed.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field

import httpx

import config
from utils import ParseError, RetrievalError, fetch_text, parse_duration

log = logging.getLogger(__name__)

_INITIAL_DATA_RE = re.compile(r"var ytInitialData = (\{.*?\});</script>", re.DOTALL)


@dataclass
class Candidate:
    video_id: str
    title: str
    channel_name: str
    channel_id: str
    duration: int | None  # seconds, None when the result shows no parseable length
    # Title words shared with the source title; filled in by matcher.find_youtube_match
    overlaps: list[str] = field(default_factory=list)

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"


def _runs_text(obj: dict | None) -> str:
    if not obj:
        return ""
    if "simpleText" in obj:
        return obj["simpleText"]
    return "".join(run.get("text", "") for run in obj.get("runs", []))


def _to_candidate(renderer: dict) -> Candidate | None:
    video_id = renderer.get("videoId")
    title = _runs_text(renderer.get("title"))
    runs = (renderer.get("longBylineText") or renderer.get("ownerText") or {}).get("runs") or []
    if not video_id or not title or not runs:
        return None
    byline = runs[0]
    channel_id = (byline.get("navigationEndpoint", {})
                  .get("browseEndpoint", {})
                  .get("browseId", ""))

    duration = None
    length_text = _runs_text(renderer.get("lengthText"))
    if length_text:
        try:
            duration = parse_duration(length_text)
        except ParseError as e:
            log.debug("Unknown duration for %s: %s", video_id, e)

    return Candidate(
        video_id=video_id,
        title=title,
        channel_name=byline.get("text", ""),
        channel_id=channel_id,
        duration=duration,
    )


def parse_search_results(html: str) -> list[Candidate]:
    """Extract video results from a YouTube search page.

    Raises RetrievalError if the embedded data is missing, can't be decoded,
    or doesn't contain a result list. Non-video entries (channels, shelves,
    ads) are dropped.
    """
    m = _INITIAL_DATA_RE.search(html)
    if not m:
        raise RetrievalError("ytInitialData not found in search page")
    try:
        data = json.loads(m.group(1))
    except json.JSONDecodeError as e:
        raise RetrievalError(f"ytInitialData is not valid JSON: {e}") from e

    try:
        sections = (data["contents"]["twoColumnSearchResultsRenderer"]
                    ["primaryContents"]["sectionListRenderer"]["contents"])
    except (KeyError, TypeError) as e:
        raise RetrievalError(f"Unexpected search page structure (missing {e})") from e

    try:
        return _collect_candidates(sections)
    except (AttributeError, TypeError) as e:
        raise RetrievalError(f"Unexpected search page structure ({e})") from e


def _collect_candidates(sections: list) -> list[Candidate]:
    results: list[Candidate] = []
    seen_ids: set[str] = set()
    for section in sections:
        if not isinstance(section, dict):
            continue
        items = (section.get("itemSectionRenderer") or {}).get("contents") or []
        for item in items:
            if not isinstance(item, dict):
                continue
            renderer = item.get("videoRenderer")
            if not renderer:
                continue
            candidate = _to_candidate(renderer)
            if candidate is None:
                log.debug("Skipping incomplete video result: %s", renderer.get("videoId"))
                continue
            if candidate.video_id in seen_ids:
                continue
            seen_ids.add(candidate.video_id)
            results.append(candidate)
    return results


def get_youtube_results(channel_name: str, title: str,
                        client: httpx.Client | None = None) -> list[Candidate]:
    """Search YouTube for '<channel name> <title>' and return the video results in page order."""
    html = fetch_text(
        config.YOUTUBE_SEARCH_URL,
        client=client,
        params={"search_query": f"{channel_name} {title}"},
    )
    results = parse_search_results(html)
    log.debug("YouTube search %r: %d video results", f"{channel_name} {title}"[:80], len(results))
    return results
