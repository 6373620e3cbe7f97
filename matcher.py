"""Pick the YouTube upload of a Nebula video out of YouTube search results.

There is no shared identifier between the two platforms, so the match is made
from channel, title and length, narrowing the candidate list in stages:

1. channel: mapped YouTube channel id if known, else same channel name
2. episode number: drop results numbered differently from the source
3. exact title: a single exact (or suffix-stripped) title match wins outright
4. word overlap: keep results sharing the most significant title words
5. duration: keep results closest in length, unknown lengths ranked last;
   YouTube uploads may run up to 3 minutes longer because Nebula releases
   skip the sponsor segment

Stages 4 and 5 are single left-to-right passes with a running best, so ties
go to whichever result YouTube ranked first.
"""

from __future__ import annotations

import logging
import math
import re

from utils import normalize
from youtube import Candidate

log = logging.getLogger(__name__)

# "Episode 3", "Ep. 12", "part 2", "S2Ep4", ...
EPISODE_RE = re.compile(r"(?:Episode|Ep|Part)[. ]*?(\d+)", re.IGNORECASE)

# Separators used when a title is re-uploaded with a series or channel suffix,
# e.g. "Cool Video" on Nebula vs "Cool Video | Channel Name" on YouTube.
TITLE_SPLIT_RE = re.compile(r"[|\-–—]")

COMMON_WORDS = frozenset({"and", "for", "but", "the"})

# How much longer (seconds) the YouTube upload may be than the Nebula video
MAX_EXTRA_SECONDS = 180


def _episode_number(title: str) -> str | None:
    # compared as written, so "03" and "3" are different episodes
    m = EPISODE_RE.search(title)
    return m.group(1) if m else None


def filter_by_channel(results: list[Candidate], channel_match: str | None,
                      channel_name: str) -> list[Candidate]:
    if channel_match:
        return [r for r in results if r.channel_id == channel_match]
    wanted = normalize(channel_name)
    return [r for r in results if normalize(r.channel_name) == wanted]


def filter_by_episode(results: list[Candidate], title: str) -> list[Candidate]:
    """Drop results whose episode/part number differs from the source title's.

    Results with no number at all are kept.
    """
    episode = _episode_number(title)
    if episode is None:
        return results
    kept = []
    for r in results:
        result_episode = _episode_number(r.title)
        if result_episode is None or result_episode == episode:
            kept.append(r)
    return kept


def exact_title_matches(results: list[Candidate], title: str) -> list[Candidate]:
    """Results whose title equals the source title, or one segment of it."""
    clean_title = normalize(title)
    segments = {normalize(part) for part in TITLE_SPLIT_RE.split(title)}
    segments.discard("")
    matches = []
    for r in results:
        clean = normalize(r.title)
        if clean == clean_title or clean in segments:
            matches.append(r)
    return matches


def significant_words(title: str) -> set[str]:
    return {w for w in normalize(title).split(" ")
            if len(w) > 2 and w not in COMMON_WORDS}


def filter_by_overlap(results: list[Candidate], title: str) -> list[Candidate]:
    """Score word overlap with the source title and keep the running leaders.

    Sets ``overlaps`` on every result. A result is dropped if it shares no
    words or fewer words than the best result seen before it; earlier results
    are never revisited.
    """
    words = significant_words(title)
    kept = []
    highest = 0
    for r in results:
        r.overlaps = [w for w in normalize(r.title).split(" ") if w in words]
        count = len(r.overlaps)
        if not count or count < highest:
            continue
        highest = count
        kept.append(r)
    return kept


def filter_by_duration(results: list[Candidate], video_length: float) -> list[Candidate]:
    """Keep the running closest-length results, dropping any >3 min longer than the source.

    Results with unknown length pass through without affecting the running
    minimum, but are ranked after every result whose length was checked.
    """
    kept = []
    unknown = []
    lowest = math.inf
    for r in results:
        if r.duration is None:
            unknown.append(r)
            continue
        difference = video_length - r.duration
        if abs(difference) > lowest or difference < -MAX_EXTRA_SECONDS:
            continue
        lowest = abs(difference)
        kept.append(r)
    return kept + unknown


def find_youtube_match(results: list[Candidate], channel_match: str | None, title: str,
                       channel_name: str, video_length: float) -> Candidate | None:
    """Return the YouTube result that is the same video as the Nebula source, or None."""
    results = filter_by_channel(results, channel_match, channel_name)
    results = filter_by_episode(results, title)
    if not results:
        log.debug("No results left after channel/episode filters")
        return None

    exact = exact_title_matches(results, title)
    if len(exact) == 1:
        log.debug("Exact title match: %s", exact[0].video_id)
        return exact[0]

    results = filter_by_overlap(results, title)
    if not results:
        log.debug("No title word overlap with %r", title[:60])
        return None

    results = filter_by_duration(results, video_length)
    if not results:
        log.debug("All overlapping results too far off in length (source %.0fs)", video_length)
        return None
    return results[0]
