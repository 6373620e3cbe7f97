#!/usr/bin/env python3
"""Look up the YouTube upload of a Nebula video.

Usage:
    python run.py --title "Cool Video" --channel-name "Some Creator" \\
                  --channel-id some-creator --length 1234.5
    python run.py ... --length 20:34            # H:MM:SS / MM:SS also accepted
    python run.py --refresh-channels            # just re-scrape the channel mapping
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

# Load .env before importing config
load_dotenv()

from channels import refresh_channel_mappings
from search import search_youtube
from state import State
from utils import ParseError, RetrievalError, get_http_client, parse_duration

log = logging.getLogger(__name__)


def _parse_length(value: str) -> float:
    """argparse type: seconds as a number, or a H:MM:SS timestamp."""
    try:
        return float(value)
    except ValueError:
        pass
    try:
        return float(parse_duration(value))
    except ParseError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Match a Nebula video to its YouTube upload")
    parser.add_argument("--title", type=str, help="Nebula video title")
    parser.add_argument("--channel-name", type=str, help="Nebula channel display name")
    parser.add_argument("--channel-id", type=str,
                        help="Nebula channel slug or channel URL")
    parser.add_argument("--length", type=_parse_length,
                        help="Video length in seconds, or H:MM:SS")
    parser.add_argument("--refresh-channels", action="store_true",
                        help="Re-scrape the Nebula creators directory before matching")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    lookup_args = (args.title, args.channel_name, args.channel_id, args.length)
    wants_lookup = any(a is not None for a in lookup_args)
    if (wants_lookup or not args.refresh_channels) and any(a is None for a in lookup_args):
        parser.error("--title, --channel-name, --channel-id and --length are required")

    with State() as state, get_http_client() as client:
        if args.refresh_channels:
            try:
                mappings = refresh_channel_mappings(state, client=client)
            except RetrievalError as e:
                log.error("Channel refresh failed: %s", e)
                return 1
            if not wants_lookup:
                print(json.dumps({"success": True, "value": len(mappings)}))
                return 0

        response = search_youtube({
            "title": args.title,
            "channelName": args.channel_name,
            "channelId": args.channel_id,
            "videoLength": args.length,
        }, store=state, client=client)

    print(json.dumps(response))
    return 0 if response["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
