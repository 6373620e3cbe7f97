from __future__ import annotations

import re

import httpx

import config


class ParseError(ValueError):
    """A timestamp or other scraped value could not be parsed."""


class RetrievalError(Exception):
    """A page could not be fetched, or did not have the structure we scrape."""


def get_http_client(retries: int | None = None, timeout: float | None = None) -> httpx.Client:
    """Create an httpx client with retry transport and standard headers."""
    transport = httpx.HTTPTransport(retries=config.HTTP_RETRIES if retries is None else retries)
    return httpx.Client(
        transport=transport,
        timeout=config.HTTP_TIMEOUT if timeout is None else timeout,
        follow_redirects=True,
        headers={"User-Agent": config.USER_AGENT, "Accept-Language": "en-US,en;q=0.9"},
    )


def fetch_text(url: str, client: httpx.Client | None = None, params: dict | None = None) -> str:
    """GET a page and return its body. Raises RetrievalError on any failure.

    Uses ``client`` when given, otherwise a short-lived client from
    get_http_client().
    """
    try:
        if client is None:
            with get_http_client() as own_client:
                resp = own_client.get(url, params=params)
        else:
            resp = client.get(url, params=params)
    except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
        raise RetrievalError(f"HTTP error for {url}: {e}") from e
    if resp.status_code != 200:
        raise RetrievalError(f"HTTP {resp.status_code} for {url}")
    return resp.text


# Apostrophes are dropped so "Don't" and "Dont" compare equal; everything
# else that isn't a letter or digit separates words.
_APOSTROPHE_RE = re.compile(r"['’]")
_SEPARATOR_RE = re.compile(r"[\W_]+")


def normalize(text: str) -> str:
    """Canonical comparison form: lowercase, punctuation and whitespace collapsed to single spaces."""
    text = _APOSTROPHE_RE.sub("", text.lower())
    return _SEPARATOR_RE.sub(" ", text).strip()


_DURATION_RE = re.compile(r"\d+(?::\d+){0,2}", re.ASCII)


def parse_duration(text: str) -> int:
    """Parse a timestamp like '45', '3:07' or '1:02:03' into seconds."""
    text = text.strip()
    if not _DURATION_RE.fullmatch(text):
        raise ParseError(f"Malformed duration: {text!r}")
    seconds = 0
    for part in text.split(":"):
        seconds = seconds * 60 + int(part)
    return seconds
