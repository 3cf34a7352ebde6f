"""RSS/Atom feed fetching and parsing using requests and feedparser."""

import calendar
import logging
from datetime import datetime, timezone
from time import struct_time
from urllib.parse import urlparse

import feedparser
import requests

from veille_reader.errors import FetchError
from veille_reader.models import (
    ArticleEntry,
    RawFeedEntry,
    SourceKind,
    VideoEntry,
    VideoStatistics,
)
from veille_reader.normalizer import strip_markup

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 10  # seconds
USER_AGENT = "Veille-Feed-Reader/1.0"


def fetch_feed(url: str, kind: SourceKind) -> list[RawFeedEntry]:
    """Fetch a feed document and parse it into raw entries.

    Args:
        url: The feed URL to fetch.
        kind: The owning source's kind, which selects the entry variant.

    Returns:
        Entries in document order. An empty but valid feed gives an empty list.

    Raises:
        FetchError: If the URL is invalid, unreachable, times out, or does
            not hold a valid RSS or Atom document.
    """
    _validate_url(url)

    try:
        response = requests.get(
            url,
            timeout=FETCH_TIMEOUT,
            headers={"User-Agent": USER_AGENT},
        )
    except requests.Timeout as e:
        raise FetchError(url, f"Timed out after {FETCH_TIMEOUT}s") from e
    except requests.RequestException as e:
        raise FetchError(url, f"Could not reach URL: {e}") from e

    if response.status_code >= 400:
        raise FetchError(url, f"Could not reach URL: HTTP {response.status_code}")

    return parse_feed_document(response.content, kind, url=url)


def parse_feed_document(
    content: bytes | str, kind: SourceKind, url: str = ""
) -> list[RawFeedEntry]:
    """Parse an already-fetched feed document into raw entries."""
    parsed = feedparser.parse(content)

    if not parsed.entries and not parsed.get("version"):
        if parsed.bozo:
            raise FetchError(
                url, f"Malformed feed document: {parsed.get('bozo_exception')}"
            )
        raise FetchError(url, "URL does not point to a valid RSS or Atom feed")

    if parsed.bozo:
        logger.debug(
            "Feed %s has formatting issues: %s", url, parsed.get("bozo_exception")
        )

    if kind == SourceKind.VIDEO:
        return [_to_video_entry(entry) for entry in parsed.entries]
    return [_to_article_entry(entry) for entry in parsed.entries]


def _validate_url(url: str) -> None:
    """Validate that the URL has a valid format."""
    try:
        result = urlparse(url)
    except ValueError:
        raise FetchError(url, "Invalid URL format")
    if not result.scheme or not result.netloc:
        raise FetchError(url, "Invalid URL format")
    if result.scheme not in ("http", "https"):
        raise FetchError(url, "Invalid URL format: only http and https are supported")


def _common_fields(entry: dict) -> dict:
    content = _first_content(entry)
    description = entry.get("summary") or entry.get("description")
    snippet_source = content or description
    return {
        "title": entry.get("title"),
        "link": entry.get("link"),
        "iso_date": _parse_date(entry),
        "pub_date": entry.get("published") or entry.get("updated"),
        "snippet": strip_markup(snippet_source) if snippet_source else None,
        "description": description,
        "content": content,
        "media_thumbnail": _first_thumbnail(entry),
    }


def _to_article_entry(entry: dict) -> ArticleEntry:
    return ArticleEntry(**_common_fields(entry))


def _to_video_entry(entry: dict) -> VideoEntry:
    return VideoEntry(
        **_common_fields(entry),
        video_id=entry.get("yt_videoid"),
        statistics=_statistics(entry),
    )


def _first_content(entry: dict) -> str | None:
    """Return the first content block's value, if any."""
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return None


def _first_thumbnail(entry: dict) -> str | None:
    for thumb in entry.get("media_thumbnail") or []:
        if isinstance(thumb, dict) and thumb.get("url"):
            return thumb["url"]
    return None


def _statistics(entry: dict) -> VideoStatistics | None:
    """Pull views and like count out of the media:community block."""
    stats = entry.get("media_statistics")
    rating = entry.get("media_starrating")
    views = stats.get("views") if isinstance(stats, dict) else None
    likes = rating.get("count") if isinstance(rating, dict) else None
    if views is None and likes is None:
        return None
    return VideoStatistics(views=views, likes=likes)


def _parse_date(entry: dict) -> datetime | None:
    """Parse publication date from a feedparser entry."""
    for field in ("published_parsed", "updated_parsed"):
        time_struct = entry.get(field)
        if isinstance(time_struct, struct_time):
            try:
                return datetime.fromtimestamp(
                    calendar.timegm(time_struct), tz=timezone.utc
                )
            except (ValueError, OverflowError):
                continue
    return None
