"""Conversion of raw feed entries into canonical items.

Everything here is pure: no network, no storage, and the only clock read
is the fallback publish time, which callers can pin with ``now``.
"""

import html
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from veille_reader.errors import ParseFieldError
from veille_reader.models import (
    NormalizedItem,
    RawFeedEntry,
    SourceKind,
    VideoEntry,
)
from veille_reader.thumbnails import video_thumbnail_url

UNTITLED = "Untitled"

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_entry(
    entry: RawFeedEntry, kind: SourceKind, now: datetime | None = None
) -> NormalizedItem:
    """Build a NormalizedItem from one raw entry.

    The returned link may be empty; callers must skip such items since
    they cannot be deduplicated.
    """
    item = NormalizedItem(
        title=entry.title if entry.title and entry.title.strip() else UNTITLED,
        link=(entry.link or "").strip(),
        published_at=_published_at(entry, now),
        description=entry.snippet or entry.description or entry.content or None,
    )

    if kind == SourceKind.VIDEO:
        _apply_video_fields(item, entry)
    else:
        item.thumbnail = entry.media_thumbnail
        item.word_count = _article_word_count(entry)

    return item


def _apply_video_fields(item: NormalizedItem, entry: RawFeedEntry) -> None:
    item.thumbnail = entry.media_thumbnail
    if not isinstance(entry, VideoEntry):
        return

    if entry.video_id:
        item.thumbnail = video_thumbnail_url(entry.video_id)
    if entry.statistics is not None:
        item.view_count = parse_count(entry.statistics.views, "views")
        item.like_count = parse_count(entry.statistics.likes, "likes")


def strip_markup(text: str) -> str:
    """Drop HTML tags and entities, collapsing whitespace."""
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def count_words(text: str | None) -> int | None:
    """Count whitespace-delimited words after stripping markup.

    Returns None when there is no text at all, and 0 for text that is
    present but empty once tags are removed.
    """
    if text is None:
        return None
    clean = strip_markup(text)
    if not clean:
        return 0
    return len(clean.split(" "))


def parse_count_strict(value: str | int | None, field_name: str = "count") -> int | None:
    """Parse a numeric statistic, raising ParseFieldError on bad input."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ParseFieldError(field_name, value)
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not (text.isascii() and text.isdigit()):
            raise ParseFieldError(field_name, value)
        number = int(text)
    if number < 0:
        raise ParseFieldError(field_name, value)
    return number


def parse_count(value: str | int | None, field_name: str = "count") -> int | None:
    """Parse a numeric statistic, treating malformed values as absent."""
    try:
        return parse_count_strict(value, field_name)
    except ParseFieldError:
        return None


def _article_word_count(entry: RawFeedEntry) -> int | None:
    for text in (entry.content, entry.description, entry.snippet):
        if text is not None:
            return count_words(text)
    return None


def _published_at(entry: RawFeedEntry, now: datetime | None) -> datetime:
    if entry.iso_date is not None:
        return entry.iso_date
    if entry.pub_date:
        loose = _parse_loose_date(entry.pub_date)
        if loose is not None:
            return loose
    return now or datetime.now(timezone.utc)


def _parse_loose_date(value: str) -> datetime | None:
    """Parse an RFC 822 or ISO 8601 date string, returning None on failure."""
    value = value.strip()
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
