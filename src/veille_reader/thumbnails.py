"""Best-effort preview image resolution for feed items."""

import re

from veille_reader.models import SourceKind

THUMBNAIL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/mqdefault.jpg"

# Link shapes that carry an 11 character YouTube video id.
_VIDEO_ID_PATTERNS = [
    re.compile(
        r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"
    ),
    re.compile(r"youtube\.com/v/([a-zA-Z0-9_-]{11})"),
]
_IMG_SRC_RE = re.compile(r'<img[^>]+src="([^"]+)"', re.IGNORECASE)


def video_thumbnail_url(video_id: str) -> str:
    return THUMBNAIL_TEMPLATE.format(video_id=video_id)


def extract_video_id(text: str | None) -> str | None:
    """Find the first recognizable YouTube video id in a URL or markup."""
    if not text:
        return None
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def extract_image_src(content: str | None) -> str | None:
    """Return the src of the first <img> tag in content, verbatim."""
    if not content:
        return None
    match = _IMG_SRC_RE.search(content)
    return match.group(1) if match else None


def resolve_thumbnail(
    link: str | None,
    content: str | None,
    kind: SourceKind,
    explicit: str | None = None,
) -> str | None:
    """Pick a thumbnail URL, stopping at the first match.

    Order: an explicit thumbnail, then (video sources only) an id in the
    link, then an id embedded in the content, then the first image in the
    content. Returns None when nothing matches.
    """
    if explicit:
        return explicit

    if kind == SourceKind.VIDEO:
        video_id = extract_video_id(link)
        if video_id:
            return video_thumbnail_url(video_id)

    video_id = extract_video_id(content)
    if video_id:
        return video_thumbnail_url(video_id)

    return extract_image_src(content)
