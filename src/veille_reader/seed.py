"""Default sources for a fresh reading list."""

import logging

from veille_reader.database import Database
from veille_reader.models import Source, SourceKind

logger = logging.getLogger(__name__)

_YOUTUBE_ICON = "https://www.youtube.com/s/desktop/f56e2c5d/img/favicon_144x144.png"

DEFAULT_SOURCES = [
    Source(
        name="TLDR",
        url="https://tldr.tech/api/rss/tech",
        kind=SourceKind.ARTICLE,
        icon="https://tldr.tech/favicon.ico",
    ),
    Source(
        name="JavaScript Weekly",
        url="https://javascriptweekly.com/rss/",
        kind=SourceKind.ARTICLE,
        icon="https://javascriptweekly.com/favicon.png",
    ),
    Source(
        name="Hacker News",
        url="https://hnrss.org/frontpage?points=200",
        kind=SourceKind.ARTICLE,
        icon="https://news.ycombinator.com/favicon.ico",
    ),
    Source(
        name="The Pragmatic Engineer",
        url="https://newsletter.pragmaticengineer.com/feed",
        kind=SourceKind.ARTICLE,
    ),
    Source(
        name="Changelog",
        url="https://changelog.com/feed",
        kind=SourceKind.ARTICLE,
        icon="https://changelog.com/favicon.ico",
    ),
    Source(
        name="Matt Pocock",
        url="https://www.youtube.com/feeds/videos.xml?channel_id=UCswG6FSbgZjbWtdf_hMLaow",
        kind=SourceKind.VIDEO,
        icon=_YOUTUBE_ICON,
    ),
    Source(
        name="Syntax",
        url="https://www.youtube.com/feeds/videos.xml?channel_id=UCyU5wkjgQYGRB0hIHMwm2Sg",
        kind=SourceKind.VIDEO,
        icon=_YOUTUBE_ICON,
    ),
    Source(
        name="Kevin Powell",
        url="https://www.youtube.com/feeds/videos.xml?channel_id=UCJZv4d5rbIKd4QHMPkcABCw",
        kind=SourceKind.VIDEO,
        icon=_YOUTUBE_ICON,
    ),
]


def seed_sources(db: Database, sources: list[Source] | None = None) -> int:
    """Insert any default sources not already present. Returns count added."""
    if sources is None:
        sources = DEFAULT_SOURCES

    added = 0
    for template in sources:
        if db.get_source_by_url(template.url):
            continue
        db.add_source(
            Source(
                name=template.name,
                url=template.url,
                kind=template.kind,
                enabled=template.enabled,
                icon=template.icon,
            )
        )
        logger.info("Added source: %s", template.name)
        added += 1
    return added
