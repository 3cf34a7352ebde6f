"""Data models for Veille Reader."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceKind(str, Enum):
    """What a source publishes: written articles or videos."""

    ARTICLE = "article"
    VIDEO = "video"

    @classmethod
    def from_label(cls, label: str) -> "SourceKind":
        """Accept both canonical values and the legacy seed labels."""
        aliases = {"newsletter": cls.ARTICLE, "youtube": cls.VIDEO}
        if label in aliases:
            return aliases[label]
        return cls(label)


@dataclass
class Source:
    """Represents a configured feed the reader polls."""

    name: str
    url: str
    kind: SourceKind = SourceKind.ARTICLE
    enabled: bool = True
    icon: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None


@dataclass
class VideoStatistics:
    """Raw statistics attributes as they appear in a video feed."""

    views: str | None = None
    likes: str | None = None


@dataclass
class ArticleEntry:
    """A parsed entry from an article-style feed."""

    title: str | None = None
    link: str | None = None
    iso_date: datetime | None = None
    pub_date: str | None = None
    snippet: str | None = None
    description: str | None = None
    content: str | None = None
    media_thumbnail: str | None = None


@dataclass
class VideoEntry(ArticleEntry):
    """A parsed entry from a video feed, with platform extension fields."""

    video_id: str | None = None
    statistics: VideoStatistics | None = None


RawFeedEntry = ArticleEntry | VideoEntry


@dataclass
class NormalizedItem:
    """Canonical item shape produced by normalization."""

    title: str
    link: str
    published_at: datetime
    description: str | None = None
    thumbnail: str | None = None
    view_count: int | None = None
    like_count: int | None = None
    word_count: int | None = None


@dataclass
class Item:
    """A stored, user-annotatable reading list entry."""

    source_id: int
    title: str
    link: str
    published_at: datetime
    description: str | None = None
    thumbnail: str | None = None
    view_count: int | None = None
    like_count: int | None = None
    word_count: int | None = None
    is_read: bool = False
    is_favorite: bool = False
    to_study: bool = False
    watch_later: bool = False
    notes: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None


@dataclass
class IngestionResult:
    """Outcome of one ingestion run."""

    added: int = 0
    errors: list[str] = field(default_factory=list)
