"""Shared test fixtures for Veille Reader tests."""

import os
import tempfile
from datetime import datetime, timezone

import pytest

from veille_reader.database import Database
from veille_reader.models import ArticleEntry, Source, SourceKind, VideoEntry, VideoStatistics


SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the first article</description>
      <content:encoded><![CDATA[<p>Hello <b>brave</b> new world</p><img src="https://example.com/a1.png">]]></content:encoded>
      <pubDate>Fri, 13 Feb 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>Description of the second article</description>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <subtitle>A test Atom feed</subtitle>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <updated>2026-02-13T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_YOUTUBE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015"
      xmlns:media="http://search.yahoo.com/mrss/"
      xmlns="http://www.w3.org/2005/Atom">
  <title>Test Channel</title>
  <link rel="alternate" href="https://www.youtube.com/channel/UC123"/>
  <entry>
    <id>yt:video:dQw4w9WgXcQ</id>
    <yt:videoId>dQw4w9WgXcQ</yt:videoId>
    <yt:channelId>UC123</yt:channelId>
    <title>A Video</title>
    <link rel="alternate" href="https://www.youtube.com/watch?v=dQw4w9WgXcQ"/>
    <published>2026-02-10T12:00:00+00:00</published>
    <updated>2026-02-11T12:00:00+00:00</updated>
    <media:group>
      <media:title>A Video</media:title>
      <media:thumbnail url="https://i1.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg" width="480" height="360"/>
      <media:description>What this video is about</media:description>
      <media:community>
        <media:starRating count="56" average="5.00" min="1" max="5"/>
        <media:statistics views="1234"/>
      </media:community>
    </media:group>
  </entry>
</feed>"""

SAMPLE_EMPTY_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Quiet Feed</title>
    <link>https://example.com</link>
    <description>Nothing yet</description>
  </channel>
</rss>"""

SAMPLE_NOT_A_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""

FIXED_NOW = datetime(2026, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def tmp_db_path():
    """Provide a temporary SQLite database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(path + suffix)
        except OSError:
            pass


@pytest.fixture
def db(tmp_db_path):
    """A connected database with an empty schema."""
    database = Database(tmp_db_path)
    database.connect()
    yield database
    database.close()


@pytest.fixture
def article_source(db):
    return db.add_source(
        Source(name="Test Feed", url="https://example.com/feed", kind=SourceKind.ARTICLE)
    )


@pytest.fixture
def video_source(db):
    return db.add_source(
        Source(
            name="Test Channel",
            url="https://www.youtube.com/feeds/videos.xml?channel_id=UC123",
            kind=SourceKind.VIDEO,
        )
    )


@pytest.fixture
def article_entry():
    return ArticleEntry(
        title="An Article",
        link="https://example.com/a",
        content="<p>Hello world</p>",
    )


@pytest.fixture
def video_entry():
    return VideoEntry(
        title="A Video",
        link="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        video_id="dQw4w9WgXcQ",
        statistics=VideoStatistics(views="1234", likes="56"),
    )


class StubFetcher:
    """Fetcher stand-in that serves canned entries per URL."""

    def __init__(self, feeds: dict):
        self.feeds = feeds
        self.calls: list[str] = []

    def __call__(self, url, kind):
        self.calls.append(url)
        outcome = self.feeds.get(url, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


@pytest.fixture
def stub_fetcher():
    return StubFetcher
