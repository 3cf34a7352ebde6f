"""Tests for feed fetching and parsing."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from veille_reader.errors import FetchError
from veille_reader.feed_parser import (
    FETCH_TIMEOUT,
    USER_AGENT,
    fetch_feed,
    parse_feed_document,
)
from veille_reader.models import ArticleEntry, SourceKind, VideoEntry

from conftest import (
    SAMPLE_ATOM_XML,
    SAMPLE_EMPTY_RSS_XML,
    SAMPLE_NOT_A_FEED_XML,
    SAMPLE_RSS_XML,
    SAMPLE_YOUTUBE_XML,
)


class TestParseFeedDocument:
    def test_rss_entries_in_document_order(self):
        entries = parse_feed_document(SAMPLE_RSS_XML, SourceKind.ARTICLE)

        assert [e.link for e in entries] == [
            "https://example.com/article-1",
            "https://example.com/article-2",
        ]
        assert all(type(e) is ArticleEntry for e in entries)

    def test_rss_fields(self):
        first = parse_feed_document(SAMPLE_RSS_XML, SourceKind.ARTICLE)[0]

        assert first.title == "First Article"
        assert first.iso_date == datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc)
        assert "brave" in first.content
        assert first.snippet == "Hello brave new world"
        assert first.pub_date

    def test_rss_entry_without_content_has_none(self):
        second = parse_feed_document(SAMPLE_RSS_XML, SourceKind.ARTICLE)[1]

        assert second.content is None
        assert second.description == "Description of the second article"

    def test_atom_entry(self):
        (entry,) = parse_feed_document(SAMPLE_ATOM_XML, SourceKind.ARTICLE)

        assert entry.link == "https://example.com/entry-1"
        assert entry.description == "Summary of entry 1"
        assert entry.iso_date == datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc)

    def test_youtube_extension_fields(self):
        (entry,) = parse_feed_document(SAMPLE_YOUTUBE_XML, SourceKind.VIDEO)

        assert isinstance(entry, VideoEntry)
        assert entry.video_id == "dQw4w9WgXcQ"
        assert entry.statistics is not None
        assert entry.statistics.views == "1234"
        assert entry.statistics.likes == "56"
        assert entry.media_thumbnail == "https://i1.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
        assert entry.iso_date == datetime(2026, 2, 10, 12, 0, tzinfo=timezone.utc)

    def test_empty_valid_feed_returns_no_entries(self):
        assert parse_feed_document(SAMPLE_EMPTY_RSS_XML, SourceKind.ARTICLE) == []

    def test_empty_feed_with_wrong_declared_encoding_returns_no_entries(self):
        document = (
            '<?xml version="1.0" encoding="us-ascii"?>\n'
            '<rss version="2.0"><channel><title>Caf\u00e9 Notes</title>'
            '<link>https://example.com</link><description>Nothing yet</description>'
            '</channel></rss>'
        ).encode("utf-8")

        assert parse_feed_document(document, SourceKind.ARTICLE) == []

    def test_empty_feed_with_undefined_entity_returns_no_entries(self):
        document = (
            b'<?xml version="1.0" encoding="utf-8"?>\n'
            b'<rss version="2.0"><channel><title>Caf&eacute; Notes</title>'
            b'<link>https://example.com</link></channel></rss>'
        )

        assert parse_feed_document(document, SourceKind.ARTICLE) == []

    def test_not_a_feed_raises(self):
        with pytest.raises(FetchError):
            parse_feed_document(SAMPLE_NOT_A_FEED_XML, SourceKind.ARTICLE, url="https://x.com")

    def test_garbage_raises(self):
        with pytest.raises(FetchError):
            parse_feed_document(b"\x00\x01 definitely not xml <<<", SourceKind.ARTICLE)


class TestFetchFeed:
    def _response(self, status=200, content=SAMPLE_RSS_XML.encode()):
        response = MagicMock()
        response.status_code = status
        response.content = content
        return response

    def test_sends_timeout_and_user_agent(self):
        with patch("veille_reader.feed_parser.requests.get", return_value=self._response()) as get:
            entries = fetch_feed("https://example.com/feed", SourceKind.ARTICLE)

        assert len(entries) == 2
        _, kwargs = get.call_args
        assert kwargs["timeout"] == FETCH_TIMEOUT == 10
        assert kwargs["headers"]["User-Agent"] == USER_AGENT

    def test_timeout_raises_fetch_error(self):
        with patch(
            "veille_reader.feed_parser.requests.get",
            side_effect=requests.Timeout("slow"),
        ):
            with pytest.raises(FetchError) as exc:
                fetch_feed("https://example.com/feed", SourceKind.ARTICLE)

        assert exc.value.url == "https://example.com/feed"
        assert "Timed out" in str(exc.value)

    def test_connection_error_raises_fetch_error(self):
        with patch(
            "veille_reader.feed_parser.requests.get",
            side_effect=requests.ConnectionError("refused"),
        ):
            with pytest.raises(FetchError, match="Could not reach URL"):
                fetch_feed("https://example.com/feed", SourceKind.ARTICLE)

    def test_http_error_status_raises_fetch_error(self):
        with patch(
            "veille_reader.feed_parser.requests.get",
            return_value=self._response(status=503),
        ):
            with pytest.raises(FetchError, match="HTTP 503"):
                fetch_feed("https://example.com/feed", SourceKind.ARTICLE)

    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com/feed", ""])
    def test_invalid_url_rejected_before_request(self, url):
        with patch("veille_reader.feed_parser.requests.get") as get:
            with pytest.raises(FetchError):
                fetch_feed(url, SourceKind.ARTICLE)
        get.assert_not_called()
