"""Feed ingestion: fetch every enabled source and merge items into storage."""

import logging
from collections.abc import Callable
from typing import Any, Protocol

from veille_reader.errors import (
    FetchError,
    SourceNotFoundError,
    StorageConflictError,
    StorageError,
)
from veille_reader.feed_parser import fetch_feed
from veille_reader.models import (
    IngestionResult,
    NormalizedItem,
    RawFeedEntry,
    Source,
    SourceKind,
)
from veille_reader.normalizer import normalize_entry
from veille_reader.thumbnails import resolve_thumbnail

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, SourceKind], list[RawFeedEntry]]


class ItemRepository(Protocol):
    """Storage operations the ingestion engine relies on."""

    def get_enabled_sources(self) -> list[Source]: ...

    def get_source_by_id(self, source_id: int) -> Source | None: ...

    def upsert_by_link(
        self,
        link: str,
        create_fields: dict[str, Any],
        update_fields: dict[str, Any],
    ) -> str: ...


def run_ingestion(
    repo: ItemRepository, fetch: Fetcher = fetch_feed
) -> IngestionResult:
    """Ingest all enabled sources, one at a time.

    Per-source failures are collected in ``errors`` as
    ``"{source name}: {message}"``; nothing raised by a single source stops
    the batch.
    """
    result = IngestionResult()
    sources = repo.get_enabled_sources()
    if not sources:
        logger.info("No enabled sources to ingest")
        return result

    for source in sources:
        before = result.added
        try:
            _ingest_source(repo, source, fetch, result)
        except (FetchError, StorageError) as e:
            logger.warning("Source '%s' error: %s", source.name, e)
            result.errors.append(f"{source.name}: {e}")
            continue
        except Exception as e:
            logger.warning("Source '%s' unexpected error: %s", source.name, e)
            result.errors.append(f"{source.name}: {str(e) or type(e).__name__}")
            continue

        if result.added > before:
            logger.info(
                "Source '%s': %d items stored", source.name, result.added - before
            )

    logger.info(
        "Ingestion complete: %d items stored, %d errors",
        result.added,
        len(result.errors),
    )
    return result


def refresh_one_source(
    repo: ItemRepository, source_id: int, fetch: Fetcher = fetch_feed
) -> int:
    """Ingest a single source by id and return the number of items stored.

    Raises:
        SourceNotFoundError: If no source has this id.
        FetchError: If the feed cannot be fetched or parsed.
        StorageError: If the store fails for a reason other than a
            duplicate link.
    """
    source = repo.get_source_by_id(source_id)
    if source is None:
        raise SourceNotFoundError(source_id)

    result = IngestionResult()
    _ingest_source(repo, source, fetch, result)
    logger.info("Source '%s' refreshed: %d items stored", source.name, result.added)
    return result.added


def _ingest_source(
    repo: ItemRepository, source: Source, fetch: Fetcher, result: IngestionResult
) -> None:
    """Fetch one source and upsert its items, counting stores into result."""
    entries = fetch(source.url, source.kind)

    for entry in entries:
        item = normalize_entry(entry, source.kind)
        if not item.link:
            continue

        item.thumbnail = resolve_thumbnail(
            item.link,
            entry.content or entry.description,
            source.kind,
            explicit=item.thumbnail,
        )

        try:
            repo.upsert_by_link(
                item.link,
                _create_fields(item, source),
                _update_fields(item),
            )
        except StorageConflictError:
            logger.debug("Item %s created concurrently, skipping", item.link)
            continue
        result.added += 1


def _create_fields(item: NormalizedItem, source: Source) -> dict[str, Any]:
    return {
        "source_id": source.id,
        "title": item.title,
        "description": item.description,
        "thumbnail": item.thumbnail,
        "published_at": item.published_at,
        "view_count": item.view_count,
        "like_count": item.like_count,
        "word_count": item.word_count,
    }


def _update_fields(item: NormalizedItem) -> dict[str, Any]:
    fields = {}
    if item.view_count is not None:
        fields["view_count"] = item.view_count
    if item.like_count is not None:
        fields["like_count"] = item.like_count
    return fields
