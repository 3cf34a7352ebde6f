"""Agent tool implementations for Veille Reader."""

import json

from langchain_core.tools import tool

from veille_reader.database import Database
from veille_reader.errors import FetchError, SourceNotFoundError, StorageError
from veille_reader.ingestion import refresh_one_source
from veille_reader.models import Source, SourceKind
from veille_reader.poller import RefreshGuard, refresh_guarded

# Module-level references, set during agent initialization
_db: Database | None = None
_guard: RefreshGuard | None = None


def set_database(db: Database, guard: RefreshGuard | None = None) -> None:
    """Set the database instance and refresh guard used by all tools."""
    global _db, _guard
    _db = db
    _guard = guard or RefreshGuard()


def _get_db() -> Database:
    """Get the database instance, raising if not set."""
    if _db is None:
        raise RuntimeError("Database not initialized. Call set_database() first.")
    return _db


@tool
def refresh_feeds() -> str:
    """Fetch every enabled source now and store new items."""
    db = _get_db()

    result = refresh_guarded(db, _guard)
    if result is None:
        return json.dumps({
            "status": "skipped",
            "message": "A refresh is already running",
        })

    return json.dumps({
        "status": "success",
        "added": result.added,
        "errors": result.errors,
    })


@tool
def refresh_source(source_id: int) -> str:
    """Fetch a single source now and store its new items.

    Args:
        source_id: The id of the source to refresh.
    """
    db = _get_db()

    if not _guard.try_acquire():
        return json.dumps({
            "status": "skipped",
            "message": "A refresh is already running",
        })

    try:
        added = refresh_one_source(db, source_id)
    except (SourceNotFoundError, FetchError, StorageError) as e:
        return json.dumps({"status": "error", "message": str(e)})
    finally:
        _guard.release()

    return json.dumps({"status": "success", "added": added})


@tool
def list_sources() -> str:
    """List all configured sources with their kind, status and unread count."""
    db = _get_db()
    sources = db.get_all_sources()

    return json.dumps({
        "sources": [
            {
                "id": source.id,
                "name": source.name,
                "url": source.url,
                "kind": source.kind.value,
                "enabled": source.enabled,
                "unread": db.get_unread_count_for_source(source.id),
            }
            for source in sources
        ],
        "total": len(sources),
    })


@tool
def add_source(name: str, url: str, kind: str) -> str:
    """Add a new feed source.

    Args:
        name: Display name for the source.
        url: The RSS or Atom feed URL.
        kind: Either "article" (newsletters, blogs) or "video" (YouTube channels).
    """
    db = _get_db()

    if not name or not url or not kind:
        return json.dumps({
            "status": "error",
            "message": "Name, URL and kind are required",
        })

    try:
        source_kind = SourceKind.from_label(kind)
    except ValueError:
        return json.dumps({
            "status": "error",
            "message": f"Unknown kind '{kind}'. Use 'article' or 'video'.",
        })

    try:
        source = db.add_source(Source(name=name, url=url, kind=source_kind))
    except ValueError as e:
        return json.dumps({"status": "error", "message": str(e)})

    return json.dumps({
        "status": "added",
        "source": {
            "id": source.id,
            "name": source.name,
            "url": source.url,
            "kind": source.kind.value,
        },
    })


@tool
def set_source_enabled(source_id: int, enabled: bool) -> str:
    """Enable or disable a source for future refreshes.

    Args:
        source_id: The id of the source.
        enabled: True to include the source in refreshes, False to pause it.
    """
    db = _get_db()

    if not db.set_source_enabled(source_id, enabled):
        return json.dumps({
            "status": "error",
            "message": f"Source not found: {source_id}",
        })

    return json.dumps({"status": "success", "id": source_id, "enabled": enabled})


@tool
def get_stats() -> str:
    """Count stored items: total, unread, favorites, to study and watch later."""
    db = _get_db()
    return json.dumps(db.get_stats())
