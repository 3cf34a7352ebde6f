"""SQLite storage for sources and reading list items."""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Literal

from veille_reader.errors import StorageConflictError, StorageError
from veille_reader.models import Item, Source, SourceKind, utcnow

logger = logging.getLogger(__name__)

UpsertOutcome = Literal["created", "updated"]

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    url TEXT UNIQUE NOT NULL,
    kind TEXT NOT NULL DEFAULT 'article',
    enabled INTEGER DEFAULT 1,
    icon TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_id INTEGER NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    link TEXT UNIQUE NOT NULL,
    description TEXT,
    thumbnail TEXT,
    published_at TEXT NOT NULL,
    view_count INTEGER,
    like_count INTEGER,
    word_count INTEGER,
    is_read INTEGER DEFAULT 0,
    is_favorite INTEGER DEFAULT 0,
    to_study INTEGER DEFAULT 0,
    watch_later INTEGER DEFAULT 0,
    notes TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_items_source_id ON items(source_id);
CREATE INDEX IF NOT EXISTS idx_items_published_at ON items(published_at);
CREATE INDEX IF NOT EXISTS idx_items_is_read ON items(is_read);
"""

# Fields ingestion may set on creation, in column order.
CREATE_FIELDS = (
    "source_id",
    "title",
    "description",
    "thumbnail",
    "published_at",
    "view_count",
    "like_count",
    "word_count",
)
# Fields ingestion may change on an existing item.
UPDATE_FIELDS = ("view_count", "like_count")
ANNOTATION_FIELDS = ("is_read", "is_favorite", "to_study", "watch_later", "notes")


class Database:
    """SQLite database manager for sources and items."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    # --- Source operations ---

    def add_source(self, source: Source) -> Source:
        """Insert a new source and return it with its assigned id.

        Raises:
            ValueError: If a source with the same URL already exists.
        """
        if self.get_source_by_url(source.url):
            raise ValueError("Source with this URL already exists")

        cursor = self.conn.execute(
            """INSERT INTO sources (name, url, kind, enabled, icon, created_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                source.name,
                source.url,
                source.kind.value,
                int(source.enabled),
                source.icon,
                _dt_to_str(source.created_at),
            ),
        )
        self.conn.commit()
        source.id = cursor.lastrowid
        return source

    def get_source_by_id(self, source_id: int) -> Source | None:
        """Look up a source by its id."""
        row = self.conn.execute(
            "SELECT * FROM sources WHERE id = ?", (source_id,)
        ).fetchone()
        return _row_to_source(row) if row else None

    def get_source_by_url(self, url: str) -> Source | None:
        """Look up a source by its URL."""
        row = self.conn.execute(
            "SELECT * FROM sources WHERE url = ?", (url,)
        ).fetchone()
        return _row_to_source(row) if row else None

    def get_all_sources(self) -> list[Source]:
        """Return all sources ordered by name."""
        rows = self.conn.execute(
            "SELECT * FROM sources ORDER BY name COLLATE NOCASE"
        ).fetchall()
        return [_row_to_source(r) for r in rows]

    def get_enabled_sources(self) -> list[Source]:
        """Return enabled sources (for ingestion)."""
        rows = self.conn.execute(
            "SELECT * FROM sources WHERE enabled = 1 ORDER BY id"
        ).fetchall()
        return [_row_to_source(r) for r in rows]

    def set_source_enabled(self, source_id: int, enabled: bool) -> bool:
        """Enable or disable a source. Returns True if it exists."""
        cursor = self.conn.execute(
            "UPDATE sources SET enabled = ? WHERE id = ?",
            (int(enabled), source_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def delete_source(self, source_id: int) -> bool:
        """Delete a source and its items (cascade). Returns True if deleted."""
        cursor = self.conn.execute("DELETE FROM sources WHERE id = ?", (source_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def get_unread_count_for_source(self, source_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) as cnt FROM items WHERE source_id = ? AND is_read = 0",
            (source_id,),
        ).fetchone()
        return row["cnt"] if row else 0

    # --- Item operations ---

    def upsert_by_link(
        self,
        link: str,
        create_fields: dict[str, Any],
        update_fields: dict[str, Any],
    ) -> UpsertOutcome:
        """Create an item keyed by link, or update an existing one.

        Only ``view_count`` and ``like_count`` are accepted in
        ``update_fields``; an empty dict leaves an existing item untouched.

        Raises:
            StorageConflictError: If the insert hits the unique link
                constraint because another writer created the item first.
            StorageError: For any other database failure.
        """
        unknown = set(update_fields) - set(UPDATE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not updatable by ingestion: {sorted(unknown)}")

        try:
            row = self.conn.execute(
                "SELECT id FROM items WHERE link = ?", (link,)
            ).fetchone()

            if row is not None:
                if update_fields:
                    assignments = ", ".join(f"{name} = ?" for name in update_fields)
                    self.conn.execute(
                        f"UPDATE items SET {assignments} WHERE id = ?",
                        (*update_fields.values(), row["id"]),
                    )
                    self.conn.commit()
                return "updated"

            values = [create_fields.get(name) for name in CREATE_FIELDS]
            values[CREATE_FIELDS.index("published_at")] = _dt_to_str(
                create_fields.get("published_at") or utcnow()
            )
            self.conn.execute(
                f"""INSERT INTO items (link, {", ".join(CREATE_FIELDS)}, created_at)
                    VALUES (?, {", ".join("?" for _ in CREATE_FIELDS)}, ?)""",
                (link, *values, _dt_to_str(utcnow())),
            )
            self.conn.commit()
            return "created"
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            if "UNIQUE constraint failed" in str(e):
                raise StorageConflictError(link) from e
            raise StorageError(f"Could not store item {link}: {e}") from e
        except sqlite3.Error as e:
            self.conn.rollback()
            raise StorageError(f"Could not store item {link}: {e}") from e

    def get_item_by_link(self, link: str) -> Item | None:
        """Look up an item by its link."""
        row = self.conn.execute(
            "SELECT * FROM items WHERE link = ?", (link,)
        ).fetchone()
        return _row_to_item(row) if row else None

    def count_items(self) -> int:
        """Return the total number of stored items."""
        row = self.conn.execute("SELECT COUNT(*) as cnt FROM items").fetchone()
        return row["cnt"] if row else 0

    def update_item_annotations(self, item_id: int, **annotations: Any) -> bool:
        """Set user annotations on an item. Returns True if it exists."""
        unknown = set(annotations) - set(ANNOTATION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown annotation fields: {sorted(unknown)}")
        if not annotations:
            return self.conn.execute(
                "SELECT 1 FROM items WHERE id = ?", (item_id,)
            ).fetchone() is not None

        values = [
            value if name == "notes" else int(bool(value))
            for name, value in annotations.items()
        ]
        assignments = ", ".join(f"{name} = ?" for name in annotations)
        cursor = self.conn.execute(
            f"UPDATE items SET {assignments} WHERE id = ?",
            (*values, item_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def get_stats(self) -> dict[str, int]:
        """Count items overall and per annotation state."""
        row = self.conn.execute(
            """SELECT COUNT(*) as total,
                      COALESCE(SUM(is_read = 0), 0) as unread,
                      COALESCE(SUM(is_favorite = 1), 0) as favorites,
                      COALESCE(SUM(to_study = 1), 0) as to_study,
                      COALESCE(SUM(watch_later = 1), 0) as watch_later
               FROM items"""
        ).fetchone()
        return {key: row[key] for key in row.keys()}


# --- Helper functions ---


def _dt_to_str(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string for storage."""
    return dt.isoformat() if dt else None


def _str_to_dt(s: str | None) -> datetime | None:
    """Convert stored ISO string back to datetime."""
    if not s:
        return None
    return datetime.fromisoformat(s)


def _row_to_source(row: sqlite3.Row) -> Source:
    """Convert a database row to a Source dataclass."""
    return Source(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        kind=SourceKind.from_label(row["kind"]),
        enabled=bool(row["enabled"]),
        icon=row["icon"],
        created_at=_str_to_dt(row["created_at"]) or utcnow(),
    )


def _row_to_item(row: sqlite3.Row) -> Item:
    """Convert a database row to an Item dataclass."""
    return Item(
        id=row["id"],
        source_id=row["source_id"],
        title=row["title"],
        link=row["link"],
        description=row["description"],
        thumbnail=row["thumbnail"],
        published_at=_str_to_dt(row["published_at"]) or utcnow(),
        view_count=row["view_count"],
        like_count=row["like_count"],
        word_count=row["word_count"],
        is_read=bool(row["is_read"]),
        is_favorite=bool(row["is_favorite"]),
        to_study=bool(row["to_study"]),
        watch_later=bool(row["watch_later"]),
        notes=row["notes"],
        created_at=_str_to_dt(row["created_at"]) or utcnow(),
    )
