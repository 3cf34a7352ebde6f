"""Background refresh loop for Veille Reader."""

import asyncio
import logging
import threading
from dataclasses import dataclass, field

from veille_reader.database import Database
from veille_reader.ingestion import run_ingestion
from veille_reader.models import IngestionResult

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1800  # 30 minutes


@dataclass
class RefreshGuard:
    """Single-flight state owned by whoever schedules refreshes."""

    _lock: threading.Lock = field(default_factory=threading.Lock)

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def running(self) -> bool:
        return self._lock.locked()


def refresh_guarded(db: Database, guard: RefreshGuard) -> IngestionResult | None:
    """Run one ingestion unless another run holds the guard.

    Returns None when the run was skipped.
    """
    if not guard.try_acquire():
        logger.info("Previous refresh still running, skipping")
        return None

    try:
        result = run_ingestion(db)
    finally:
        guard.release()

    if result.errors:
        logger.info("Refresh errors: %s", ", ".join(result.errors))
    return result


async def start_polling(
    db: Database, guard: RefreshGuard, interval: int = DEFAULT_POLL_INTERVAL
) -> None:
    """Run the refresh loop indefinitely."""
    logger.info("Poller started (interval: %ds)", interval)

    while True:
        try:
            await asyncio.to_thread(refresh_guarded, db, guard)
        except Exception as e:
            logger.error("Refresh cycle failed: %s", e)

        await asyncio.sleep(interval)
