import asyncio
import logging
import time
from pathlib import Path

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from worker.celery_app import celery
from civic_market.core.config import settings
import civic_market.models  # noqa: F401  # ensures Models are registered
from civic_market.repositories.listings import ListingRepository
from civic_market.services.storage import LocalMediaStore

log = logging.getLogger(__name__)


def find_orphans(store: LocalMediaStore, referenced_urls: set[str], *, grace_seconds: int, now: float | None = None) -> list[Path]:
    """
    Stored objects no listing points at. Files younger than the grace period
    are skipped: they may belong to a request that has not committed yet.
    """
    now = time.time() if now is None else now
    referenced = {p.name for p in (store.resolve_path(u) for u in referenced_urls) if p is not None}
    orphans = []
    for path in store.list_objects():
        if path.name in referenced:
            continue
        if now - path.stat().st_mtime < grace_seconds:
            continue
        orphans.append(path)
    return orphans


async def _sweep_orphaned_media() -> int:
    store = LocalMediaStore(settings.media_dir, settings.public_base_url)
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)

    try:
        async with Session() as db:
            referenced = await ListingRepository(db).referenced_media_urls()
    finally:
        await engine.dispose()

    removed = 0
    for path in find_orphans(store, referenced, grace_seconds=settings.media_orphan_grace_minutes * 60):
        try:
            path.unlink()
            removed += 1
        except OSError:
            log.exception("sweep: could not remove %s", path)

    log.info("sweep: removed %d orphaned media objects", removed)
    return removed


@celery.task(name="worker.tasks.sweep_orphaned_media")
def sweep_orphaned_media() -> int:
    return asyncio.run(_sweep_orphaned_media())
