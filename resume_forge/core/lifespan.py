import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from resume_forge.core.config import settings
from resume_forge.core.generation_cache import get_generation_cache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    cache = get_generation_cache()
    stop_event = asyncio.Event()
    purge_task: asyncio.Task | None = None

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = await asyncio.to_thread(cache.purge_expired)
                if deleted:
                    logger.info("generation_cache_purge deleted=%s", deleted)
            except Exception as exc:  # noqa: BLE001
                logger.warning("generation_cache_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=settings.cache_purge_interval_s)
            except asyncio.TimeoutError:
                continue

    if cache is not None:
        purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if purge_task is not None and not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
    if cache is not None:
        cache.close()
