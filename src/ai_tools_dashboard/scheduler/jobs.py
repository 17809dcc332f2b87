import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.site.builder import StaticSiteBuilder
from ai_tools_dashboard.store.base import DocumentStore

logger = logging.getLogger(__name__)


def _run_async(coro_func):
    """Wrapper for APScheduler to run async functions."""
    async def wrapper():
        try:
            await coro_func()
        except Exception as e:
            logger.error("Scheduled job %s failed: %s", coro_func.__name__, e)
    wrapper.__name__ = coro_func.__name__
    return wrapper


def rebuild_job(store: DocumentStore):
    async def rebuild_static_site():
        stats = await StaticSiteBuilder(store).build()
        logger.info("Scheduled rebuild: %d pages, %d errors", stats.pages_generated, stats.errors)
    return rebuild_static_site


def setup_scheduler(store: DocumentStore) -> AsyncIOScheduler:
    """Configure and return a scheduler that periodically rebuilds the static site."""
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _run_async(rebuild_job(store)),
        "interval",
        hours=settings.rebuild_interval_hours,
        id="static_rebuild",
        max_instances=1,
        name="Static Site Rebuild",
    )
    return scheduler
