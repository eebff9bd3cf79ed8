"""AdsIntel — Scheduler Jobs.

APScheduler daily job that syncs Meta Ads for every user holding a token.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from app.config import settings
from app.connectors.meta.client import MetaAPIError
from app.core.errors import AdsIntelError
from app.core.logging import get_logger
from app.core.secret_store import META_ACCESS_TOKEN, DatabaseSecretStore, users_with_secret
from app.database import engine
from app.sync.meta_sync import run_meta_sync

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def daily_sync_job():
    """Sync yesterday's insights for each user; one user's failure doesn't stop the rest."""
    logger.info("Scheduled Meta sync starting...")
    with Session(engine) as session:
        try:
            store = DatabaseSecretStore(session)
        except AdsIntelError as e:
            logger.error(f"Scheduled sync disabled: {e}")
            return

        for user_id in users_with_secret(session, META_ACCESS_TOKEN):
            try:
                result = await run_meta_sync(
                    session, user_id, store, date_range="yesterday"
                )
                logger.info(
                    f"Scheduled sync {result.status}: {result.rows} rows",
                    extra={"user_id": user_id, "operation": "sync"},
                )
            except (MetaAPIError, AdsIntelError) as e:
                logger.error(
                    f"Scheduled sync failed: {e}",
                    extra={"user_id": user_id, "operation": "sync"},
                )


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_sync_job,
        "cron",
        hour=settings.sync_hour,
        minute=0,
        id="daily_meta_sync",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Daily Meta sync at {settings.sync_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
