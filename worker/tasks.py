import asyncio
import logging

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from worker.celery_app import celery
from app.core.config import settings
import app.models  # noqa: F401  # ensures Models are registered
from app.services.notifications import Notice, write_notifications
from app.services.retry import compute_backoff_seconds

log = logging.getLogger(__name__)


async def _deliver_notifications(notices: list[dict]) -> int:
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)

    try:
        async with Session() as db:
            write_notifications(db, [Notice(**n) for n in notices])
            await db.commit()
    finally:
        await engine.dispose()

    return len(notices)


@celery.task(name="worker.tasks.deliver_notifications", bind=True, max_retries=5)
def deliver_notifications(self, notices: list[dict]) -> int:
    try:
        return asyncio.run(_deliver_notifications(notices))
    except Exception as e:
        if self.request.retries >= self.max_retries:
            # best-effort: after the last retry the notices are dropped
            log.exception("deliver_notifications: giving up on %d notices", len(notices))
            return 0
        raise self.retry(exc=e, countdown=compute_backoff_seconds(self.request.retries + 1))
