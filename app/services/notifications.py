"""
Notification fan-out and the per-user notification inbox.

Fan-out always runs after the owning transaction has committed. Its failures
are logged and dropped: a notice that cannot be written never fails or rolls
back the operation that produced it.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Protocol, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.errors import NotFound
from app.models.notification import Notification
from app.services.auth import Actor
from worker.celery_app import celery

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    user_id: str
    type: str
    title: str
    message: str
    listing_id: str | None = None


class Notifier(Protocol):
    async def notify_many(self, notices: Sequence[Notice]) -> None: ...


def write_notifications(db: AsyncSession, notices: Sequence[Notice]) -> None:
    db.add_all([
        Notification(
            user_id=n.user_id,
            type=n.type,
            title=n.title,
            message=n.message,
            listing_id=n.listing_id,
        )
        for n in notices
    ])


class SessionNotifier:
    """Writes notices inline through a session of its own."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def notify_many(self, notices: Sequence[Notice]) -> None:
        if not notices:
            return
        try:
            async with self._session_factory() as db:
                write_notifications(db, notices)
                await db.commit()
        except Exception:
            log.exception("notify_many: dropped %d notices", len(notices))


class CeleryNotifier:
    """Hands notices to the worker; the task writes them."""

    async def notify_many(self, notices: Sequence[Notice]) -> None:
        if not notices:
            return
        try:
            celery.send_task(
                "worker.tasks.deliver_notifications",
                args=[[asdict(n) for n in notices]],
                queue="notifications",
            )
        except Exception:
            log.exception("notify_many: enqueue failed, dropped %d notices", len(notices))


def build_notifier(session_factory: async_sessionmaker[AsyncSession]) -> Notifier:
    if settings.notification_dispatch == "celery":
        return CeleryNotifier()
    return SessionNotifier(session_factory)


async def list_notifications(db: AsyncSession, actor: Actor, limit: int | None = None) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == actor.user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit or settings.notifications_page_size)
    )
    return list((await db.execute(stmt)).scalars().all())


async def mark_read(db: AsyncSession, actor: Actor, notification_id: str) -> Notification:
    stmt = select(Notification).where(
        Notification.id == notification_id,
        Notification.user_id == actor.user_id,
    )
    row = (await db.execute(stmt)).scalar_one_or_none()
    if row is None:
        raise NotFound("Notification not found")

    row.read = True
    await db.commit()
    return row


async def mark_all_read(db: AsyncSession, actor: Actor) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == actor.user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.commit()
    return int(result.rowcount or 0)
