import pytest
from sqlalchemy import select

from app.core.errors import NotFound
from app.models.notification import Notification
from app.services import notifications as notifications_service
from app.services.notifications import (
    CeleryNotifier,
    Notice,
    SessionNotifier,
    build_notifier,
    list_notifications,
    mark_all_read,
    mark_read,
    write_notifications,
)
from worker import tasks


def _notice(user_id, listing_id=None):
    return Notice(user_id=user_id, type="FILE_UPDATED", title="Listing updated", message="edited", listing_id=listing_id)


@pytest.mark.asyncio
async def test_session_notifier_writes_rows(session_factory, seed):
    await SessionNotifier(session_factory).notify_many([_notice(seed.agent_a.user_id), _notice(seed.agent_b.user_id)])

    async with session_factory() as db:
        users = sorted((await db.execute(select(Notification.user_id))).scalars().all())
    assert users == sorted([seed.agent_a.user_id, seed.agent_b.user_id])


@pytest.mark.asyncio
async def test_session_notifier_swallows_failures(caplog):
    def _broken_factory():
        raise RuntimeError("database down")

    await SessionNotifier(_broken_factory).notify_many([_notice("usr_x")])
    assert "dropped 1 notices" in caplog.text


@pytest.mark.asyncio
async def test_celery_notifier_enqueues_task(monkeypatch):
    sent = []
    monkeypatch.setattr(
        notifications_service.celery, "send_task",
        lambda name, args=None, queue=None: sent.append((name, args, queue)),
    )

    await CeleryNotifier().notify_many([_notice("usr_x", "lst_1")])

    assert sent == [(
        "worker.tasks.deliver_notifications",
        [[{"user_id": "usr_x", "type": "FILE_UPDATED", "title": "Listing updated",
           "message": "edited", "listing_id": "lst_1"}]],
        "notifications",
    )]


@pytest.mark.asyncio
async def test_celery_notifier_swallows_broker_errors(monkeypatch, caplog):
    def _down(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(notifications_service.celery, "send_task", _down)
    await CeleryNotifier().notify_many([_notice("usr_x")])
    assert "enqueue failed" in caplog.text


def test_build_notifier_follows_settings(monkeypatch, session_factory):
    monkeypatch.setattr(notifications_service.settings, "notification_dispatch", "celery")
    assert isinstance(build_notifier(session_factory), CeleryNotifier)
    monkeypatch.setattr(notifications_service.settings, "notification_dispatch", "inline")
    assert isinstance(build_notifier(session_factory), SessionNotifier)


@pytest.mark.asyncio
async def test_worker_delivers_notifications(monkeypatch, async_engine, session_factory, seed):
    monkeypatch.setattr(tasks.settings, "database_url", async_engine.url.render_as_string(hide_password=False))

    written = await tasks._deliver_notifications([
        {"user_id": seed.agent_a.user_id, "type": "FILE_ASSIGNED", "title": "t", "message": "m", "listing_id": None},
    ])

    assert written == 1
    async with session_factory() as db:
        row = (await db.execute(select(Notification))).scalar_one()
    assert (row.user_id, row.type, row.read) == (seed.agent_a.user_id, "FILE_ASSIGNED", False)


@pytest.mark.asyncio
async def test_inbox_read_flow(db_session, seed):
    write_notifications(db_session, [_notice(seed.agent_a.user_id) for _ in range(3)])
    write_notifications(db_session, [_notice(seed.agent_b.user_id)])
    await db_session.commit()

    inbox = await list_notifications(db_session, seed.agent_a)
    assert len(inbox) == 3
    assert all(not n.read for n in inbox)

    first = await mark_read(db_session, seed.agent_a, inbox[0].id)
    assert first.read is True

    # another user's notice is invisible
    other = (await list_notifications(db_session, seed.agent_b))[0]
    with pytest.raises(NotFound):
        await mark_read(db_session, seed.agent_a, other.id)

    assert await mark_all_read(db_session, seed.agent_a) == 2
    assert await mark_all_read(db_session, seed.agent_a) == 0


@pytest.mark.asyncio
async def test_inbox_is_capped(db_session, seed):
    write_notifications(db_session, [_notice(seed.agent_a.user_id) for _ in range(5)])
    await db_session.commit()

    assert len(await list_notifications(db_session, seed.agent_a, limit=2)) == 2


def test_delivery_backoff_grows_and_is_capped():
    from app.services.retry import compute_backoff_seconds

    assert 5 <= compute_backoff_seconds(1) <= 6
    assert 40 <= compute_backoff_seconds(4) <= 53
    for attempt in range(1, 15):
        assert compute_backoff_seconds(attempt) <= 300 + 30
