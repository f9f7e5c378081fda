from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.db import get_session_factory
from app.services.notifications import Notifier, build_notifier


def get_notifier(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> Notifier:
    return build_notifier(session_factory)
