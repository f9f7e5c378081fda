from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.notification import NotificationOut
from app.services.auth import Actor, get_actor
from app.services.notifications import list_notifications, mark_all_read, mark_read

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut])
async def notifications_index(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> list[NotificationOut]:
    return [NotificationOut.model_validate(n) for n in await list_notifications(db, actor)]


# declared before /notifications/{notification_id} so "read-all" is not taken as an id
@router.patch("/notifications/read-all")
async def read_all(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> dict:
    updated = await mark_all_read(db, actor)
    return {"updated": updated}


@router.patch("/notifications/{notification_id}", response_model=NotificationOut)
async def read_one(
    notification_id: str,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> NotificationOut:
    return NotificationOut.model_validate(await mark_read(db, actor, notification_id))
