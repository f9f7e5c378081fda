from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.db import get_db, get_session_factory
from app.schemas.share_link import PublicListingOut, ShareLinkCreate, ShareLinkOut
from app.services.auth import Actor, get_actor, require_manager
from app.services.share_links import (
    create_share_link,
    deactivate_share_link,
    list_share_links,
    record_view,
    resolve_public,
)

router = APIRouter()


@router.get("/files/{listing_id}/share-links", response_model=list[ShareLinkOut])
async def share_links_index(
    listing_id: str,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> list[ShareLinkOut]:
    return [ShareLinkOut.model_validate(link) for link in await list_share_links(db, actor, listing_id)]


@router.post("/files/{listing_id}/share-links", response_model=ShareLinkOut, status_code=201)
async def create_link(
    listing_id: str,
    payload: ShareLinkCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> ShareLinkOut:
    link = await create_share_link(
        db,
        actor,
        listing_id,
        custom_price=payload.custom_price,
        custom_deposit_amount=payload.custom_deposit_amount,
    )
    return ShareLinkOut.model_validate(link)


@router.patch("/share-links/{link_id}", response_model=ShareLinkOut)
async def deactivate_link(
    link_id: str,
    actor: Actor = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
) -> ShareLinkOut:
    return ShareLinkOut.model_validate(await deactivate_share_link(db, actor, link_id))


@router.get("/public/share/{token}", response_model=PublicListingOut)
async def public_view(
    token: str,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> PublicListingOut:
    view = await resolve_public(db, token)
    # counted after the response is sent; a failed increment never affects the viewer
    background.add_task(record_view, session_factory, token)
    return view
