"""
Public share links.

A link exposes a read-only view of one listing to anyone holding its token.
Links are only issued for ACTIVE listings and are revoked, never deleted:
individually by a manager, or all at once when the listing leaves ACTIVE.
"""
from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.errors import Conflict, Forbidden, NotFound, TransactionFailure
from app.core.ids import gen_token
from app.models.base import utcnow
from app.models.enums import ActivityAction, ListingStatus, TransactionKind
from app.models.listing import Listing
from app.models.office import Office
from app.models.share_link import ShareLink
from app.schemas.share_link import PublicListingOut
from app.services.audit import append_activity
from app.services.auth import Actor
from app.services.gate import Capability, authorize

log = logging.getLogger(__name__)


def generate_token(nbytes: int | None = None) -> str:
    return gen_token(nbytes or settings.share_link_token_bytes)


async def deactivate_share_links(db: AsyncSession, listing_id: str) -> int:
    """Bulk-revoke every active link of a listing inside the caller's transaction."""
    result = await db.execute(
        update(ShareLink)
        .where(ShareLink.listing_id == listing_id, ShareLink.is_active.is_(True))
        .values(is_active=False, deactivated_at=utcnow())
    )
    return int(result.rowcount or 0)


async def create_share_link(
    db: AsyncSession,
    actor: Actor,
    listing_id: str,
    *,
    custom_price: int | None = None,
    custom_deposit_amount: int | None = None,
) -> ShareLink:
    listing = await authorize(db, actor, listing_id, Capability.READ)
    if listing.status != ListingStatus.ACTIVE.value:
        raise Conflict("Share links can only be created for active listings")

    diff = {}
    if custom_price is not None:
        diff["custom_price"] = [None, custom_price]
    if custom_deposit_amount is not None:
        diff["custom_deposit_amount"] = [None, custom_deposit_amount]

    try:
        link = ShareLink(
            listing_id=listing.id,
            created_by=actor.user_id,
            token=generate_token(),
            custom_price=custom_price,
            custom_deposit_amount=custom_deposit_amount,
            view_count=0,
            is_active=True,
        )
        db.add(link)
        append_activity(
            db,
            listing_id=listing.id,
            user_id=actor.user_id,
            action=ActivityAction.SHARE_LINK,
            diff=diff or None,
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        log.exception("share link creation failed for listing %s", listing_id)
        raise TransactionFailure("Share link creation failed")

    return link


async def list_share_links(db: AsyncSession, actor: Actor, listing_id: str) -> list[ShareLink]:
    await authorize(db, actor, listing_id, Capability.READ)
    stmt = (
        select(ShareLink)
        .where(ShareLink.listing_id == listing_id)
        .order_by(ShareLink.created_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def deactivate_share_link(db: AsyncSession, actor: Actor, link_id: str) -> ShareLink:
    """Manager-only and idempotent: revoking an inactive link succeeds without writing."""
    if not actor.is_manager:
        raise Forbidden("Manager role required")

    stmt = (
        select(ShareLink)
        .join(Listing, Listing.id == ShareLink.listing_id)
        .where(ShareLink.id == link_id, Listing.office_id == actor.office_id)
    )
    link = (await db.execute(stmt)).scalar_one_or_none()
    if link is None:
        raise NotFound("Share link not found")

    if link.is_active:
        link.is_active = False
        link.deactivated_at = utcnow()
        await db.commit()
    return link


async def resolve_public(db: AsyncSession, token: str) -> PublicListingOut:
    stmt = (
        select(ShareLink, Listing, Office.name)
        .join(Listing, Listing.id == ShareLink.listing_id)
        .join(Office, Office.id == Listing.office_id)
        .where(ShareLink.token == token)
    )
    row = (await db.execute(stmt)).first()
    if row is None:
        raise NotFound("Link expired")

    link, listing, office_name = row
    if not link.is_active or listing.status != ListingStatus.ACTIVE.value:
        raise NotFound("Link expired")

    is_sale = listing.transaction_kind in (TransactionKind.SALE.value, TransactionKind.PRE_SALE.value)
    listed_price = listing.sale_price if is_sale else listing.rent_amount

    deposit = listing.deposit_amount
    if listing.transaction_kind == TransactionKind.LONG_TERM_RENT.value and link.custom_deposit_amount is not None:
        deposit = link.custom_deposit_amount

    return PublicListingOut(
        office_name=office_name,
        transaction_kind=listing.transaction_kind,
        property_type=listing.property_type,
        area=listing.area,
        floor_number=listing.floor_number,
        total_floors=listing.total_floors,
        building_age=listing.building_age,
        address=listing.address,
        neighborhood=listing.neighborhood,
        description=listing.description,
        price=link.custom_price if link.custom_price is not None else listed_price,
        deposit_amount=deposit,
        has_elevator=listing.has_elevator,
        has_parking=listing.has_parking,
        has_storage=listing.has_storage,
        has_balcony=listing.has_balcony,
        has_security=listing.has_security,
    )


async def record_view(session_factory: async_sessionmaker[AsyncSession], token: str) -> None:
    """Best-effort view counter; never raises and is not audited."""
    try:
        async with session_factory() as db:
            await db.execute(
                update(ShareLink)
                .where(ShareLink.token == token, ShareLink.is_active.is_(True))
                .values(view_count=ShareLink.view_count + 1)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
    except Exception:
        log.exception("record_view failed for token %s", token[:6])
