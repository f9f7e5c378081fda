from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import case, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict, InvalidInput, TransactionFailure
from app.models.activity_log import ActivityLogEntry, PriceHistoryEntry
from app.models.assignment import AgentAssignment
from app.models.contact import Contact
from app.models.enums import ActivityAction, ListingStatus, NotificationType, Role
from app.models.listing import Listing
from app.models.user import User
from app.schemas.listing import (
    ActivityOut,
    AssignedAgentOut,
    ContactIn,
    ContactOut,
    ListingCreate,
    ListingDetailOut,
    ListingFilters,
    ListingOut,
    ListingUpdate,
    PriceHistoryOut,
)
from app.services.audit import append_activity, record_price_changes
from app.services.auth import Actor
from app.services.diff import diff_fields
from app.services.gate import Capability, authorize
from app.services.listing_state import SALE_KINDS
from app.services.notifications import Notice, Notifier

log = logging.getLogger(__name__)


def _contact_rows(listing_id: str, contacts: Sequence[ContactIn]) -> list[Contact]:
    return [
        Contact(
            listing_id=listing_id,
            type=c.type.value,
            name=c.name or None,
            phone=c.phone,
            notes=c.notes or None,
        )
        for c in contacts
    ]


async def create_listing(db: AsyncSession, actor: Actor, payload: ListingCreate) -> Listing:
    """
    Create an ACTIVE listing with its contacts and a CREATE activity entry.
    At least one contact is required.
    """
    if not payload.contacts:
        raise InvalidInput("At least one contact is required")

    fields = payload.model_dump(mode="json", exclude={"contacts"})

    try:
        listing = Listing(
            **fields,
            office_id=actor.office_id,
            status=ListingStatus.ACTIVE.value,
            created_by=actor.user_id,
            updated_by=actor.user_id,
        )
        db.add(listing)
        await db.flush()

        db.add_all(_contact_rows(listing.id, payload.contacts))
        append_activity(db, listing_id=listing.id, user_id=actor.user_id, action=ActivityAction.CREATE)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        log.exception("create listing failed")
        raise TransactionFailure("Listing creation failed")

    return listing


async def _edit_recipients(db: AsyncSession, actor: Actor, listing: Listing) -> list[str]:
    if actor.role == Role.AGENT.value:
        stmt = select(User.id).where(
            User.office_id == listing.office_id,
            User.role == Role.MANAGER.value,
            User.is_active.is_(True),
        )
    else:
        stmt = select(AgentAssignment.user_id).where(AgentAssignment.listing_id == listing.id)
    ids = (await db.execute(stmt)).scalars().all()
    return [uid for uid in ids if uid != actor.user_id]


async def _notify_edit(db: AsyncSession, actor: Actor, listing: Listing, notifier: Notifier) -> None:
    try:
        recipients = await _edit_recipients(db, actor, listing)
    except Exception:
        log.exception("edit fan-out: recipient lookup failed for listing %s", listing.id)
        return

    await notifier.notify_many([
        Notice(
            user_id=uid,
            type=NotificationType.FILE_UPDATED.value,
            title="Listing updated",
            message=f"{listing.address} was edited.",
            listing_id=listing.id,
        )
        for uid in recipients
    ])


async def update_listing(
    db: AsyncSession,
    actor: Actor,
    listing_id: str,
    payload: ListingUpdate,
    *,
    notifier: Notifier,
) -> Listing:
    """
    Scalar edit path.

    Diff the sent fields against the stored row, apply them, replace contacts
    when sent, then write one price-ledger row per changed monetary field and
    one EDIT entry when the diff is non-empty. All of it commits together;
    staff are notified afterwards.

    The row's version is checked on UPDATE, so a concurrent edit that landed
    after our read surfaces as Conflict instead of being silently overwritten.
    """
    listing = await authorize(db, actor, listing_id, Capability.WRITE)

    if listing.status != ListingStatus.ACTIVE.value:
        raise Conflict("Inactive listings cannot be edited")
    if payload.version is not None and payload.version != listing.version:
        raise Conflict("Listing was modified since it was read")

    updates: dict[str, Any] = payload.model_dump(mode="json", exclude_unset=True, exclude={"contacts", "version"})
    diff = diff_fields(listing, updates)
    replace_contacts = payload.contacts is not None

    if replace_contacts and not payload.contacts:
        raise InvalidInput("At least one contact is required")

    if not diff and not replace_contacts:
        return listing

    try:
        for field, (_, new) in diff.items():
            setattr(listing, field, new)
        listing.updated_by = actor.user_id

        if replace_contacts:
            await db.execute(delete(Contact).where(Contact.listing_id == listing.id))
            db.add_all(_contact_rows(listing.id, payload.contacts))

        record_price_changes(db, listing_id=listing.id, changed_by=actor.user_id, diff=diff)
        if diff:
            append_activity(db, listing_id=listing.id, user_id=actor.user_id, action=ActivityAction.EDIT, diff=diff)

        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise Conflict("Listing was modified by another request")
    except SQLAlchemyError:
        await db.rollback()
        log.exception("edit failed for listing %s", listing_id)
        raise TransactionFailure("Listing edit failed")

    await _notify_edit(db, actor, listing, notifier)
    return listing


async def get_listing_detail(db: AsyncSession, actor: Actor, listing_id: str) -> ListingDetailOut:
    listing = await authorize(db, actor, listing_id, Capability.READ)

    contacts = (await db.execute(
        select(Contact).where(Contact.listing_id == listing.id).order_by(Contact.id)
    )).scalars().all()

    agents = (await db.execute(
        select(AgentAssignment.user_id, User.display_name)
        .join(User, User.id == AgentAssignment.user_id)
        .where(AgentAssignment.listing_id == listing.id)
        .order_by(AgentAssignment.created_at.asc())
    )).all()

    prices = (await db.execute(
        select(PriceHistoryEntry)
        .where(PriceHistoryEntry.listing_id == listing.id)
        .order_by(PriceHistoryEntry.changed_at.desc())
    )).scalars().all()

    activity = None
    if actor.is_manager:
        entries = (await db.execute(
            select(ActivityLogEntry)
            .where(ActivityLogEntry.listing_id == listing.id)
            .order_by(ActivityLogEntry.created_at.desc())
        )).scalars().all()
        activity = [ActivityOut.model_validate(e) for e in entries]

    return ListingDetailOut(
        **ListingOut.model_validate(listing).model_dump(),
        contacts=[ContactOut.model_validate(c) for c in contacts],
        assigned_agents=[AssignedAgentOut(user_id=uid, display_name=name) for uid, name in agents],
        price_history=[PriceHistoryOut.model_validate(p) for p in prices],
        activity=activity,
    )


# sale kinds are priced by sale_price, rent kinds by rent_amount
_HEADLINE_PRICE = case(
    (Listing.transaction_kind.in_(sorted(SALE_KINDS)), Listing.sale_price),
    else_=Listing.rent_amount,
)

_SORTS = {
    "newest": Listing.updated_at.desc(),
    "oldest": Listing.created_at.asc(),
    "price_asc": _HEADLINE_PRICE.asc(),
    "price_desc": _HEADLINE_PRICE.desc(),
    "area_asc": Listing.area.asc(),
    "area_desc": Listing.area.desc(),
}

_AMENITIES = ("has_elevator", "has_parking", "has_storage", "has_balcony", "has_security")


async def list_listings(db: AsyncSession, actor: Actor, filters: ListingFilters) -> list[Listing]:
    stmt = select(Listing).where(Listing.office_id == actor.office_id)

    # Agents only see listings assigned to them
    if actor.role == Role.AGENT.value:
        stmt = stmt.where(
            Listing.id.in_(
                select(AgentAssignment.listing_id).where(AgentAssignment.user_id == actor.user_id)
            )
        )

    if filters.status:
        stmt = stmt.where(Listing.status == filters.status.value)
    if filters.transaction_kind:
        stmt = stmt.where(Listing.transaction_kind == filters.transaction_kind.value)
    if filters.property_type:
        stmt = stmt.where(Listing.property_type == filters.property_type.value)
    if filters.search:
        pattern = f"%{filters.search}%"
        stmt = stmt.where(or_(Listing.address.ilike(pattern), Listing.neighborhood.ilike(pattern)))

    if filters.price_min is not None:
        stmt = stmt.where(_HEADLINE_PRICE >= filters.price_min)
    if filters.price_max is not None:
        stmt = stmt.where(_HEADLINE_PRICE <= filters.price_max)
    if filters.area_min is not None:
        stmt = stmt.where(Listing.area >= filters.area_min)
    if filters.area_max is not None:
        stmt = stmt.where(Listing.area <= filters.area_max)

    for amenity in _AMENITIES:
        if getattr(filters, amenity):
            stmt = stmt.where(getattr(Listing, amenity).is_(True))

    stmt = stmt.order_by(_SORTS[filters.sort], Listing.id)
    return list((await db.execute(stmt)).scalars().all())
