"""
Contract finalization: the only path from ACTIVE to SOLD / RENTED.

Validation and existence checks run first; the contract row, the status
transition, the share-link revocation and the CONTRACT_FINALIZED entry then
commit as one unit. No notification is sent for this event.
"""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict, Forbidden, InvalidInput, NotFound, TransactionFailure
from app.models.contract import Contract
from app.models.enums import ActivityAction, ListingStatus
from app.services.audit import append_activity
from app.services.auth import Actor
from app.services.gate import Capability, authorize
from app.services.listing_state import StatusTrigger, next_status
from app.services.share_links import deactivate_share_links

log = logging.getLogger(__name__)


def split_commission(commission_amount: int, agent_share: int) -> int:
    """Return the office share; the agent share must lie within [0, commission]."""
    if commission_amount < 0:
        raise InvalidInput("Commission amount cannot be negative")
    if agent_share < 0 or agent_share > commission_amount:
        raise InvalidInput("Agent share must be between 0 and the commission amount")
    return commission_amount - agent_share


async def finalize_contract(
    db: AsyncSession,
    actor: Actor,
    *,
    listing_id: str,
    final_price: int,
    commission_amount: int,
    agent_share: int,
    notes: str | None = None,
) -> Contract:
    if final_price <= 0:
        raise InvalidInput("Final price must be positive")
    office_share = split_commission(commission_amount, agent_share)

    listing = await authorize(db, actor, listing_id, Capability.MANAGE)

    existing = (await db.execute(
        select(Contract.id).where(Contract.listing_id == listing.id)
    )).scalar_one_or_none()
    if existing is not None:
        raise Conflict("Listing already finalized")

    if listing.status != ListingStatus.ACTIVE.value:
        raise NotFound("Listing not found or not active")

    old_status = listing.status
    new_status = next_status(old_status, StatusTrigger.CONTRACT_FINALIZED, listing.transaction_kind)

    try:
        contract = Contract(
            office_id=actor.office_id,
            listing_id=listing.id,
            finalized_by=actor.user_id,
            transaction_kind=listing.transaction_kind,
            final_price=final_price,
            commission_amount=commission_amount,
            agent_share=agent_share,
            office_share=office_share,
            notes=notes or None,
        )
        db.add(contract)

        listing.status = new_status.value
        listing.updated_by = actor.user_id

        await deactivate_share_links(db, listing.id)
        append_activity(
            db,
            listing_id=listing.id,
            user_id=actor.user_id,
            action=ActivityAction.CONTRACT_FINALIZED,
            diff={"status": [old_status, new_status.value]},
        )
        await db.commit()
    except IntegrityError:
        # unique contracts.listing_id: a concurrent finalize committed first
        await db.rollback()
        raise Conflict("Listing already finalized")
    except StaleDataError:
        await db.rollback()
        raise Conflict("Listing was modified by another request")
    except SQLAlchemyError:
        await db.rollback()
        log.exception("finalize failed for listing %s", listing_id)
        raise TransactionFailure("Finalize failed")

    log.info("listing %s finalized as %s by %s", listing_id, new_status.value, actor.user_id)
    return contract


async def list_contracts(db: AsyncSession, actor: Actor) -> list[Contract]:
    if not actor.is_manager:
        raise Forbidden("Manager role required")
    stmt = (
        select(Contract)
        .where(Contract.office_id == actor.office_id)
        .order_by(Contract.finalized_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_contract(db: AsyncSession, actor: Actor, contract_id: str) -> Contract:
    if not actor.is_manager:
        raise Forbidden("Manager role required")
    stmt = select(Contract).where(Contract.id == contract_id, Contract.office_id == actor.office_id)
    contract = (await db.execute(stmt)).scalar_one_or_none()
    if contract is None:
        raise NotFound("Contract not found")
    return contract
