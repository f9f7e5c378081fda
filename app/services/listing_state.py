from __future__ import annotations

import logging
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict, InvalidInput, TransactionFailure
from app.models.enums import ActivityAction, ListingStatus, TransactionKind
from app.models.listing import Listing
from app.services.audit import append_activity
from app.services.auth import Actor
from app.services.gate import Capability, authorize
from app.services.share_links import deactivate_share_links

log = logging.getLogger(__name__)


class StatusTrigger(str, Enum):
    ARCHIVE = "archive"
    CONTRACT_FINALIZED = "contract_finalized"


SALE_KINDS = frozenset({TransactionKind.SALE.value, TransactionKind.PRE_SALE.value})
RENT_KINDS = frozenset({TransactionKind.LONG_TERM_RENT.value, TransactionKind.SHORT_TERM_RENT.value})

# Targets a caller may request directly; SOLD/RENTED only come from finalizing a contract.
REQUESTABLE_TARGETS = frozenset({ListingStatus.ARCHIVED})


def is_active_status(status: str) -> bool:
    return status == ListingStatus.ACTIVE.value


def next_status(current: str, trigger: StatusTrigger, transaction_kind: str) -> ListingStatus:
    """
    ACTIVE --archive--> ARCHIVED
    ACTIVE --contract finalized--> SOLD (sale kinds) | RENTED (rent kinds)
    Every other state is terminal.
    """
    if not is_active_status(current):
        raise Conflict(f"Listing is {current}; only ACTIVE listings can change status")

    if trigger == StatusTrigger.ARCHIVE:
        return ListingStatus.ARCHIVED

    if transaction_kind in SALE_KINDS:
        return ListingStatus.SOLD
    if transaction_kind in RENT_KINDS:
        return ListingStatus.RENTED
    raise InvalidInput(f"Unknown transaction kind: {transaction_kind}")


async def change_status(db: AsyncSession, actor: Actor, listing_id: str, target: str) -> Listing:
    """
    Manual status change (manager only). Only archiving is accepted; the
    transition, link revocation and STATUS_CHANGE entry commit together.
    """
    try:
        requested = ListingStatus(target)
    except ValueError:
        raise InvalidInput(f"Unknown status: {target}")
    if requested not in REQUESTABLE_TARGETS:
        raise InvalidInput(f"Status {requested.value} cannot be requested directly")

    listing = await authorize(db, actor, listing_id, Capability.MANAGE)
    old_status = listing.status
    new_status = next_status(old_status, StatusTrigger.ARCHIVE, listing.transaction_kind)

    try:
        listing.status = new_status.value
        listing.updated_by = actor.user_id
        await deactivate_share_links(db, listing.id)
        append_activity(
            db,
            listing_id=listing.id,
            user_id=actor.user_id,
            action=ActivityAction.STATUS_CHANGE,
            diff={"status": [old_status, new_status.value]},
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        log.exception("status change failed for listing %s", listing_id)
        raise TransactionFailure("Status change failed")

    return listing
