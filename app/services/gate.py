"""
Tenancy & capability gate.

Decides whether an actor may read or mutate a listing. A listing outside the
actor's office, or one an agent is not assigned to, is reported as NotFound so
that tenant boundaries cannot be probed through error codes.
"""
from __future__ import annotations

from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, NotFound
from app.models.assignment import AgentAssignment
from app.models.enums import ListingStatus, Role
from app.models.listing import Listing
from app.services.auth import Actor


class Capability(str, Enum):
    READ = "read"
    WRITE = "write"
    MANAGE = "manage"  # manager-only operations


class GateDecision(str, Enum):
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def evaluate_access(
    *,
    actor: Actor,
    listing_office_id: str | None,
    listing_status: str | None,
    is_assigned: bool,
    capability: Capability,
) -> GateDecision:
    if listing_office_id is None or listing_office_id != actor.office_id:
        return GateDecision.NOT_FOUND

    if actor.role == Role.MANAGER.value:
        return GateDecision.ALLOWED

    if actor.role != Role.AGENT.value or not is_assigned:
        return GateDecision.NOT_FOUND

    if capability == Capability.MANAGE:
        return GateDecision.FORBIDDEN
    if capability == Capability.WRITE and listing_status != ListingStatus.ACTIVE.value:
        return GateDecision.FORBIDDEN
    return GateDecision.ALLOWED


async def is_assigned(db: AsyncSession, listing_id: str, user_id: str) -> bool:
    stmt = select(AgentAssignment.id).where(
        AgentAssignment.listing_id == listing_id,
        AgentAssignment.user_id == user_id,
    )
    return (await db.execute(stmt)).first() is not None


async def authorize(
    db: AsyncSession,
    actor: Actor,
    listing_id: str,
    capability: Capability = Capability.READ,
) -> Listing:
    """
    Load the listing for the actor or raise NotFound / Forbidden.
    Must run before every mutation of a listing.
    """
    stmt = select(Listing).where(Listing.id == listing_id, Listing.office_id == actor.office_id)
    listing = (await db.execute(stmt)).scalar_one_or_none()

    assigned = False
    if listing is not None and actor.role == Role.AGENT.value:
        assigned = await is_assigned(db, listing.id, actor.user_id)

    decision = evaluate_access(
        actor=actor,
        listing_office_id=listing.office_id if listing else None,
        listing_status=listing.status if listing else None,
        is_assigned=assigned,
        capability=capability,
    )
    if decision == GateDecision.NOT_FOUND:
        raise NotFound("Listing not found")
    if decision == GateDecision.FORBIDDEN:
        if capability == Capability.MANAGE:
            raise Forbidden("Manager role required")
        raise Forbidden("Inactive listings cannot be edited")
    return listing
