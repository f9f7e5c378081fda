from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidInput, TransactionFailure
from app.models.assignment import AgentAssignment
from app.models.enums import ActivityAction, NotificationType, Role
from app.models.user import User
from app.services.audit import append_activity
from app.services.auth import Actor
from app.services.gate import Capability, authorize
from app.services.notifications import Notice, Notifier

log = logging.getLogger(__name__)

NO_AGENTS = "(none)"


def _names(names: Sequence[str]) -> str:
    return ", ".join(names) or NO_AGENTS


async def replace_assignments(
    db: AsyncSession,
    actor: Actor,
    listing_id: str,
    agent_ids: Sequence[str],
    *,
    notifier: Notifier,
) -> list[str]:
    """
    Replace a listing's assigned agents with exactly ``agent_ids``.

    The whole target set is validated first (active agents of the caller's
    office, no duplicates); then the old rows are deleted, the new ones
    inserted and an ASSIGNMENT entry with before/after display names written
    in one unit. Only agents that were not assigned before get notified.
    """
    listing = await authorize(db, actor, listing_id, Capability.MANAGE)
    agent_ids = list(agent_ids)

    new_names: list[str] = []
    if agent_ids:
        if len(set(agent_ids)) != len(agent_ids):
            raise InvalidInput("One or more agents are invalid")

        valid = (await db.execute(
            select(User.id, User.display_name).where(
                User.id.in_(agent_ids),
                User.office_id == actor.office_id,
                User.role == Role.AGENT.value,
                User.is_active.is_(True),
            )
        )).all()
        if len(valid) != len(agent_ids):
            raise InvalidInput("One or more agents are invalid")

        # keep the caller's order for the audit entry
        name_by_id = {uid: name for uid, name in valid}
        new_names = [name_by_id[uid] for uid in agent_ids]

    current = (await db.execute(
        select(AgentAssignment.user_id, User.display_name)
        .join(User, User.id == AgentAssignment.user_id)
        .where(AgentAssignment.listing_id == listing.id)
        .order_by(AgentAssignment.created_at.asc())
    )).all()
    old_ids = {uid for uid, _ in current}
    old_names = [name for _, name in current]

    try:
        await db.execute(delete(AgentAssignment).where(AgentAssignment.listing_id == listing.id))
        db.add_all([AgentAssignment(listing_id=listing.id, user_id=uid) for uid in agent_ids])
        append_activity(
            db,
            listing_id=listing.id,
            user_id=actor.user_id,
            action=ActivityAction.ASSIGNMENT,
            diff={"agents": [_names(old_names), _names(new_names)]},
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        log.exception("assignment failed for listing %s", listing_id)
        raise TransactionFailure("Agent assignment failed")

    newly_added = [uid for uid in agent_ids if uid not in old_ids]
    await notifier.notify_many([
        Notice(
            user_id=uid,
            type=NotificationType.FILE_ASSIGNED.value,
            title="New listing assigned",
            message=f"You were assigned to {listing.address}.",
            listing_id=listing.id,
        )
        for uid in newly_added
    ])
    return agent_ids
