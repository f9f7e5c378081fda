import pytest
from sqlalchemy import select

from app.core.errors import Forbidden, InvalidInput
from app.models.activity_log import ActivityLogEntry
from app.models.assignment import AgentAssignment
from app.services.assignments import replace_assignments


async def _assigned(db, listing_id):
    rows = (await db.execute(
        select(AgentAssignment.user_id).where(AgentAssignment.listing_id == listing_id)
    )).scalars().all()
    return set(rows)


@pytest.mark.asyncio
async def test_replacement_notifies_only_new_agents(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a, seed.agent_b))

    result = await replace_assignments(
        db_session, seed.manager, listing.id,
        [seed.agent_b.user_id, seed.agent_c.user_id],
        notifier=recording_notifier,
    )

    assert result == [seed.agent_b.user_id, seed.agent_c.user_id]
    assert await _assigned(db_session, listing.id) == {seed.agent_b.user_id, seed.agent_c.user_id}
    assert [(n.user_id, n.type) for n in recording_notifier.notices] == [(seed.agent_c.user_id, "FILE_ASSIGNED")]

    entry = (await db_session.execute(
        select(ActivityLogEntry).where(ActivityLogEntry.action == "ASSIGNMENT")
    )).scalar_one()
    old, new = entry.diff["agents"]
    assert set(old.split(", ")) == {"Ali", "Bahar"}
    assert new == "Bahar, Cyrus"


@pytest.mark.asyncio
async def test_empty_set_unassigns_everyone(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a,))

    await replace_assignments(db_session, seed.manager, listing.id, [], notifier=recording_notifier)

    assert await _assigned(db_session, listing.id) == set()
    assert recording_notifier.notices == []
    entry = (await db_session.execute(
        select(ActivityLogEntry).where(ActivityLogEntry.action == "ASSIGNMENT")
    )).scalar_one()
    assert entry.diff == {"agents": ["Ali", "(none)"]}


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["duplicate", "manager", "other_office", "unknown"])
async def test_invalid_batch_changes_nothing(db_session, seed, make_listing, recording_notifier, bad):
    listing = await make_listing(agents=(seed.agent_a,))
    ids = {
        "duplicate": [seed.agent_b.user_id, seed.agent_b.user_id],
        "manager": [seed.agent_b.user_id, seed.manager.user_id],
        "other_office": [seed.agent_b.user_id, seed.other_manager.user_id],
        "unknown": [seed.agent_b.user_id, "usr_nope"],
    }[bad]

    with pytest.raises(InvalidInput):
        await replace_assignments(db_session, seed.manager, listing.id, ids, notifier=recording_notifier)

    assert await _assigned(db_session, listing.id) == {seed.agent_a.user_id}
    assert recording_notifier.notices == []


@pytest.mark.asyncio
async def test_agents_cannot_assign(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a,))
    with pytest.raises(Forbidden):
        await replace_assignments(
            db_session, seed.agent_a, listing.id, [seed.agent_b.user_id], notifier=recording_notifier
        )
