import pytest
from sqlalchemy import func, select

from app.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from app.models.activity_log import ActivityLogEntry, PriceHistoryEntry
from app.models.contact import Contact
from app.models.listing import Listing
from app.models.notification import Notification
from app.schemas.listing import ListingCreate, ListingFilters, ListingUpdate
from app.services.listings import create_listing, get_listing_detail, list_listings, update_listing
from app.services.notifications import SessionNotifier


async def _count(db, model, **where):
    stmt = select(func.count()).select_from(model)
    for col, value in where.items():
        stmt = stmt.where(getattr(model, col) == value)
    return (await db.execute(stmt)).scalar_one()


@pytest.mark.asyncio
async def test_create_listing_writes_create_entry(db_session, seed):
    payload = ListingCreate(
        transaction_kind="LONG_TERM_RENT",
        address="5 Enghelab Sq",
        deposit_amount=500_000,
        rent_amount=20_000,
        has_parking=True,
        contacts=[{"type": "LANDLORD", "name": "Reza", "phone": "09120000000"}],
    )
    listing = await create_listing(db_session, seed.agent_a, payload)

    assert listing.status == "ACTIVE"
    assert listing.office_id == seed.office_id
    assert listing.version == 1
    assert await _count(db_session, Contact, listing_id=listing.id) == 1
    assert await _count(db_session, ActivityLogEntry, listing_id=listing.id, action="CREATE") == 1


@pytest.mark.asyncio
async def test_create_listing_requires_a_contact(db_session, seed):
    payload = ListingCreate(transaction_kind="SALE", address="x", sale_price=1)
    with pytest.raises(InvalidInput):
        await create_listing(db_session, seed.manager, payload)
    assert await _count(db_session, Listing) == 0


@pytest.mark.asyncio
async def test_zero_change_edit_writes_nothing(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a,))

    await update_listing(
        db_session, seed.manager, listing.id,
        ListingUpdate(sale_price=100_000, address="12 Valiasr St"),
        notifier=recording_notifier,
    )

    assert await _count(db_session, ActivityLogEntry) == 0
    assert await _count(db_session, PriceHistoryEntry) == 0
    assert recording_notifier.notices == []


@pytest.mark.asyncio
async def test_single_price_change_writes_one_ledger_row(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a,))

    updated = await update_listing(
        db_session, seed.manager, listing.id,
        ListingUpdate(sale_price=120_000),
        notifier=recording_notifier,
    )
    assert updated.sale_price == 120_000
    assert updated.version == 2

    rows = (await db_session.execute(select(PriceHistoryEntry))).scalars().all()
    assert [(r.price_field, r.old_amount, r.new_amount) for r in rows] == [("sale_price", 100_000, 120_000)]

    entry = (await db_session.execute(
        select(ActivityLogEntry).where(ActivityLogEntry.action == "EDIT")
    )).scalar_one()
    assert entry.diff == {"sale_price": [100_000, 120_000]}


@pytest.mark.asyncio
async def test_two_price_fields_two_ledger_rows_one_edit(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(transaction_kind="LONG_TERM_RENT", sale_price=None,
                                 deposit_amount=400_000, rent_amount=15_000)

    await update_listing(
        db_session, seed.manager, listing.id,
        ListingUpdate(deposit_amount=450_000, rent_amount=16_000, neighborhood="Tajrish"),
        notifier=recording_notifier,
    )

    fields = sorted((await db_session.execute(select(PriceHistoryEntry.price_field))).scalars().all())
    assert fields == ["deposit_amount", "rent_amount"]
    assert await _count(db_session, ActivityLogEntry, action="EDIT") == 1


@pytest.mark.asyncio
async def test_manager_edit_notifies_assigned_agents(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a, seed.agent_b))

    await update_listing(db_session, seed.manager, listing.id, ListingUpdate(area=95), notifier=recording_notifier)

    assert sorted(n.user_id for n in recording_notifier.notices) == sorted([seed.agent_a.user_id, seed.agent_b.user_id])
    assert {n.type for n in recording_notifier.notices} == {"FILE_UPDATED"}


@pytest.mark.asyncio
async def test_agent_edit_notifies_managers_not_self(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a,))

    await update_listing(db_session, seed.agent_a, listing.id, ListingUpdate(area=95), notifier=recording_notifier)

    # only the office's manager; the other office's manager and the editor are not told
    assert [n.user_id for n in recording_notifier.notices] == [seed.manager.user_id]


@pytest.mark.asyncio
async def test_notices_are_written_after_commit(db_session, session_factory, seed, make_listing):
    listing = await make_listing(agents=(seed.agent_a,))

    await update_listing(
        db_session, seed.manager, listing.id,
        ListingUpdate(description="Renovated"),
        notifier=SessionNotifier(session_factory),
    )

    async with session_factory() as other:
        rows = (await other.execute(select(Notification))).scalars().all()
    assert [(r.user_id, r.listing_id) for r in rows] == [(seed.agent_a.user_id, listing.id)]


@pytest.mark.asyncio
async def test_unassigned_agent_edit_is_not_found(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a,))

    with pytest.raises(NotFound):
        await update_listing(db_session, seed.agent_b, listing.id, ListingUpdate(area=95), notifier=recording_notifier)
    assert await _count(db_session, ActivityLogEntry) == 0


@pytest.mark.asyncio
async def test_agent_edit_of_sold_listing_is_forbidden(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(status="SOLD", agents=(seed.agent_a,))
    with pytest.raises(Forbidden):
        await update_listing(db_session, seed.agent_a, listing.id, ListingUpdate(area=95), notifier=recording_notifier)


@pytest.mark.asyncio
async def test_manager_edit_of_archived_listing_is_conflict(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(status="ARCHIVED")
    with pytest.raises(Conflict):
        await update_listing(db_session, seed.manager, listing.id, ListingUpdate(area=95), notifier=recording_notifier)


@pytest.mark.asyncio
async def test_stale_version_is_conflict(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing()
    await update_listing(db_session, seed.manager, listing.id, ListingUpdate(area=95), notifier=recording_notifier)

    with pytest.raises(Conflict):
        await update_listing(
            db_session, seed.manager, listing.id,
            ListingUpdate(area=100, version=1),
            notifier=recording_notifier,
        )

    area = (await db_session.execute(select(Listing.area).where(Listing.id == listing.id))).scalar_one()
    assert area == 95


@pytest.mark.asyncio
async def test_concurrent_write_is_conflict(db_session, session_factory, seed, make_listing, recording_notifier):
    listing = await make_listing()

    # another request bumps the row after this session loaded it
    async with session_factory() as other:
        row = await other.get(Listing, listing.id)
        row.area = 70
        await other.commit()

    with pytest.raises(Conflict):
        await update_listing(db_session, seed.manager, listing.id, ListingUpdate(area=95), notifier=recording_notifier)


@pytest.mark.asyncio
async def test_contacts_are_replaced_wholesale(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing()

    await update_listing(
        db_session, seed.manager, listing.id,
        ListingUpdate(contacts=[
            {"type": "OWNER", "phone": "09121111111"},
            {"type": "BUYER", "phone": "09122222222"},
        ]),
        notifier=recording_notifier,
    )

    phones = sorted((await db_session.execute(
        select(Contact.phone).where(Contact.listing_id == listing.id)
    )).scalars().all())
    assert phones == ["09121111111", "09122222222"]
    # contacts are not part of the scalar diff
    assert await _count(db_session, ActivityLogEntry, action="EDIT") == 0


@pytest.mark.asyncio
async def test_empty_contact_replacement_is_rejected(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing()
    with pytest.raises(InvalidInput):
        await update_listing(db_session, seed.manager, listing.id, ListingUpdate(contacts=[]), notifier=recording_notifier)


def test_required_fields_cannot_be_cleared():
    with pytest.raises(ValueError):
        ListingUpdate(sale_price=None)


@pytest.mark.asyncio
async def test_detail_hides_activity_from_agents(db_session, seed, make_listing, recording_notifier):
    listing = await make_listing(agents=(seed.agent_a,))
    await update_listing(db_session, seed.manager, listing.id, ListingUpdate(sale_price=110_000), notifier=recording_notifier)

    as_manager = await get_listing_detail(db_session, seed.manager, listing.id)
    as_agent = await get_listing_detail(db_session, seed.agent_a, listing.id)

    assert [a.action for a in as_manager.activity] == ["EDIT"]
    assert as_agent.activity is None
    assert [p.new_amount for p in as_agent.price_history] == [110_000]
    assert [a.display_name for a in as_agent.assigned_agents] == ["Ali"]
    assert len(as_agent.contacts) == 1


@pytest.mark.asyncio
async def test_list_is_scoped_by_office_and_assignment(db_session, seed, make_listing):
    mine = await make_listing(agents=(seed.agent_a,))
    unassigned = await make_listing(address="7 Pasdaran")
    await make_listing(office_id=seed.other_office_id)

    manager_ids = {l.id for l in await list_listings(db_session, seed.manager, ListingFilters())}
    agent_ids = {l.id for l in await list_listings(db_session, seed.agent_a, ListingFilters())}

    assert manager_ids == {mine.id, unassigned.id}
    assert agent_ids == {mine.id}


@pytest.mark.asyncio
async def test_list_filters_and_sorting(db_session, seed, make_listing):
    cheap = await make_listing(sale_price=50_000, area=60, has_elevator=True, neighborhood="Niavaran")
    pricey = await make_listing(sale_price=300_000, area=150)
    await make_listing(status="SOLD", sale_price=80_000)

    by_price = await list_listings(db_session, seed.manager, ListingFilters(status="ACTIVE", sort="price_asc"))
    assert [l.id for l in by_price] == [cheap.id, pricey.id]

    lifted = await list_listings(db_session, seed.manager, ListingFilters(has_elevator=True))
    assert [l.id for l in lifted] == [cheap.id]

    found = await list_listings(db_session, seed.manager, ListingFilters(search="niavaran"))
    assert [l.id for l in found] == [cheap.id]

    ranged = await list_listings(db_session, seed.manager, ListingFilters(price_min=100_000, area_min=100))
    assert [l.id for l in ranged] == [pricey.id]


@pytest.mark.asyncio
async def test_price_range_uses_headline_price_per_kind(db_session, seed, make_listing):
    sale = await make_listing(sale_price=80_000)
    # a stale sale_price on a rent listing does not count toward the range
    rent = await make_listing(transaction_kind="LONG_TERM_RENT", sale_price=900_000,
                              deposit_amount=400_000, rent_amount=10_000)
    cheap_rent = await make_listing(transaction_kind="SHORT_TERM_RENT", sale_price=None, rent_amount=60_000)

    ranged = await list_listings(db_session, seed.manager, ListingFilters(price_min=50_000, price_max=100_000))
    assert {l.id for l in ranged} == {sale.id, cheap_rent.id}

    by_price = await list_listings(db_session, seed.manager, ListingFilters(sort="price_desc"))
    assert [l.id for l in by_price] == [sale.id, cheap_rent.id, rent.id]
