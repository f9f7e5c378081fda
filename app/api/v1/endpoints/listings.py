from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_notifier
from app.core.db import get_db
from app.core.telemetry import get_tracer
from app.schemas.assignment import AssignmentOut, AssignmentReplace
from app.schemas.listing import (
    ListingCreate,
    ListingDetailOut,
    ListingFilters,
    ListingOut,
    ListingUpdate,
    StatusChange,
)
from app.services.assignments import replace_assignments
from app.services.auth import Actor, get_actor, require_manager
from app.services.listing_state import change_status
from app.services.listings import create_listing, get_listing_detail, list_listings, update_listing
from app.services.notifications import Notifier

router = APIRouter()
tracer = get_tracer(__name__)


@router.post("/files", response_model=ListingOut, status_code=201)
async def create_file(
    payload: ListingCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> ListingOut:
    listing = await create_listing(db, actor, payload)
    return ListingOut.model_validate(listing)


@router.get("/files", response_model=list[ListingOut])
async def list_files(
    filters: ListingFilters = Depends(),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> list[ListingOut]:
    rows = await list_listings(db, actor, filters)
    return [ListingOut.model_validate(r) for r in rows]


@router.get("/files/{listing_id}", response_model=ListingDetailOut)
async def get_file(
    listing_id: str,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> ListingDetailOut:
    return await get_listing_detail(db, actor, listing_id)


@router.patch("/files/{listing_id}", response_model=ListingOut)
async def edit_file(
    listing_id: str,
    payload: ListingUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> ListingOut:
    listing = await update_listing(db, actor, listing_id, payload, notifier=notifier)
    return ListingOut.model_validate(listing)


@router.patch("/files/{listing_id}/status", response_model=ListingOut)
async def change_file_status(
    listing_id: str,
    payload: StatusChange,
    actor: Actor = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
) -> ListingOut:
    listing = await change_status(db, actor, listing_id, payload.status)
    return ListingOut.model_validate(listing)


@router.put("/files/{listing_id}/agents", response_model=AssignmentOut)
async def assign_agents(
    listing_id: str,
    payload: AssignmentReplace,
    actor: Actor = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> AssignmentOut:
    with tracer.start_as_current_span("files.assign_agents") as span:
        span.set_attribute("listing.id", listing_id)
        span.set_attribute("agents.count", len(payload.agent_ids))
        agent_ids = await replace_assignments(db, actor, listing_id, payload.agent_ids, notifier=notifier)
    return AssignmentOut(listing_id=listing_id, agent_ids=agent_ids)
