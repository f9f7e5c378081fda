from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.telemetry import get_tracer
from app.schemas.contract import ContractCreate, ContractOut
from app.services.auth import Actor, require_manager
from app.services.contracts import finalize_contract, get_contract, list_contracts

router = APIRouter()
tracer = get_tracer(__name__)


@router.post("/contracts", response_model=ContractOut, status_code=201)
async def create_contract(
    payload: ContractCreate,
    actor: Actor = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
) -> ContractOut:
    with tracer.start_as_current_span("contracts.finalize") as span:
        span.set_attribute("office.id", actor.office_id)
        span.set_attribute("listing.id", payload.listing_id)
        contract = await finalize_contract(
            db,
            actor,
            listing_id=payload.listing_id,
            final_price=payload.final_price,
            commission_amount=payload.commission_amount,
            agent_share=payload.agent_share,
            notes=payload.notes,
        )
    return ContractOut.model_validate(contract)


@router.get("/contracts", response_model=list[ContractOut])
async def contracts_index(
    actor: Actor = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
) -> list[ContractOut]:
    return [ContractOut.model_validate(c) for c in await list_contracts(db, actor)]


@router.get("/contracts/{contract_id}", response_model=ContractOut)
async def contract_detail(
    contract_id: str,
    actor: Actor = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
) -> ContractOut:
    return ContractOut.model_validate(await get_contract(db, actor, contract_id))
