from fastapi import APIRouter, Depends

from app.schemas.me import MeOut
from app.services.auth import Actor, get_actor

router = APIRouter()

@router.get("/me", response_model=MeOut)
async def me(actor: Actor = Depends(get_actor)) -> MeOut:
    return MeOut(
        office_id=actor.office_id,
        user_id=actor.user_id,
        role=actor.role,
    )
