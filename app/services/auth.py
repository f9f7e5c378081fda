from dataclasses import dataclass
from fastapi import Depends, Header

from app.core.errors import Forbidden, Unauthenticated
from app.models.enums import Role


@dataclass(frozen=True)
class Actor:
    office_id: str
    user_id: str
    role: str  # "MANAGER" | "AGENT"

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER.value


async def get_actor(
    x_office_id: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Actor:
    # Identity is established upstream; these headers are trusted as given.
    if not x_office_id or not x_user_id or not x_user_role:
        raise Unauthenticated("Caller identity missing")

    role = x_user_role.upper()
    if role not in (Role.MANAGER.value, Role.AGENT.value):
        raise Forbidden("Office staff role required")

    return Actor(office_id=x_office_id, user_id=x_user_id, role=role)


def require_manager(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_manager:
        raise Forbidden("Manager role required")
    return actor
