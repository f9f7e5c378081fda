from pydantic import BaseModel


class MeOut(BaseModel):
    office_id: str
    user_id: str
    role: str
