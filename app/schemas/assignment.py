from pydantic import BaseModel, Field


class AssignmentReplace(BaseModel):
    # the full desired set; empty unassigns everyone
    agent_ids: list[str] = Field(default_factory=list)


class AssignmentOut(BaseModel):
    listing_id: str
    agent_ids: list[str]
