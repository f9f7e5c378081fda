from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ContractCreate(BaseModel):
    listing_id: str = Field(min_length=1)
    final_price: int = Field(gt=0)
    commission_amount: int = Field(ge=0)
    # checked against commission_amount by the service; office share is never accepted
    agent_share: int = Field(ge=0)
    notes: str | None = Field(default=None, max_length=2000)


class ContractOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    office_id: str
    listing_id: str
    finalized_by: str
    transaction_kind: str
    final_price: int
    commission_amount: int
    agent_share: int
    office_share: int
    notes: str | None
    finalized_at: datetime
