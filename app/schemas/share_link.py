from datetime import datetime

from pydantic import BaseModel, ConfigDict, PositiveInt


class ShareLinkCreate(BaseModel):
    # sale kinds: sale price; rent kinds: rent amount
    custom_price: PositiveInt | None = None
    # long-term rent deposit
    custom_deposit_amount: PositiveInt | None = None


class ShareLinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    listing_id: str
    created_by: str
    token: str
    custom_price: int | None
    custom_deposit_amount: int | None
    view_count: int
    is_active: bool
    created_at: datetime
    deactivated_at: datetime | None


class PublicListingOut(BaseModel):
    """What an anonymous viewer of a share link sees: no contacts, no internal notes."""

    office_name: str
    transaction_kind: str
    property_type: str | None
    area: int | None
    floor_number: int | None
    total_floors: int | None
    building_age: int | None
    address: str
    neighborhood: str | None
    description: str | None
    price: int | None
    deposit_amount: int | None
    has_elevator: bool
    has_parking: bool
    has_storage: bool
    has_balcony: bool
    has_security: bool
