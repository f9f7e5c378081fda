from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from app.models.enums import ContactType, ListingStatus, PropertyType, TransactionKind

PHONE_PATTERN = r"^(\+98|0)?[0-9]{9,11}$"


class ContactIn(BaseModel):
    type: ContactType
    name: str | None = Field(default=None, max_length=100)
    phone: str = Field(min_length=1, pattern=PHONE_PATTERN)
    notes: str | None = Field(default=None, max_length=500)


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    name: str | None
    phone: str
    notes: str | None


class ListingFields(BaseModel):
    property_type: PropertyType | None = None

    area: PositiveInt | None = None
    floor_number: int | None = Field(default=None, ge=0)
    total_floors: PositiveInt | None = None
    building_age: int | None = Field(default=None, ge=0, le=150)

    sale_price: PositiveInt | None = None
    deposit_amount: PositiveInt | None = None
    rent_amount: PositiveInt | None = None

    neighborhood: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    notes: str | None = Field(default=None, max_length=2000)


class ListingCreate(ListingFields):
    transaction_kind: TransactionKind
    address: str = Field(min_length=1, max_length=500)

    has_elevator: bool = False
    has_parking: bool = False
    has_storage: bool = False
    has_balcony: bool = False
    has_security: bool = False

    contacts: list[ContactIn] = Field(default_factory=list)


_NOT_CLEARABLE = (
    "transaction_kind",
    "address",
    "sale_price",
    "deposit_amount",
    "rent_amount",
    "has_elevator",
    "has_parking",
    "has_storage",
    "has_balcony",
    "has_security",
)


class ListingUpdate(ListingFields):
    """Partial update; only fields that are sent are considered."""

    transaction_kind: TransactionKind | None = None
    address: str | None = Field(default=None, min_length=1, max_length=500)

    has_elevator: bool | None = None
    has_parking: bool | None = None
    has_storage: bool | None = None
    has_balcony: bool | None = None
    has_security: bool | None = None

    # replaces the whole contact list when present
    contacts: list[ContactIn] | None = None

    # version the client last read; mismatch is a conflict
    version: int | None = None

    @field_validator(*_NOT_CLEARABLE)
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be cleared")
        return v


class StatusChange(BaseModel):
    status: Literal["ARCHIVED"]


class ListingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    office_id: str
    transaction_kind: TransactionKind
    status: ListingStatus
    property_type: PropertyType | None

    area: int | None
    floor_number: int | None
    total_floors: int | None
    building_age: int | None

    sale_price: int | None
    deposit_amount: int | None
    rent_amount: int | None

    address: str
    neighborhood: str | None
    description: str | None
    notes: str | None

    has_elevator: bool
    has_parking: bool
    has_storage: bool
    has_balcony: bool
    has_security: bool

    version: int
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime


class AssignedAgentOut(BaseModel):
    user_id: str
    display_name: str


class PriceHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    price_field: str
    old_amount: int | None
    new_amount: int
    changed_by: str
    changed_at: datetime


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    action: str
    diff: dict | None
    created_at: datetime


class ListingDetailOut(ListingOut):
    contacts: list[ContactOut]
    assigned_agents: list[AssignedAgentOut]
    price_history: list[PriceHistoryOut]
    # managers only
    activity: list[ActivityOut] | None = None


SortOption = Literal["newest", "oldest", "price_asc", "price_desc", "area_asc", "area_desc"]


class ListingFilters(BaseModel):
    status: ListingStatus | None = None
    transaction_kind: TransactionKind | None = None
    property_type: PropertyType | None = None

    # text search over address and neighborhood
    search: str | None = Field(default=None, max_length=200)

    price_min: int | None = Field(default=None, ge=0)
    price_max: int | None = Field(default=None, ge=0)
    area_min: int | None = Field(default=None, ge=0)
    area_max: int | None = Field(default=None, ge=0)

    has_elevator: bool | None = None
    has_parking: bool | None = None
    has_storage: bool | None = None
    has_balcony: bool | None = None
    has_security: bool | None = None

    sort: SortOption = "newest"
