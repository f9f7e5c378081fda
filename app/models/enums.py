from enum import Enum


class Role(str, Enum):
    MANAGER = "MANAGER"
    AGENT = "AGENT"


class TransactionKind(str, Enum):
    SALE = "SALE"
    PRE_SALE = "PRE_SALE"
    LONG_TERM_RENT = "LONG_TERM_RENT"
    SHORT_TERM_RENT = "SHORT_TERM_RENT"


class ListingStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    SOLD = "SOLD"
    RENTED = "RENTED"
    EXPIRED = "EXPIRED"


class PropertyType(str, Enum):
    APARTMENT = "APARTMENT"
    HOUSE = "HOUSE"
    VILLA = "VILLA"
    LAND = "LAND"
    COMMERCIAL = "COMMERCIAL"
    OFFICE = "OFFICE"
    OTHER = "OTHER"


class ContactType(str, Enum):
    OWNER = "OWNER"
    TENANT = "TENANT"
    LANDLORD = "LANDLORD"
    BUYER = "BUYER"


class ActivityAction(str, Enum):
    CREATE = "CREATE"
    EDIT = "EDIT"
    STATUS_CHANGE = "STATUS_CHANGE"
    ASSIGNMENT = "ASSIGNMENT"
    SHARE_LINK = "SHARE_LINK"
    CONTRACT_FINALIZED = "CONTRACT_FINALIZED"


class PriceField(str, Enum):
    SALE_PRICE = "sale_price"
    DEPOSIT_AMOUNT = "deposit_amount"
    RENT_AMOUNT = "rent_amount"


class NotificationType(str, Enum):
    FILE_ASSIGNED = "FILE_ASSIGNED"
    FILE_UPDATED = "FILE_UPDATED"
