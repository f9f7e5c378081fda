from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ids import gen_id

from app.models.base import Base, AuditMixin


class Listing(AuditMixin, Base):
    """A property file: one property offered for sale or rent by an office."""

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("lst"))

    office_id: Mapped[str] = mapped_column(String, ForeignKey("offices.id"), nullable=False, index=True)

    # "SALE" | "PRE_SALE" | "LONG_TERM_RENT" | "SHORT_TERM_RENT"
    transaction_kind: Mapped[str] = mapped_column(String(30), nullable=False)

    # "ACTIVE" | "ARCHIVED" | "SOLD" | "RENTED" | "EXPIRED"; only ever leaves ACTIVE
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE", index=True)

    property_type: Mapped[str | None] = mapped_column(String(30), nullable=True)

    area: Mapped[int | None] = mapped_column(Integer, nullable=True)
    floor_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_floors: Mapped[int | None] = mapped_column(Integer, nullable=True)
    building_age: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Currency amounts are whole units
    sale_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    deposit_amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    rent_amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    address: Mapped[str] = mapped_column(String(500), nullable=False)
    neighborhood: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    has_elevator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_parking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_storage: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_balcony: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_security: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Optimistic concurrency counter, bumped by the ORM on every UPDATE
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
