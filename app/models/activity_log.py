from datetime import datetime

from app.core.ids import gen_id
from sqlalchemy import BigInteger, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.models.base import Base, JSONType, append_only, utcnow


@append_only
class ActivityLogEntry(Base):
    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("act"))
    listing_id: Mapped[str] = mapped_column(String, ForeignKey("listings.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)

    # CREATE | EDIT | STATUS_CHANGE | ASSIGNMENT | SHARE_LINK | CONTRACT_FINALIZED
    action: Mapped[str] = mapped_column(String(40), nullable=False, index=True)

    # {"field": [old, new]}, values are str/int/bool/null
    diff: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


@append_only
class PriceHistoryEntry(Base):
    __tablename__ = "price_history"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("prc"))
    listing_id: Mapped[str] = mapped_column(String, ForeignKey("listings.id"), nullable=False, index=True)
    changed_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)

    # sale_price | deposit_amount | rent_amount
    price_field: Mapped[str] = mapped_column(String(30), nullable=False)
    old_amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    new_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
