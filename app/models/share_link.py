from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy.sql import func

from app.core.ids import gen_id
from app.models.base import Base, utcnow


class ShareLink(Base):
    __tablename__ = "share_links"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("shl"))
    listing_id: Mapped[str] = mapped_column(String, ForeignKey("listings.id"), nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)

    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    # Overrides shown to the public viewer instead of the listing's own prices
    custom_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    custom_deposit_amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @validates("is_active")
    def _validate_is_active(self, key, value):
        # a revoked link stays revoked
        if value and self.is_active is False:
            raise ValueError("share link cannot be reactivated")
        return value
