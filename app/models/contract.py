from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.ids import gen_id
from app.models.base import Base, append_only, utcnow


@append_only
class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        CheckConstraint("agent_share >= 0 AND agent_share <= commission_amount", name="ck_contract_agent_share"),
        CheckConstraint("office_share = commission_amount - agent_share", name="ck_contract_office_share"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("ctr"))

    office_id: Mapped[str] = mapped_column(String, ForeignKey("offices.id"), nullable=False, index=True)
    # a listing finalizes at most once
    listing_id: Mapped[str] = mapped_column(String, ForeignKey("listings.id"), nullable=False, unique=True)
    finalized_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)

    # snapshot of the listing's kind at finalization time
    transaction_kind: Mapped[str] = mapped_column(String(30), nullable=False)

    final_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    commission_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    agent_share: Mapped[int] = mapped_column(BigInteger, nullable=False)
    office_share: Mapped[int] = mapped_column(BigInteger, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    finalized_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
