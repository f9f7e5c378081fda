from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ids import gen_id
from app.models.base import Base, AuditMixin


class Office(AuditMixin, Base):
    __tablename__ = "offices"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("ofc"))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
