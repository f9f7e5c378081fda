from datetime import datetime, timezone

from sqlalchemy import JSON, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass

class AuditMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    # User.id that created/updated the record
    created_by: Mapped[str | None] = mapped_column(nullable=True)
    updated_by: Mapped[str | None] = mapped_column(nullable=True)


class ImmutableRowError(RuntimeError):
    pass


def append_only(cls):
    """Reject ORM updates and deletes for rows that must never change once written."""

    @event.listens_for(cls, "before_update")
    def _no_update(mapper, connection, target):
        raise ImmutableRowError(f"{cls.__name__} rows are append-only")

    @event.listens_for(cls, "before_delete")
    def _no_delete(mapper, connection, target):
        raise ImmutableRowError(f"{cls.__name__} rows are append-only")

    return cls
