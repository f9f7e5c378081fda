from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.activity_log import ActivityLogEntry, PriceHistoryEntry
from app.models.enums import ActivityAction, PriceField
from app.services.diff import FieldDiff

PRICE_FIELDS: tuple[str, ...] = tuple(f.value for f in PriceField)


def append_activity(
    db: AsyncSession,
    *,
    listing_id: str,
    user_id: str,
    action: ActivityAction,
    diff: FieldDiff | None = None,
) -> ActivityLogEntry:
    entry = ActivityLogEntry(
        listing_id=listing_id,
        user_id=user_id,
        action=action.value,
        diff=diff,
    )
    db.add(entry)
    return entry


def append_price_change(
    db: AsyncSession,
    *,
    listing_id: str,
    changed_by: str,
    price_field: str,
    old_amount: int | None,
    new_amount: int,
) -> PriceHistoryEntry:
    entry = PriceHistoryEntry(
        listing_id=listing_id,
        changed_by=changed_by,
        price_field=price_field,
        old_amount=old_amount,
        new_amount=new_amount,
    )
    db.add(entry)
    return entry


def record_price_changes(db: AsyncSession, *, listing_id: str, changed_by: str, diff: FieldDiff) -> int:
    # one ledger row per changed monetary field
    written = 0
    for field in PRICE_FIELDS:
        if field not in diff:
            continue
        old_amount, new_amount = diff[field]
        append_price_change(
            db,
            listing_id=listing_id,
            changed_by=changed_by,
            price_field=field,
            old_amount=old_amount,
            new_amount=new_amount,
        )
        written += 1
    return written
