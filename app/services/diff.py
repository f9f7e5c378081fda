from __future__ import annotations

from typing import Any, Mapping, Union

# Diff values are restricted to JSON scalars so consumers can match on them exhaustively.
Scalar = Union[str, int, bool, None]
FieldDiff = dict[str, list[Scalar]]

# Scalar listing fields the edit path may change. Collections (contacts,
# assignments) are replaced by their own transactions and never diffed here.
DIFFABLE_FIELDS: frozenset[str] = frozenset({
    "transaction_kind",
    "property_type",
    "area",
    "floor_number",
    "total_floors",
    "building_age",
    "sale_price",
    "deposit_amount",
    "rent_amount",
    "address",
    "neighborhood",
    "description",
    "notes",
    "has_elevator",
    "has_parking",
    "has_storage",
    "has_balcony",
    "has_security",
})


def _scalar(value: Any) -> Scalar:
    # str-valued enums come back as their plain value
    if isinstance(value, str):
        return str(value.value) if hasattr(value, "value") else value
    if value is None or isinstance(value, (bool, int)):
        return value
    raise TypeError(f"unsupported diff value type: {type(value).__name__}")


def _same(old: Scalar, new: Scalar) -> bool:
    # exact, type-strict comparison: True is not 1, 0 is not None
    return type(old) is type(new) and old == new


def diff_fields(old_record: Any, updates: Mapping[str, Any]) -> FieldDiff:
    """
    Field-level diff between a record and an update set.
    Only fields present in ``updates`` and in DIFFABLE_FIELDS are considered;
    unchanged fields are left out.
    """
    diff: FieldDiff = {}
    for field, raw_new in updates.items():
        if field not in DIFFABLE_FIELDS:
            continue
        old = _scalar(getattr(old_record, field, None))
        new = _scalar(raw_new)
        if not _same(old, new):
            diff[field] = [old, new]
    return diff
