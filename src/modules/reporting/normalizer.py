"""Turn raw collection arrays into id -> record lookups."""

from typing import Any


def is_identifier(value: Any) -> bool:
    """
    Whether ``value`` can be a record id: a non-empty string or an integer.

    Booleans and floats are rejected. They hash equal to integers
    (``True == 1``, ``1.0 == 1``) and would otherwise resolve to real records.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return value != ""
    return isinstance(value, int)


def index_by_id(records: Any, key: str = "id") -> dict[Any, dict]:
    """
    Map each record's identifier to the record.

    Absent or malformed input gives an empty mapping; items that are not
    dicts or carry no usable identifier are skipped. Callers treat missing
    keys as unknown. On duplicate ids the last record wins.
    """
    if not isinstance(records, (list, tuple)):
        return {}
    lookup: dict[Any, dict] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        ident = record.get(key)
        if not is_identifier(ident):
            continue
        lookup[ident] = record
    return lookup


def name_lookup(records: Any, key: str = "id", field: str = "name") -> dict[Any, Any]:
    """id -> display field (e.g. instrument id -> instrument name)."""
    return {ident: record.get(field) for ident, record in index_by_id(records, key).items()}


def full_name(user: dict | None) -> str | None:
    """``"first last"`` of a user record; None when the user is unknown."""
    if not isinstance(user, dict):
        return None
    parts = [user.get("first_name"), user.get("last_name")]
    name = " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
    return name or None
