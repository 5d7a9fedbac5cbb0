"""
Pure aggregation functions shared by every dashboard view.

All functions are independent of input order and define their result for
empty input explicitly: sums are 0, percentages are 0, ratios are "N/A".
Field access is parameterized by name so the same function serves payments,
lessons and packages alike.
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable, Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from src.modules.reporting.constants import NOT_AVAILABLE, UNDATED, UNKNOWN
from src.modules.reporting.normalizer import is_identifier
from src.shared.utils.money import to_money

logger = logging.getLogger(__name__)


def parse_datetime(value: Any) -> datetime | None:
    """Parse an API timestamp ("2024-01-15", "2024-01-15T10:00:00Z", ...)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def month_key(value: Any) -> str | None:
    """Zero-padded ``YYYY-MM`` of a timestamp, as written (no timezone shift)."""
    dt = parse_datetime(value)
    if dt is None:
        return None
    return f"{dt.year:04d}-{dt.month:02d}"


def group_by_month(records: Iterable[dict], date_field: str) -> dict[str, list[dict]]:
    """
    Bucket records by calendar month of ``date_field``.

    Records without a parseable date land in the ``UNDATED`` bucket, so every
    input record appears in exactly one bucket.
    """
    groups: dict[str, list[dict]] = defaultdict(list)
    for record in records:
        key = month_key(record.get(date_field)) or UNDATED
        groups[key].append(record)
    return dict(groups)


def sorted_months(groups: Mapping[str, Any], descending: bool = False) -> list[str]:
    """
    Month keys in lexicographic order, which equals chronological order for
    zero-padded ``YYYY-MM`` keys. The undated bucket always sorts last.
    """
    dated = sorted((k for k in groups if k != UNDATED), reverse=descending)
    if UNDATED in groups:
        dated.append(UNDATED)
    return dated


def _hashable_key(value: Any) -> bool:
    return value is not None and value != "" and isinstance(value, Hashable)


def group_by(
    records: Iterable[dict], field: str, default: Hashable = UNKNOWN
) -> dict[Hashable, list[dict]]:
    """
    Bucket records by the value of ``field``, an id or a name.

    Values that are not identifiers (None, booleans, floats, containers) go to
    ``default``, so ``True`` never shares a bucket with id 1.
    """
    groups: dict[Hashable, list[dict]] = defaultdict(list)
    for record in records:
        value = record.get(field)
        groups[value if is_identifier(value) else default].append(record)
    return dict(groups)


def sum_by(records: Iterable[dict], field: str) -> Decimal:
    """
    Sum a numeric field as Decimal.

    Empty input gives 0. Missing values contribute 0; unparseable values
    contribute 0 as well and are logged.
    """
    total = Decimal("0")
    for record in records:
        raw = record.get(field)
        if raw is None:
            continue
        amount = to_money(raw)
        if amount is None:
            logger.warning("Ignoring non-numeric %s=%r in record id=%s", field, raw, record.get("id"))
            continue
        total += amount
    return total


def count_by(
    records: Iterable[dict], key_fn: Callable[[dict], Any]
) -> dict[Hashable, int]:
    """Count records per key; records whose key is None/empty are dropped."""
    counts: dict[Hashable, int] = defaultdict(int)
    for record in records:
        key = key_fn(record)
        if _hashable_key(key):
            counts[key] += 1
    return dict(counts)


def count_by_status(
    records: Iterable[dict],
    status_field: str = "status",
    known: Iterable[str] | None = None,
) -> dict[str, int]:
    """
    Count records per status value.

    Missing statuses are dropped rather than counted under an "unknown" slice.
    When ``known`` is given, values outside it are dropped too.
    """
    allowed = set(known) if known is not None else None

    def status_of(record: dict) -> str | None:
        value = record.get(status_field)
        if not isinstance(value, str) or not value:
            return None
        if allowed is not None and value not in allowed:
            return None
        return value

    return count_by(records, status_of)


def percentage_of(part: int | float | Decimal, whole: int | float | Decimal) -> float:
    """``part / whole * 100``; 0.0 when ``whole`` is 0."""
    if not whole:
        return 0.0
    return float(part) / float(whole) * 100


def ratio(a: int | float | Decimal, b: int | float | Decimal) -> float | str:
    """``a / b``, or the ``"N/A"`` sentinel when ``b`` is 0."""
    if not b:
        return NOT_AVAILABLE
    return float(a) / float(b)


def resolve(lookup: Mapping, key: Any, default: Any = UNKNOWN) -> Any:
    """
    Look up an id in an id-keyed mapping; never raises, whatever the key's type.

    Only string and integer keys resolve. A boolean or float key gives
    ``default`` even where it compares equal to an integer id.
    """
    if not is_identifier(key):
        return default
    return lookup.get(key, default)


def join_lookup(
    records: Iterable[dict],
    foreign_key: str,
    lookup: Mapping,
    as_field: str | None = None,
    default: Any = UNKNOWN,
) -> list[dict]:
    """
    Copy records adding the resolved foreign key under ``as_field``
    (default ``<foreign_key>_resolved``). Unresolvable keys give ``default``.
    """
    target = as_field or f"{foreign_key}_resolved"
    return [
        {**record, target: resolve(lookup, record.get(foreign_key), default)}
        for record in records
    ]


def sort_by_date(
    records: Iterable[dict], date_field: str, descending: bool = True
) -> list[dict]:
    """Sort records by timestamp (newest first by default); undated records last."""
    dated: list[tuple[datetime, dict]] = []
    undated: list[dict] = []
    for record in records:
        dt = parse_datetime(record.get(date_field))
        if dt is None:
            undated.append(record)
        else:
            dated.append((_naive_utc(dt), record))
    dated.sort(key=lambda pair: pair[0], reverse=descending)
    return [record for _, record in dated] + undated


def within_days(
    records: Iterable[dict], date_field: str, days: int, now: datetime | None = None
) -> list[dict]:
    """Records whose ``date_field`` is on or after ``now - days``."""
    current = _naive_utc(now or datetime.now(timezone.utc))
    cutoff = current - timedelta(days=days)
    result = []
    for record in records:
        dt = parse_datetime(record.get(date_field))
        if dt is not None and _naive_utc(dt) >= cutoff:
            result.append(record)
    return result
