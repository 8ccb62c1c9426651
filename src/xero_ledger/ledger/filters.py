"""Query predicates, account matching and date normalisation."""

from __future__ import annotations

from collections.abc import Collection
from datetime import UTC, date, datetime, time
import re

_XERO_DATE_RE = re.compile(r"/Date\((-?\d+)([+-]\d{4})?\)/")


def parse_iso_date(value: str | date) -> date:
    """Return a calendar date from ``YYYY-MM-DD`` (or a date/datetime).

    ISO timestamps are accepted and truncated to their date.

    Raises:
        ValueError: If the string is not an ISO calendar date or timestamp.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError as e:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD") from e


def build_date_where(from_date: date, to_date: date) -> str:
    """Build a Xero ``where`` clause selecting ``from_date <= Date <= to_date``."""
    return (
        f"Date>=DateTime({from_date.year},{from_date.month},{from_date.day})"
        f"&&Date<=DateTime({to_date.year},{to_date.month},{to_date.day})"
    )


def start_of_day_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def line_matches_account(
    account_code: str | None,
    account_id: str | None,
    filter_codes: Collection[str] | None = None,
    filter_ids: Collection[str] | None = None,
) -> bool:
    """Check whether a ledger line belongs to the requested accounts.

    A line matches when its code is in ``filter_codes`` or its id is in
    ``filter_ids``. With neither filter given every line matches.
    """
    if filter_codes and account_code and account_code in filter_codes:
        return True
    if filter_ids and account_id and account_id in filter_ids:
        return True
    return not filter_codes and not filter_ids


def format_date(value: object) -> str:
    """Normalise a Xero date value to ``YYYY-MM-DD``.

    Handles the ``/Date(1704067200000+0000)/`` form Xero returns in JSON,
    ISO strings and date objects. Anything else becomes an empty string.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        match = _XERO_DATE_RE.fullmatch(value.strip())
        if match:
            millis = int(match.group(1))
            return datetime.fromtimestamp(millis / 1000, tz=UTC).date().isoformat()
        return value[:10]
    return ""
