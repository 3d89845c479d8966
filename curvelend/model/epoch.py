"""Epoch arithmetic — calendar dates to integer model ages. Pure functions, no I/O.

The regression's independent variable is the number of whole days since
the genesis block (2009-01-03 UTC).
"""

from datetime import date, datetime, timezone

GENESIS_DATE = date(2009, 1, 3)


def as_date(value: date | datetime) -> date:
    """Collapse a ``datetime`` to its UTC calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def utc_today() -> date:
    """Today's calendar day in UTC."""
    return datetime.now(timezone.utc).date()


def days_since_genesis(value: date | datetime) -> int:
    """Return whole days elapsed between genesis and *value*.

    Dates before genesis yield negative ages; the fit filters them out.
    """
    return (as_date(value) - GENESIS_DATE).days


def month_start(value: date | datetime) -> date:
    """Return the first day of *value*'s calendar month."""
    d = as_date(value)
    return date(d.year, d.month, 1)


def add_months(value: date | datetime, months: int) -> date:
    """Return the first of the month *months* after *value*'s month."""
    d = as_date(value)
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def parse_month(raw: str | None) -> date:
    """Parse ``YYYY-MM`` or ``YYYY-MM-DD`` to the first of that month.

    An empty value means the current UTC month.
    """
    if not raw:
        return month_start(utc_today())
    if len(raw) == 7:
        raw = f"{raw}-01"
    return month_start(date.fromisoformat(raw))
