"""Local-midnight date representation.

Business dates (invoice date, payment date, credit date) are calendar days in
the business's local timezone. They are stored as the UTC instant of local
midnight, e.g. 2024-03-01 in UTC+9 is stored as 2024-02-29T15:00:00Z.
"""

from datetime import UTC, date, datetime, timedelta

from invoicing.core.config import settings


def _offset() -> timedelta:
    return timedelta(hours=settings.LOCAL_UTC_OFFSET_HOURS)


def to_local_midnight(value: date | datetime) -> datetime:
    """Return the UTC instant of local midnight for the value's calendar day.

    A ``datetime`` is first shifted into local time so that an instant late in
    the UTC day lands on the correct local calendar day.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = (value.astimezone(UTC) + _offset()).date()
        else:
            value = value.date()
    return datetime(value.year, value.month, value.day, tzinfo=UTC) - _offset()


def to_local_date(value: datetime) -> date:
    """Inverse of ``to_local_midnight``: the local calendar day of a stored instant."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value.astimezone(UTC) + _offset()).date()


def is_local_midnight(value: datetime) -> bool:
    """Return True when a stored instant is already normalized."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return to_local_midnight(to_local_date(value)) == value.astimezone(UTC)
