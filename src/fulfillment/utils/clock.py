"""Timezone helpers.

Timestamps from couriers and clients may arrive without a zone; they are
read as UTC so that every comparison in the domain is between aware values.
"""

from datetime import UTC, datetime


def as_utc(moment: datetime | None) -> datetime | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def utcnow() -> datetime:
    return datetime.now(UTC)
