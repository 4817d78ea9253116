"""Naive UTC helpers.

``datetime.utcnow()`` is deprecated since Python 3.12. This wrapper produces
the same naive UTC datetimes stored in the database.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive (tzinfo=None) datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
