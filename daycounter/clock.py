"""
Day Keys

A day key is the local calendar date of a moment, formatted YYYY-MM-DD.
All counts for one user on one day live under the same key, so two
moments on the same calendar day must always produce the same key.
"""

from datetime import datetime, tzinfo
from typing import Callable, Optional, Union

DAY_KEY_FORMAT = "%Y-%m-%d"

Timestamp = Union[datetime, int, float]

# Injected wherever "now" is needed so tests can move between days
Clock = Callable[[], datetime]


def day_key_of(
    timestamp: Optional[Timestamp] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Convert a moment into its day key.

    Args:
        timestamp: A datetime or POSIX timestamp in seconds. None means now.
            Naive datetimes are taken to already be local time.
        tz: Timezone whose calendar decides the day. Process-local time
            when omitted.

    Returns:
        The calendar date as YYYY-MM-DD
    """
    if timestamp is None:
        moment = datetime.now(tz)
    elif isinstance(timestamp, datetime):
        moment = timestamp
        if moment.tzinfo is not None:
            moment = moment.astimezone(tz)
        elif tz is not None:
            # Naive means local; re-read it on the requested calendar
            moment = moment.astimezone().astimezone(tz)
    else:
        moment = datetime.fromtimestamp(timestamp, tz)
    return moment.strftime(DAY_KEY_FORMAT)


def system_clock(tz: Optional[tzinfo] = None) -> Clock:
    """Return a clock reading the current time, optionally in a fixed timezone."""
    def now() -> datetime:
        return datetime.now(tz)
    return now
