"""
=============================================================================
LEGACY DATE FORMAT
=============================================================================

Dates on this server travel in one fixed textual layout:

    Tue Oct 19 21:42:22 CEST 2021
    ─┬─ ─┬─ ┬─ ───┬──── ─┬── ─┬──
     │   │  │     │      │    │
  weekday │ day  time   zone year
        month

This is the layout produced by many runtime ``Date.toString()``
implementations, and it is what clients of this server send back in
If-Modified-Since. The server emits Last-Modified and Date in the same
layout (always in UTC) so a client can echo Last-Modified verbatim.

Parsing rules:
- weekday and month accept short ("Tue") or full ("Tuesday") English names,
  in any case; the weekday is not checked against the calendar date
- day is one or two digits, time is HH:MM:SS (24h)
- zone is an abbreviation from TIMEZONE_OFFSETS, "GMT+hh:mm" / "UTC-hh:mm",
  or an RFC 822 offset such as "+0200"

Anything else raises ValueError.

=============================================================================
"""

import re
from datetime import datetime, timedelta, timezone


WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

_WEEKDAY_NAMES = {
    name.lower()
    for short, full in zip(
        WEEKDAYS,
        ["Monday", "Tuesday", "Wednesday", "Thursday",
         "Friday", "Saturday", "Sunday"],
    )
    for name in (short, full)
}

_MONTH_NUMBERS = {}
for _index, (_short, _full) in enumerate(zip(
    MONTHS,
    ["January", "February", "March", "April", "May", "June", "July",
     "August", "September", "October", "November", "December"],
), start=1):
    _MONTH_NUMBERS[_short.lower()] = _index
    _MONTH_NUMBERS[_full.lower()] = _index


# Offsets in hours east of UTC. Ambiguous abbreviations (IST, CST in Asia)
# resolve to their most common reading in HTTP clients.
TIMEZONE_OFFSETS = {
    "UT": 0, "UTC": 0, "GMT": 0, "Z": 0,
    "WET": 0, "WEST": 1, "BST": 1,
    "CET": 1, "CEST": 2, "MET": 1, "MEST": 2,
    "EET": 2, "EEST": 3, "MSK": 3,
    "IST": 5.5, "JST": 9, "KST": 9, "HKT": 8, "SGT": 8,
    "AEST": 10, "AEDT": 11, "ACST": 9.5, "AWST": 8, "NZST": 12, "NZDT": 13,
    "AST": -4, "ADT": -3,
    "EST": -5, "EDT": -4, "CST": -6, "CDT": -5,
    "MST": -7, "MDT": -6, "PST": -8, "PDT": -7,
    "AKST": -9, "AKDT": -8, "HST": -10,
}

_DATE_PATTERN = re.compile(
    r"^\s*(?P<weekday>[A-Za-z]+)\s+(?P<month>[A-Za-z]+)\s+(?P<day>\d{1,2})\s+"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})\s+"
    r"(?P<zone>\S+)\s+(?P<year>\d{4})\s*$"
)
_NAMED_OFFSET_PATTERN = re.compile(r"^(?:GMT|UTC)([+-])(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)
_NUMERIC_OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def parse_timezone(zone: str) -> timezone:
    """
    Turn a zone token into a fixed-offset tzinfo.

    Raises:
        ValueError: If the token is not a known abbreviation or offset.
    """
    hours = TIMEZONE_OFFSETS.get(zone.upper())
    if hours is not None:
        return timezone(timedelta(hours=hours))

    match = _NAMED_OFFSET_PATTERN.match(zone) or _NUMERIC_OFFSET_PATTERN.match(zone)
    if not match:
        raise ValueError(f"Unknown time zone: {zone!r}")

    sign, hh, mm = match.groups()
    offset = timedelta(hours=int(hh), minutes=int(mm or 0))
    if offset >= timedelta(hours=24):
        raise ValueError(f"Time zone offset out of range: {zone!r}")
    return timezone(-offset if sign == "-" else offset)


def parse_legacy_date(value: str) -> datetime:
    """
    Parse a ``<weekday> <month> <day> <HH:mm:ss> <tz> <year>`` string.

    Args:
        value: Raw header value, e.g. "Tue Oct 19 21:42:22 CEST 2021".

    Returns:
        Timezone-aware datetime converted to UTC.

    Raises:
        ValueError: If the value does not follow the layout.

    Example:
        >>> parse_legacy_date("Tue Oct 19 21:42:22 CEST 2021")
        datetime.datetime(2021, 10, 19, 19, 42, 22, tzinfo=datetime.timezone.utc)
    """
    match = _DATE_PATTERN.match(value)
    if not match:
        raise ValueError(f"Unrecognized date: {value!r}")

    if match["weekday"].lower() not in _WEEKDAY_NAMES:
        raise ValueError(f"Unknown weekday: {match['weekday']!r}")

    month = _MONTH_NUMBERS.get(match["month"].lower())
    if month is None:
        raise ValueError(f"Unknown month: {match['month']!r}")

    tz = parse_timezone(match["zone"])

    # datetime() validates day-of-month, hour and minute ranges for us
    local = datetime(
        int(match["year"]), month, int(match["day"]),
        int(match["hour"]), int(match["minute"]), int(match["second"]),
        tzinfo=tz,
    )
    try:
        return local.astimezone(timezone.utc)
    except OverflowError:
        # e.g. "Mon Jan 1 00:00:00 CEST 0001" lands before year 1 in UTC
        raise ValueError(f"Date out of range: {value!r}") from None


def format_legacy_date(dt: datetime) -> str:
    """
    Format a datetime in the legacy layout, in UTC.

    Naive datetimes are assumed to already be UTC.

    Example:
        >>> format_legacy_date(datetime(2021, 10, 19, 19, 42, 22, tzinfo=timezone.utc))
        'Tue Oct 19 19:42:22 UTC 2021'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)

    return (
        f"{WEEKDAYS[dt.weekday()]} {MONTHS[dt.month - 1]} {dt.day:02d} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} UTC {dt.year}"
    )


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
