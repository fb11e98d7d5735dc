"""
Time Scale Utilities

Conversions between TLE epochs, calendar datetimes, Julian dates and the
"days since 1950" count the SGP4 theory is formulated in.
"""

import math
from datetime import datetime, timedelta, timezone

# Julian date of 1949 December 31 00:00 UT, the zero point of the SGP4 day count
JD_1950_EPOCH = 2433281.5
JD_J2000 = 2451545.0
TWOPI = 2.0 * math.pi
DEG2RAD = math.pi / 180.0


def resolve_two_digit_year(year: int) -> int:
    """Map a two-digit TLE year onto 1957-2056."""
    return 1900 + year if year >= 57 else 2000 + year


def julian_day_number(year: int, month: int, day: int) -> float:
    """Julian date of 00:00 UT on the given Gregorian calendar date."""
    if month <= 2:
        year -= 1
        month += 12

    a = year // 100
    b = 2 - a + a // 4

    return int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + b - 1524.5


def epoch_to_datetime(year: int, day_of_year: float) -> datetime:
    """
    Convert a TLE epoch to an aware UTC datetime.

    Args:
        year: Four-digit year
        day_of_year: Day of year with fractional part, 1.0 is Jan 1 00:00

    Returns:
        Datetime object in UTC
    """
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    return start + timedelta(days=day_of_year - 1.0)


def days_since_1950(year: int, day_of_year: float) -> float:
    """Days from 1949 December 31 00:00 UT to the given TLE epoch."""
    year_start = julian_day_number(year, 1, 1) - JD_1950_EPOCH
    return year_start + (day_of_year - 1.0)


def greenwich_sidereal_time(jdut1: float) -> float:
    """
    Greenwich mean sidereal time in radians, IAU-82 model.

    Args:
        jdut1: Julian date (UT1)

    Returns:
        Angle in [0, 2*pi)
    """
    tut1 = (jdut1 - JD_J2000) / 36525.0
    temp = (-6.2e-6 * tut1 * tut1 * tut1 + 0.093104 * tut1 * tut1
            + (876600.0 * 3600.0 + 8640184.812866) * tut1 + 67310.54841)
    # seconds of time to radians: 360 deg / 86400 s
    temp = math.fmod(temp * DEG2RAD / 240.0, TWOPI)
    if temp < 0.0:
        temp += TWOPI
    return temp


def minutes_between(start: datetime, end: datetime) -> float:
    """Signed minutes from ``start`` to ``end``; naive datetimes are UTC."""
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return (end - start).total_seconds() / 60.0
