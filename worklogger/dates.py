"""Date and time-of-day helpers for work log processing.

Dates in work log files are written as ``month-day-year`` (``"sept-07-2025"``)
and normalized to canonical ``YYYY-MM-DD`` strings. Times of day are kept as
zero-padded ``HH:MM`` strings at minute granularity.
"""

import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from .errors import InvalidCalendarDate, InvalidFormat, UnknownMonth

MONTH_NAMES = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}

MIN_YEAR = 1900
MAX_YEAR = 3000
MINUTES_PER_DAY = 24 * 60

_DATE_PATTERN = re.compile(r"^(\w+)-(\d{1,2})-(\d{4})$")
_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_date_string(date_str):
    """Parse a date string like 'sept-07-2025' into canonical 'YYYY-MM-DD'."""
    if not isinstance(date_str, str):
        raise InvalidFormat(f"Date must be a string, got {type(date_str).__name__}")

    match = _DATE_PATTERN.match(date_str.strip().lower())
    if not match:
        raise InvalidFormat(
            f"Date must be in format 'month-day-year' (e.g., 'sept-07-2025'), got '{date_str}'"
        )

    month_str, day, year = match.groups()
    month = MONTH_NAMES.get(month_str)
    if not month:
        raise UnknownMonth(
            f"Invalid month '{month_str}'. Available: {sorted(MONTH_NAMES)}"
        )

    year_num = int(year)
    day_num = int(day)
    if year_num < MIN_YEAR or year_num > MAX_YEAR:
        raise InvalidCalendarDate(f"Invalid year: {year}")

    try:
        parsed = date(year_num, month, day_num)
    except ValueError as e:
        raise InvalidCalendarDate(f"Invalid date: {date_str} ({e})") from e

    if (parsed.year, parsed.month, parsed.day) != (year_num, month, day_num):
        raise InvalidCalendarDate(f"Invalid date: {date_str}")

    return parsed.isoformat()


def parse_time_input(time_str):
    """Parse time string in various formats (HH:MM AM/PM, HH:MM, HH) to 'HH:MM'."""
    if not isinstance(time_str, str) or not time_str.strip():
        raise InvalidFormat("Start time is required")

    time_str = time_str.strip()
    upper = time_str.upper()

    formats = ("%I:%M %p", "%I:%M%p", "%I %p") if upper.endswith(("AM", "PM")) else ("%H:%M", "%H")
    for fmt in formats:
        try:
            return datetime.strptime(upper, fmt).strftime("%H:%M")
        except ValueError:
            continue

    raise InvalidFormat(f"Invalid time format: {time_str}")


def hours_to_minutes(hours):
    """Convert fractional hours to whole minutes, rounding half up."""
    if not hours:
        return 0
    minutes = Decimal(str(hours)) * 60
    return int(minutes.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def time_to_minutes(time_str):
    match = _CLOCK_PATTERN.match(time_str or "")
    if not match:
        raise InvalidFormat(f"Time must be in 'HH:MM' format, got '{time_str}'")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidFormat(f"Time out of range: '{time_str}'")
    return hour * 60 + minute


def minutes_to_time(total_minutes):
    # Wraps into a single 24 hour day.
    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def add_hours_to_time(time_str, hours):
    """Add fractional hours to an 'HH:MM' time, returning 'HH:MM'."""
    return minutes_to_time(time_to_minutes(time_str) + hours_to_minutes(hours))


def format_time_12h(time_str):
    """Format an 'HH:MM' time for display in 12-hour format, e.g. '1:30 PM'."""
    minutes = time_to_minutes(time_str)
    hour, minute = divmod(minutes, 60)
    period = "PM" if hour >= 12 else "AM"
    hour12 = hour % 12 or 12
    return f"{hour12}:{minute:02d} {period}"


def format_time_range(start_time, hours):
    """Build the '[start - end]' bracket used in time entry comments."""
    end_time = add_hours_to_time(start_time, hours)
    return f"[{format_time_12h(start_time)} - {format_time_12h(end_time)}]"


def format_duration(hours):
    """Format hours as an ISO 8601 duration, e.g. 2.5 -> 'PT2.5H'."""
    hours = float(hours)
    if hours.is_integer():
        return f"PT{int(hours)}H"
    return f"PT{hours!r}H"


_DURATION_PATTERN = re.compile(
    r"^PT(?:(\d+(?:\.\d+)?)H)?(?:(\d+(?:\.\d+)?)M)?(?:(\d+(?:\.\d+)?)S)?$"
)


def parse_duration(duration):
    """Parse an ISO 8601 duration like 'PT2H30M' or 'PT2.5H' into hours."""
    match = _DURATION_PATTERN.match(duration or "")
    if not match or not any(match.groups()):
        return 0.0
    hours, minutes, seconds = (float(part) if part else 0.0 for part in match.groups())
    return hours + minutes / 60 + seconds / 3600
