"""Circular-week helpers and timezone offsets shared by the timing services.

All day arithmetic goes through this module so that previous/next/days-until
logic is defined once over the canonical Sunday-first week.
"""

from django.utils import timezone

DAY_NAMES = (
    'Sunday',
    'Monday',
    'Tuesday',
    'Wednesday',
    'Thursday',
    'Friday',
    'Saturday',
)

WEEKEND_DAYS = ('Saturday', 'Sunday')

# Hours relative to US Eastern time
TIMEZONE_OFFSETS = {
    'PST': {'offset': -3, 'note': 'West Coast - earlier in the day recommended'},
    'MST': {'offset': -2, 'note': 'Mountain Time - standard timing'},
    'CST': {'offset': -1, 'note': 'Central Time - standard timing'},
    'EST': {'offset': 0, 'note': 'East Coast - baseline'},
    'GMT': {'offset': 5, 'note': 'UK/Europe - early morning EST'},
    'IST': {'offset': 10.5, 'note': 'India - very early morning EST'},
}

DEFAULT_TIMEZONE = 'EST'


def day_index(name):
    """Return the Sunday-based index (0-6) for a day name."""
    try:
        return DAY_NAMES.index(name)
    except ValueError:
        raise ValueError(f'Unknown day of week: {name!r}')


def day_name(dt):
    """Name of the weekday of ``dt`` in the active local timezone."""
    if timezone.is_aware(dt):
        dt = timezone.localtime(dt)
    # datetime.weekday() is Monday-based
    return DAY_NAMES[(dt.weekday() + 1) % 7]


def shift_day(name, days):
    return DAY_NAMES[(day_index(name) + days) % 7]


def previous_day(name):
    return shift_day(name, -1)


def next_day(name):
    return shift_day(name, 1)


def days_until(current, target):
    """Days from ``current`` forward to the next ``target`` (0 when equal)."""
    return (day_index(target) - day_index(current)) % 7


def timezone_offset(code):
    entry = TIMEZONE_OFFSETS.get((code or '').upper())
    return entry['offset'] if entry else None


def time_zone_considerations():
    return {code: dict(entry) for code, entry in TIMEZONE_OFFSETS.items()}


def parse_hour_range(hour_range):
    """Extract the starting hour from a label such as ``"9-11 AM"``."""
    head = str(hour_range).split('-', 1)[0].strip()
    if ':' in head:
        hours, minutes = head.split(':', 1)
        return int(hours) + int(minutes) / 60
    return int(head)


def format_hour(hour):
    """Render 9 as ``"9"`` and 22.5 as ``"22:30"``."""
    whole = int(hour)
    minutes = int(round((hour - whole) * 60))
    if minutes:
        return f'{whole}:{minutes:02d}'
    return str(whole)


def format_hour_range(start, length=2):
    return f'{format_hour(start)}-{format_hour(start + length)} AM'
