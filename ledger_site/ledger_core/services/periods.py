import datetime

"""
    Date conventions used by every read path:
    - explicit user filters (dateFrom / dateTo) are inclusive on BOTH ends
    - calendar-month windows are half-open: [first of month, first of next)
    Dates are plain DateFields, so there is no time of day to strip.
"""


def date_range_filter(field, date_from=None, date_to=None):
    # Inclusive [date_from, date_to]; either bound may be open
    lookup = {}
    if date_from is not None:
        lookup[f"{field}__gte"] = date_from
    if date_to is not None:
        lookup[f"{field}__lte"] = date_to
    return lookup


def month_filter(field, start, end):
    # Half-open [start, end)
    return {f"{field}__gte": start, f"{field}__lt": end}


def month_start(day):
    return day.replace(day=1)


def add_months(day, months):
    """First day of the month `months` away from `day`'s month."""
    years, month_index = divmod(day.month - 1 + months, 12)
    return datetime.date(day.year + years, month_index + 1, 1)


def month_window(day):
    start = month_start(day)
    return start, add_months(start, 1)


def trailing_months(today, count):
    """The `count` month windows ending with today's month, oldest first."""
    current = month_start(today)
    return [
        (add_months(current, -offset), add_months(current, 1 - offset))
        for offset in range(count - 1, -1, -1)
    ]
