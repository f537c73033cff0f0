"""Date manipulation utilities"""

from datetime import date


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end precedes start)"""
    return (end - start).days


def clamp_date(day: date, lower: date, upper: date) -> date:
    """Pin a date into [lower, upper]"""
    return max(lower, min(day, upper))
