"""
CALENDAR SERVICE
================

Meeting recurrence arithmetic on top of dateutil's RRULE support.

A calendar is a seed date plus an RRULE string. A date is a valid meeting
date when the rule, anchored at the seed date, produces it.
"""

from datetime import datetime, time

from dateutil.rrule import rrulestr


def _at_midnight(day):
    return datetime.combine(day, time.min)


def parse_recurrence(recurrence, seed_date):
    """Build the dateutil rule for a recurrence anchored at `seed_date`.

    Raises ValueError for a malformed rule.
    """
    return rrulestr(recurrence, dtstart=_at_midnight(seed_date))


def is_valid_recurring_date(recurrence, seed_date, candidate):
    if candidate is None or candidate < seed_date:
        return False
    occurrence = parse_recurrence(recurrence, seed_date).after(_at_midnight(candidate), inc=True)
    return occurrence is not None and occurrence.date() == candidate


def get_recurring_dates(recurrence, seed_date, period_start, period_end, inclusive=True):
    """Meeting dates between two dates, boundaries included unless `inclusive` is False."""
    rule = parse_recurrence(recurrence, seed_date)
    occurrences = rule.between(_at_midnight(period_start), _at_midnight(period_end), inc=inclusive)
    return [occurrence.date() for occurrence in occurrences]


# ============================================================
# CALENDAR-LEVEL HELPERS
# ============================================================

def is_meeting_date(calendar, candidate):
    return is_valid_recurring_date(calendar.recurrence, calendar.start_date, candidate)


def count_expected_meetings(calendar, start_date, end_date):
    """
    Number of meetings in a cycle running from `start_date` to `end_date`.

    Both boundaries are meeting dates, so the meetings strictly between
    them are counted and the first meeting is added once.
    """
    between = get_recurring_dates(calendar.recurrence, calendar.start_date,
                                  start_date, end_date, inclusive=False)
    return len(between) + 1
