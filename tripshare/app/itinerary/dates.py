"""Date derivation for ordered destinations.

Destination dates are never stored. They are re-derived from the trip start
date and the current destination order/durations whenever needed.
"""

import math
from collections.abc import Sequence
from datetime import date, timedelta
from enum import Enum
from typing import Literal

from pydantic import BaseModel

EndDateError = Literal["endDateBeforeStart", "endDateCollision"]


class DateRange(BaseModel):
    """Calendar range of one destination; both None when the trip has no start."""

    start: date | None
    end: date | None


class EndDateValidation(BaseModel):
    """Outcome of validating a proposed trip end date."""

    valid: bool
    error: EndDateError | None = None
    difference: int | None = None


class EndDatePolicy(str, Enum):
    """What to do with surplus days when the trip end moves later."""

    append = "append"
    extend = "extend"


def calculate_date(base: date | None, days: int) -> date | None:
    """Add whole days to a date.

    Returns None if there is no base date or the result is past date.max.
    """
    if base is None:
        return None
    try:
        return base + timedelta(days=days)
    except OverflowError:
        return None


def get_total_days(durations: Sequence[int | None]) -> int:
    """Sum durations, counting missing ones as zero."""
    return sum(d or 0 for d in durations)


def derive_date_ranges(trip_start: date | None, durations: Sequence[int | None]) -> list[DateRange]:
    """Derive (start, end) for every destination in order.

    start[i] = trip_start + sum(durations[0..i-1]); end[i] = start[i] + durations[i].
    Consecutive destinations share the boundary day: start[i+1] == end[i].
    Dates past date.max come back as None.

    Args:
        trip_start: Trip start date, or None if unset
        durations: Destination durations in itinerary order

    Returns:
        One DateRange per destination
    """
    if trip_start is None:
        return [DateRange(start=None, end=None) for _ in durations]

    ranges: list[DateRange] = []
    offset = 0
    for duration in durations:
        start = calculate_date(trip_start, offset)
        offset += duration or 0
        ranges.append(DateRange(start=start, end=calculate_date(trip_start, offset)))

    return ranges


def get_destination_dates(
    trip_start: date | None, durations: Sequence[int | None], index: int
) -> DateRange:
    """Derive the range of a single destination by index."""
    if trip_start is None:
        return DateRange(start=None, end=None)

    offset = get_total_days(durations[:index])
    return DateRange(
        start=calculate_date(trip_start, offset),
        end=calculate_date(trip_start, offset + (durations[index] or 0)),
    )


def validate_end_date(start: date, proposed_end: date, current_total_days: int) -> EndDateValidation:
    """Validate a proposed trip end date against already scheduled days.

    Returns:
        valid=False with endDateBeforeStart if the end precedes the start;
        valid=False with endDateCollision and the negative day difference if
        the new end would cut into scheduled destinations;
        otherwise valid=True with the non-negative surplus in days.
    """
    if proposed_end < start:
        return EndDateValidation(valid=False, error="endDateBeforeStart")

    proposed_total_days = math.ceil((proposed_end - start) / timedelta(days=1))
    difference = proposed_total_days - current_total_days

    if difference < 0:
        return EndDateValidation(valid=False, error="endDateCollision", difference=difference)

    return EndDateValidation(valid=True, difference=difference)
