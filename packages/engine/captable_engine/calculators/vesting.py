"""Time-based vesting calculator.

Computes how many units of a grant have vested as of a date, and enumerates
the discrete vesting events of a schedule.

Elapsed time is counted in whole calendar months: the elapsed month count at
``as_of`` is the largest k such that ``start + k months <= as_of``. Vesting
dates are generated from the same rule, so a date produced by
generate_vesting_schedule always reports exactly the cumulative total of its
event when passed back to compute_vested.

Cumulative vested units are always ``floor(units × vested_months / duration)``
rather than a sum of separately rounded period amounts. This keeps the
cumulative total non-decreasing and makes it reach ``units`` exactly at the
end of the schedule.
"""

import datetime as dt
import logging
from decimal import Decimal
from typing import List, Mapping, Optional, Union

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError, issues_from_pydantic
from ..money import ratio
from ..schemas import VestingEvent, VestingSchedule, VestingStatus

logger = logging.getLogger(__name__)

ScheduleInput = Union[VestingSchedule, Mapping]
DateInput = Union[dt.date, dt.datetime]


# =============================================================================
# Input coercion
# =============================================================================

def _as_date(value: DateInput) -> dt.date:
    """Drop any time-of-day component."""
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def _coerce_schedule(schedule: ScheduleInput) -> VestingSchedule:
    if isinstance(schedule, VestingSchedule):
        return schedule
    try:
        return VestingSchedule.model_validate(schedule)
    except PydanticValidationError as exc:
        raise ValidationError(issues_from_pydantic(exc, field_prefix="schedule.")) from exc


def _check_units(units: int) -> int:
    if isinstance(units, bool) or not isinstance(units, int):
        raise ValidationError.single("units", "units must be a whole number")
    if units < 0:
        raise ValidationError.single("units", "units cannot be negative")
    return units


# =============================================================================
# Calendar arithmetic
# =============================================================================

def elapsed_months(schedule: VestingSchedule, as_of: DateInput) -> int:
    """Whole calendar months from the schedule start to ``as_of``.

    Negative when ``as_of`` is before the start.

    Example:
        start 2025-01-31:
            2025-02-27 → 0
            2025-02-28 → 1  (Jan 31 + 1 month clamps to Feb 28)
    """
    as_of = _as_date(as_of)
    delta = relativedelta(as_of, schedule.start_date)
    months = delta.years * 12 + delta.months

    # relativedelta counts from the start day; realign with month-end clamping
    if schedule.date_after(months + 1) <= as_of:
        months += 1
    elif schedule.date_after(months) > as_of:
        months -= 1
    return months


def _vested_months(schedule: VestingSchedule, elapsed: int) -> int:
    """Months of the schedule credited as vested after ``elapsed`` months."""
    if elapsed < schedule.cliff_months:
        return 0
    if elapsed >= schedule.duration_months:
        return schedule.duration_months
    period = schedule.period_months
    completed = (elapsed // period) * period
    # A cliff that is not a multiple of the period still credits its full length
    return max(schedule.cliff_months, completed)


def vesting_months(schedule: VestingSchedule) -> List[int]:
    """Month offsets (from start) at which units vest, ascending.

    The cliff comes first when there is one; the end of the schedule is
    always last.
    """
    cliff = schedule.cliff_months
    period = schedule.period_months
    duration = schedule.duration_months

    months = [cliff] if cliff > 0 else []
    offset = (cliff // period + 1) * period
    while offset < duration:
        months.append(offset)
        offset += period
    if not months or months[-1] != duration:
        months.append(duration)
    return months


# =============================================================================
# Public API
# =============================================================================

def compute_vested(units: int, schedule: ScheduleInput, as_of: DateInput) -> int:
    """Units vested as of a date.

    Args:
        units: Total units granted
        schedule: VestingSchedule (or a JSON-shaped mapping of one)
        as_of: Date to evaluate at (time-of-day ignored)

    Returns:
        Vested units: 0 before the cliff, ``units`` at or after the end date

    Raises:
        ValidationError: If units is negative or the schedule is malformed
    """
    units = _check_units(units)
    schedule = _coerce_schedule(schedule)
    months = _vested_months(schedule, elapsed_months(schedule, as_of))
    return units * months // schedule.duration_months


def compute_unvested(units: int, schedule: ScheduleInput, as_of: DateInput) -> int:
    """Units not yet vested as of a date."""
    return units - compute_vested(units, schedule, as_of)


def get_next_vesting_date(schedule: ScheduleInput, as_of: DateInput) -> Optional[dt.date]:
    """Next date strictly after ``as_of`` on which units vest.

    Returns the cliff date before the cliff, and None once fully vested.
    """
    schedule = _coerce_schedule(schedule)
    as_of = _as_date(as_of)
    for months in vesting_months(schedule):
        candidate = schedule.date_after(months)
        if candidate > as_of:
            return candidate
    return None


def generate_vesting_schedule(units: int, schedule: ScheduleInput) -> List[VestingEvent]:
    """Enumerate every vesting event of a grant, ordered by date.

    One event per vesting date from the cliff (inclusive) through full
    vesting. Without a cliff, the first event is the end of the first period.
    Dates whose increment rounds down to zero units are skipped.

    Example:
        48,000 units, 12-month cliff, 48 months, monthly:
            2026-01-01  12,000  (cumulative 12,000)
            2026-02-01   1,000  (cumulative 13,000)
            ...
            2029-01-01   1,000  (cumulative 48,000)
        → 37 events
    """
    units = _check_units(units)
    schedule = _coerce_schedule(schedule)

    events: List[VestingEvent] = []
    previous = 0
    for months in vesting_months(schedule):
        cumulative = units * months // schedule.duration_months
        increment = cumulative - previous
        if increment > 0:
            events.append(VestingEvent(
                date=schedule.date_after(months),
                vested_units=increment,
                cumulative_vested=cumulative,
            ))
        previous = cumulative

    logger.debug(
        "Generated %s vesting events for %s units (%s)",
        len(events), units, schedule.frequency.value,
    )
    return events


def summarize_vesting(units: int, schedule: ScheduleInput, as_of: DateInput) -> VestingStatus:
    """Vesting position of a grant as of a date (vested, unvested, next date)."""
    units = _check_units(units)
    schedule = _coerce_schedule(schedule)
    as_of = _as_date(as_of)

    vested = compute_vested(units, schedule, as_of)
    return VestingStatus(
        as_of=as_of,
        units=units,
        vested=vested,
        unvested=units - vested,
        percent_vested=ratio(Decimal(vested) * 100, Decimal(units), 2),
        next_vesting_date=get_next_vesting_date(schedule, as_of),
        fully_vested_date=schedule.end_date,
    )
