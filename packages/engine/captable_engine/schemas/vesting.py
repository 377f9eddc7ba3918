"""Vesting schedule models.

A vesting schedule turns a grant of units into a timeline of vested units.
Schedules are immutable once attached to a grant; vesting events are
produced by the calculator and never mutated.
"""

import datetime as dt
from enum import Enum
from typing import Optional
from decimal import Decimal
from dateutil.relativedelta import relativedelta
from pydantic import AliasChoices, Field, model_validator

from .base import DomainModel, HolderId, UnitCount


# =============================================================================
# Vesting Frequency
# =============================================================================

class VestingFrequency(str, Enum):
    """How often vesting accrues after the cliff."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"

    @property
    def months(self) -> int:
        return _FREQUENCY_MONTHS[self]


_FREQUENCY_MONTHS = {
    VestingFrequency.MONTHLY: 1,
    VestingFrequency.QUARTERLY: 3,
    VestingFrequency.ANNUALLY: 12,
}


# =============================================================================
# Vesting Schedule
# =============================================================================

class VestingSchedule(DomainModel):
    """Time-based vesting schedule.

    Mechanics:
        - Nothing vests before the cliff.
        - At the cliff, cliff_months worth of units vest in one step.
        - After the cliff, units vest at every frequency boundary.
        - Everything is vested once duration_months have elapsed.

    Example:
        Standard 4-year grant with a 1-year cliff, vesting monthly:
            VestingSchedule(start_date=date(2025, 1, 1), cliff_months=12,
                            duration_months=48, frequency="MONTHLY")
            2026-01-01: 25% vested (cliff)
            2026-02-01 .. 2029-01-01: 1/48 more each month
    """

    start_date: dt.date = Field(
        validation_alias=AliasChoices("start_date", "startDate", "start"),
        description="Vesting commencement date"
    )

    cliff_months: int = Field(
        default=0,
        ge=0,
        description="Months before anything vests (0 = no cliff)"
    )

    duration_months: int = Field(
        gt=0,
        description="Months until fully vested"
    )

    frequency: VestingFrequency = Field(
        default=VestingFrequency.MONTHLY,
        description="Vesting period after the cliff"
    )

    @model_validator(mode='after')
    def validate_cliff(self):
        if self.cliff_months > self.duration_months:
            raise ValueError("cliff_months cannot exceed duration_months")
        return self

    @property
    def period_months(self) -> int:
        return self.frequency.months

    def date_after(self, months: int) -> dt.date:
        """Calendar date ``months`` after the start (month-end clamped)."""
        return self.start_date + relativedelta(months=months)

    @property
    def cliff_date(self) -> dt.date:
        return self.date_after(self.cliff_months)

    @property
    def end_date(self) -> dt.date:
        return self.date_after(self.duration_months)


# =============================================================================
# Outputs
# =============================================================================

class VestingEvent(DomainModel):
    """Units vesting on one date."""

    date: dt.date
    vested_units: int = Field(ge=0, description="Units vesting on this date")
    cumulative_vested: int = Field(ge=0, description="Total vested as of this date")


class VestingStatus(DomainModel):
    """Vesting position of a grant as of a date."""

    as_of: dt.date
    units: int
    vested: int
    unvested: int
    percent_vested: Decimal = Field(description="vested / units × 100 (display only)")
    next_vesting_date: Optional[dt.date] = None
    fully_vested_date: dt.date


class VestingGrant(DomainModel):
    """A grant of units to a holder under a vesting schedule."""

    grant_id: str = Field(min_length=1)
    holder_id: HolderId
    units: UnitCount
    schedule: VestingSchedule
