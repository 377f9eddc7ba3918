"""Tests for the vesting calculator.

Tests cover:
1. Cliff boundaries and full vesting
2. Vesting event timelines (monthly, quarterly, annual, no cliff)
3. Calendar month arithmetic (month-end starts)
4. Uneven schedules (cliff or duration not a multiple of the frequency)
5. Next vesting date and vesting summaries
6. Input validation
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from captable_engine import (
    ValidationError,
    VestingFrequency,
    VestingSchedule,
    compute_unvested,
    compute_vested,
    generate_vesting_schedule,
    get_next_vesting_date,
    summarize_vesting,
)


@pytest.fixture
def standard_schedule():
    """4-year schedule, 1-year cliff, monthly vesting from 2025-01-01."""
    return VestingSchedule(
        start_date=date(2025, 1, 1),
        cliff_months=12,
        duration_months=48,
        frequency=VestingFrequency.MONTHLY,
    )


class TestComputeVested:
    """Vested units as of a date."""

    def test_nothing_vested_day_before_cliff(self, standard_schedule):
        assert compute_vested(48000, standard_schedule, date(2025, 12, 31)) == 0

    def test_cliff_vests_cliff_fraction(self, standard_schedule):
        """At the cliff, 12/48 of the grant vests in one step."""
        assert compute_vested(48000, standard_schedule, date(2026, 1, 1)) == 12000

    def test_nothing_vested_before_start(self, standard_schedule):
        assert compute_vested(48000, standard_schedule, date(2024, 6, 1)) == 0

    def test_monthly_accrual_after_cliff(self, standard_schedule):
        assert compute_vested(48000, standard_schedule, date(2026, 2, 1)) == 13000
        # Mid-month: only whole months count
        assert compute_vested(48000, standard_schedule, date(2026, 2, 28)) == 13000
        assert compute_vested(48000, standard_schedule, date(2027, 1, 1)) == 24000

    def test_fully_vested_at_end_date(self, standard_schedule):
        assert compute_vested(48000, standard_schedule, date(2029, 1, 1)) == 48000

    def test_fully_vested_after_end_date(self, standard_schedule):
        assert compute_vested(48000, standard_schedule, date(2035, 1, 1)) == 48000

    def test_uneven_units_reach_total_exactly(self, standard_schedule):
        """1,001 units over 48 months never overshoot and end at exactly 1,001."""
        units = 1001
        previous = 0
        for months in range(0, 49):
            as_of = standard_schedule.date_after(months)
            vested = compute_vested(units, standard_schedule, as_of)
            assert previous <= vested <= units
            previous = vested
        assert previous == units

    def test_unvested_is_complement(self, standard_schedule):
        as_of = date(2027, 7, 15)
        vested = compute_vested(48000, standard_schedule, as_of)
        assert compute_unvested(48000, standard_schedule, as_of) == 48000 - vested

    def test_zero_units(self, standard_schedule):
        assert compute_vested(0, standard_schedule, date(2030, 1, 1)) == 0

    def test_datetime_time_of_day_ignored(self, standard_schedule):
        assert compute_vested(48000, standard_schedule, datetime(2026, 1, 1, 23, 59)) == 12000
        assert compute_vested(48000, standard_schedule, datetime(2025, 12, 31, 23, 59)) == 0

    def test_json_shaped_schedule(self):
        """Schedules can be passed as JSON-shaped mappings with 'start'."""
        schedule = {
            "start": "2025-01-01",
            "cliffMonths": 12,
            "durationMonths": 48,
            "frequency": "MONTHLY",
        }
        assert compute_vested(48000, schedule, date(2026, 1, 1)) == 12000

    def test_idempotent(self, standard_schedule):
        as_of = date(2027, 3, 1)
        assert compute_vested(48000, standard_schedule, as_of) == compute_vested(
            48000, standard_schedule, as_of
        )


class TestCalendarMonths:
    """Elapsed months follow calendar months, including month-end clamping."""

    def test_month_end_start(self):
        """Starting Jan 31: Feb 28 is one month in, Feb 27 is not."""
        schedule = VestingSchedule(
            start_date=date(2025, 1, 31),
            cliff_months=0,
            duration_months=12,
            frequency="MONTHLY",
        )
        assert compute_vested(1200, schedule, date(2025, 2, 27)) == 0
        assert compute_vested(1200, schedule, date(2025, 2, 28)) == 100
        assert compute_vested(1200, schedule, date(2025, 3, 30)) == 100
        assert compute_vested(1200, schedule, date(2025, 3, 31)) == 200

    def test_event_dates_agree_with_compute_vested(self):
        schedule = VestingSchedule(
            start_date=date(2024, 8, 31),
            cliff_months=6,
            duration_months=36,
            frequency="MONTHLY",
        )
        events = generate_vesting_schedule(36000, schedule)
        for event in events:
            assert compute_vested(36000, schedule, event.date) == event.cumulative_vested

    def test_event_dates_are_not_chained(self):
        """Dates are counted from the start, so a short month does not drift later dates."""
        schedule = VestingSchedule(
            start_date=date(2025, 1, 31),
            cliff_months=0,
            duration_months=3,
            frequency="MONTHLY",
        )
        events = generate_vesting_schedule(300, schedule)
        assert [e.date for e in events] == [date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]


class TestGenerateVestingSchedule:
    """Vesting event timelines."""

    def test_four_year_monthly_with_cliff(self, standard_schedule):
        """48,000 units: 1 cliff event + 36 monthly events."""
        events = generate_vesting_schedule(48000, standard_schedule)

        assert len(events) == 37

        assert events[0].date == date(2026, 1, 1)
        assert events[0].vested_units == 12000
        assert events[0].cumulative_vested == 12000

        assert events[1].date == date(2026, 2, 1)
        assert events[1].vested_units == 1000

        assert events[-1].date == date(2029, 1, 1)
        assert events[-1].cumulative_vested == 48000

    def test_quarterly(self):
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=12,
            duration_months=48,
            frequency=VestingFrequency.QUARTERLY,
        )
        events = generate_vesting_schedule(100000, schedule)

        assert len(events) == 13
        assert events[1].date == date(2026, 4, 1)
        assert events[-1].cumulative_vested == 100000

    def test_annual(self):
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=12,
            duration_months=48,
            frequency=VestingFrequency.ANNUALLY,
        )
        events = generate_vesting_schedule(4000, schedule)

        assert [e.vested_units for e in events] == [1000, 1000, 1000, 1000]
        assert events[-1].date == date(2029, 1, 1)

    def test_no_cliff_starts_after_first_period(self):
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=0,
            duration_months=12,
            frequency=VestingFrequency.MONTHLY,
        )
        events = generate_vesting_schedule(12000, schedule)

        assert len(events) == 12
        assert events[0].date == date(2025, 2, 1)
        assert events[0].vested_units == 1000

    def test_cliff_equals_duration(self):
        """A cliff as long as the schedule is a single event that vests everything."""
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=12,
            duration_months=12,
            frequency=VestingFrequency.MONTHLY,
        )
        events = generate_vesting_schedule(5000, schedule)

        assert len(events) == 1
        assert events[0].date == date(2026, 1, 1)
        assert events[0].vested_units == 5000
        assert events[0].cumulative_vested == 5000

    def test_events_sum_to_grant_and_are_ordered(self):
        schedule = VestingSchedule(
            start_date=date(2025, 3, 15),
            cliff_months=12,
            duration_months=48,
            frequency="MONTHLY",
        )
        events = generate_vesting_schedule(1001, schedule)

        assert sum(e.vested_units for e in events) == 1001
        assert all(e.vested_units > 0 for e in events)
        dates = [e.date for e in events]
        assert dates == sorted(dates)
        cumulative = [e.cumulative_vested for e in events]
        assert cumulative == sorted(cumulative)

    def test_zero_increment_periods_skipped(self):
        """10 units over 48 months: months that round to no new units produce no event."""
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=0,
            duration_months=48,
            frequency="MONTHLY",
        )
        events = generate_vesting_schedule(10, schedule)

        assert len(events) == 10
        assert events[-1].cumulative_vested == 10

    def test_zero_units_has_no_events(self, standard_schedule):
        assert generate_vesting_schedule(0, standard_schedule) == []


class TestUnevenSchedules:
    """Cliffs and durations that are not multiples of the frequency."""

    def test_cliff_not_multiple_of_quarter(self):
        """4-month cliff, quarterly: 4 months credit at the cliff, then quarter boundaries."""
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=4,
            duration_months=12,
            frequency="QUARTERLY",
        )
        assert compute_vested(1200, schedule, date(2025, 4, 30)) == 0
        assert compute_vested(1200, schedule, date(2025, 5, 1)) == 400
        assert compute_vested(1200, schedule, date(2025, 6, 1)) == 400
        assert compute_vested(1200, schedule, date(2025, 7, 1)) == 600

        events = generate_vesting_schedule(1200, schedule)
        assert [e.vested_units for e in events] == [400, 200, 300, 300]

    def test_duration_not_multiple_of_quarter(self):
        """10-month quarterly schedule fully vests at month 10."""
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=0,
            duration_months=10,
            frequency="QUARTERLY",
        )
        events = generate_vesting_schedule(1000, schedule)

        assert [e.cumulative_vested for e in events] == [300, 600, 900, 1000]
        assert events[-1].date == date(2025, 11, 1)


class TestNextVestingDate:
    """Next vesting date lookups."""

    def test_before_cliff_returns_cliff(self, standard_schedule):
        assert get_next_vesting_date(standard_schedule, date(2025, 6, 1)) == date(2026, 1, 1)

    def test_on_cliff_returns_following_month(self, standard_schedule):
        assert get_next_vesting_date(standard_schedule, date(2026, 1, 1)) == date(2026, 2, 1)

    def test_mid_period(self, standard_schedule):
        assert get_next_vesting_date(standard_schedule, date(2027, 5, 20)) == date(2027, 6, 1)

    def test_quarterly_mid_period(self):
        schedule = VestingSchedule(
            start_date=date(2025, 1, 1),
            cliff_months=12,
            duration_months=48,
            frequency="QUARTERLY",
        )
        assert get_next_vesting_date(schedule, date(2026, 2, 15)) == date(2026, 4, 1)

    def test_last_vesting_date(self, standard_schedule):
        assert get_next_vesting_date(standard_schedule, date(2028, 12, 15)) == date(2029, 1, 1)

    def test_fully_vested_returns_none(self, standard_schedule):
        assert get_next_vesting_date(standard_schedule, date(2029, 1, 1)) is None
        assert get_next_vesting_date(standard_schedule, date(2031, 1, 1)) is None


class TestSummarizeVesting:
    """Vesting status summaries."""

    def test_halfway(self, standard_schedule):
        status = summarize_vesting(48000, standard_schedule, date(2027, 1, 1))

        assert status.vested == 24000
        assert status.unvested == 24000
        assert status.percent_vested == Decimal("50.00")
        assert status.next_vesting_date == date(2027, 2, 1)
        assert status.fully_vested_date == date(2029, 1, 1)

    def test_fully_vested(self, standard_schedule):
        status = summarize_vesting(48000, standard_schedule, date(2030, 1, 1))

        assert status.vested == 48000
        assert status.percent_vested == Decimal("100.00")
        assert status.next_vesting_date is None

    def test_zero_units(self, standard_schedule):
        status = summarize_vesting(0, standard_schedule, date(2030, 1, 1))
        assert status.percent_vested == Decimal("0")


class TestVestingValidation:
    """Invalid vesting input."""

    def test_negative_units(self, standard_schedule):
        with pytest.raises(ValidationError, match="units cannot be negative"):
            compute_vested(-1, standard_schedule, date(2026, 1, 1))

    def test_fractional_units(self, standard_schedule):
        with pytest.raises(ValidationError, match="whole number"):
            generate_vesting_schedule(10.5, standard_schedule)

    def test_cliff_longer_than_duration(self):
        schedule = {
            "start": "2025-01-01",
            "cliffMonths": 24,
            "durationMonths": 12,
            "frequency": "MONTHLY",
        }
        with pytest.raises(ValidationError, match="cliff_months cannot exceed duration_months") as exc_info:
            compute_vested(1000, schedule, date(2026, 1, 1))
        assert exc_info.value.fields == ["schedule"]

    def test_zero_duration(self):
        schedule = {"start": "2025-01-01", "cliffMonths": 0, "durationMonths": 0}
        with pytest.raises(ValidationError) as exc_info:
            generate_vesting_schedule(1000, schedule)
        assert "schedule.durationMonths" in exc_info.value.fields

    def test_unknown_frequency(self):
        schedule = {"start": "2025-01-01", "durationMonths": 12, "frequency": "WEEKLY"}
        with pytest.raises(ValidationError):
            get_next_vesting_date(schedule, date(2025, 6, 1))
