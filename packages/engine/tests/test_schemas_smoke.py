"""Smoke tests for schema validation.

These tests verify that:
1. Basic instantiation works, from snake_case or camelCase input
2. Field validation catches obvious errors
3. Economic rights are checked for consistency
4. Models are immutable
"""

import pytest
from decimal import Decimal
from datetime import date

from captable_engine.schemas import (
    Participation,
    SecurityHolder,
    SecurityType,
    VestingFrequency,
    VestingGrant,
    VestingSchedule,
    WaterfallDistribution,
)


class TestBasicInstantiation:
    """Basic schema instantiation."""

    def test_common_holder(self):
        holder = SecurityHolder(
            id="founder-1",
            name="Alice Founder",
            security_type="COMMON",
            shares=6_000_000,
        )
        assert holder.security_type == SecurityType.COMMON
        assert holder.participation == Participation.NONE
        assert holder.conversion_ratio == Decimal("1")
        assert holder.seniority == 0
        assert not holder.has_preference
        assert holder.preference_claim == Decimal("0")

    def test_preferred_holder_from_camel_case(self):
        holder = SecurityHolder.model_validate({
            "id": "investor-a",
            "name": "Series A",
            "securityType": "PREFERRED_A",
            "shares": 2_000_000,
            "liquidationPreference": "1.5",
            "liquidationAmount": 500_000_000,
            "participation": "CAPPED",
            "participationCap": "3",
            "conversionRatio": "2",
            "seniority": 100,
        })
        assert holder.has_preference
        assert holder.preference_claim == Decimal("750000000")
        assert holder.participation_cap_amount == Decimal("1500000000")
        assert holder.as_converted_shares == Decimal("4000000")

    def test_serializes_camel_case(self):
        holder = SecurityHolder(id="f", name="F", security_type="COMMON", shares=10)
        data = holder.model_dump(by_alias=True)
        assert data["securityType"] == SecurityType.COMMON
        assert "liquidationAmount" in data

    def test_zero_strike_option(self):
        option = SecurityHolder(id="rsu", name="RSUs", security_type="OPTION", shares=100)
        assert option.is_zero_strike_option
        assert option.security_type.is_derivative

        priced = SecurityHolder(id="opt", name="Options", security_type="OPTION", shares=100, strike_price=25)
        assert not priced.is_zero_strike_option

    def test_vesting_schedule_aliases(self):
        for key in ("start_date", "startDate", "start"):
            schedule = VestingSchedule.model_validate({key: "2025-01-01", "durationMonths": 48})
            assert schedule.start_date == date(2025, 1, 1)
            assert schedule.frequency == VestingFrequency.MONTHLY
            assert schedule.cliff_months == 0

    def test_vesting_schedule_dates(self):
        schedule = VestingSchedule(
            start_date=date(2024, 1, 31),
            cliff_months=1,
            duration_months=13,
            frequency="QUARTERLY",
        )
        assert schedule.period_months == 3
        assert schedule.cliff_date == date(2024, 2, 29)
        assert schedule.end_date == date(2025, 2, 28)

    def test_frequency_months(self):
        assert VestingFrequency.MONTHLY.months == 1
        assert VestingFrequency.QUARTERLY.months == 3
        assert VestingFrequency.ANNUALLY.months == 12

    def test_vesting_grant_nested_schedule(self):
        grant = VestingGrant.model_validate({
            "grantId": "g-1",
            "holderId": "employee-1",
            "units": 48_000,
            "schedule": {"start": "2025-01-01", "cliffMonths": 12, "durationMonths": 48},
        })
        assert grant.schedule.cliff_date == date(2026, 1, 1)


class TestFieldValidation:
    """Field-level validation."""

    def test_shares_must_be_positive(self):
        with pytest.raises(ValueError):
            SecurityHolder(id="f", name="F", security_type="COMMON", shares=0)

    def test_blank_id_rejected(self):
        with pytest.raises(ValueError, match="must not be blank"):
            SecurityHolder(id="   ", name="F", security_type="COMMON", shares=10)

    def test_unknown_security_type(self):
        with pytest.raises(ValueError):
            SecurityHolder(id="f", name="F", security_type="SAFE", shares=10)

    def test_negative_seniority(self):
        with pytest.raises(ValueError):
            SecurityHolder(id="f", name="F", security_type="COMMON", shares=10, seniority=-1)

    def test_multiple_must_be_positive(self):
        with pytest.raises(ValueError):
            SecurityHolder(
                id="p", name="P", security_type="PREFERRED_A", shares=10,
                liquidation_preference=Decimal("0"), liquidation_amount=100,
            )

    def test_cliff_longer_than_duration(self):
        with pytest.raises(ValueError, match="cliff_months cannot exceed duration_months"):
            VestingSchedule(start_date=date(2025, 1, 1), cliff_months=13, duration_months=12)

    def test_distribution_total_must_add_up(self):
        with pytest.raises(ValueError, match="total must equal"):
            WaterfallDistribution(
                holder_id="f", holder_name="F", security_type="COMMON", shares=10,
                liquidation_pref=0, participation=0, common=100, total=99,
                percentage=Decimal("0"), implied_share_price=Decimal("0"),
            )


class TestRightsConsistency:
    """Cross-field checks on economic rights."""

    def test_cap_requires_capped_participation(self):
        with pytest.raises(ValueError, match="participation_cap only valid for CAPPED participation, not FULL"):
            SecurityHolder(
                id="p", name="P", security_type="PREFERRED_A", shares=10,
                liquidation_preference=Decimal("1"), liquidation_amount=100,
                participation="FULL", participation_cap=Decimal("3"),
            )

    def test_cap_below_preference(self):
        with pytest.raises(ValueError, match="cannot be below liquidation_preference"):
            SecurityHolder(
                id="p", name="P", security_type="PREFERRED_A", shares=10,
                liquidation_preference=Decimal("2"), liquidation_amount=100,
                participation="CAPPED", participation_cap=Decimal("1.5"),
            )

    def test_participation_requires_preference(self):
        with pytest.raises(ValueError, match="FULL participation requires a liquidation_preference"):
            SecurityHolder(
                id="p", name="P", security_type="PREFERRED_A", shares=10,
                participation="FULL",
            )

    def test_warrant_cannot_have_preference(self):
        with pytest.raises(ValueError, match="WARRANT cannot have liquidation_preference"):
            SecurityHolder(
                id="w", name="W", security_type="WARRANT", shares=10,
                liquidation_preference=Decimal("1"), liquidation_amount=100,
            )

    def test_strike_only_on_derivatives(self):
        with pytest.raises(ValueError, match="strike_price only valid for OPTION or WARRANT, not PREFERRED_B"):
            SecurityHolder(
                id="p", name="P", security_type="PREFERRED_B", shares=10, strike_price=100,
            )


class TestImmutability:
    """Models are frozen snapshots."""

    def test_holder_is_frozen(self):
        holder = SecurityHolder(id="f", name="F", security_type="COMMON", shares=10)
        with pytest.raises(ValueError):
            holder.shares = 20

    def test_schedule_is_frozen(self):
        schedule = VestingSchedule(start_date=date(2025, 1, 1), duration_months=12)
        with pytest.raises(ValueError):
            schedule.cliff_months = 6
