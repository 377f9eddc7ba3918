"""Security holder models (waterfall input).

A SecurityHolder is one line of the cap table as the waterfall sees it: a
holder, the security they hold, how many shares are currently held (vested),
and the economic rights attached to that security.
"""

from enum import Enum
from typing import Optional
from decimal import Decimal
from pydantic import Field, field_validator, model_validator

from .base import (
    DomainModel,
    HolderId,
    ShareCount,
    MoneyAmount,
    Multiple,
)


# =============================================================================
# Enumerations
# =============================================================================

class SecurityType(str, Enum):
    """Kind of security held."""

    COMMON = "COMMON"
    PREFERRED_A = "PREFERRED_A"
    PREFERRED_B = "PREFERRED_B"
    PREFERRED_C = "PREFERRED_C"
    OPTION = "OPTION"
    WARRANT = "WARRANT"

    @property
    def is_derivative(self) -> bool:
        """Options and warrants pay out only when in the money."""
        return self in (SecurityType.OPTION, SecurityType.WARRANT)


class Participation(str, Enum):
    """Participation rights after the liquidation preference is paid.

    Types:
        - NONE: Preference only. The holder does not share in what is left.
        - CAPPED: Preference AND pro-rata share, up to a total cap
          (e.g. "1x pref with 3x cap" → total payout never above 3x invested).
        - FULL: Preference AND uncapped pro-rata share ("double dip").
    """

    NONE = "NONE"
    CAPPED = "CAPPED"
    FULL = "FULL"


# =============================================================================
# Security Holder
# =============================================================================

class SecurityHolder(DomainModel):
    """One holder's position, with the rights that drive its exit payout.

    Examples:
        Founder common:
            SecurityHolder(id="founder-1", name="Alice Founder",
                           security_type="COMMON", shares=6_000_000)

        Series A, 1x participating, $5M invested:
            SecurityHolder(id="investor-a", name="Series A Investor",
                           security_type="PREFERRED_A", shares=2_000_000,
                           liquidation_preference=Decimal("1.0"),
                           liquidation_amount=500_000_000,
                           participation="FULL", seniority=100)

        Employee option, $1.00 strike:
            SecurityHolder(id="employee-1", name="Employee 1",
                           security_type="OPTION", shares=500_000,
                           strike_price=100)

    Seniority:
        Higher number = paid first. Holders with equal seniority are paid
        in input order.
    """

    id: HolderId
    name: str = Field(min_length=1, max_length=255, description="Display name")

    security_type: SecurityType = Field(
        description="Kind of security held"
    )

    shares: ShareCount = Field(
        description="Shares currently held (for grants: vested shares)"
    )

    # Liquidation preference
    liquidation_preference: Optional[Multiple] = Field(
        default=None,
        description="Preference multiple (1.0 = 1x). None = no preference."
    )

    liquidation_amount: Optional[MoneyAmount] = Field(
        default=None,
        description="Invested capital in cents. Required with a preference."
    )

    # Participation
    participation: Participation = Field(
        default=Participation.NONE,
        description="Participation rights after the preference"
    )

    participation_cap: Optional[Multiple] = Field(
        default=None,
        description="Total payout cap as multiple of invested capital (CAPPED only)"
    )

    # Conversion and exercise
    conversion_ratio: Multiple = Field(
        default=Decimal("1"),
        description="Common shares per share on conversion"
    )

    strike_price: Optional[MoneyAmount] = Field(
        default=None,
        description="Exercise price per share in cents (options/warrants only)"
    )

    seniority: int = Field(
        default=0,
        ge=0,
        description="Payout priority for preferences (higher = paid first)"
    )

    @field_validator("id", "name")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @model_validator(mode='after')
    def validate_rights(self):
        """Validate that economic rights are consistent with each other."""
        if self.liquidation_preference is not None and self.liquidation_amount is None:
            raise ValueError("liquidation_preference requires liquidation_amount")

        if self.participation == Participation.CAPPED and self.participation_cap is None:
            raise ValueError("CAPPED participation requires participation_cap")

        if self.participation_cap is not None and self.participation != Participation.CAPPED:
            raise ValueError(
                f"participation_cap only valid for CAPPED participation, not {self.participation.value}"
            )

        if self.participation != Participation.NONE and self.liquidation_preference is None:
            raise ValueError(
                f"{self.participation.value} participation requires a liquidation_preference"
            )

        if (
            self.participation_cap is not None
            and self.liquidation_preference is not None
            and self.participation_cap < self.liquidation_preference
        ):
            raise ValueError(
                f"participation_cap ({self.participation_cap}x) cannot be below "
                f"liquidation_preference ({self.liquidation_preference}x)"
            )

        if self.security_type.is_derivative and self.liquidation_preference is not None:
            # Options and warrants must be exercised before they share in proceeds
            raise ValueError(f"{self.security_type.value} cannot have liquidation_preference")

        if self.strike_price is not None and not self.security_type.is_derivative:
            raise ValueError(
                f"strike_price only valid for OPTION or WARRANT, not {self.security_type.value}"
            )

        return self

    # -------------------------------------------------------------------------
    # Derived amounts
    # -------------------------------------------------------------------------

    @property
    def has_preference(self) -> bool:
        return self.liquidation_preference is not None

    @property
    def preference_claim(self) -> Decimal:
        """Exact amount owed ahead of common: invested capital × multiple."""
        if self.liquidation_preference is None or self.liquidation_amount is None:
            return Decimal("0")
        return Decimal(self.liquidation_amount) * self.liquidation_preference

    @property
    def participation_cap_amount(self) -> Optional[Decimal]:
        """Ceiling on total payout for CAPPED holders, None otherwise."""
        if self.participation != Participation.CAPPED or self.participation_cap is None:
            return None
        return Decimal(self.liquidation_amount or 0) * self.participation_cap

    @property
    def as_converted_shares(self) -> Decimal:
        """Common-equivalent shares after conversion."""
        return Decimal(self.shares) * self.conversion_ratio

    @property
    def is_zero_strike_option(self) -> bool:
        return self.security_type == SecurityType.OPTION and not self.strike_price
