"""Waterfall result models.

A WaterfallResult is the distribution of one exit value across all holders,
broken down by the pass of the waterfall each amount came from:

    1. liquidation_pref  - preference paid by seniority
    2. participation     - pro-rata share taken by participating preferred
    3. common            - residual split over the common-equivalent pool

All amounts are integer cents. Percentages and implied share prices are
Decimal display values and never feed back into money arithmetic.
"""

from typing import List, Literal, Optional
from decimal import Decimal
from pydantic import Field, model_validator

from .base import DomainModel, HolderId, MoneyAmount
from .holders import SecurityType


# =============================================================================
# Per-holder distribution
# =============================================================================

class WaterfallDistribution(DomainModel):
    """One holder's payout for one exit value."""

    holder_id: HolderId
    holder_name: str
    security_type: SecurityType
    shares: int

    liquidation_pref: MoneyAmount = Field(description="Paid from liquidation preference")
    participation: MoneyAmount = Field(description="Paid from participation rights")
    common: MoneyAmount = Field(description="Paid from residual common distribution")
    total: MoneyAmount = Field(description="liquidation_pref + participation + common")

    percentage: Decimal = Field(description="total / exit value × 100 (display only)")
    implied_share_price: Decimal = Field(description="total / shares in cents (display only)")

    @model_validator(mode='after')
    def validate_total(self):
        if self.total != self.liquidation_pref + self.participation + self.common:
            raise ValueError("total must equal liquidation_pref + participation + common")
        return self


# =============================================================================
# Summary and result
# =============================================================================

class WaterfallSummary(DomainModel):
    """Totals across all holders for one exit value.

    Conservation:
        total_distributed + undistributed == exit value, exactly.
        undistributed is only non-zero when value is left after every pass
        and no holder is eligible for it (e.g. the only holder is a
        non-participating preferred and the exit exceeds its preference).
    """

    total_distributed: MoneyAmount
    total_liquidation_preference: MoneyAmount
    total_participation: MoneyAmount
    total_common: MoneyAmount
    remaining_shares: int = Field(description="Total shares across all holders")
    undistributed: MoneyAmount = Field(default=0)


class WaterfallResult(DomainModel):
    """Distribution of a single exit value, sorted by total payout descending."""

    exit_value: MoneyAmount
    convert_to_common: bool = False
    distributions: List[WaterfallDistribution]
    summary: WaterfallSummary

    def distribution_for(self, holder_id: str) -> Optional[WaterfallDistribution]:
        """Find a holder's distribution by id (None if not present)."""
        for distribution in self.distributions:
            if distribution.holder_id == holder_id:
                return distribution
        return None

    def paid_holder_ids(self) -> List[str]:
        """Holder ids with a non-zero payout, in payout order."""
        return [d.holder_id for d in self.distributions if d.total > 0]


# =============================================================================
# Preference stack and conversion analysis
# =============================================================================

class PreferenceCoverage(DomainModel):
    """Coverage of one preference claim in the seniority stack.

    Example:
        Series B (senior) $20M claim, Series A $5M claim:
            Series B: claim=$20M, cumulative_coverage=$20M
            Series A: claim=$5M,  cumulative_coverage=$25M
        An exit of $25M or more covers every preference in full.
    """

    holder_id: HolderId
    holder_name: str
    seniority: int
    liquidation_preference: Decimal
    claim: MoneyAmount = Field(description="liquidation_amount × multiple, in cents")
    cumulative_coverage: MoneyAmount = Field(
        description="Exit value needed to cover this claim and every claim ahead of it"
    )


class ConversionComparison(DomainModel):
    """Payout of a preferred holder taking its preference vs. converting to common."""

    holder_id: HolderId
    holder_name: str
    exit_value: MoneyAmount
    as_preferred: MoneyAmount
    as_converted: MoneyAmount
    optimal_choice: Literal["PREFERRED", "COMMON"]
    value_difference: MoneyAmount
