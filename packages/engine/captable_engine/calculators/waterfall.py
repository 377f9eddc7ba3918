"""Exit waterfall calculator.

Distributes the proceeds of a liquidity event across security holders.

The waterfall runs three ordered passes over the remaining value:
1. Liquidation preferences, by seniority (higher first, ties in input order)
2. Participation, for CAPPED/FULL preferred alongside common
3. Residual proceeds to the common-equivalent pool

With ``convert_to_common`` the first two passes are skipped and the whole
exit value is split over every holder's as-converted shares.

Amounts are integer cents throughout. Pro-rata passes compute exact Decimal
shares and round them with the largest-remainder method, so each pass pays
out exactly what it takes from the remaining value.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError, ValidationIssue, issues_from_pydantic
from ..money import ZERO, allocate_exact, allocate_pro_rata, floor_cents, ratio, to_cents
from ..schemas import (
    MAX_SAFE_INTEGER,
    ConversionComparison,
    Participation,
    PreferenceCoverage,
    SecurityHolder,
    SecurityType,
    WaterfallDistribution,
    WaterfallResult,
    WaterfallSummary,
)

logger = logging.getLogger(__name__)

HolderInput = Union[SecurityHolder, Mapping]


# =============================================================================
# Validation
# =============================================================================

def exit_value_issues(exit_value) -> List[ValidationIssue]:
    if isinstance(exit_value, bool) or not isinstance(exit_value, (int, Decimal)):
        return [ValidationIssue("exitValue", "exit value must be a whole number of cents")]
    if isinstance(exit_value, Decimal) and exit_value != exit_value.to_integral_value():
        return [ValidationIssue("exitValue", "exit value must be a whole number of cents")]
    if exit_value <= 0:
        return [ValidationIssue("exitValue", "exit value must be positive")]
    if exit_value > MAX_SAFE_INTEGER:
        return [ValidationIssue("exitValue", "exit value exceeds maximum safe value")]
    return []


def validate_holders(
    holders: Sequence[HolderInput],
    exit_value=None,
) -> List[SecurityHolder]:
    """Parse and validate waterfall input, reporting every problem at once.

    Args:
        holders: SecurityHolder models or JSON-shaped mappings
        exit_value: Exit value in cents. None skips the exit value check.

    Returns:
        Validated SecurityHolder models, in input order

    Raises:
        ValidationError: With one issue per problem found, e.g.
            "Holder 3: shares: Input should be greater than 0"
    """
    issues: List[ValidationIssue] = []
    if exit_value is not None:
        issues.extend(exit_value_issues(exit_value))

    if not holders:
        issues.append(ValidationIssue("holders", "security holders cannot be empty"))
        holders = []

    parsed: List[SecurityHolder] = []
    seen: Dict[str, int] = {}
    for index, raw in enumerate(holders):
        if isinstance(raw, SecurityHolder):
            holder = raw
        else:
            try:
                holder = SecurityHolder.model_validate(raw)
            except PydanticValidationError as exc:
                issues.extend(issues_from_pydantic(
                    exc,
                    field_prefix=f"holders[{index}].",
                    message_prefix=f"Holder {index + 1}: ",
                ))
                continue

        if holder.id in seen:
            issues.append(ValidationIssue(
                f"holders[{index}].id",
                f"Holder {index + 1}: id '{holder.id}' duplicates holder {seen[holder.id] + 1}",
            ))
        else:
            seen[holder.id] = index
        parsed.append(holder)

    if sum(holder.shares for holder in parsed) > MAX_SAFE_INTEGER:
        issues.append(ValidationIssue("holders", "total shares exceed maximum safe value"))

    if issues:
        logger.warning("Waterfall validation failed with %s issue(s)", len(issues))
        raise ValidationError(issues)

    return parsed


# =============================================================================
# Pools
# =============================================================================

def _by_seniority(holders: List[SecurityHolder]) -> List[SecurityHolder]:
    # sorted() is stable: equal seniority keeps input order
    return sorted(holders, key=lambda holder: -holder.seniority)


def _is_common_equivalent(holder: SecurityHolder) -> bool:
    """Common, or a non-derivative security with no preference to take."""
    if holder.security_type == SecurityType.COMMON:
        return True
    return not holder.security_type.is_derivative and not holder.has_preference


def _residual_weights(
    holders: List[SecurityHolder],
    exit_value: int,
    convert_to_common: bool,
) -> Dict[str, Decimal]:
    """Common-equivalent shares per holder for the residual pass.

    Under full conversion every holder counts its as-converted shares.
    Otherwise common counts its shares, preferred without a preference
    counts as-converted, and options/warrants count only when their strike
    is below the implied common price.
    """
    if convert_to_common:
        return {
            holder.id: (
                Decimal(holder.shares)
                if holder.security_type == SecurityType.COMMON
                else holder.as_converted_shares
            )
            for holder in holders
        }

    base: Dict[str, Decimal] = {}
    for holder in holders:
        if holder.security_type == SecurityType.COMMON:
            base[holder.id] = Decimal(holder.shares)
        elif _is_common_equivalent(holder):
            base[holder.id] = holder.as_converted_shares

    estimate = sum(base.values(), ZERO)
    implied_price: Optional[Decimal] = Decimal(exit_value) / estimate if estimate > 0 else None

    weights: Dict[str, Decimal] = {}
    for holder in holders:
        if holder.id in base:
            weights[holder.id] = base[holder.id]
        elif holder.security_type.is_derivative:
            strike = Decimal(holder.strike_price or 0)
            # No common pool at all: nothing to compare against, every strike is below it
            if implied_price is None or strike < implied_price:
                weights[holder.id] = Decimal(holder.shares)
    return weights


# =============================================================================
# Passes
# =============================================================================

def _pay_preferences(
    holders: List[SecurityHolder],
    remaining: int,
    preference: Dict[str, int],
) -> int:
    """Pass 1: pay each preference claim in seniority order until value runs out."""
    for holder in _by_seniority(holders):
        if remaining <= 0:
            break
        if not holder.has_preference:
            continue
        owed = to_cents(holder.preference_claim)
        cap_amount = holder.participation_cap_amount
        if cap_amount is not None:
            # Half-up rounding of the claim must not push it past a floored cap
            owed = min(owed, floor_cents(cap_amount))
        paid = min(owed, remaining)
        preference[holder.id] = paid
        remaining -= paid
        logger.debug(
            "Preference %s (seniority %s): owed=%s paid=%s remaining=%s",
            holder.id, holder.seniority, owed, paid, remaining,
        )
    return remaining


def _pay_participation(
    holders: List[SecurityHolder],
    remaining: int,
    preference: Dict[str, int],
    participation: Dict[str, int],
) -> int:
    """Pass 2: participating preferred take their pro-rata share of what is left.

    The pool is every participant's as-converted shares plus common and
    zero-strike option shares. Common's portion stays in the remaining value
    for the residual pass. A capped holder's excess over its cap is not
    reallocated to other participants.
    """
    if remaining <= 0:
        return remaining

    participants = [
        holder for holder in _by_seniority(holders)
        if holder.participation != Participation.NONE and holder.has_preference
    ]
    if not participants:
        return remaining

    pool = sum((holder.as_converted_shares for holder in participants), ZERO)
    pool += sum(
        (Decimal(holder.shares) for holder in holders
         if holder.security_type == SecurityType.COMMON or holder.is_zero_strike_option),
        ZERO,
    )

    pass_value = Decimal(remaining)
    exact: Dict[str, Decimal] = {}
    for holder in participants:
        share = pass_value * holder.as_converted_shares / pool
        cap_amount = holder.participation_cap_amount
        if cap_amount is not None:
            headroom = max(ZERO, Decimal(floor_cents(cap_amount) - preference.get(holder.id, 0)))
            share = min(share, headroom)
        exact[holder.id] = share

    paid_total = to_cents(sum(exact.values(), ZERO))
    for holder_id, paid in allocate_exact(exact, paid_total).items():
        participation[holder_id] = paid

    logger.debug(
        "Participation: pool=%s shares, available=%s, paid=%s",
        pool, remaining, paid_total,
    )
    return remaining - paid_total


def _pay_residual(
    holders: List[SecurityHolder],
    exit_value: int,
    remaining: int,
    convert_to_common: bool,
    common: Dict[str, int],
) -> int:
    """Pass 3: split the remaining value over the common-equivalent pool."""
    if remaining <= 0:
        return remaining

    weights = _residual_weights(holders, exit_value, convert_to_common)
    allocation = allocate_pro_rata(remaining, weights)
    for holder_id, paid in allocation.items():
        common[holder_id] = paid

    distributed = sum(allocation.values())
    logger.debug(
        "Residual: pool=%s shares across %s holders, paid=%s",
        sum(weights.values(), ZERO), len(weights), distributed,
    )
    return remaining - distributed


# =============================================================================
# Public API
# =============================================================================

def calculate_waterfall(
    holders: Sequence[HolderInput],
    exit_value: int,
    convert_to_common: bool = False,
) -> WaterfallResult:
    """Distribute an exit value across security holders.

    Args:
        holders: SecurityHolder models or JSON-shaped mappings
        exit_value: Total exit proceeds in cents (positive)
        convert_to_common: Treat every holder as converted to common

    Returns:
        WaterfallResult with distributions sorted by total payout descending

    Raises:
        ValidationError: If any input is malformed. Validation runs before
            any arithmetic; no partial result is produced.

    Example:
        Founders 8M common; Series A 2M shares, 1x on $5M, FULL participation.
        Exit $24M:
            Series A: $5M preference + 20% of $19M = $8.8M
            Founders: 80% of $19M = $15.2M
    """
    parsed = validate_holders(holders, exit_value)
    exit_value = int(exit_value)

    preference: Dict[str, int] = {}
    participation: Dict[str, int] = {}
    common: Dict[str, int] = {}

    remaining = exit_value
    if not convert_to_common:
        remaining = _pay_preferences(parsed, remaining, preference)
        remaining = _pay_participation(parsed, remaining, preference, participation)
    remaining = _pay_residual(parsed, exit_value, remaining, convert_to_common, common)

    if remaining > 0:
        logger.warning(
            "Exit value %s left %s undistributed: no holder eligible for the residual",
            exit_value, remaining,
        )

    distributions = []
    for holder in parsed:
        liquidation_pref = preference.get(holder.id, 0)
        participation_paid = participation.get(holder.id, 0)
        common_paid = common.get(holder.id, 0)
        total = liquidation_pref + participation_paid + common_paid
        distributions.append(WaterfallDistribution(
            holder_id=holder.id,
            holder_name=holder.name,
            security_type=holder.security_type,
            shares=holder.shares,
            liquidation_pref=liquidation_pref,
            participation=participation_paid,
            common=common_paid,
            total=total,
            percentage=ratio(Decimal(total) * 100, Decimal(exit_value), 4),
            implied_share_price=ratio(Decimal(total), Decimal(holder.shares), 6),
        ))

    # Stable: equal payouts keep input order
    distributions.sort(key=lambda distribution: -distribution.total)

    total_preference = sum(preference.values())
    total_participation = sum(participation.values())
    total_common = sum(common.values())

    return WaterfallResult(
        exit_value=exit_value,
        convert_to_common=convert_to_common,
        distributions=distributions,
        summary=WaterfallSummary(
            total_distributed=total_preference + total_participation + total_common,
            total_liquidation_preference=total_preference,
            total_participation=total_participation,
            total_common=total_common,
            remaining_shares=sum(holder.shares for holder in parsed),
            undistributed=remaining,
        ),
    )


def calculate_preference_coverage(holders: Sequence[HolderInput]) -> List[PreferenceCoverage]:
    """Preference stack in payout order with cumulative coverage.

    Returns:
        One entry per holder with a liquidation preference, most senior
        first. ``cumulative_coverage`` is the exit value needed to pay that
        claim and every claim ahead of it in full.
    """
    parsed = validate_holders(holders)

    coverage: List[PreferenceCoverage] = []
    cumulative = 0
    for holder in _by_seniority(parsed):
        if not holder.has_preference:
            continue
        claim = to_cents(holder.preference_claim)
        cumulative += claim
        coverage.append(PreferenceCoverage(
            holder_id=holder.id,
            holder_name=holder.name,
            seniority=holder.seniority,
            liquidation_preference=holder.liquidation_preference,
            claim=claim,
            cumulative_coverage=cumulative,
        ))
    return coverage


def compare_conversion(
    holders: Sequence[HolderInput],
    exit_value: int,
) -> List[ConversionComparison]:
    """Compare each preferred holder's payout with and without conversion.

    Runs the waterfall twice, as structured and fully converted to common,
    and reports which choice pays each preference holder more. Ties favour
    keeping the preference.

    Returns:
        One entry per holder with a liquidation preference, in input order
    """
    parsed = validate_holders(holders, exit_value)
    as_preferred = calculate_waterfall(parsed, exit_value, convert_to_common=False)
    as_converted = calculate_waterfall(parsed, exit_value, convert_to_common=True)

    comparisons = []
    for holder in parsed:
        if not holder.has_preference:
            continue
        preferred_total = as_preferred.distribution_for(holder.id).total
        converted_total = as_converted.distribution_for(holder.id).total
        comparisons.append(ConversionComparison(
            holder_id=holder.id,
            holder_name=holder.name,
            exit_value=int(exit_value),
            as_preferred=preferred_total,
            as_converted=converted_total,
            optimal_choice="PREFERRED" if preferred_total >= converted_total else "COMMON",
            value_difference=abs(preferred_total - converted_total),
        ))
    return comparisons
