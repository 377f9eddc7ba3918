"""Minor-unit money arithmetic.

All amounts written into a distribution are integers in the smallest currency
unit (cents). Intermediate values are Decimals; conversion back to cents
happens only here, so rounding policy lives in one place.

Rounding policy:
    - Single amounts (a preference claim, a cap) use ROUND_HALF_UP, or
      ROUND_FLOOR where the amount is a ceiling that must not be exceeded.
    - Pro-rata pools use the largest-remainder method so the parts always sum
      to the pool amount exactly.
"""

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Dict, Hashable, Mapping

ONE_CENT = Decimal("1")
ZERO = Decimal("0")


def to_cents(value: Decimal) -> int:
    """Round a Decimal amount to whole cents (half-up)."""
    return int(Decimal(value).quantize(ONE_CENT, rounding=ROUND_HALF_UP))


def floor_cents(value: Decimal) -> int:
    """Round a Decimal amount down to whole cents."""
    return int(Decimal(value).quantize(ONE_CENT, rounding=ROUND_FLOOR))


def allocate_exact(
    exact: Mapping[Hashable, Decimal],
    total: int,
) -> Dict[Hashable, int]:
    """Round exact Decimal shares to cents so they sum to ``total``.

    Every share is floored; the leftover cents go one each to the shares with
    the largest fractional remainder. Ties keep mapping order. Shares that are
    already whole never receive a leftover cent.

    Args:
        exact: Exact (unrounded) share per key, in input order
        total: Cents the rounded shares must add up to. Must lie between the
            sum of floored shares and that sum plus the number of fractional
            shares.

    Returns:
        Cents per key, same keys and order as ``exact``
    """
    floored = {key: floor_cents(value) for key, value in exact.items()}
    leftover = total - sum(floored.values())

    if leftover > 0:
        remainders = [
            (value - floored[key], index, key)
            for index, (key, value) in enumerate(exact.items())
            if value - floored[key] > 0
        ]
        # Largest remainder first, input order breaks ties
        remainders.sort(key=lambda item: (-item[0], item[1]))
        for _, _, key in remainders[:leftover]:
            floored[key] += 1

    return floored


def allocate_pro_rata(
    amount: int,
    weights: Mapping[Hashable, Decimal],
) -> Dict[Hashable, int]:
    """Split ``amount`` cents across keys in proportion to ``weights``.

    Args:
        amount: Cents to distribute (non-negative)
        weights: Weight per key (e.g. as-converted shares), in input order

    Returns:
        Cents per key summing exactly to ``amount``. If the total weight is
        zero, every key receives zero.

    Example:
        allocate_pro_rata(100, {"a": Decimal(1), "b": Decimal(2)})
        → {"a": 33, "b": 67}
    """
    pool = sum(weights.values(), ZERO)
    if pool <= 0 or amount <= 0:
        return {key: 0 for key in weights}

    exact = {key: Decimal(amount) * weight / pool for key, weight in weights.items()}
    return allocate_exact(exact, amount)


def ratio(numerator: Decimal, denominator: Decimal, places: int) -> Decimal:
    """Display ratio quantised to ``places`` decimal places (zero if denominator is zero)."""
    if denominator == 0:
        return ZERO
    quantum = Decimal(1).scaleb(-places)
    return (Decimal(numerator) / Decimal(denominator)).quantize(quantum, rounding=ROUND_HALF_UP)
