"""Scenario runner: the waterfall across many exit values.

Orchestration only, no financial rules of its own:
- calculate_waterfall_scenarios evaluates a list of exit values
- find_break_points searches for exit values where the set and order of
  paid holders changes

Every evaluation is independent, so both can fan out across worker threads.
Output order always follows input order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import ValidationError, ValidationIssue
from ..money import to_cents
from ..schemas import SecurityHolder, WaterfallAnalysisCFG, WaterfallResult
from .waterfall import HolderInput, calculate_waterfall, exit_value_issues, validate_holders

logger = logging.getLogger(__name__)

Ranking = Tuple[str, ...]


def _map_ordered(
    func: Callable[[int], WaterfallResult],
    values: Sequence[int],
    max_workers: Optional[int],
) -> List[WaterfallResult]:
    if max_workers is None or max_workers <= 1 or len(values) <= 1:
        return [func(value) for value in values]
    # Executor.map yields results in submission order
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(func, values))


def calculate_waterfall_scenarios(
    holders: Sequence[HolderInput],
    exit_values: Sequence[int],
    convert_to_common: bool = False,
    max_workers: Optional[int] = None,
) -> List[WaterfallResult]:
    """Run the waterfall independently at each exit value.

    Args:
        holders: SecurityHolder models or JSON-shaped mappings
        exit_values: Exit values in cents
        convert_to_common: Passed through to every evaluation
        max_workers: Worker threads; None or 1 runs inline

    Returns:
        One WaterfallResult per exit value, in the same order

    Raises:
        ValidationError: If the holders or any exit value are malformed
    """
    parsed = validate_holders(holders)
    exit_values = list(exit_values)

    issues = []
    for index, exit_value in enumerate(exit_values):
        for issue in exit_value_issues(exit_value):
            issues.append(ValidationIssue(
                f"exitValues[{index}]", f"Exit value {index + 1}: {issue.message}"
            ))
    if issues:
        raise ValidationError(issues)

    return _map_ordered(
        lambda exit_value: calculate_waterfall(parsed, exit_value, convert_to_common),
        exit_values,
        max_workers,
    )


def _ranking(holders: List[SecurityHolder], exit_value: int) -> Ranking:
    return tuple(calculate_waterfall(holders, exit_value).paid_holder_ids())


def _bisect_change(
    holders: List[SecurityHolder],
    low: int,
    high: int,
    high_ranking: Ranking,
) -> int:
    """Smallest exit value in (low, high] that produces ``high_ranking``.

    Assumes the ranking at ``low`` differs from ``high_ranking``. If the
    ranking changes more than once in between, this finds one of the changes.
    """
    while high - low > 1:
        mid = (low + high) // 2
        if _ranking(holders, mid) == high_ranking:
            high = mid
        else:
            low = mid
    return high


def find_break_points(
    holders: Sequence[HolderInput],
    max_value: int,
    steps: int = 100,
    refine: bool = False,
    max_workers: Optional[int] = None,
) -> List[int]:
    """Exit values at which the paid holders, or their order, change.

    The search is seeded with every holder's preference claim
    (liquidation_amount × multiple), then samples the waterfall at ``steps``
    evenly spaced exit values up to ``max_value``. A break point is recorded
    wherever the ordered list of holders with a non-zero payout differs from
    the previous sample.

    Sampling is coarse: changes between two samples are reported at the
    later sample, and several changes between two samples show up as one.
    With ``refine=True`` each detected change is bisected down to the exact
    smallest exit value of the new ranking.

    Args:
        holders: SecurityHolder models or JSON-shaped mappings
        max_value: Largest exit value to sample, in cents
        steps: Number of samples
        refine: Bisect between samples to the exact change
        max_workers: Worker threads for sampling

    Returns:
        Sorted, de-duplicated exit values in cents
    """
    parsed = validate_holders(holders, max_value)
    if isinstance(steps, bool) or not isinstance(steps, int) or steps <= 0:
        raise ValidationError.single("steps", "steps must be a positive whole number")
    max_value = int(max_value)

    break_points = {
        to_cents(holder.preference_claim)
        for holder in parsed
        if holder.has_preference and holder.preference_claim > 0
    }

    samples: List[int] = []
    for step in range(1, steps + 1):
        exit_value = step * max_value // steps
        if exit_value > 0 and (not samples or exit_value != samples[-1]):
            samples.append(exit_value)

    results = _map_ordered(
        lambda exit_value: calculate_waterfall(parsed, exit_value),
        samples,
        max_workers,
    )
    rankings: Dict[int, Ranking] = {
        exit_value: tuple(result.paid_holder_ids())
        for exit_value, result in zip(samples, results)
    }

    previous_value = 0
    previous_ranking: Ranking = ()
    for exit_value in samples:
        ranking = rankings[exit_value]
        if ranking != previous_ranking:
            if refine:
                break_points.add(_bisect_change(parsed, previous_value, exit_value, ranking))
            else:
                break_points.add(exit_value)
        previous_value, previous_ranking = exit_value, ranking

    logger.debug(
        "Break point search: %s samples up to %s, %s break points",
        len(samples), max_value, len(break_points),
    )
    return sorted(break_points)


def run_analysis(
    holders: Sequence[HolderInput],
    cfg: WaterfallAnalysisCFG,
) -> Tuple[List[WaterfallResult], List[int]]:
    """Run the scenarios and break point search described by a config.

    Returns:
        (results per cfg.exit_values, break points). Break points are empty
        when cfg.break_point_max_value is not set.
    """
    results = calculate_waterfall_scenarios(
        holders,
        cfg.exit_values,
        convert_to_common=cfg.convert_to_common,
        max_workers=cfg.max_workers,
    )

    break_points: List[int] = []
    if cfg.break_point_max_value is not None:
        break_points = find_break_points(
            holders,
            cfg.break_point_max_value,
            steps=cfg.break_point_steps,
            refine=cfg.refine_break_points,
            max_workers=cfg.max_workers,
        )
    return results, break_points
