"""Pure computation for the distribution engine.

Calculators are plain functions over validated schemas. They hold no state
between calls and never mutate their inputs.

Available calculators:
- vesting: vested/unvested units and vesting event timelines
- waterfall: exit proceeds distribution, preference coverage, conversion analysis
- scenarios: waterfall across exit values and break point search
"""

from .vesting import (
    compute_vested,
    compute_unvested,
    get_next_vesting_date,
    generate_vesting_schedule,
    summarize_vesting,
)
from .waterfall import (
    calculate_waterfall,
    calculate_preference_coverage,
    compare_conversion,
    validate_holders,
)
from .scenarios import (
    calculate_waterfall_scenarios,
    find_break_points,
    run_analysis,
)

__all__ = [
    "compute_vested",
    "compute_unvested",
    "get_next_vesting_date",
    "generate_vesting_schedule",
    "summarize_vesting",
    "calculate_waterfall",
    "calculate_preference_coverage",
    "compare_conversion",
    "validate_holders",
    "calculate_waterfall_scenarios",
    "find_break_points",
    "run_analysis",
]
