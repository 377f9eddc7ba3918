"""Cap Table Distribution Engine - vesting and exit waterfall computation.

This package provides the computational core behind cap table administration:
- Time-based vesting (vested/unvested units, vesting event timelines)
- Exit waterfall (liquidation preferences, participation, residual common)
- Scenario analysis (exit value grids, payout break points)

The engine is designed to be:
- Pure (no I/O, no shared state; identical inputs give identical outputs)
- Money-exact (integer minor units, Decimal intermediates, no binary floats)
- Testable (pydantic-validated inputs, plain function entry points)
"""

from .schemas import *  # noqa: F403, F401
from .errors import ValidationError, ValidationIssue
from .calculators import (
    compute_vested,
    compute_unvested,
    get_next_vesting_date,
    generate_vesting_schedule,
    summarize_vesting,
    calculate_waterfall,
    calculate_preference_coverage,
    compare_conversion,
    calculate_waterfall_scenarios,
    find_break_points,
    run_analysis,
)

__version__ = "0.1.0"
