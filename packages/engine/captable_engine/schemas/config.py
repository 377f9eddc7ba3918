"""Analysis configuration.

Specifies which exit values to evaluate and how to search for payout break
points. Drives ScenarioBlock and calculators.scenarios.run_analysis.
"""

from typing import List, Optional
from pydantic import Field, model_validator

from .base import DomainModel, MoneyAmount


class WaterfallAnalysisCFG(DomainModel):
    """Configuration for a multi-scenario waterfall analysis.

    Example:
        WaterfallAnalysisCFG(
            exit_values=[500_000_000, 1_000_000_000, 2_000_000_000],
            break_point_max_value=5_000_000_000,
            break_point_steps=200,
            refine_break_points=True,
        )
    """

    exit_values: List[MoneyAmount] = Field(
        default_factory=list,
        description="Exit values (cents) to run the waterfall at, in display order"
    )

    convert_to_common: bool = Field(
        default=False,
        description="Treat every holder as converted to common (skips preferences)"
    )

    # Break point search
    break_point_max_value: Optional[MoneyAmount] = Field(
        default=None,
        description="Upper bound for break point sampling. None = skip the search."
    )

    break_point_steps: int = Field(
        default=100,
        gt=0,
        description="Number of evenly spaced samples up to break_point_max_value"
    )

    refine_break_points: bool = Field(
        default=False,
        description="Bisect between samples to the exact exit value of each change"
    )

    # Execution
    max_workers: Optional[int] = Field(
        default=None,
        gt=0,
        description="Worker threads for scenario fan-out. None or 1 = run inline."
    )

    @model_validator(mode='after')
    def validate_exit_values(self):
        if any(value <= 0 for value in self.exit_values):
            raise ValueError("exit_values must all be positive")
        if self.break_point_max_value is not None and self.break_point_max_value <= 0:
            raise ValueError("break_point_max_value must be positive")
        return self
