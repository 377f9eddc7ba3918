"""Scenario reporting block.

Runs the waterfall across the exit values of a WaterfallAnalysisCFG and
searches for payout break points, producing long-format DataFrames suited
to charting payout curves.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..calculators import run_analysis
from ..schemas import WaterfallAnalysisCFG

PAYOUT_COLUMNS = [
    "exit_value",
    "holder_id",
    "holder_name",
    "security_type",
    "liquidation_pref",
    "participation",
    "common",
    "total",
    "percentage",
]


class ScenarioBlock(Block):
    """Computes payouts across exit scenarios.

    Inputs (from context):
        - security_holders: SecurityHolder models (or JSON-shaped mappings)
        - waterfall_cfg: WaterfallAnalysisCFG with exit values and break
          point settings

    Outputs (to context):
        - scenario_payouts: DataFrame, one row per (exit value, holder), in
          exit value order then payout order. Columns:
            * exit_value, holder_id, holder_name, security_type
            * liquidation_pref, participation, common, total (cents)
            * percentage: Share of exit value (0-100)
        - scenario_totals: DataFrame pivoted to one row per exit value and
          one column per holder id, values are total payouts in cents
        - break_points: DataFrame with a single ``exit_value`` column

    Example:
        context = BlockContext()
        context.set("security_holders", holders)
        context.set("waterfall_cfg", WaterfallAnalysisCFG(
            exit_values=[500_000_000, 1_000_000_000],
            break_point_max_value=2_000_000_000,
        ))

        ScenarioBlock().execute(context)

        payouts_df = context.get("scenario_payouts")
    """

    def __init__(
        self,
        holders_key: str = "security_holders",
        config_key: str = "waterfall_cfg",
    ):
        self.holders_key = holders_key
        self.config_key = config_key

    def inputs(self) -> List[str]:
        return [self.holders_key, self.config_key]

    def outputs(self) -> List[str]:
        return [
            "scenario_payouts",
            "scenario_totals",
            "break_points",
        ]

    def execute(self, context: BlockContext) -> None:
        holders = context.get(self.holders_key)
        config: WaterfallAnalysisCFG = context.get(self.config_key)

        results, break_points = run_analysis(holders, config)

        rows = []
        for result in results:
            for d in result.distributions:
                rows.append({
                    "exit_value": result.exit_value,
                    "holder_id": d.holder_id,
                    "holder_name": d.holder_name,
                    "security_type": d.security_type.value,
                    "liquidation_pref": d.liquidation_pref,
                    "participation": d.participation,
                    "common": d.common,
                    "total": d.total,
                    "percentage": float(d.percentage),
                })
        payouts_df = pd.DataFrame(rows, columns=PAYOUT_COLUMNS)

        context.set("scenario_payouts", payouts_df)
        context.set("scenario_totals", self._compute_totals(payouts_df))
        context.set("break_points", pd.DataFrame({"exit_value": break_points}, dtype="int64"))

    def _compute_totals(self, payouts_df: pd.DataFrame) -> pd.DataFrame:
        if payouts_df.empty:
            return pd.DataFrame(columns=["exit_value"])

        totals = payouts_df.pivot_table(
            index="exit_value",
            columns="holder_id",
            values="total",
            aggfunc="sum",
            sort=False,
        )
        totals.columns.name = None
        return totals.reset_index()
