"""Waterfall reporting block.

Runs the exit waterfall for one exit value and lays the result out as
DataFrames for the UI and report generator.

Money columns stay integer cents; percentage and price columns are floats
for display only.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..calculators import calculate_preference_coverage, calculate_waterfall
from ..schemas import WaterfallResult

BY_HOLDER_COLUMNS = [
    "holder_id",
    "holder_name",
    "security_type",
    "shares",
    "liquidation_pref",
    "participation",
    "common",
    "total",
    "percentage",
    "implied_share_price",
]


class WaterfallBlock(Block):
    """Computes the exit waterfall for a set of security holders.

    Inputs (from context):
        - security_holders: SecurityHolder models (or JSON-shaped mappings)
        - exit_value: Exit value in cents

    Outputs (to context):
        - waterfall_result: WaterfallResult, for consumers that want the model
        - waterfall_by_holder: DataFrame, one row per holder, sorted by total
          descending. Columns:
            * holder_id, holder_name, security_type, shares
            * liquidation_pref, participation, common, total (cents)
            * percentage: Share of exit value (0-100)
            * implied_share_price: total / shares (cents)
        - waterfall_by_security_type: DataFrame aggregated by security type:
            * security_type, shares, liquidation_pref, participation, common,
              total, percentage
        - waterfall_summary: Single-row DataFrame with summary totals
        - preference_stack: DataFrame of preference claims in payout order
          with cumulative coverage

    Example:
        context = BlockContext()
        context.set("security_holders", holders)
        context.set("exit_value", 2_400_000_000)

        WaterfallBlock().execute(context)

        by_holder_df = context.get("waterfall_by_holder")
    """

    def __init__(
        self,
        holders_key: str = "security_holders",
        exit_value_key: str = "exit_value",
        convert_to_common: bool = False,
    ):
        """Initialize WaterfallBlock.

        Args:
            holders_key: Context key for the security holders
            exit_value_key: Context key for the exit value
            convert_to_common: Run the waterfall fully converted to common
        """
        self.holders_key = holders_key
        self.exit_value_key = exit_value_key
        self.convert_to_common = convert_to_common

    def inputs(self) -> List[str]:
        return [self.holders_key, self.exit_value_key]

    def outputs(self) -> List[str]:
        return [
            "waterfall_result",
            "waterfall_by_holder",
            "waterfall_by_security_type",
            "waterfall_summary",
            "preference_stack",
        ]

    def execute(self, context: BlockContext) -> None:
        holders = context.get(self.holders_key)
        exit_value = context.get(self.exit_value_key)

        result = calculate_waterfall(holders, exit_value, self.convert_to_common)
        by_holder_df = self._compute_by_holder(result)

        context.set("waterfall_result", result)
        context.set("waterfall_by_holder", by_holder_df)
        context.set("waterfall_by_security_type", self._compute_by_security_type(by_holder_df, result))
        context.set("waterfall_summary", self._compute_summary(result))
        context.set("preference_stack", self._compute_preference_stack(holders))

    def _compute_by_holder(self, result: WaterfallResult) -> pd.DataFrame:
        rows = [
            {
                "holder_id": d.holder_id,
                "holder_name": d.holder_name,
                "security_type": d.security_type.value,
                "shares": d.shares,
                "liquidation_pref": d.liquidation_pref,
                "participation": d.participation,
                "common": d.common,
                "total": d.total,
                "percentage": float(d.percentage),
                "implied_share_price": float(d.implied_share_price),
            }
            for d in result.distributions
        ]
        return pd.DataFrame(rows, columns=BY_HOLDER_COLUMNS)

    def _compute_by_security_type(
        self, by_holder_df: pd.DataFrame, result: WaterfallResult
    ) -> pd.DataFrame:
        by_type = by_holder_df.groupby("security_type", sort=False).agg({
            "shares": "sum",
            "liquidation_pref": "sum",
            "participation": "sum",
            "common": "sum",
            "total": "sum",
        }).reset_index()

        by_type["percentage"] = by_type["total"] / result.exit_value * 100
        return by_type.sort_values("total", ascending=False, kind="stable").reset_index(drop=True)

    def _compute_summary(self, result: WaterfallResult) -> pd.DataFrame:
        summary = result.summary
        return pd.DataFrame([{
            "exit_value": result.exit_value,
            "convert_to_common": result.convert_to_common,
            "total_distributed": summary.total_distributed,
            "total_liquidation_preference": summary.total_liquidation_preference,
            "total_participation": summary.total_participation,
            "total_common": summary.total_common,
            "undistributed": summary.undistributed,
            "remaining_shares": summary.remaining_shares,
        }])

    def _compute_preference_stack(self, holders) -> pd.DataFrame:
        rows = [
            {
                "holder_id": c.holder_id,
                "holder_name": c.holder_name,
                "seniority": c.seniority,
                "liquidation_preference": float(c.liquidation_preference),
                "claim": c.claim,
                "cumulative_coverage": c.cumulative_coverage,
            }
            for c in calculate_preference_coverage(holders)
        ]
        return pd.DataFrame(rows, columns=[
            "holder_id",
            "holder_name",
            "seniority",
            "liquidation_preference",
            "claim",
            "cumulative_coverage",
        ])
