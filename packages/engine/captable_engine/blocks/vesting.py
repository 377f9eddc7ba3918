"""Vesting reporting block.

Evaluates a set of grants as of a date: current vested position per grant,
and the full vesting timeline of every grant.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..calculators import generate_vesting_schedule, summarize_vesting
from ..schemas import VestingGrant

STATUS_COLUMNS = [
    "grant_id",
    "holder_id",
    "units",
    "vested",
    "unvested",
    "percent_vested",
    "next_vesting_date",
    "fully_vested_date",
]

EVENT_COLUMNS = [
    "grant_id",
    "holder_id",
    "date",
    "vested_units",
    "cumulative_vested",
]


class VestingBlock(Block):
    """Computes vesting status and timelines for grants.

    Inputs (from context):
        - vesting_grants: List of VestingGrant (or JSON-shaped mappings)
        - as_of_date: Date to evaluate vesting at

    Outputs (to context):
        - vesting_status: DataFrame, one row per grant:
            * grant_id, holder_id, units, vested, unvested
            * percent_vested: 0-100
            * next_vesting_date: None once fully vested
            * fully_vested_date
        - vesting_events: DataFrame, one row per vesting event per grant,
          ordered by grant then date
        - vested_shares_by_holder: DataFrame of vested units summed per
          holder, the share counts the waterfall consumes
    """

    def __init__(
        self,
        grants_key: str = "vesting_grants",
        as_of_key: str = "as_of_date",
    ):
        self.grants_key = grants_key
        self.as_of_key = as_of_key

    def inputs(self) -> List[str]:
        return [self.grants_key, self.as_of_key]

    def outputs(self) -> List[str]:
        return [
            "vesting_status",
            "vesting_events",
            "vested_shares_by_holder",
        ]

    def execute(self, context: BlockContext) -> None:
        grants = [
            grant if isinstance(grant, VestingGrant) else VestingGrant.model_validate(grant)
            for grant in context.get(self.grants_key)
        ]
        as_of = context.get(self.as_of_key)

        status_rows = []
        event_rows = []
        for grant in grants:
            status = summarize_vesting(grant.units, grant.schedule, as_of)
            status_rows.append({
                "grant_id": grant.grant_id,
                "holder_id": grant.holder_id,
                "units": status.units,
                "vested": status.vested,
                "unvested": status.unvested,
                "percent_vested": float(status.percent_vested),
                "next_vesting_date": status.next_vesting_date,
                "fully_vested_date": status.fully_vested_date,
            })

            for event in generate_vesting_schedule(grant.units, grant.schedule):
                event_rows.append({
                    "grant_id": grant.grant_id,
                    "holder_id": grant.holder_id,
                    "date": event.date,
                    "vested_units": event.vested_units,
                    "cumulative_vested": event.cumulative_vested,
                })

        status_df = pd.DataFrame(status_rows, columns=STATUS_COLUMNS)
        context.set("vesting_status", status_df)
        context.set("vesting_events", pd.DataFrame(event_rows, columns=EVENT_COLUMNS))
        context.set("vested_shares_by_holder", self._compute_by_holder(status_df))

    def _compute_by_holder(self, status_df: pd.DataFrame) -> pd.DataFrame:
        if status_df.empty:
            return pd.DataFrame(columns=["holder_id", "vested", "unvested"])

        return status_df.groupby("holder_id", sort=False).agg({
            "vested": "sum",
            "unvested": "sum",
        }).reset_index()
