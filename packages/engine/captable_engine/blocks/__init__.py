"""Reporting blocks for the distribution engine.

Blocks turn calculator results into pandas DataFrames for the UI layer and
the report generator.

Architecture:
    Schemas (inputs) → Calculators (computation) → Blocks → DataFrames (output)

Available blocks:
- WaterfallBlock: Exit waterfall for one exit value
- ScenarioBlock: Payouts across exit values and break points
- VestingBlock: Vesting status and timelines for grants

Usage:
    from captable_engine.blocks import BlockExecutor, BlockContext, WaterfallBlock

    context = BlockContext()
    context.set("security_holders", holders)
    context.set("exit_value", 2_400_000_000)

    BlockExecutor([WaterfallBlock()]).execute(context)

    by_holder_df = context.get("waterfall_by_holder")
"""

from .base import Block, BlockExecutor, BlockContext
from .waterfall import WaterfallBlock
from .scenarios import ScenarioBlock
from .vesting import VestingBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "WaterfallBlock",
    "ScenarioBlock",
    "VestingBlock",
]
