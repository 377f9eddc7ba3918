"""Reporting block infrastructure.

A report is a set of blocks sharing one BlockContext:
- Block declares the context keys it reads and writes
- BlockContext holds the values for a single report run
- BlockExecutor orders blocks so producers run before consumers, then runs
  them, checking every declared input and output
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Key/value store passed through the blocks of one report run.

    Example:
        context = BlockContext()
        context.set("security_holders", holders)
        context.set("exit_value", 2_400_000_000)

        WaterfallBlock().execute(context)

        by_holder_df = context.get("waterfall_by_holder")
    """

    values: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Value stored under ``key``.

        Raises:
            KeyError: If nothing has been stored under ``key``
        """
        try:
            return self.values[key]
        except KeyError:
            raise KeyError(
                f"Context has no '{key}' (set: {sorted(self.values)})"
            ) from None

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def has(self, key: str) -> bool:
        return key in self.values

    def keys(self) -> List[str]:
        return list(self.values)

    def missing(self, keys: List[str]) -> List[str]:
        """Subset of ``keys`` not yet in the context, in the given order."""
        return [key for key in keys if key not in self.values]


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """A unit of report computation over a BlockContext.

    Subclasses name their context dependencies in inputs(), the keys they
    produce in outputs(), and do the work in execute().

    Subclass example:
        class PreferenceStackBlock(Block):
            def inputs(self) -> List[str]:
                return ["security_holders"]

            def outputs(self) -> List[str]:
                return ["preference_stack"]

            def execute(self, context: BlockContext) -> None:
                coverage = calculate_preference_coverage(context.get("security_holders"))
                context.set("preference_stack", to_frame(coverage))
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys read by execute()."""

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys written by execute()."""

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Compute outputs from inputs, both via ``context``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(self.inputs())} -> {', '.join(self.outputs())})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Blocks whose inputs and outputs form a cycle."""


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so every block runs after the producers of its inputs.

    Inputs that no block produces are assumed to be seeded in the context
    before execution. Blocks without a dependency between them keep their
    relative order.

    Raises:
        ValueError: If two blocks produce the same key
        CircularDependencyError: If the dependencies form a cycle

    Example:
        waterfall: security_holders -> waterfall_result
        report:    waterfall_result -> report

        topological_sort([report, waterfall]) → [waterfall, report]
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(
                    f"'{key}' is produced by both {producers[key]} and {block}"
                )
            producers[key] = block

    waiting_on: Dict[Block, int] = {}
    consumers: Dict[Block, List[Block]] = {block: [] for block in blocks}
    for block in blocks:
        upstream = [producers[key] for key in block.inputs() if key in producers]
        waiting_on[block] = len(upstream)
        for producer in upstream:
            consumers[producer].append(block)

    ready: Deque[Block] = deque(block for block in blocks if waiting_on[block] == 0)
    ordered: List[Block] = []
    while ready:
        block = ready.popleft()
        ordered.append(block)
        for consumer in consumers[block]:
            waiting_on[consumer] -= 1
            if waiting_on[consumer] == 0:
                ready.append(consumer)

    if len(ordered) < len(blocks):
        stuck = [block for block in blocks if waiting_on[block] > 0]
        raise CircularDependencyError(f"Blocks depend on each other in a cycle: {stuck}")

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Runs a set of blocks against a context in dependency order.

    Example:
        executor = BlockExecutor([ScenarioBlock(), WaterfallBlock()])
        context = BlockContext()
        context.set("security_holders", holders)
        context.set("exit_value", 2_400_000_000)
        context.set("waterfall_cfg", cfg)

        executor.execute(context)

        payouts_df = context.get("scenario_payouts")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._plan: Optional[List[Block]] = None

    @property
    def plan(self) -> List[Block]:
        """Execution order, resolved once on first use."""
        if self._plan is None:
            self._plan = topological_sort(self.blocks)
        return self._plan

    def execute(self, context: BlockContext) -> BlockContext:
        """Run every block, checking declared inputs before and outputs after.

        Returns:
            ``context``, now holding every block output

        Raises:
            CircularDependencyError: If the blocks form a cycle
            KeyError: If a block's input is missing from the context
            ValueError: If a block did not write one of its outputs
        """
        for block in self.plan:
            absent = context.missing(block.inputs())
            if absent:
                raise KeyError(f"{block} is missing input(s) {absent}")

            logger.debug("Executing %s", block)
            block.execute(context)

            unwritten = context.missing(block.outputs())
            if unwritten:
                raise ValueError(f"{block} did not write output(s) {unwritten}")

        return context
