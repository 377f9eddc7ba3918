"""Base classes and type system for distribution engine models.

This module provides the foundational types and base class used throughout
the engine's schema system.
"""

from decimal import Decimal
from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all engine models.

    Provides common configuration for all Pydantic models in the engine:
    - Immutable instances (inputs are snapshots, outputs are never mutated)
    - camelCase aliases so JSON-shaped records validate directly,
      while snake_case field names keep working in Python
    - Support for Decimal and date types
    """

    model_config = ConfigDict(
        frozen=True,  # Snapshots, never mutated in place
        alias_generator=to_camel,
        populate_by_name=True,  # Accept both "liquidationAmount" and "liquidation_amount"
        arbitrary_types_allowed=True,  # Allow Decimal, date, etc.
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

# Largest integer a JSON consumer (UI, report generator) represents exactly
MAX_SAFE_INTEGER = 2**53 - 1

ShareCount = Annotated[
    int,
    Field(gt=0, le=MAX_SAFE_INTEGER, description="Number of shares (positive whole number)")
]

UnitCount = Annotated[
    int,
    Field(ge=0, le=MAX_SAFE_INTEGER, description="Number of granted units (non-negative)")
]

MoneyAmount = Annotated[
    int,
    Field(ge=0, le=MAX_SAFE_INTEGER, description="Amount in minor currency units (cents)")
]

Multiple = Annotated[
    Decimal,
    Field(gt=0, description="Multiplier value (e.g., 2x = 2.0)")
]


# =============================================================================
# ID Conventions
# =============================================================================

HolderId = Annotated[
    str,
    Field(
        min_length=1,
        max_length=255,
        description="Caller-assigned holder identifier (e.g., 'founder-1', 'investor-a')"
    )
]
