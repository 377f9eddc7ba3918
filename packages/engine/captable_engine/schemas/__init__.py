"""Distribution engine schemas.

This package contains all Pydantic models for the engine:
- Base types and conventions
- Security holders and their economic rights
- Waterfall results and analysis outputs
- Vesting schedules, events and grants
- Analysis configuration

Usage:
    from captable_engine.schemas import (
        SecurityHolder, SecurityType, Participation,
        WaterfallResult, VestingSchedule, WaterfallAnalysisCFG
    )
"""

# Base types
from .base import (
    DomainModel,
    ShareCount,
    UnitCount,
    MoneyAmount,
    Multiple,
    HolderId,
    MAX_SAFE_INTEGER,
)

# Holders
from .holders import (
    SecurityType,
    Participation,
    SecurityHolder,
)

# Results
from .results import (
    WaterfallDistribution,
    WaterfallSummary,
    WaterfallResult,
    PreferenceCoverage,
    ConversionComparison,
)

# Vesting
from .vesting import (
    VestingFrequency,
    VestingSchedule,
    VestingEvent,
    VestingStatus,
    VestingGrant,
)

# Configuration
from .config import WaterfallAnalysisCFG

__all__ = [
    # Base types
    "DomainModel",
    "ShareCount",
    "UnitCount",
    "MoneyAmount",
    "Multiple",
    "HolderId",
    "MAX_SAFE_INTEGER",
    # Holders
    "SecurityType",
    "Participation",
    "SecurityHolder",
    # Results
    "WaterfallDistribution",
    "WaterfallSummary",
    "WaterfallResult",
    "PreferenceCoverage",
    "ConversionComparison",
    # Vesting
    "VestingFrequency",
    "VestingSchedule",
    "VestingEvent",
    "VestingStatus",
    "VestingGrant",
    # Configuration
    "WaterfallAnalysisCFG",
]
