from __future__ import annotations

from .holding_period import HoldingState, holding_period_days, reconstruct
from .name_resolution import (
    NameResolutionAggregator,
    SourceOutcome,
    merge_identities,
)

__all__ = [
    "HoldingState",
    "NameResolutionAggregator",
    "SourceOutcome",
    "holding_period_days",
    "merge_identities",
    "reconstruct",
]
