from __future__ import annotations

from .formatter import (
    format_identity_table,
    format_lookup_table,
    format_staking_table,
)
from .publisher import publish

__all__ = [
    "format_identity_table",
    "format_lookup_table",
    "format_staking_table",
    "publish",
]
