from __future__ import annotations

from .http import fetch_json
from .paginated import (
    Page,
    PageRequest,
    PageScheme,
    PaginatedIndexerClient,
    PaginationResult,
    TerminationReason,
)

__all__ = [
    "Page",
    "PageRequest",
    "PageScheme",
    "PaginatedIndexerClient",
    "PaginationResult",
    "TerminationReason",
    "fetch_json",
]
