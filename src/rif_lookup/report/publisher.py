from __future__ import annotations

import json
from typing import Union

from rich.console import Console

from ..domain import IdentityResponse, LookupResponse, StakingAnalytics
from ..settings import OutputFormat
from .formatter import format_identity_table, format_lookup_table, format_staking_table

LookupResult = Union[IdentityResponse, StakingAnalytics, LookupResponse]


def publish(
    address: str,
    result: LookupResult,
    output_format: OutputFormat = OutputFormat.JSON,
    console: Console | None = None,
) -> None:
    """Write a lookup result to stdout.

    JSON output is the response document exactly; TABLE renders a rich panel.
    """
    if output_format == OutputFormat.JSON:
        print(json.dumps(result.to_dict(), indent=2))
        return

    if isinstance(result, LookupResponse):
        format_lookup_table(result, console)
    elif isinstance(result, StakingAnalytics):
        format_staking_table(address, result, console)
    else:
        format_identity_table(address, result, console)
