"""Rich console formatter for lookup results."""

from __future__ import annotations

from rich.console import Console, Group
from rich.columns import Columns
from rich.panel import Panel
from rich.table import Table

from ..domain import IdentityResponse, LookupResponse, StakingAnalytics


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def _format_amount(value: float) -> str:
    return f"{value:,.6f}"


def _identity_panel(identity: IdentityResponse) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Name", identity.name or "[dim]<none>[/]")
    table.add_row(
        "Registered", "[green]yes[/]" if identity.registered else "[red]no[/]"
    )
    return Panel(table, title="[bold]RNS Identity[/]", border_style="blue")


def _staking_panel(staking: StakingAnalytics) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Staked", f"{_format_amount(staking.staked_balance)} stRIF")
    table.add_row("Staked (USD)", f"${staking.staked_balance_usd:,.2f}")
    table.add_row("Voting Power", _format_amount(staking.voting_power))
    table.add_row("Total Supply", _format_amount(staking.total_supply))
    table.add_row("Holding Period", f"{staking.holding_period_days} day(s)")
    table.add_row("Network", staking.network)
    return Panel(table, title="[bold]stRIF Staking[/]", border_style="green")


def format_identity_table(
    address: str, identity: IdentityResponse, console: Console | None = None
) -> None:
    _print(address, _identity_panel(identity), console)


def format_staking_table(
    address: str, staking: StakingAnalytics, console: Console | None = None
) -> None:
    _print(address, _staking_panel(staking), console)


def format_lookup_table(response: LookupResponse, console: Console | None = None) -> None:
    """Print identity and staking side by side.

    Args:
        response: Combined lookup result
        console: Console to print to, stdout by default
    """
    top_row = Columns(
        [_identity_panel(response.identity), _staking_panel(response.staking)],
        equal=True,
        expand=True,
    )
    _print(response.address, Group(top_row), console)


def _print(address: str, body: Panel | Group, console: Console | None) -> None:
    console = console or Console()
    outer_panel = Panel(
        body,
        title=f"[bold white]{_truncate_address(address)}[/]",
        border_style="white",
        padding=(1, 2),
    )
    console.print()
    console.print(outer_panel)
    console.print()
