"""CLI entrypoint for rif-lookup."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Awaitable, Callable

import typer

from .errors import ValidationError
from .logger import setup_logging
from .report import publish
from .report.publisher import LookupResult
from .service import IdentityAndStakingService, validate_address
from .settings import Network, OutputFormat, RifLookupSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="RNS identity and stRIF staking lookups for Rootstock addresses.",
)

AddressArgument = Annotated[str, typer.Argument(help="Rootstock address (0x + 40 hex).")]
FormatOption = Annotated[
    OutputFormat | None,
    typer.Option("--format", "-f", help="Output format (json or table)."),
]


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("rif_lookup")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [rif_lookup] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to use (mainnet or testnet)."),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="Rootstock JSON-RPC endpoint; overrides the network default."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load configuration shared by every command."""
    if config_path:
        os.environ["RIF_LOOKUP_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Network | str] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = RifLookupSettings(**init_kwargs)

    setup_logging(settings.log_level)
    ctx.obj = AppState(settings=settings, logger=_build_logger())

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)


def _execute(
    ctx: typer.Context,
    address: str,
    output_format: OutputFormat | None,
    operation: Callable[[IdentityAndStakingService, str], Awaitable[LookupResult]],
) -> None:
    state: AppState = ctx.obj
    try:
        validate_address(address)
    except ValidationError as exc:
        typer.echo(json.dumps({"error": str(exc), "address": exc.address}))
        raise typer.Exit(code=2)

    service = IdentityAndStakingService.from_settings(state.settings)
    state.logger.debug(
        "Looking up %s on %s", address, state.settings.network.value
    )
    result = asyncio.run(operation(service, address))
    publish(address, result, output_format or state.settings.output_format)


@app.command()
def identity(
    ctx: typer.Context, address: AddressArgument, output_format: FormatOption = None
):
    """Resolve the RNS name of an address."""
    _execute(ctx, address, output_format, IdentityAndStakingService.identity)


@app.command()
def staking(
    ctx: typer.Context, address: AddressArgument, output_format: FormatOption = None
):
    """Report stRIF balance, voting power and holding period of an address."""
    _execute(ctx, address, output_format, IdentityAndStakingService.staking)


@app.command()
def lookup(
    ctx: typer.Context, address: AddressArgument, output_format: FormatOption = None
):
    """Identity and staking analytics together."""
    _execute(ctx, address, output_format, IdentityAndStakingService.lookup)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
