"""CLI entrypoint for the basket vault engine."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from .errors import VaultError
from .logger import setup_logging
from .settings import VaultSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Multi-asset vault valuation, drift and rebalance planning.",
)

SnapshotArg = Annotated[
    Path,
    typer.Argument(
        help="JSON snapshot with balances, quotes and share supply.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]
JsonOpt = Annotated[
    bool, typer.Option("--json", help="Print the result as JSON instead of a dashboard.")
]


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("basket_vault")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [basket_vault] table).",
        ),
    ] = None,
    threshold: Annotated[
        int | None,
        typer.Option(
            "--threshold",
            help="Drift threshold in percentage points.",
        ),
    ] = None,
    max_swaps: Annotated[
        int | None,
        typer.Option("--max-swaps", help="Upper bound on planned swaps."),
    ] = None,
    confidential: Annotated[
        bool | None,
        typer.Option(
            "--confidential/--no-confidential",
            help="Cross-check the plan through the confidential rebalancer.",
        ),
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
    """Load configuration and logging shared by every command."""
    if config_path:
        os.environ["BASKET_VAULT_CONFIG"] = str(config_path)

    init_kwargs: dict[str, bool | int | str] = {}
    if threshold is not None:
        init_kwargs["drift_threshold_percent"] = threshold
    if max_swaps is not None:
        init_kwargs["max_swaps"] = max_swaps
    if confidential is not None:
        init_kwargs["confidential_enabled"] = confidential
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    try:
        settings = VaultSettings(**init_kwargs)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    setup_logging(settings.log_level)
    state = AppState(settings=settings, logger=_build_logger())

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    ctx.obj = state
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def _preview(ctx: typer.Context, snapshot_path: Path):
    from .pipeline.run import run_preview
    from .snapshot_file import load_snapshot_file

    state: AppState = ctx.obj
    try:
        snapshot = load_snapshot_file(snapshot_path)
    except ValidationError as exc:
        raise typer.BadParameter(
            f"Malformed snapshot file: {exc}", param_hint="SNAPSHOT"
        ) from exc

    try:
        return asyncio.run(run_preview(state, snapshot))
    except VaultError as exc:
        state.logger.error("%s: %s", type(exc).__name__, exc)
        raise typer.Exit(code=1) from exc


def _emit(data: dict[str, object]) -> None:
    typer.echo(json.dumps(data, indent=2))


@app.command()
def value(ctx: typer.Context, snapshot: SnapshotArg, as_json: JsonOpt = False):
    """Value every holding, the TVL and the share price."""
    report = _preview(ctx, snapshot)
    if as_json:
        _emit(report.valuation_dict())
        return
    from .report import format_report_table

    format_report_table(report, sections=("value",))


@app.command()
def drift(ctx: typer.Context, snapshot: SnapshotArg, as_json: JsonOpt = False):
    """Compare current weights with targets and flag drifted assets."""
    report = _preview(ctx, snapshot)
    if as_json:
        _emit(report.drift_dict())
        return
    from .report import format_report_table

    format_report_table(report, sections=("drift",))


@app.command()
def plan(ctx: typer.Context, snapshot: SnapshotArg, as_json: JsonOpt = False):
    """Plan the corrective swaps without executing them."""
    report = _preview(ctx, snapshot)
    if as_json:
        _emit(report.plan_dict())
        return
    from .report import format_report_table

    format_report_table(report, sections=("drift", "plan"))


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
