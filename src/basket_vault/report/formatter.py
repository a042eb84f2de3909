"""Rich console formatter for vault reports."""

from __future__ import annotations

from decimal import Decimal

from rich.columns import Columns
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..constants import SHARE_DECIMALS, USD_SCALE
from .generator import VaultReport

SECTIONS = ("value", "drift", "plan")


def _format_usd(usd_micro: int) -> str:
    """Format a USD-micro amount as dollars."""
    return f"${Decimal(usd_micro) / Decimal(USD_SCALE):,.2f}"


def _format_units(amount: int, decimals: int) -> str:
    """Format native minor units as whole tokens."""
    return f"{Decimal(amount).scaleb(-decimals):,.{min(decimals, 9)}f}"


def _drift_style(exceeds: bool) -> str:
    return "bold red" if exceeds else "green"


def _summary_row(report: VaultReport) -> Columns:
    vault_table = Table(show_header=False, box=None, padding=(0, 1))
    vault_table.add_column("Key", style="dim")
    vault_table.add_column("Value", style="cyan")
    vault_table.add_row("Name", report.vault_name)
    vault_table.add_row("Base Asset", report.base_asset)
    vault_table.add_row("Price Source", report.price_source)
    vault_table.add_row("As Of", str(report.as_of))
    vault_panel = Panel(vault_table, title="[bold]Vault Info[/]", border_style="blue")

    summary_table = Table(show_header=False, box=None, padding=(0, 1))
    summary_table.add_column("Key", style="dim")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("TVL", _format_usd(report.tvl_usd_micro))
    summary_table.add_row("Share Price", _format_usd(report.share_price_usd_micro))
    summary_table.add_row("Total Shares", _format_units(report.total_shares, SHARE_DECIMALS))
    summary_table.add_row("Strategy Value", _format_usd(report.strategy_value_usd_micro))
    summary_panel = Panel(summary_table, title="[bold]Summary[/]", border_style="green")

    return Columns([vault_panel, summary_panel], equal=True, expand=True)


def _valuation_panel(report: VaultReport) -> Panel:
    table = Table(expand=True)
    table.add_column("Asset", style="cyan", no_wrap=True)
    table.add_column("Kind", style="dim")
    table.add_column("Balance (units)", justify="right", style="dim")
    table.add_column("Balance", justify="right")
    table.add_column("Price", justify="right", style="yellow")
    table.add_column("Value", justify="right", style="green")

    for line in report.assets:
        table.add_row(
            line.asset,
            line.kind,
            f"{line.balance:,}",
            _format_units(line.balance, line.decimals),
            _format_usd(line.price_usd_micro),
            _format_usd(line.value_usd_micro),
        )
    table.add_row(
        "[bold]TOTAL[/]", "", "", "", "", f"[bold]{_format_usd(report.tvl_usd_micro)}[/]"
    )
    return Panel(table, title="[bold]Asset Breakdown[/]", border_style="cyan")


def _drift_panel(report: VaultReport) -> Panel:
    table = Table(expand=True)
    table.add_column("Asset", style="cyan", no_wrap=True)
    table.add_column("Current %", justify="right")
    table.add_column("Target %", justify="right")
    table.add_column("Drift", justify="right")
    table.add_column("Flagged", justify="center")

    for line in report.assets:
        style = _drift_style(line.exceeds_threshold)
        table.add_row(
            line.asset,
            str(line.current_weight),
            str(line.target_weight),
            f"[{style}]{line.drift}[/]",
            f"[{style}]{'yes' if line.exceeds_threshold else 'no'}[/]",
        )

    verdict = (
        "[bold red]Rebalance needed[/]"
        if report.needs_rebalance
        else "[green]Within tolerance[/]"
    )
    return Panel(
        Group(table, f"Threshold: {report.threshold_percent}%  {verdict}"),
        title="[bold]Drift[/]",
        border_style="magenta",
    )


def _plan_panel(report: VaultReport) -> Panel:
    if not report.swaps:
        return Panel("[dim]No swaps planned[/]", title="[bold]Rebalance Plan[/]")

    decimals = {line.asset: line.decimals for line in report.assets}
    table = Table(expand=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Amount In", justify="right")
    table.add_column("Expected Out", justify="right", style="green")
    table.add_column("Min Out", justify="right", style="yellow")
    table.add_column("USD", justify="right")

    for i, swap in enumerate(report.swaps, start=1):
        to_decimals = decimals.get(swap.to_asset, 0)
        table.add_row(
            str(i),
            swap.from_asset,
            swap.to_asset,
            _format_units(swap.amount_in, decimals.get(swap.from_asset, 0)),
            _format_units(swap.expected_amount_out, to_decimals),
            _format_units(swap.min_amount_out, to_decimals),
            _format_usd(swap.usd_value),
        )

    footer = (
        "[green]Confidential decision verified[/]"
        if report.confidential_verified
        else "[dim]Plaintext decision[/]"
    )
    return Panel(Group(table, footer), title="[bold]Rebalance Plan[/]", border_style="yellow")


def format_report_table(
    report: VaultReport,
    sections: tuple[str, ...] = SECTIONS,
    console: Console | None = None,
) -> None:
    """Print a rich dashboard of ``report`` to stdout.

    Args:
        report: The vault report to format
        sections: Which of ``value``, ``drift`` and ``plan`` to include
        console: Console to print to (defaults to a new stdout console)
    """
    console = console or Console()

    parts: list[object] = [_summary_row(report)]
    if "value" in sections:
        parts += ["", _valuation_panel(report)]
    if "drift" in sections:
        parts += ["", _drift_panel(report)]
    if "plan" in sections:
        parts += ["", _plan_panel(report)]

    outer_panel = Panel(
        Group(*parts),
        title="[bold white]Basket Vault[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
