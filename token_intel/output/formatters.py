"""Output formatters for analysis reports.

Provides multiple output formats:
- JSON: Machine-readable, the exact API payload
- Table: Human-readable CLI output
"""

import json
import logging
from abc import ABC, abstractmethod
from io import StringIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .response import AnalysisReport, HoldersReport, NotFoundReport, PrebondReport, TokenReport

logger = logging.getLogger(__name__)


def _usd(value: float | None) -> str:
    if value is None:
        return "N/A"
    if 0 < abs(value) < 0.01:
        return f"${value:.8f}"
    return f"${value:,.2f}"


def _pct(value: float | None) -> str:
    return "N/A" if value is None else f"{value:.2f}%"


def _score_style(score: int | None, higher_is_better: bool = True) -> str:
    if score is None:
        return "dim"
    good = score >= 70 if higher_is_better else score < 30
    bad = score < 40 if higher_is_better else score >= 60
    if good:
        return "green"
    if bad:
        return "red"
    return "yellow"


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, report: AnalysisReport) -> str:
        """Format the report as a string."""

    def format_to_file(self, report: AnalysisReport, filepath: str) -> None:
        """Write formatted report to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format(report))


class JSONFormatter(OutputFormatter):
    """Formats reports as the JSON payload served by the API."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format(self, report: AnalysisReport) -> str:
        return json.dumps(report.to_payload(), indent=self.indent)


class TableFormatter(OutputFormatter):
    """Formats reports as human-readable tables for CLI output."""

    def __init__(self, width: int = 100, force_terminal: bool = True):
        """
        Initialize table formatter.

        Args:
            width: Maximum table width
            force_terminal: Emit ANSI styling even when not writing to a TTY
        """
        self.width = width
        self.force_terminal = force_terminal

    def format(self, report: AnalysisReport) -> str:
        output = StringIO()
        console = Console(file=output, force_terminal=self.force_terminal, width=self.width)

        if isinstance(report, NotFoundReport):
            console.print(Panel(
                f"[bold red]{report.error}[/]\n[dim]{report.contract} ({report.chain})[/]",
                title="Token Not Found",
                expand=False,
            ))
        elif isinstance(report, PrebondReport):
            console.print(Panel(
                f"[bold cyan]{report.symbol}[/] - {report.token_name}\n"
                f"[yellow]{report.prebond_reason}[/]\n"
                f"[dim]{report.contract} ({report.chain})[/]",
                title="Pre-bond Token",
                expand=False,
            ))
        else:
            self._render_report(console, report)

        return output.getvalue()

    def format_to_file(self, report: AnalysisReport, filepath: str) -> None:
        """Write plain output to file (no ANSI codes)."""
        plain = TableFormatter(width=self.width, force_terminal=False)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(plain.format(report))

    def _render_report(self, console: Console, report: TokenReport) -> None:
        progress = (
            f" | bonding {report.bonding_curve_progress:.1f}%"
            if report.bonding_curve_progress is not None
            else ""
        )
        console.print(Panel(
            f"[bold cyan]{report.symbol}[/] - {report.token_name}\n"
            f"[dim]{report.contract} ({report.chain})[/]\n"
            f"{report.token_type.value} | {report.migration_status}{progress}",
            title="Token Intelligence",
            expand=False,
        ))

        risk_table = Table(title="Risk Assessment", show_header=False)
        risk_table.add_column("Metric", style="cyan")
        risk_table.add_column("Value")
        style = _score_style(report.safety_score)
        risk_table.add_row("Safety Score", f"[{style}]{report.safety_score}/100[/]")
        rug = report.rug_risk_pct
        style = _score_style(rug, higher_is_better=False)
        risk_table.add_row("Rug Risk", f"[{style}]{rug if rug is not None else 'N/A'}[/]")
        risk_table.add_row("Bundlers", _pct(report.bundlers_pct))
        risk_table.add_row("Risk Level", report.holders.risk_level.value)
        if report.bonding_override_applied:
            risk_table.add_row("Note", "[yellow]Bonding data contradicted by liquidity[/]")
        console.print(risk_table)

        market_table = Table(title="Market Data", show_header=False)
        market_table.add_column("Field", style="cyan")
        market_table.add_column("Value", style="green")
        market_table.add_row("Price", _usd(report.price))
        market_table.add_row("Market Cap", _usd(report.market_cap))
        market_table.add_row("Liquidity", _usd(report.liquidity))
        market_table.add_row("Volume 24h", _usd(report.volume24h))
        market_table.add_row("Change 24h", _pct(report.price_change24h))
        if report.vol_liq_ratio is not None:
            market_table.add_row("Vol/Liq", f"{report.vol_liq_ratio}%")
        if report.txns24h is not None:
            market_table.add_row("Txns 24h", f"{report.txns24h:,}")
        if report.token_age_minutes is not None:
            market_table.add_row("Age", self._age(report.token_age_minutes))
        for name, url in report.links.items():
            market_table.add_row(name, url)
        console.print(market_table)

        self._render_holders(console, report.holders)

        sources = report.data_sources
        console.print(
            f"[dim]Primary: {sources.primary}"
            + (f" | Secondary: {sources.secondary}" if sources.secondary else "")
            + f" | Holders: {report.holders.data_source or 'N/A'}"
            + f" | {report.analyzed_at.strftime('%Y-%m-%d %H:%M UTC')}[/]"
        )

    def _render_holders(self, console: Console, holders: HoldersReport) -> None:
        if holders.total is None:
            reason = holders.error or holders.api_limitation or "no data"
            console.print(f"\n[yellow]Holder data unavailable ({holders.data_quality.value}): {reason}[/]")
            return

        estimated = " (est)" if holders.is_estimated else ""
        table = Table(
            title=f"Holders: {holders.total:,}{estimated} | {holders.distribution.value} | "
            f"quality {holders.data_quality.value}"
        )
        table.add_column("#", justify="right", style="dim")
        table.add_column("Address", style="cyan")
        table.add_column("%", justify="right", style="green")
        table.add_column("Contract", justify="center")

        for rank, holder in enumerate(holders.top_holders[:10], start=1):
            table.add_row(
                str(rank),
                holder.address,
                _pct(holder.percentage),
                "yes" if holder.is_contract else "",
            )
        console.print(table)
        console.print(
            f"Top 3: {_pct(holders.top3_pct)} | Top 10: {_pct(holders.top10_pct)} | "
            f"Dev wallets: {holders.dev_wallet_count}"
        )

    @staticmethod
    def _age(minutes: int) -> str:
        if minutes < 60:
            return f"{minutes}m"
        if minutes < 1440:
            return f"{minutes // 60}h {minutes % 60}m"
        return f"{minutes // 1440}d {(minutes % 1440) // 60}h"


def get_formatter(output: str) -> OutputFormatter:
    """Formatter for a CLI output type ("json" or "table")."""
    if output == "json":
        return JSONFormatter()
    if output == "table":
        return TableFormatter()
    raise ValueError(f"Unknown output format: {output}")
