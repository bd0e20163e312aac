"""CLI entry point for the token intelligence engine.

Usage:
    token-intel analyze <MINT>
    token-intel analyze 0x... --chain bsc --output json --save results/token.json
    token-intel batch tokens.txt --chain solana
    token-intel serve --port 8000
    token-intel check
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .aggregation.orchestrator import build_orchestrator
from .core.config import APIConfig
from .core.exceptions import ConfigurationError, InvalidAddressError
from .output.formatters import get_formatter
from .output.response import NotFoundReport

# Initialize app
app = typer.Typer(
    name="token-intel",
    help="Token intelligence: market, lifecycle, holder and risk analysis",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )
    # httpx logs full request URLs, some of which carry API keys
    logging.getLogger("httpx").setLevel(logging.WARNING)


def load_config(env_file: Optional[Path]) -> APIConfig:
    try:
        return APIConfig.load(env_file).validate()
    except ConfigurationError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(2)


@app.command()
def analyze(
    address: str = typer.Argument(..., help="Token contract / mint address"),
    chain: Optional[str] = typer.Option(
        None,
        "--chain", "-c",
        help="Chain: solana, bsc, ethereum, base (default from TOKEN_INTEL_DEFAULT_CHAIN)",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save output to file",
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Path to .env file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Analyze a single token.

    Examples:
        token-intel analyze <MINT>
        token-intel analyze 0x... --chain bsc --output json
    """
    setup_logging(verbose)
    config = load_config(env_file)
    chain = chain or config.default_chain

    output_lower = output.lower()
    try:
        formatter = get_formatter(output_lower)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)

    console.print(f"[bold]Analyzing {address} on {chain}...[/]")
    orchestrator = build_orchestrator(config)

    try:
        report = asyncio.run(orchestrator.analyze(address, chain))
    except InvalidAddressError as e:
        console.print(f"[red]Invalid token address: {e.reason}[/]")
        raise typer.Exit(1)

    formatted = formatter.format(report)
    if output_lower == "table":
        console.print(formatted, end="")
    else:
        print(formatted)

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        save_path = save.with_suffix(".json" if output_lower == "json" else ".txt")
        formatter.format_to_file(report, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")

    if isinstance(report, NotFoundReport):
        raise typer.Exit(3)


@app.command()
def batch(
    tokens_file: Path = typer.Argument(..., help="File with token addresses (one per line)"),
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain for every address"),
    output_dir: Path = typer.Option(
        Path("results"),
        "--output-dir", "-o",
        help="Output directory for results",
    ),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Analyze multiple tokens from a file.

    Results are saved as JSON payloads, one file per address.
    """
    setup_logging(verbose)

    if not tokens_file.exists():
        console.print(f"[red]File not found: {tokens_file}[/]")
        raise typer.Exit(1)

    with open(tokens_file, "r") as f:
        addresses = [line.strip() for line in f if line.strip() and not line.startswith("#")]

    if not addresses:
        console.print("[red]No addresses found in file[/]")
        raise typer.Exit(1)

    config = load_config(env_file)
    chain = chain or config.default_chain
    orchestrator = build_orchestrator(config)
    formatter = get_formatter("json")
    output_dir.mkdir(parents=True, exist_ok=True)

    console.print(f"[bold]Processing {len(addresses)} tokens on {chain}...[/]")

    success_count = 0
    for i, address in enumerate(addresses, 1):
        console.print(f"[{i}/{len(addresses)}] Analyzing {address}...")
        try:
            report = asyncio.run(orchestrator.analyze(address, chain))
        except InvalidAddressError as e:
            console.print(f"  [red]Skipped: {e.reason}[/]")
            continue

        output_path = output_dir / f"{address}.json"
        formatter.format_to_file(report, str(output_path))
        if isinstance(report, NotFoundReport):
            console.print(f"  [yellow]Not found: {output_path}[/]")
        else:
            console.print(f"  [green]Saved: {output_path}[/]")
            success_count += 1

    console.print(f"\n[bold]Complete: {success_count}/{len(addresses)} analyzed[/]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from .api import create_app

    setup_logging(verbose)
    config = load_config(env_file)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


@app.command()
def check(
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
) -> None:
    """Show which data providers are configured."""
    try:
        config = APIConfig.load(env_file)
    except ConfigurationError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(2)

    table = Table(title="Data Providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Role")
    table.add_column("Status")

    rows = [
        ("DexScreener", "DEX pairs (all chains)", True),
        ("Pump.fun", "Bonding curve (solana)", True),
        ("Four.meme", "Bonding curve (bsc)", config.has_bitquery()),
        ("Helius", "Holders (solana)", config.has_helius()),
        ("Moralis", "Holders (all chains)", config.has_moralis()),
        ("Etherscan", "Holders (EVM fallback)", config.has_etherscan()),
    ]
    for name, role, enabled in rows:
        table.add_row(name, role, "[green]ready[/]" if enabled else "[yellow]no API key[/]")
    console.print(table)

    try:
        config.validate()
    except ConfigurationError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(2)
    console.print(f"[green]Configuration OK[/] (timeout {config.request_timeout:.0f}s, default chain {config.default_chain})")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"Token Intel v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
