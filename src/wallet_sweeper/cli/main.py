"""CLI for wallet sweeper."""

import json
import logging
from enum import StrEnum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from wallet_sweeper.cache import JsonFileStore, NftCache
from wallet_sweeper.config import ApiCredentials, SweepConfig
from wallet_sweeper.core import AssetCatalog, Catalog, SubmissionResult, Sweeper, SweepPlan
from wallet_sweeper.data import load_config
from wallet_sweeper.errors import SweepError
from wallet_sweeper.integrations import MoralisClient
from wallet_sweeper.rpc import ApeRPCProvider, SendCallsWallet

# Install rich traceback handler
install(show_locals=False)

app = typer.Typer(
    name="wallet-sweeper",
    help="Sweep a wallet's native coin, ERC-20 tokens and NFTs into one atomic multi-call",
    add_completion=False,
)

console = Console()

DEFAULT_CACHE_FILE = Path.home() / ".cache" / "wallet-sweeper" / "nft_cache.json"


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging")) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _build_config(primary_key: str | None, fallback_key: str | None, target: str | None = None) -> SweepConfig:
    credentials = ApiCredentials(primary=primary_key or None, fallback=fallback_key or None)
    overrides = {"default_target_address": target} if target else {}
    return load_config(credentials=credentials, **overrides)


def _build_catalog(config: SweepConfig, cache_file: Path | None) -> AssetCatalog:
    store = JsonFileStore(cache_file) if cache_file is not None else None
    nft_cache = NftCache(
        store=store,
        ttl_ms=config.nft_cache_ttl_ms,
        prefix=config.nft_cache_prefix,
        eviction_batch=config.nft_cache_eviction_batch,
    )
    client = MoralisClient(config.credentials, base_url=config.moralis_base_url, timeout=config.request_timeout)
    return AssetCatalog(config, client=client, nft_cache=nft_cache)


def _connect(config: SweepConfig, chain_id: int) -> ApeRPCProvider | None:
    """
    Connect to a chain's RPC for prechecks and submission.

    Returns
    -------
    ApeRPCProvider | None
        Connected provider, or None if the chain has no Ape network

    Raises
    ------
    typer.Exit
        If connection fails

    """
    chain = config.get_chain(chain_id)
    if not chain.ape_network:
        console.print(f"[yellow]No RPC network configured for {chain.name}, skipping prechecks[/yellow]")
        return None

    rpc_provider = ApeRPCProvider.for_chain(chain)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Connecting to {chain.ape_network}...", total=None)
        try:
            rpc_provider.connect()
            progress.update(task, description=f"✓ Connected to {chain.ape_network}")
            return rpc_provider
        except RuntimeError as e:
            progress.stop()
            console.print(f"[bold red]Failed to connect to {chain.name}:[/bold red] {e}")
            console.print("[yellow]Make sure you have set WEB3_INFURA_PROJECT_ID environment variable[/yellow]")
            raise typer.Exit(code=1) from e


@app.command()
def list_chains() -> None:
    """List all supported chains."""
    config = load_config()

    table = Table(title="Supported Chains", show_header=True, header_style="bold magenta")
    table.add_column("Chain ID", style="cyan", justify="right")
    table.add_column("Name", style="green")
    table.add_column("Slug", style="blue")
    table.add_column("Native", style="yellow")
    table.add_column("Gas (gwei)", justify="right")
    table.add_column("RPC Network", style="dim")

    for chain_id, chain in config.chains.items():
        gas = chain.gas_price_gwei if chain.gas_price_gwei is not None else config.default_gas_price_gwei
        table.add_row(
            str(chain_id),
            chain.name,
            chain.slug,
            chain.native_symbol,
            str(gas),
            chain.ape_network or "-",
        )

    console.print(table)


@app.command()
def catalog(
    address: str = typer.Argument(..., help="Wallet address to query"),
    chain_id: int = typer.Option(1, "--chain-id", "-c", help="Numeric chain id"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the NFT cache"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    cache_file: Path = typer.Option(DEFAULT_CACHE_FILE, "--cache-file", help="NFT cache file"),
    api_key: str | None = typer.Option(None, "--api-key", envvar="MORALIS_PRIMARY_API_KEY", help="Moralis API key"),
    fallback_api_key: str | None = typer.Option(
        None,
        "--fallback-api-key",
        envvar="MORALIS_FALLBACK_API_KEY",
        help="Fallback Moralis API key",
    ),
) -> None:
    """
    Show the sweepable holdings of a wallet.

    Examples:

        wallet-sweeper catalog 0xABC... --chain-id 8453
    """
    config = _build_config(api_key, fallback_api_key)
    asset_catalog = _build_catalog(config, cache_file)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Fetching holdings...", total=None)
            result = asset_catalog.fetch(address, chain_id, force_refresh=refresh)
            progress.update(task, description="✓ Holdings fetched")
    except SweepError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    finally:
        asset_catalog.client.close()

    if format == OutputFormat.JSON:
        console.print(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        _output_catalog(result)


@app.command()
def plan(
    address: str = typer.Argument(..., help="Wallet address to sweep"),
    chain_id: int = typer.Option(1, "--chain-id", "-c", help="Numeric chain id"),
    target: str | None = typer.Option(None, "--target", "-t", envvar="SWEEP_TARGET_ADDRESS", help="Recipient"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the NFT cache"),
    precheck: bool = typer.Option(True, "--precheck/--no-precheck", help="Simulate ERC-20 transfers"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    cache_file: Path = typer.Option(DEFAULT_CACHE_FILE, "--cache-file", help="NFT cache file"),
    api_key: str | None = typer.Option(None, "--api-key", envvar="MORALIS_PRIMARY_API_KEY", help="Moralis API key"),
    fallback_api_key: str | None = typer.Option(
        None,
        "--fallback-api-key",
        envvar="MORALIS_FALLBACK_API_KEY",
        help="Fallback Moralis API key",
    ),
) -> None:
    """
    Dry run: show what a sweep would transfer without submitting.

    Examples:

        wallet-sweeper plan 0xABC... --chain-id 1 --target 0xDEF...
    """
    config = _build_config(api_key, fallback_api_key, target)
    asset_catalog = _build_catalog(config, cache_file)
    rpc_provider = None

    try:
        if precheck and config.is_supported(chain_id):
            rpc_provider = _connect(config, chain_id)
        sweeper = Sweeper(config, asset_catalog, provider=rpc_provider)
        sweep_plan = sweeper.plan(address, chain_id, force_refresh=refresh)
    except SweepError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    finally:
        if rpc_provider is not None:
            rpc_provider.disconnect()
        asset_catalog.client.close()

    if format == OutputFormat.JSON:
        console.print(json.dumps(sweep_plan.model_dump(mode="json"), indent=2))
    else:
        _output_plan(sweep_plan)


@app.command()
def sweep(
    address: str = typer.Argument(..., help="Wallet address to sweep"),
    chain_id: int = typer.Option(1, "--chain-id", "-c", help="Numeric chain id"),
    target: str | None = typer.Option(None, "--target", "-t", envvar="SWEEP_TARGET_ADDRESS", help="Recipient"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the NFT cache"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Submit without confirmation"),
    cache_file: Path = typer.Option(DEFAULT_CACHE_FILE, "--cache-file", help="NFT cache file"),
    api_key: str | None = typer.Option(None, "--api-key", envvar="MORALIS_PRIMARY_API_KEY", help="Moralis API key"),
    fallback_api_key: str | None = typer.Option(
        None,
        "--fallback-api-key",
        envvar="MORALIS_FALLBACK_API_KEY",
        help="Fallback Moralis API key",
    ),
) -> None:
    """
    Plan a sweep and submit it through the connected wallet as one batch.

    Examples:

        wallet-sweeper sweep 0xABC... --chain-id 8453 --target 0xDEF...
    """
    config = _build_config(api_key, fallback_api_key, target)
    asset_catalog = _build_catalog(config, cache_file)
    rpc_provider = None

    try:
        chain = config.get_chain(chain_id)
        rpc_provider = _connect(config, chain_id)
        if rpc_provider is None:
            console.print(f"[bold red]Cannot submit on {chain.name} without an RPC network[/bold red]")
            raise typer.Exit(1)

        sweeper = Sweeper(
            config,
            asset_catalog,
            provider=rpc_provider,
            wallet=SendCallsWallet(rpc_provider, address),
        )
        sweep_plan = sweeper.plan(address, chain_id, force_refresh=refresh)
        _output_plan(sweep_plan)

        if not sweep_plan.candidates:
            return
        if not yes and not typer.confirm(f"Submit {len(sweep_plan.candidates)} calls?"):
            console.print("[yellow]Aborted[/yellow]")
            raise typer.Exit(0)

        result = sweeper.execute(sweep_plan)
    except SweepError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    finally:
        if rpc_provider is not None:
            rpc_provider.disconnect()
        asset_catalog.client.close()

    _output_submission(result)
    if not result.ok:
        raise typer.Exit(1)


def _output_catalog(result: Catalog) -> None:
    """Output holdings as rich table."""
    assets = ([result.native] if result.native else []) + result.erc20 + result.nfts
    if not assets:
        console.print("\n[yellow]No sweepable holdings found[/yellow]")
        return

    table = Table(
        title=f"Holdings for {result.owner_address[:10]}...{result.owner_address[-8:]} on chain {result.chain_id}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Type", style="yellow")
    table.add_column("Token", style="green")
    table.add_column("Contract", style="dim")
    table.add_column("Balance", style="white", justify="right")
    table.add_column("USD Value", style="bold green", justify="right")

    for asset in assets:
        if asset.is_nft:
            balance_str = f"#{asset.token_id} x{asset.raw_balance}"
        else:
            balance_str = f"{asset.normalized_balance:,.4f}"
        usd_str = f"${asset.total_value_usd:,.2f}" if asset.total_value_usd else "-"
        table.add_row(asset.kind.value, asset.symbol, asset.contract_address, balance_str, usd_str)

    console.print("\n")
    console.print(table)


def _output_plan(sweep_plan: SweepPlan) -> None:
    """Output a sweep plan as rich tables."""
    if not sweep_plan.candidates:
        console.print("\n[yellow]Nothing to sweep[/yellow]")
        return

    table = Table(
        title=f"Sweep to {sweep_plan.target_address[:10]}...{sweep_plan.target_address[-8:]}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("#", justify="right")
    table.add_column("Type", style="yellow")
    table.add_column("Transfer", style="green")
    table.add_column("USD Value", style="bold green", justify="right")

    for i, candidate in enumerate(sweep_plan.candidates, start=1):
        usd_str = f"${candidate.usd_value:,.2f}" if candidate.usd_value else "-"
        table.add_row(str(i), candidate.asset.kind.value, candidate.description, usd_str)

    console.print("\n")
    console.print(table)

    summary_table = Table(show_header=False, box=None)
    summary_table.add_column("Label", style="bold")
    summary_table.add_column("Value", style="bold green")
    summary_table.add_row("Total Value:", f"${sweep_plan.total_usd_value:,.2f}")
    summary_table.add_row("Gas Reserve:", f"{sweep_plan.gas_budget.reserve_wei} wei")
    summary_table.add_row(
        "Precheck:",
        f"{sweep_plan.precheck.checked - sweep_plan.precheck.rejected}/{sweep_plan.precheck.checked} passed",
    )
    console.print(summary_table)
    console.print("\n")


def _output_submission(result: SubmissionResult) -> None:
    if result.ok:
        console.print(f"[bold green]✓ Submitted {len(result.calls)} calls[/bold green] (handle: {result.handle})")
    elif result.errors:
        console.print("[bold red]Batch rejected before submission:[/bold red]")
        for error in result.errors:
            console.print(f"  - {error}")
    else:
        console.print(f"[yellow]{result.status}[/yellow]")


if __name__ == "__main__":
    app()
