"""
ChronoFlow CLI entry point.

Usage:
    chronoflow [OPTIONS] COMMAND [ARGS]...
"""
from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .client import (
    get_chronoflow_core_contract,
    get_listing,
    get_marketplace_contract,
    get_next_stream_id,
    get_stream,
    init_public_client,
    init_wallet_client,
)
from .config import build_default_config
from .contracts import ContractName
from .deployment import deploy_chronoflow
from .exceptions import ChronoFlowError, DeploymentError
from .logging_utils import mask_address, setup_logging
from .manifest import build_manifest, write_manifest

console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(package_name="chronoflow", message="%(prog)s %(version)s")
@click.option("--network", envvar="CHRONOFLOW_NETWORK", help="Network name")
@click.option("--rpc-url", envvar="CHRONOFLOW_RPC_URL", help="RPC endpoint override")
@click.option(
    "--addresses-file",
    type=click.Path(exists=True, dir_okay=False),
    help="deployed_addresses.json to take contract addresses from",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, network: str | None, rpc_url: str | None, addresses_file: str | None, verbose: bool):
    """ChronoFlow - bindings and deployment for streaming-payment contracts."""
    ctx.ensure_object(dict)
    setup_logging("DEBUG" if verbose else "WARNING")

    try:
        config = build_default_config(network)
    except ChronoFlowError as e:
        _fail(str(e))

    if rpc_url:
        config.get_network().rpc_url = rpc_url
    if addresses_file:
        config.load_deployed_addresses(addresses_file)

    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option(
    "--private-key",
    envvar="CHRONOFLOW_PRIVATE_KEY",
    help="Deployer private key (defaults to CHRONOFLOW_PRIVATE_KEY)",
)
@click.pass_context
def deploy(ctx, private_key: str | None):
    """Deploy StreamNFT, ChronoFlowCore and ChronoFlowMarketplace."""
    config = ctx.obj["config"]
    if not private_key:
        _fail("No deployer key; set CHRONOFLOW_PRIVATE_KEY")

    network = config.get_network()
    console.print(f"\n[bold blue]Deploying ChronoFlow to {network.display_name}[/bold blue]\n")

    try:
        client = init_wallet_client(private_key, config=config)
    except ValueError as e:
        _fail(f"Invalid deployer key: {e}")

    try:
        result = deploy_chronoflow(client, config)
    except DeploymentError as e:
        console.print(f"[red]Deployment failed at {e.step_id}: {e.__cause__ or e}[/red]")
        if e.resolved:
            console.print("[yellow]Contracts created before the failure (unlinked, redeploy):[/yellow]")
            for future_id, address in e.resolved.items():
                console.print(f"  {future_id}: {address}")
        sys.exit(1)
    except ChronoFlowError as e:
        _fail(str(e))

    console.print("[green]ChronoFlow deployment completed![/green]")
    console.print(f"StreamNFT deployed to: [cyan]{result.stream_nft.address}[/cyan]")
    console.print(f"ChronoFlowCore deployed to: [cyan]{result.chrono_core.address}[/cyan]")
    console.print(f"ChronoFlowMarketplace deployed to: [cyan]{result.marketplace.address}[/cyan]")
    if result.record_path:
        console.print(f"\nAddresses recorded in {result.record_path}")


@cli.command()
@click.pass_context
def status(ctx):
    """Show network, configured addresses and the next stream id."""
    config = ctx.obj["config"]
    network = config.get_network()

    console.print("\n[bold blue]ChronoFlow Status[/bold blue]\n")
    console.print(f"Network: [cyan]{network.display_name}[/cyan] (chain id {network.chain_id})")
    console.print(f"RPC URL: [cyan]{network.rpc_url}[/cyan]")

    table = Table(title="Contracts")
    table.add_column("Contract", style="cyan")
    table.add_column("Address")
    for name in ContractName:
        address = config.get_address(name)
        if address and config.logging.mask_addresses:
            address = mask_address(address)
        table.add_row(name.value, address or "[yellow]Not configured[/yellow]")
    console.print(table)

    try:
        core = get_chronoflow_core_contract(init_public_client(config=config))
        console.print(f"Next stream id: [green]{get_next_stream_id(core)}[/green]")
    except ChronoFlowError as e:
        console.print(f"[yellow]{e}[/yellow]")
    console.print()


@cli.command()
@click.argument("stream_id", type=int)
@click.pass_context
def stream(ctx, stream_id: int):
    """Show a stream record."""
    config = ctx.obj["config"]
    try:
        core = get_chronoflow_core_contract(init_public_client(config=config))
        record = get_stream(core, stream_id)
    except ChronoFlowError as e:
        _fail(str(e))

    if not record.exists:
        console.print(f"[yellow]Stream {stream_id} does not exist[/yellow]")
        return

    table = Table(title=f"Stream {stream_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in record.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@cli.command()
@click.argument("token_id", type=int)
@click.pass_context
def listing(ctx, token_id: int):
    """Show the marketplace listing for a stream token."""
    config = ctx.obj["config"]
    try:
        marketplace = get_marketplace_contract(init_public_client(config=config))
        record = get_listing(marketplace, token_id)
    except ChronoFlowError as e:
        _fail(str(e))

    if not record.is_active:
        console.print(f"Token {token_id} is [yellow]not listed[/yellow]")
        return
    console.print(f"Token {token_id} listed by [cyan]{record.seller}[/cyan] for [green]{record.price}[/green] wei")


@cli.command()
@click.option(
    "--output",
    "output",
    default="wagmi.manifest.json",
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Where to write the manifest",
)
@click.option("--out", "generated_out", default="generated/wagmi.ts", show_default=True,
              help="Output path recorded for the generator")
@click.pass_context
def manifest(ctx, output: str, generated_out: str):
    """Write the hook-generation manifest for the wagmi CLI."""
    config = ctx.obj["config"]
    data = build_manifest(config, out=generated_out)
    path = write_manifest(Path(output), data)

    missing = [c["name"] for c in data["contracts"] if not c["address"]]
    console.print(f"[green]✓ Manifest written to {path}[/green]")
    if missing:
        console.print(f"[yellow]No address for: {', '.join(missing)}[/yellow]")


@cli.command()
@click.pass_context
def networks(ctx):
    """List configured networks."""
    config = ctx.obj["config"]

    table = Table(title="Networks")
    table.add_column("Network", style="cyan")
    table.add_column("Chain ID", justify="right")
    table.add_column("Native Token")
    table.add_column("RPC URL")
    for name, network in config.networks.items():
        marker = " *" if name == config.network else ""
        table.add_row(name + marker, str(network.chain_id), network.native_token, network.rpc_url)
    console.print(table)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
