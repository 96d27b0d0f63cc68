"""
codeverify command line.

Exit codes:
    0 - local artifact matches deployed code
    1 - mismatch
    2 - verification error (configuration, local artifact, or remote fetch)

Example:
    python -m cli.main verify --network stellar-testnet \\
        --local ./target/wasm32-unknown-unknown/release/token.wasm \\
        --remote CCHXQJ5YDCIRGCBUTLC5BF2V2DKHULVPTQJGD4BAHW46JQWVRQNGA2LU
"""

from __future__ import annotations

import logging
from typing import Optional

import click

from codeverify.comparator import ContractComparator
from codeverify.declarations import load_declarations
from codeverify.errors import VerificationError
from codeverify.metrics import Metrics
from codeverify.networks import NetworkRegistry, ResolvedNetwork
from codeverify.settings import Settings

logger = logging.getLogger("codeverify.cli")


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _registry(networks_file: str) -> NetworkRegistry:
    custom = load_declarations(networks_file) if networks_file else []
    return NetworkRegistry(custom=custom)


def _comparator(
    resolved: ResolvedNetwork,
    contract_path: Optional[str],
    contract_name: Optional[str],
    timeout: float,
    metrics: Metrics,
) -> ContractComparator:
    return ContractComparator.for_network(
        resolved,
        source_unit=contract_path,
        contract_name=contract_name,
        timeout=timeout,
        metrics=metrics,
    )


@click.group()
def cli():
    """Verify that deployed contract code matches a local build artifact."""
    pass


@cli.command()
@click.option("--network", required=True, help="Network name (stellar, stellar-testnet, ethereum, sepolia, or custom)")
@click.option("--local", "local_path", required=True, help="Local artifact: .wasm file or solc standard-JSON output")
@click.option("--remote", required=True, help="On-chain contract address or contract id")
@click.option("--rpc-url", default=None, help="RPC endpoint override")
@click.option("--network-passphrase", default=None, help="Stellar network passphrase override")
@click.option("--chain-id", type=int, default=None, help="Expected EVM chain id override")
@click.option("--contract-path", default=None, help="Source unit in solc output (EVM only)")
@click.option("--contract-name", default=None, help="Contract name in the source unit (EVM only)")
@click.option("--networks-file", default=None, help="JSON file declaring custom networks")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="RPC timeout in seconds")
@click.option("--verbose", is_flag=True, help="Debug logging")
def verify(
    network: str,
    local_path: str,
    remote: str,
    rpc_url: Optional[str],
    network_passphrase: Optional[str],
    chain_id: Optional[int],
    contract_path: Optional[str],
    contract_name: Optional[str],
    networks_file: Optional[str],
    timeout: Optional[float],
    verbose: bool,
):
    """
    Compare a local artifact with the code deployed on a network.

    Example:
        python -m cli.main verify --network sepolia \\
            --local out/solc-output.json \\
            --contract-path src/Token.sol --contract-name Token \\
            --remote 0x1111111111111111111111111111111111111111
    """
    metrics = Metrics()
    try:
        settings = Settings.load()
        _configure_logging(settings, verbose)

        registry = _registry(networks_file or settings.NETWORKS_FILE)
        resolved = registry.configure(
            network,
            rpc_url=rpc_url or settings.RPC_URL or None,
            passphrase=network_passphrase or settings.NETWORK_PASSPHRASE or None,
            chain_id=chain_id,
        )
        comparator = _comparator(
            resolved, contract_path, contract_name, timeout or settings.RPC_TIMEOUT, metrics
        )
        result = comparator.evaluate(local_path, remote, resolved.rpc_url)
    except VerificationError as e:
        click.echo(f"Error comparing contracts: [{e.side}] {e}", err=True)
        raise SystemExit(2)
    finally:
        logger.debug(f"metrics {metrics.snapshot()}")

    if result.matched:
        click.echo("✅ Contracts match!")
        click.echo(f"   network   : {resolved.network.name}")
        click.echo(f"   code hash : {result.local_code}")
        return

    click.echo("❌ Contracts do not match!", err=True)
    click.echo(f"   local  : {result.local_code}", err=True)
    click.echo(f"   remote : {result.remote_code}", err=True)
    raise SystemExit(1)


@cli.command()
@click.option("--networks-file", default=None, help="JSON file declaring custom networks")
def networks(networks_file: Optional[str]):
    """List known networks and their default endpoints."""
    try:
        registry = _registry(networks_file or Settings.load().NETWORKS_FILE)
    except VerificationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2)

    for name in registry.names():
        n = registry.resolve(name)
        click.echo(f"{n.name:<18} {n.kind.value:<8} {n.default_rpc or '-'}")


if __name__ == "__main__":
    cli()
