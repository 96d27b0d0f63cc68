"""
Network registry - name to chain configuration.

Built-in networks carry a default RPC endpoint and their chain-identity
value (Stellar passphrase or EVM chain id). Unknown names resolve to a
custom code-only (EVM) network with no defaults.

Precedence for every configurable field:
    user override > network default > ConfigurationError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from codeverify.errors import ConfigurationError

logger = logging.getLogger(__name__)


class EcosystemKind(str, Enum):
    """Blockchain family sharing one artifact format and one RPC semantics."""

    EVM = "evm"
    STELLAR = "stellar"


STELLAR_PUBLIC_PASSPHRASE = "Public Global Stellar Network ; September 2015"
STELLAR_TESTNET_PASSPHRASE = "Test SDF Network ; September 2015"


@dataclass(frozen=True)
class Network:
    """
    Static configuration of one target chain.

    Attributes:
        name: Lowercase network name, unique within a registry
        kind: Ecosystem the network belongs to
        default_rpc: Endpoint used when the caller supplies none
        default_passphrase: Stellar network passphrase
        chain_id: EVM chain id checked against eth_chainId
    """

    name: str
    kind: EcosystemKind
    default_rpc: Optional[str] = None
    default_passphrase: Optional[str] = None
    chain_id: Optional[int] = None


@dataclass(frozen=True)
class ResolvedNetwork:
    """Network with every override applied; ready to bind a loader."""

    network: Network
    rpc_url: str
    passphrase: Optional[str] = None
    chain_id: Optional[int] = None

    @property
    def kind(self) -> EcosystemKind:
        return self.network.kind


def _table(networks: Iterable[Network]) -> Mapping[str, Network]:
    return MappingProxyType({n.name.lower(): n for n in networks})


BUILTIN_NETWORKS: Mapping[str, Network] = _table(
    [
        Network(
            "stellar",
            EcosystemKind.STELLAR,
            default_rpc="https://mainnet.sorobanrpc.com",
            default_passphrase=STELLAR_PUBLIC_PASSPHRASE,
        ),
        Network(
            "stellar-testnet",
            EcosystemKind.STELLAR,
            default_rpc="https://soroban-testnet.stellar.org",
            default_passphrase=STELLAR_TESTNET_PASSPHRASE,
        ),
        Network(
            "ethereum",
            EcosystemKind.EVM,
            default_rpc="https://eth.llamarpc.com",
            chain_id=1,
        ),
        Network(
            "sepolia",
            EcosystemKind.EVM,
            default_rpc="https://rpc.sepolia.org",
            chain_id=11155111,
        ),
    ]
)


class NetworkRegistry:
    """
    Read-only lookup of network configuration.

    Custom networks override built-ins of the same name.

    Usage:
        registry = NetworkRegistry()
        resolved = registry.configure("sepolia", rpc_url="https://my-node")
    """

    def __init__(
        self,
        networks: Iterable[Network] = BUILTIN_NETWORKS.values(),
        custom: Iterable[Network] = (),
    ):
        table = dict(_table(networks))
        for n in custom:
            table[n.name.lower()] = n
        self._networks: Mapping[str, Network] = MappingProxyType(table)

    def names(self) -> List[str]:
        return sorted(self._networks)

    def resolve(self, name: str) -> Network:
        """
        Look up a network by name.

        Unknown names become custom EVM networks without defaults; the
        caller must then supply an RPC endpoint.

        Raises:
            ConfigurationError: If name is empty
        """
        key = (name or "").strip().lower()
        if not key:
            raise ConfigurationError("network name must not be empty")

        network = self._networks.get(key)
        if network is None:
            logger.info(f"Unknown network {key!r}, treating as custom EVM network")
            network = Network(key, EcosystemKind.EVM)
        return network

    def configure(
        self,
        name: str,
        rpc_url: Optional[str] = None,
        passphrase: Optional[str] = None,
        chain_id: Optional[int] = None,
    ) -> ResolvedNetwork:
        """
        Resolve a network and apply user overrides.

        Args:
            name: Network name
            rpc_url: Endpoint override
            passphrase: Stellar passphrase override
            chain_id: EVM chain id override

        Returns:
            ResolvedNetwork with endpoint and identity fixed

        Raises:
            ConfigurationError: If no endpoint (or, for Stellar, no
                passphrase) is available from override or default
        """
        network = self.resolve(name)

        rpc = rpc_url or network.default_rpc
        if not rpc:
            raise ConfigurationError(
                f"network {network.name!r} has no default RPC endpoint; "
                "supply one with --rpc-url"
            )

        if network.kind is EcosystemKind.STELLAR:
            phrase = passphrase or network.default_passphrase
            if not phrase:
                raise ConfigurationError(
                    f"network {network.name!r} requires a network passphrase"
                )
            return ResolvedNetwork(network, rpc, passphrase=phrase)

        if passphrase:
            logger.warning(
                f"Network passphrase ignored for EVM network {network.name!r}"
            )
        cid = chain_id if chain_id is not None else network.chain_id
        return ResolvedNetwork(network, rpc, chain_id=cid)
