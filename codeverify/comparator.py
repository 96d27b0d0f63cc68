"""
Contract comparison - local artifact vs deployed code.

Flow:
    name -> NetworkRegistry.configure -> ResolvedNetwork
         -> build_loader (one loader per ecosystem kind)
         -> ContractComparator.compare -> True | False | VerificationError

Any load failure propagates; a failure is never reported as a mismatch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from codeverify.eth.loader import EvmLoader
from codeverify.metrics import Metrics
from codeverify.networks import EcosystemKind, ResolvedNetwork
from codeverify.settings import DEFAULT_TIMEOUT
from codeverify.stellar.loader import StellarLoader

logger = logging.getLogger(__name__)

Loader = Union[EvmLoader, StellarLoader]


def build_loader(
    resolved: ResolvedNetwork,
    *,
    source_unit: Optional[str] = None,
    contract_name: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    metrics: Optional[Metrics] = None,
) -> Loader:
    """
    Bind the loader matching the network's ecosystem kind.

    Args:
        resolved: Network with endpoint and identity applied
        source_unit: Solc source unit (EVM only)
        contract_name: Contract name in the source unit (EVM only)
        timeout: RPC timeout in seconds
        metrics: Optional fetch metrics

    Raises:
        ConfigurationError: If the ecosystem's required parameters are missing
    """
    kind = resolved.kind
    if kind is EcosystemKind.EVM:
        return EvmLoader(
            source_unit=source_unit or "",
            contract_name=contract_name or "",
            chain_id=resolved.chain_id,
            timeout=timeout,
            metrics=metrics,
        )
    if kind is EcosystemKind.STELLAR:
        if source_unit or contract_name:
            logger.warning("Contract path/name ignored for Stellar wasm artifacts")
        return StellarLoader(
            network_passphrase=resolved.passphrase or "",
            timeout=timeout,
            metrics=metrics,
        )
    raise AssertionError(f"no loader registered for ecosystem {kind!r}")


@dataclass(frozen=True)
class Comparison:
    """Outcome of one comparison with both canonical values."""

    matched: bool
    local_code: str
    remote_code: str


@dataclass(frozen=True)
class ContractComparator:
    """Compares a local artifact against deployed code with one bound loader."""

    loader: Loader

    @classmethod
    def for_network(
        cls,
        resolved: ResolvedNetwork,
        *,
        source_unit: Optional[str] = None,
        contract_name: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        metrics: Optional[Metrics] = None,
    ) -> ContractComparator:
        loader = build_loader(
            resolved,
            source_unit=source_unit,
            contract_name=contract_name,
            timeout=timeout,
            metrics=metrics,
        )
        return cls(loader)

    def evaluate(self, local_path: str, remote_id: str, rpc_url: str) -> Comparison:
        """
        Load both sides and compare canonical code.

        Raises:
            LocalReadError: Local artifact could not be loaded
            RemoteReadError: Deployed code could not be fetched
        """
        local_code = self.loader.load_local(local_path)
        remote_code = self.loader.load_remote(remote_id, rpc_url)
        return self._result(local_code, remote_code)

    def compare(self, local_path: str, remote_id: str, rpc_url: str) -> bool:
        return self.evaluate(local_path, remote_id, rpc_url).matched

    async def evaluate_async(
        self, local_path: str, remote_id: str, rpc_url: str
    ) -> Comparison:
        """Same as evaluate, loading both sides concurrently in worker threads."""
        local_code, remote_code = await asyncio.gather(
            asyncio.to_thread(self.loader.load_local, local_path),
            asyncio.to_thread(self.loader.load_remote, remote_id, rpc_url),
        )
        return self._result(local_code, remote_code)

    async def compare_async(self, local_path: str, remote_id: str, rpc_url: str) -> bool:
        return (await self.evaluate_async(local_path, remote_id, rpc_url)).matched

    def _result(self, local_code: str, remote_code: str) -> Comparison:
        matched = local_code == remote_code
        logger.info(f"local={local_code} remote={remote_code} matched={matched}")
        return Comparison(matched, local_code, remote_code)
