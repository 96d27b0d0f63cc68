"""
EVM contract loader - solc artifacts vs eth_getCode.

Local side: deployed (runtime) bytecode of one contract inside solc
standard-JSON output, located by source unit and contract name.
Remote side: code at the address on the latest block.

Both sides reduce to keccak256(code), the same value as the on-chain
EXTCODEHASH for a deployed contract.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Optional

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from codeverify.errors import (
    ConfigurationError,
    LocalFailure,
    LocalReadError,
    RemoteFailure,
    RemoteReadError,
)
from codeverify.hashing import keccak_hex, read_artifact
from codeverify.metrics import Metrics
from codeverify.networks import EcosystemKind
from codeverify.settings import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

Web3Factory = Callable[[str, float], Web3]

_HEX = re.compile(r"[0-9a-fA-F]*")


def http_web3(rpc_url: str, timeout: float) -> Web3:
    """Web3 over HTTP with a request timeout and provider retries disabled."""
    return Web3(
        Web3.HTTPProvider(
            rpc_url,
            request_kwargs={"timeout": timeout},
            exception_retry_configuration=None,
        )
    )


def deployed_bytecode(artifact: Any, source_unit: str, contract_name: str) -> str:
    """
    Navigate solc output to contracts[unit][name].evm.deployedBytecode.object.

    Raises:
        LocalReadError: MISSING_PATH naming the first absent level
    """
    path = ["contracts", source_unit, contract_name, "evm", "deployedBytecode", "object"]
    node = artifact
    for depth, key in enumerate(path):
        if not isinstance(node, dict) or key not in node:
            walked = ".".join(path[: depth + 1])
            raise LocalReadError(LocalFailure.MISSING_PATH, f"{walked} not found in artifact")
        node = node[key]

    if not isinstance(node, str):
        raise LocalReadError(
            LocalFailure.MISSING_PATH, "deployedBytecode.object is not a hex string"
        )
    return node


def decode_hex(code: str) -> bytes:
    """
    Decode 0x-optional hex bytecode.

    Raises:
        ValueError: If the string is not plain hex (e.g. unlinked library placeholders)
    """
    body = code[2:] if code[:2].lower() == "0x" else code
    # fromhex skips whitespace, so "60 80" would otherwise decode
    if not _HEX.fullmatch(body):
        raise ValueError(f"non-hex characters in bytecode: {body[:32]!r}")
    return bytes.fromhex(body)


@dataclass(frozen=True)
class EvmLoader:
    """
    Loader for EVM chains.

    Attributes:
        source_unit: Source file key in solc output, e.g. "src/Token.sol"
        contract_name: Contract name within that source unit
        chain_id: Expected eth_chainId; None skips the identity check
        timeout: RPC timeout in seconds
        metrics: Optional fetch metrics
        web3_factory: Builds a Web3 client for an endpoint
    """

    kind: ClassVar[EcosystemKind] = EcosystemKind.EVM

    source_unit: str
    contract_name: str
    chain_id: Optional[int] = None
    timeout: float = DEFAULT_TIMEOUT
    metrics: Optional[Metrics] = None
    web3_factory: Web3Factory = field(default=http_web3, repr=False)

    def __post_init__(self) -> None:
        if not self.source_unit or not self.contract_name:
            raise ConfigurationError(
                "EVM artifacts need both a source unit (--contract-path) "
                "and a contract name (--contract-name)"
            )

    def load_local(self, path: str) -> str:
        """
        Canonical code of the contract's runtime bytecode in a solc artifact.

        Raises:
            LocalReadError: Missing/unreadable file, invalid JSON, absent
                contract path, or non-hex bytecode
        """
        raw = read_artifact(path)
        try:
            artifact = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LocalReadError(LocalFailure.MALFORMED, f"artifact is not valid JSON: {e}", path)

        try:
            code_hex = deployed_bytecode(artifact, self.source_unit, self.contract_name)
        except LocalReadError as e:
            raise LocalReadError(e.reason, e.detail, path)

        try:
            code = decode_hex(code_hex)
        except ValueError:
            raise LocalReadError(
                LocalFailure.INVALID_BYTECODE,
                f"deployedBytecode of {self.contract_name} is not plain hex "
                "(unlinked libraries?)",
                path,
            )

        logger.info(f"Loaded {len(code)} bytes of {self.contract_name} from {path}")
        return keccak_hex(code)

    def load_remote(self, address: str, rpc_url: str) -> str:
        """
        Canonical code deployed at address on the latest block.

        Raises:
            RemoteReadError: Invalid address, wrong chain id, no code at
                address, timeout, or transport/RPC failure
        """
        if not isinstance(address, str) or not Web3.is_address(address):
            raise RemoteReadError(
                RemoteFailure.INVALID_IDENTIFIER, "not a valid EVM address", str(address)
            )
        checksum = Web3.to_checksum_address(address)

        metrics = self.metrics or Metrics()
        with metrics.track_fetch(self.kind.value):
            code = self._fetch_code(checksum, rpc_url)
            if len(code) == 0:
                raise RemoteReadError(
                    RemoteFailure.NOT_FOUND, "no contract code deployed at address", checksum
                )

        logger.info(f"Fetched {len(code)} bytes of code for {checksum} from {rpc_url}")
        return keccak_hex(bytes(code))

    def _fetch_code(self, address: str, rpc_url: str) -> bytes:
        try:
            w3 = self.web3_factory(rpc_url, self.timeout)
            if self.chain_id is not None:
                got = int(w3.eth.chain_id)
                if got != self.chain_id:
                    raise RemoteReadError(
                        RemoteFailure.IDENTITY_MISMATCH,
                        f"endpoint reports chain id {got}, expected {self.chain_id}",
                        address,
                    )
            return bytes(w3.eth.get_code(address, "latest"))
        except requests.exceptions.Timeout as e:
            raise RemoteReadError(
                RemoteFailure.TIMEOUT, f"RPC timed out after {self.timeout}s: {e}", address
            )
        except requests.exceptions.RequestException as e:
            raise RemoteReadError(RemoteFailure.TRANSPORT, f"RPC unreachable: {e}", address)
        except (Web3Exception, ValueError) as e:
            raise RemoteReadError(RemoteFailure.TRANSPORT, f"RPC error: {e}", address)
