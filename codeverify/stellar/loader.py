"""
Stellar (Soroban) contract loader - wasm file vs ledger code entry.

Remote retrieval follows the contract's ledger entries:
    contract id -> instance entry (ContractData, SCV_LEDGER_KEY_CONTRACT_INSTANCE)
                -> wasm hash of the executable
                -> ContractCode entry -> wasm bytes

Both sides reduce to sha256(wasm), which is also the wasm hash the ledger
stores for uploaded code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Optional

import requests
import urllib3
from stellar_sdk import Address, SorobanServer, StrKey, xdr
from stellar_sdk.client.requests_client import RequestsClient
from stellar_sdk.exceptions import ConnectionError as StellarConnectionError
from stellar_sdk.exceptions import SdkError

from codeverify.errors import (
    ConfigurationError,
    RemoteFailure,
    RemoteReadError,
)
from codeverify.hashing import read_artifact, sha256
from codeverify.metrics import Metrics
from codeverify.networks import EcosystemKind
from codeverify.settings import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

ServerFactory = Callable[[str, float], SorobanServer]


def soroban_server(rpc_url: str, timeout: float) -> SorobanServer:
    """Soroban RPC client with request timeouts and no retries."""
    client = RequestsClient(num_retries=0, request_timeout=timeout, post_timeout=timeout)
    return SorobanServer(rpc_url, client=client)


def instance_key(contract_id: str) -> xdr.LedgerKey:
    return xdr.LedgerKey(
        type=xdr.LedgerEntryType.CONTRACT_DATA,
        contract_data=xdr.LedgerKeyContractData(
            contract=Address(contract_id).to_xdr_sc_address(),
            key=xdr.SCVal(type=xdr.SCValType.SCV_LEDGER_KEY_CONTRACT_INSTANCE),
            durability=xdr.ContractDataDurability.PERSISTENT,
        ),
    )


def code_key(wasm_hash: bytes) -> xdr.LedgerKey:
    return xdr.LedgerKey(
        type=xdr.LedgerEntryType.CONTRACT_CODE,
        contract_code=xdr.LedgerKeyContractCode(hash=xdr.Hash(wasm_hash)),
    )


def _is_timeout(exc: BaseException) -> bool:
    """
    True if a timeout appears anywhere in the exception chain.

    With retries disabled urllib3 reports an expired read as
    MaxRetryError(reason=ReadTimeoutError), which requests wraps in a plain
    ConnectionError rather than Timeout. A refused connection is a
    NewConnectionError, which urllib3 derives from ConnectTimeoutError.
    """
    pending = [exc]
    seen = set()
    while pending:
        e = pending.pop()
        if not isinstance(e, BaseException) or id(e) in seen:
            continue
        seen.add(id(e))

        if isinstance(e, requests.exceptions.Timeout):
            return True
        if isinstance(e, urllib3.exceptions.TimeoutError) and not isinstance(
            e, urllib3.exceptions.NewConnectionError
        ):
            return True

        if isinstance(e, urllib3.exceptions.MaxRetryError):
            pending.append(e.reason)
        pending.extend(e.args)
        pending.extend([e.__cause__, e.__context__])
    return False


@dataclass(frozen=True)
class StellarLoader:
    """
    Loader for Soroban contracts.

    Attributes:
        network_passphrase: Passphrase the RPC server must report
        timeout: RPC timeout in seconds
        metrics: Optional fetch metrics
        server_factory: Builds a SorobanServer for an endpoint
    """

    kind: ClassVar[EcosystemKind] = EcosystemKind.STELLAR

    network_passphrase: str
    timeout: float = DEFAULT_TIMEOUT
    metrics: Optional[Metrics] = None
    server_factory: ServerFactory = field(default=soroban_server, repr=False)

    def __post_init__(self) -> None:
        if not self.network_passphrase:
            raise ConfigurationError("Stellar loader requires a network passphrase")

    def load_local(self, path: str) -> str:
        """sha256 of a local wasm file. Empty files are valid."""
        wasm = read_artifact(path)
        logger.info(f"Loaded {len(wasm)} bytes of wasm from {path}")
        return sha256(wasm)

    def load_remote(self, contract_id: str, rpc_url: str) -> str:
        """
        sha256 of the wasm currently backing a contract id.

        Raises:
            RemoteReadError: Invalid contract id, passphrase mismatch, missing
                instance or code, non-wasm executable, timeout, or RPC failure
        """
        if not isinstance(contract_id, str) or not StrKey.is_valid_contract(contract_id):
            raise RemoteReadError(
                RemoteFailure.INVALID_IDENTIFIER,
                "not a valid Stellar contract id (C...)",
                str(contract_id),
            )

        metrics = self.metrics or Metrics()
        with metrics.track_fetch(self.kind.value):
            wasm = self._fetch_wasm(contract_id, rpc_url)

        logger.info(f"Fetched {len(wasm)} bytes of wasm for {contract_id} from {rpc_url}")
        return sha256(wasm)

    def _fetch_wasm(self, contract_id: str, rpc_url: str) -> bytes:
        try:
            server = self.server_factory(rpc_url, self.timeout)

            reported = server.get_network().passphrase
            if reported != self.network_passphrase:
                raise RemoteReadError(
                    RemoteFailure.IDENTITY_MISMATCH,
                    f"endpoint serves {reported!r}, expected {self.network_passphrase!r}",
                    contract_id,
                )

            wasm_hash = self._wasm_hash(server, contract_id)
            entries = server.get_ledger_entries([code_key(wasm_hash)]).entries
            if not entries:
                raise RemoteReadError(
                    RemoteFailure.NOT_FOUND,
                    f"wasm code {wasm_hash.hex()} not found on ledger",
                    contract_id,
                )
            data = xdr.LedgerEntryData.from_xdr(entries[0].xdr)
            return bytes(data.contract_code.code)
        except StellarConnectionError as e:
            if _is_timeout(e):
                raise RemoteReadError(
                    RemoteFailure.TIMEOUT, f"RPC timed out after {self.timeout}s", contract_id
                )
            raise RemoteReadError(RemoteFailure.TRANSPORT, f"RPC unreachable: {e}", contract_id)
        except (SdkError, ValueError) as e:
            raise RemoteReadError(RemoteFailure.TRANSPORT, f"RPC error: {e}", contract_id)

    def _wasm_hash(self, server: SorobanServer, contract_id: str) -> bytes:
        entries = server.get_ledger_entries([instance_key(contract_id)]).entries
        if not entries:
            raise RemoteReadError(
                RemoteFailure.NOT_FOUND, "contract instance not found on ledger", contract_id
            )

        data = xdr.LedgerEntryData.from_xdr(entries[0].xdr)
        val = data.contract_data.val
        if val.type != xdr.SCValType.SCV_CONTRACT_INSTANCE:
            raise RemoteReadError(
                RemoteFailure.NOT_FOUND, "ledger entry is not a contract instance", contract_id
            )

        executable = val.instance.executable
        if executable.type != xdr.ContractExecutableType.CONTRACT_EXECUTABLE_WASM:
            raise RemoteReadError(
                RemoteFailure.NOT_FOUND,
                "contract has no wasm executable (built-in asset contract?)",
                contract_id,
            )
        return bytes(executable.wasm_hash.hash)
