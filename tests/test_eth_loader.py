"""
Test EVM loader.

Verifies:
- Runtime bytecode located by source unit + contract name
- Missing path levels, bad JSON, unlinked bytecode fail locally
- Deployed code fetched at latest, empty code is not found
- Chain id mismatch, timeouts and RPC errors fail remotely
"""

from __future__ import annotations

import json

import pytest
import requests

from codeverify.errors import (
    ConfigurationError,
    LocalFailure,
    LocalReadError,
    RemoteFailure,
    RemoteReadError,
)
from codeverify.eth.loader import EvmLoader, decode_hex, deployed_bytecode
from codeverify.hashing import keccak_hex
from codeverify.metrics import Metrics

RUNTIME = bytes.fromhex("6080604052600080fdfea2646970667358")
ADDR = "0x" + "11" * 20
RPC = "https://rpc.test.example"


class FakeEth:
    """Mock eth module."""

    def __init__(self, code: bytes = b"", chain_id: int = 1, error: Exception = None):
        self._code = code
        self._chain_id = chain_id
        self._error = error
        self.calls = []

    @property
    def chain_id(self):
        if self._error:
            raise self._error
        return self._chain_id

    def get_code(self, addr, block_identifier):
        self.calls.append((addr, block_identifier))
        if self._error:
            raise self._error
        return self._code


class FakeWeb3:
    """Mock Web3 instance."""

    def __init__(self, eth: FakeEth):
        self.eth = eth


def fake_factory(eth: FakeEth):
    def factory(rpc_url, timeout):
        return FakeWeb3(eth)

    return factory


def no_network(rpc_url, timeout):
    raise AssertionError("network must not be touched")


def write_artifact(tmp_path, code_hex=RUNTIME.hex(), unit="src/Token.sol", name="Token"):
    doc = {
        "contracts": {
            unit: {
                name: {
                    "abi": [],
                    "evm": {
                        "bytecode": {"object": "6080" + code_hex},
                        "deployedBytecode": {"object": code_hex},
                    },
                }
            }
        },
        "sources": {unit: {"id": 0}},
    }
    p = tmp_path / "solc-output.json"
    p.write_text(json.dumps(doc))
    return str(p)


def loader(**kwargs) -> EvmLoader:
    kwargs.setdefault("source_unit", "src/Token.sol")
    kwargs.setdefault("contract_name", "Token")
    return EvmLoader(**kwargs)


def test_requires_source_unit_and_name():
    """EVM loader refuses to build without both location hints."""
    with pytest.raises(ConfigurationError, match="--contract-path"):
        EvmLoader(source_unit="", contract_name="Token")
    with pytest.raises(ConfigurationError):
        EvmLoader(source_unit="src/Token.sol", contract_name="")


def test_load_local_hashes_deployed_bytecode(tmp_path):
    """Local canonical code is keccak of the runtime bytecode."""
    path = write_artifact(tmp_path)
    assert loader().load_local(path) == keccak_hex(RUNTIME)


def test_load_local_accepts_0x_prefix(tmp_path):
    path = write_artifact(tmp_path, code_hex="0x" + RUNTIME.hex().upper())
    assert loader().load_local(path) == keccak_hex(RUNTIME)


def test_load_local_empty_bytecode_is_valid(tmp_path):
    """Interfaces/abstract contracts compile to empty runtime code."""
    path = write_artifact(tmp_path, code_hex="")
    assert loader().load_local(path) == keccak_hex(b"")


def test_load_local_missing_contract_name(tmp_path):
    """Absent contract name is a local failure naming the missing level."""
    path = write_artifact(tmp_path)

    with pytest.raises(LocalReadError) as exc:
        loader(contract_name="Other").load_local(path)

    assert exc.value.reason is LocalFailure.MISSING_PATH
    assert "contracts.src/Token.sol.Other" in str(exc.value)
    assert exc.value.path == path


def test_load_local_missing_source_unit(tmp_path):
    path = write_artifact(tmp_path)

    with pytest.raises(LocalReadError) as exc:
        loader(source_unit="src/Other.sol").load_local(path)

    assert exc.value.reason is LocalFailure.MISSING_PATH


def test_load_local_missing_file(tmp_path):
    with pytest.raises(LocalReadError) as exc:
        loader().load_local(str(tmp_path / "missing.json"))
    assert exc.value.reason is LocalFailure.NOT_FOUND


def test_load_local_directory_is_unreadable(tmp_path):
    with pytest.raises(LocalReadError) as exc:
        loader().load_local(str(tmp_path))
    assert exc.value.reason is LocalFailure.UNREADABLE


def test_load_local_malformed_json(tmp_path):
    p = tmp_path / "broken.json"
    p.write_text("{not json")

    with pytest.raises(LocalReadError) as exc:
        loader().load_local(str(p))
    assert exc.value.reason is LocalFailure.MALFORMED


def test_load_local_unlinked_library(tmp_path):
    """Library placeholders are not hex and cannot be compared."""
    code = "6080__$5c2ad3c2f3b2c2c4c9e8a2b1d3f4e5a6b7$__6000"
    path = write_artifact(tmp_path, code_hex=code)

    with pytest.raises(LocalReadError) as exc:
        loader().load_local(path)
    assert exc.value.reason is LocalFailure.INVALID_BYTECODE


def test_deployed_bytecode_non_string_object():
    doc = {"contracts": {"A.sol": {"A": {"evm": {"deployedBytecode": {"object": None}}}}}}
    with pytest.raises(LocalReadError) as exc:
        deployed_bytecode(doc, "A.sol", "A")
    assert exc.value.reason is LocalFailure.MISSING_PATH


def test_decode_hex():
    assert decode_hex("0x00ff") == b"\x00\xff"
    assert decode_hex("00FF") == b"\x00\xff"
    with pytest.raises(ValueError):
        decode_hex("0xzz")


@pytest.mark.parametrize("code", ["60 80", "0x6080\n", "\t6080", "0x 6080"])
def test_decode_hex_rejects_whitespace(code):
    with pytest.raises(ValueError):
        decode_hex(code)


def test_load_local_rejects_spaced_bytecode(tmp_path):
    path = write_artifact(tmp_path, code_hex="6080 6040")

    with pytest.raises(LocalReadError) as exc:
        loader().load_local(path)
    assert exc.value.reason is LocalFailure.INVALID_BYTECODE


def test_load_remote_hashes_code_at_latest():
    """Remote canonical code is keccak of eth_getCode at latest."""
    eth = FakeEth(code=RUNTIME, chain_id=1)
    got = loader(chain_id=1, web3_factory=fake_factory(eth)).load_remote(ADDR, RPC)

    assert got == keccak_hex(RUNTIME)
    assert eth.calls == [(ADDR, "latest")]


def test_load_remote_invalid_address_never_connects():
    """Invalid identifiers fail before any network call."""
    l = loader(web3_factory=no_network)
    for bad in ["not-an-address", "0x1234", "CB5HA53QWBLOCD7LQOFZ4FIOSQS2ZUA7KIBZYOV6D4CPJWXIYGX2OBAC"]:
        with pytest.raises(RemoteReadError) as exc:
            l.load_remote(bad, RPC)
        assert exc.value.reason is RemoteFailure.INVALID_IDENTIFIER


def test_load_remote_no_code_is_not_found():
    """An address without code is an error, never an empty match."""
    eth = FakeEth(code=b"")

    with pytest.raises(RemoteReadError) as exc:
        loader(web3_factory=fake_factory(eth)).load_remote(ADDR, RPC)
    assert exc.value.reason is RemoteFailure.NOT_FOUND


def test_load_remote_chain_id_mismatch():
    """Wrong chain is an identity failure, distinct from not found."""
    eth = FakeEth(code=RUNTIME, chain_id=11155111)

    with pytest.raises(RemoteReadError) as exc:
        loader(chain_id=1, web3_factory=fake_factory(eth)).load_remote(ADDR, RPC)

    assert exc.value.reason is RemoteFailure.IDENTITY_MISMATCH
    assert eth.calls == []


def test_load_remote_skips_identity_check_without_chain_id():
    eth = FakeEth(code=RUNTIME, chain_id=424242)
    got = loader(chain_id=None, web3_factory=fake_factory(eth)).load_remote(ADDR, RPC)
    assert got == keccak_hex(RUNTIME)


@pytest.mark.parametrize(
    "error,reason",
    [
        (requests.exceptions.ReadTimeout("read timed out"), RemoteFailure.TIMEOUT),
        (requests.exceptions.ConnectTimeout("connect timed out"), RemoteFailure.TIMEOUT),
        (requests.exceptions.ConnectionError("refused"), RemoteFailure.TRANSPORT),
        (requests.exceptions.MissingSchema("no scheme"), RemoteFailure.TRANSPORT),
        (ValueError({"code": -32000, "message": "header not found"}), RemoteFailure.TRANSPORT),
    ],
)
def test_load_remote_transport_failures(error, reason):
    eth = FakeEth(error=error)

    with pytest.raises(RemoteReadError) as exc:
        loader(web3_factory=fake_factory(eth)).load_remote(ADDR, RPC)
    assert exc.value.reason is reason


def test_load_remote_records_metrics():
    metrics = Metrics()
    ok = loader(metrics=metrics, web3_factory=fake_factory(FakeEth(code=RUNTIME)))
    ok.load_remote(ADDR, RPC)

    empty = loader(metrics=metrics, web3_factory=fake_factory(FakeEth(code=b"")))
    with pytest.raises(RemoteReadError):
        empty.load_remote(ADDR, RPC)

    down = loader(
        metrics=metrics,
        web3_factory=fake_factory(FakeEth(error=requests.exceptions.ReadTimeout())),
    )
    with pytest.raises(RemoteReadError):
        down.load_remote(ADDR, RPC)

    snap = metrics.snapshot()
    assert snap["counters"]["evm_fetch_total"] == 3
    assert snap["counters"]["evm_fetch_errors_total"] == 2
    assert snap["counters"]["evm_fetch_not_found_total"] == 1
    assert snap["counters"]["evm_fetch_timeout_total"] == 1
    assert "evm_fetch_ms" in snap["gauges"]
