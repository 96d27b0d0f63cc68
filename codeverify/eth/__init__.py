"""EVM ecosystem: solc standard-JSON artifacts and eth_getCode."""

from codeverify.eth.loader import EvmLoader, deployed_bytecode, http_web3

__all__ = ["EvmLoader", "deployed_bytecode", "http_web3"]
