"""Stellar ecosystem: wasm binaries and Soroban RPC ledger entries."""

from codeverify.stellar.loader import StellarLoader, soroban_server

__all__ = ["StellarLoader", "soroban_server"]
