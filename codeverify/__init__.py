"""
codeverify - deployed contract integrity check.

Compares a locally built contract artifact with the code live on chain.
Exact match only; any load failure is an error, never a mismatch.
"""

from codeverify.comparator import Comparison, ContractComparator, Loader, build_loader
from codeverify.errors import (
    ConfigurationError,
    LocalFailure,
    LocalReadError,
    RemoteFailure,
    RemoteReadError,
    VerificationError,
)
from codeverify.eth.loader import EvmLoader
from codeverify.metrics import Metrics
from codeverify.networks import (
    BUILTIN_NETWORKS,
    EcosystemKind,
    Network,
    NetworkRegistry,
    ResolvedNetwork,
)
from codeverify.settings import Settings
from codeverify.stellar.loader import StellarLoader

__version__ = "0.1.0"

__all__ = [
    "BUILTIN_NETWORKS",
    "Comparison",
    "ConfigurationError",
    "ContractComparator",
    "EcosystemKind",
    "EvmLoader",
    "Loader",
    "LocalFailure",
    "LocalReadError",
    "Metrics",
    "Network",
    "NetworkRegistry",
    "RemoteFailure",
    "RemoteReadError",
    "ResolvedNetwork",
    "Settings",
    "StellarLoader",
    "VerificationError",
    "build_loader",
]
