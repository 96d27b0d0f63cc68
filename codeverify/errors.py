"""
Verification failure taxonomy.

Every failure names the side it came from (local artifact, remote chain,
configuration) and a machine-readable reason. A failure is never a mismatch.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class LocalFailure(str, Enum):
    """Reasons a local artifact could not be turned into canonical code."""

    NOT_FOUND = "NOT_FOUND"
    UNREADABLE = "UNREADABLE"
    MALFORMED = "MALFORMED"
    MISSING_PATH = "MISSING_PATH"
    INVALID_BYTECODE = "INVALID_BYTECODE"


class RemoteFailure(str, Enum):
    """Reasons deployed code could not be fetched from the network."""

    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    NOT_FOUND = "NOT_FOUND"
    TRANSPORT = "TRANSPORT"
    TIMEOUT = "TIMEOUT"
    IDENTITY_MISMATCH = "IDENTITY_MISMATCH"


class VerificationError(Exception):
    """Base class for every failure surfaced by codeverify."""

    side = "verification"


class ConfigurationError(VerificationError):
    """Network or loader configuration is incomplete or invalid."""

    side = "configuration"


class LocalReadError(VerificationError):
    """
    Local artifact could not be read.

    Attributes:
        reason: LocalFailure code
        detail: Human-readable context
        path: Artifact path that was being read
    """

    side = "local"

    def __init__(self, reason: LocalFailure, detail: str, path: Optional[str] = None):
        self.reason = reason
        self.detail = detail
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(f"{reason.value} {detail}{where}")


class RemoteReadError(VerificationError):
    """
    Deployed code could not be fetched.

    Attributes:
        reason: RemoteFailure code
        detail: Human-readable context
        identifier: On-chain address or contract id that was requested
    """

    side = "remote"

    def __init__(
        self, reason: RemoteFailure, detail: str, identifier: Optional[str] = None
    ):
        self.reason = reason
        self.detail = detail
        self.identifier = identifier
        where = f" ({identifier})" if identifier else ""
        super().__init__(f"{reason.value} {detail}{where}")
