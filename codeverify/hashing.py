from __future__ import annotations

import hashlib
from pathlib import Path

from eth_utils import keccak

from codeverify.errors import LocalFailure, LocalReadError


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def keccak_hex(data: bytes) -> str:
    """Keccak256 of data as a 0x-prefixed hex string."""
    return "0x" + keccak(data).hex()


def read_artifact(path: str) -> bytes:
    """
    Read a local artifact file as raw bytes.

    Raises:
        LocalReadError: NOT_FOUND if the file is missing, UNREADABLE on any
            other OS error (permissions, directory, ...)
    """
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        raise LocalReadError(LocalFailure.NOT_FOUND, "artifact file not found", path)
    except OSError as e:
        raise LocalReadError(LocalFailure.UNREADABLE, f"cannot read artifact: {e}", path)
