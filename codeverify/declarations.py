"""
User-declared custom networks.

File format (JSON):
    {
      "networks": [
        {"name": "base", "kind": "evm", "rpc_url": "https://mainnet.base.org", "chain_id": 8453},
        {"name": "futurenet", "kind": "stellar", "rpc_url": "https://rpc-futurenet.stellar.org",
         "passphrase": "Test SDF Future Network ; October 2022"}
      ]
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, Field, StringConstraints, ValidationError

from codeverify.errors import ConfigurationError
from codeverify.networks import EcosystemKind, Network


class NetworkDeclaration(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    kind: Literal["evm", "stellar"] = "evm"
    rpc_url: Optional[str] = None
    passphrase: Optional[str] = None
    chain_id: Optional[int] = Field(default=None, ge=0)

    model_config = {"extra": "forbid"}

    def to_network(self) -> Network:
        return Network(
            name=self.name.lower(),
            kind=EcosystemKind(self.kind),
            default_rpc=self.rpc_url,
            default_passphrase=self.passphrase,
            chain_id=self.chain_id,
        )


class NetworkFile(BaseModel):
    networks: List[NetworkDeclaration] = Field(default_factory=list)


def load_declarations(path: str) -> List[Network]:
    """
    Load custom networks from a JSON declaration file.

    Raises:
        ConfigurationError: If the file is missing, not JSON, or fails validation
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"cannot read networks file {path}: {e}")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"networks file {path} is not valid JSON: {e}")

    try:
        parsed = NetworkFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid networks file {path}: {e}")

    return [d.to_network() for d in parsed.networks]
