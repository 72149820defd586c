from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from supertx.chain.abi import encode_approve, encode_transfer
from supertx.errors import DeploymentNotFoundError
from supertx.models.instruction import Call, FeeToken, Instruction

_REGISTRY_PATH = Path(__file__).parent / "tokens.json"
_registry: dict[str, dict[str, str]] = {}


class MultichainToken:
    """One logical ERC-20 token and its contract address on each chain."""

    def __init__(self, symbol: str, deployments: Mapping[int, str]):
        self.symbol = symbol
        self._deployments = MappingProxyType({int(c): a for c, a in deployments.items()})

    @property
    def deployments(self) -> Mapping[int, str]:
        return self._deployments

    @property
    def chain_ids(self) -> list[int]:
        return list(self._deployments)

    def address_on(self, chain_id: int) -> str:
        address = self._deployments.get(chain_id)
        if address is None:
            raise DeploymentNotFoundError(chain_id, f"No {self.symbol} deployment found for chain {chain_id}")
        return address

    def transfer(self, chain_id: int, to: str, amount: int, gas_limit: int) -> Instruction:
        call = Call(to=self.address_on(chain_id), gas_limit=gas_limit, value=0, data=encode_transfer(to, amount))
        return Instruction(chain_id=chain_id, calls=(call,))

    def approve(self, chain_id: int, spender: str, amount: int, gas_limit: int) -> Instruction:
        call = Call(to=self.address_on(chain_id), gas_limit=gas_limit, value=0, data=encode_approve(spender, amount))
        return Instruction(chain_id=chain_id, calls=(call,))

    def __repr__(self) -> str:
        return f"MultichainToken({self.symbol!r}, chains={self.chain_ids})"


def _load_registry() -> dict[str, dict[str, str]]:
    global _registry
    if not _registry:
        with open(_REGISTRY_PATH) as f:
            _registry = json.load(f)
    return _registry


def get_multichain_token(symbol: str) -> MultichainToken:
    registry = _load_registry()
    key = symbol.upper()
    if key not in registry:
        raise KeyError(f"Unknown multichain token '{symbol}'. Known: {', '.join(sorted(registry))}")
    return MultichainToken(key, {int(chain_id): address for chain_id, address in registry[key].items()})


def to_fee_token(token: MultichainToken, chain_id: int) -> FeeToken:
    return FeeToken(address=token.address_on(chain_id), chain_id=chain_id)
