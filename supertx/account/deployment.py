"""
Per-chain smart account handles.

Address derivation and init-code construction belong to the account deployment
subsystem; this module only consumes them. ``Deployment`` is the narrow
interface the orchestration pipeline depends on, ``RpcDeployment`` the
JSON-RPC backed implementation of it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from supertx.chain.abi import encode_execute_batch, hex_to_bytes
from supertx.chain.rpc import ChainRpcClient
from supertx.models.instruction import Call

logger = logging.getLogger(__name__)

# Nonce keys carry a 3-byte user key; larger values wrap
NONCE_KEY_MODULUS = 16777215


@runtime_checkable
class Deployment(Protocol):
    chain_id: int
    address: str
    rpc: ChainRpcClient

    async def get_nonce(self) -> int: ...

    async def is_deployed(self) -> bool: ...

    async def get_init_code(self) -> str: ...

    async def encode_execute_batch(self, calls: Sequence[Call]) -> str: ...


def nonce_key(validator_address: str | None, key: int = 0, validation_mode: int = 0) -> int:
    if validator_address is None:
        return key
    packed = (
        (key % NONCE_KEY_MODULUS).to_bytes(3, "big")
        + validation_mode.to_bytes(1, "big")
        + hex_to_bytes(validator_address)
    )
    return int.from_bytes(packed, "big")


class RpcDeployment:
    def __init__(
        self,
        chain_id: int,
        address: str,
        rpc: ChainRpcClient,
        init_code: str = "0x",
        validator_address: str | None = None,
        nonce_key: int = 0,
    ):
        self.chain_id = chain_id
        self.address = address
        self.rpc = rpc
        self._init_code = init_code
        self._validator_address = validator_address
        self._nonce_key = nonce_key

    async def get_nonce(self) -> int:
        key = nonce_key(self._validator_address, self._nonce_key)
        return await self.rpc.entry_point_nonce(self.address, key)

    async def is_deployed(self) -> bool:
        code = await self.rpc.get_code(self.address)
        return len(hex_to_bytes(code)) > 0

    async def get_init_code(self) -> str:
        return self._init_code

    async def encode_execute_batch(self, calls: Sequence[Call]) -> str:
        return encode_execute_batch(calls)

    def __repr__(self) -> str:
        return f"RpcDeployment(chain_id={self.chain_id}, address={self.address})"
