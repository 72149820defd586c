from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class NonceManager:
    """
    Serializes nonce reads per chain and optionally hands out reservations so
    that quotes assembled concurrently against the same chain embed distinct
    nonces. A reservation gets the lowest nonce at or above the on-chain value
    that no outstanding reservation holds; reservations below the on-chain
    value have been consumed and are dropped.
    """

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._reserved: dict[int, set[int]] = {}

    def lock(self, chain_id: int) -> asyncio.Lock:
        if chain_id not in self._locks:
            self._locks[chain_id] = asyncio.Lock()
        return self._locks[chain_id]

    async def acquire(self, deployment, reserve: bool = False) -> int:
        chain_id = deployment.chain_id
        async with self.lock(chain_id):
            nonce = await deployment.get_nonce()
            if not reserve:
                return nonce

            outstanding = {n for n in self._reserved.get(chain_id, ()) if n >= nonce}
            on_chain = nonce
            while nonce in outstanding:
                nonce += 1
            if nonce != on_chain:
                logger.debug("Nonce %s on chain %s already reserved, using %s", on_chain, chain_id, nonce)
            outstanding.add(nonce)
            self._reserved[chain_id] = outstanding
            return nonce

    def release(self, chain_id: int, nonce: int) -> None:
        self._reserved.get(chain_id, set()).discard(nonce)

    def reserved(self, chain_id: int) -> list[int]:
        return sorted(self._reserved.get(chain_id, ()))

    def clear(self) -> None:
        self._reserved.clear()
