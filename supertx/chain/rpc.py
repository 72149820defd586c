from __future__ import annotations

import asyncio
import itertools
import logging
import time

import httpx

from supertx.chain.abi import (
    ENTRY_POINT_ADDRESS,
    decode_uint,
    encode_balance_of,
    encode_decimals,
    encode_get_nonce,
)
from supertx.config import settings
from supertx.errors import RpcError

logger = logging.getLogger(__name__)

_request_ids = itertools.count(1)


def _rpc_payload(method: str, params: list, req_id: int = 1) -> dict:
    return {"jsonrpc": "2.0", "id": req_id, "method": method, "params": params}


class ChainRpcClient:
    """JSON-RPC reads and writes against one EVM chain."""

    def __init__(self, url: str, chain_id: int, timeout: float | None = None):
        self.url = url
        self.chain_id = chain_id
        self._timeout = timeout if timeout is not None else settings.rpc_timeout

    @classmethod
    def from_settings(cls, chain_id: int) -> ChainRpcClient:
        return cls(settings.rpc_url(chain_id), chain_id)

    async def request(self, method: str, params: list):
        payload = _rpc_payload(method, params, next(_request_ids))
        logger.debug("RPC %s on chain %s: %s", method, self.chain_id, params)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                resp = await client.post(self.url, json=payload)
            except httpx.TimeoutException:
                logger.error("RPC TIMEOUT: %s on chain %s", method, self.chain_id)
                raise RpcError(method, "RPC request timed out")
            except httpx.HTTPError as exc:
                raise RpcError(method, str(exc))

        if resp.status_code >= 400:
            raise RpcError(method, f"HTTP {resp.status_code}", code=resp.status_code)

        try:
            resp_json = resp.json()
        except ValueError:
            raise RpcError(method, "Malformed JSON in RPC response")

        error = resp_json.get("error")
        if error:
            logger.error("RPC ERROR: %s on chain %s: %s", method, self.chain_id, error)
            raise RpcError(method, error.get("message", str(error)), code=error.get("code"))
        return resp_json.get("result")

    async def call(self, to: str, data: str, block: str = "latest") -> str:
        return await self.request("eth_call", [{"to": to, "data": data}, block])

    async def erc20_balance_of(self, token: str, owner: str) -> int:
        return decode_uint(await self.call(token, encode_balance_of(owner)))

    async def erc20_decimals(self, token: str) -> int:
        return decode_uint(await self.call(token, encode_decimals()))

    async def entry_point_nonce(self, sender: str, key: int = 0) -> int:
        return decode_uint(await self.call(ENTRY_POINT_ADDRESS, encode_get_nonce(sender, key)))

    async def get_code(self, address: str) -> str:
        return await self.request("eth_getCode", [address, "latest"]) or "0x"

    async def get_transaction_count(self, address: str) -> int:
        return int(await self.request("eth_getTransactionCount", [address, "pending"]), 16)

    async def gas_price(self) -> int:
        return int(await self.request("eth_gasPrice", []), 16)

    async def estimate_gas(self, tx: dict) -> int:
        return int(await self.request("eth_estimateGas", [tx]), 16)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        return await self.request("eth_sendRawTransaction", [raw_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> dict | None:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_transaction_receipt(
        self,
        tx_hash: str,
        timeout: float | None = None,
        polling_interval: float | None = None,
    ) -> dict:
        timeout = settings.tx_receipt_timeout if timeout is None else timeout
        interval = settings.tx_receipt_polling_interval if polling_interval is None else polling_interval
        deadline = time.monotonic() + timeout

        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                logger.info(
                    "RPC: tx %s... mined on chain %s in block %s",
                    tx_hash[:12], self.chain_id, receipt.get("blockNumber"),
                )
                return receipt
            if time.monotonic() >= deadline:
                raise RpcError("eth_getTransactionReceipt", f"Transaction {tx_hash} not mined after {timeout}s")
            await asyncio.sleep(interval)
