"""
Quote signing.

Every signature starts with a one-byte execution mode tag so the executor can
dispatch on it:

- ``direct-to-mee`` (0x00): the signer signs the raw quote hash.
- ``fusion-with-onchain-tx`` (0x01): the quote hash rides in the calldata of a
  real transaction the signer sends; the signature is the abi-encoded
  ``(txHash, chainId)`` of that transaction.
- ``fusion-with-erc20permit`` (0x02): the tag is prefixed to a permit payload
  built elsewhere.
"""

from __future__ import annotations

import asyncio
import logging

from eth_abi import encode as abi_encode
from eth_account.messages import encode_defunct
from eth_utils import to_checksum_address, to_hex
from pydantic import BaseModel

from supertx.chain.abi import concat_hex, hex_to_bytes
from supertx.chain.rpc import ChainRpcClient
from supertx.errors import SupertxError
from supertx.models.quote import ExecutionMode, SignedFusionQuote, SignedQuote, SuperTransactionQuote

logger = logging.getLogger(__name__)

PREFIX: dict[str, str] = {
    "direct-to-mee": "0x00",
    "fusion-with-onchain-tx": "0x01",
    "fusion-with-erc20permit": "0x02",
}

# Prepended to empty trigger calldata (plain native transfers) so the chain accepts the payload
FUSION_NATIVE_TRANSFER_PREFIX = "0x150b7a02"


class Trigger(BaseModel):
    """The on-chain transaction a fusion quote is bound to."""

    chain_id: int
    to: str
    value: int = 0
    data: str | None = None


def _with_signature(quote: SuperTransactionQuote, signature: str) -> SignedQuote:
    return SignedQuote.model_validate({**quote.to_wire(), "signature": signature})


async def sign_quote(
    client,
    quote: SuperTransactionQuote,
    account=None,
    execution_mode: ExecutionMode = "direct-to-mee",
) -> SignedQuote:
    if execution_mode == "fusion-with-onchain-tx":
        raise ValueError("fusion-with-onchain-tx quotes are signed with sign_fusion_quote")

    account = account or client.account
    signed = account.signer.sign_message(encode_defunct(primitive=hex_to_bytes(quote.hash)))
    logger.info("SIGN: %s signed in %s mode", quote.hash, execution_mode)
    return _with_signature(quote, concat_hex(PREFIX[execution_mode], to_hex(signed.signature)))


def sign_permit_quote(quote: SuperTransactionQuote, permit_payload: str) -> SignedQuote:
    return _with_signature(quote, concat_hex(PREFIX["fusion-with-erc20permit"], permit_payload))


def fusion_calldata(trigger: Trigger, quote_hash: str) -> str:
    data = trigger.data if hex_to_bytes(trigger.data) else FUSION_NATIVE_TRANSFER_PREFIX
    return concat_hex(
        data,
        PREFIX["fusion-with-onchain-tx"],
        quote_hash,
    )


def _trigger_rpc(account, chain_id: int) -> ChainRpcClient:
    deployment = account.deployment_on(chain_id)
    if deployment is not None:
        return deployment.rpc
    return ChainRpcClient.from_settings(chain_id)


async def send_transaction(rpc: ChainRpcClient, signer, to: str, value: int, data: str) -> str:
    nonce, gas_price = await asyncio.gather(
        rpc.get_transaction_count(signer.address),
        rpc.gas_price(),
    )
    gas = await rpc.estimate_gas({"from": signer.address, "to": to, "value": hex(value), "data": data})

    signed = signer.sign_transaction(
        {
            "to": to_checksum_address(to),
            "value": value,
            "data": data,
            "nonce": nonce,
            "gas": gas,
            "gasPrice": gas_price,
            "chainId": rpc.chain_id,
        }
    )
    return await rpc.send_raw_transaction(to_hex(signed.raw_transaction))


async def sign_fusion_quote(
    client,
    quote: SuperTransactionQuote,
    trigger: Trigger,
    account=None,
) -> SignedFusionQuote:
    account = account or client.account
    rpc = _trigger_rpc(account, trigger.chain_id)

    data = fusion_calldata(trigger, quote.hash)
    tx_hash = await send_transaction(rpc, account.signer, trigger.to, trigger.value, data)
    logger.info("SIGN: fusion trigger %s sent on chain %s", tx_hash, trigger.chain_id)

    receipt = await rpc.wait_for_transaction_receipt(tx_hash)
    if receipt.get("status") == "0x0":
        raise SupertxError(f"Fusion trigger transaction {tx_hash} reverted")

    encoded = abi_encode(["bytes32", "uint256"], [hex_to_bytes(tx_hash), trigger.chain_id])
    signature = concat_hex(PREFIX["fusion-with-onchain-tx"], to_hex(encoded))
    return SignedFusionQuote.model_validate({**quote.to_wire(), "signature": signature, "receipt": receipt})
