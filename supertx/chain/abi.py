"""
Calldata encoders for the handful of contract calls the pipeline itself makes:
ERC-20 reads and approvals, the EntryPoint nonce lookup, ERC-7579 batch
execution and the Across spoke pool deposit.
"""

from __future__ import annotations

from collections.abc import Iterable

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import function_signature_to_4byte_selector

from supertx.models.instruction import Call

ENTRY_POINT_ADDRESS = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"

BALANCE_OF = "balanceOf(address)"
DECIMALS = "decimals()"
APPROVE = "approve(address,uint256)"
TRANSFER = "transfer(address,uint256)"
GET_NONCE = "getNonce(address,uint192)"
EXECUTE = "execute(bytes32,bytes)"
DEPOSIT_V3 = (
    "depositV3(address,address,address,address,uint256,uint256,uint256,"
    "address,uint32,uint32,uint32,bytes)"
)

# ERC-7579 mode: callType 0x01 (batch), execType 0x00 (revert on failure)
BATCH_EXECUTION_MODE = bytes([1]) + bytes(31)


def hex_to_bytes(value: str | None) -> bytes:
    if not value or value == "0x":
        return b""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def concat_hex(*parts: str) -> str:
    return "0x" + "".join(p[2:] if p.startswith("0x") else p for p in parts)


def encode_call(signature: str, arg_types: list[str], args: list) -> str:
    selector = function_signature_to_4byte_selector(signature)
    return "0x" + (selector + abi_encode(arg_types, args)).hex()


def decode_uint(result: str | None) -> int:
    data = hex_to_bytes(result)
    if len(data) < 32:
        raise ValueError(f"Expected a 32-byte word, got {result!r}")
    return abi_decode(["uint256"], data[:32])[0]


def encode_balance_of(owner: str) -> str:
    return encode_call(BALANCE_OF, ["address"], [owner])


def encode_decimals() -> str:
    return encode_call(DECIMALS, [], [])


def encode_approve(spender: str, amount: int) -> str:
    return encode_call(APPROVE, ["address", "uint256"], [spender, amount])


def encode_transfer(to: str, amount: int) -> str:
    return encode_call(TRANSFER, ["address", "uint256"], [to, amount])


def encode_get_nonce(sender: str, key: int) -> str:
    return encode_call(GET_NONCE, ["address", "uint192"], [sender, key])


def encode_execute_batch(calls: Iterable[Call]) -> str:
    executions = [(call.to, call.value or 0, hex_to_bytes(call.data)) for call in calls]
    execution_calldata = abi_encode(["(address,uint256,bytes)[]"], [executions])
    return encode_call(EXECUTE, ["bytes32", "bytes"], [BATCH_EXECUTION_MODE, execution_calldata])


def encode_deposit_v3(
    depositor: str,
    recipient: str,
    input_token: str,
    output_token: str,
    input_amount: int,
    output_amount: int,
    destination_chain_id: int,
    exclusive_relayer: str,
    quote_timestamp: int,
    fill_deadline: int,
    exclusivity_deadline: int,
    message: bytes = b"",
) -> str:
    return encode_call(
        DEPOSIT_V3,
        [
            "address", "address", "address", "address",
            "uint256", "uint256", "uint256",
            "address", "uint32", "uint32", "uint32", "bytes",
        ],
        [
            depositor, recipient, input_token, output_token,
            input_amount, output_amount, destination_chain_id,
            exclusive_relayer, quote_timestamp, fill_deadline, exclusivity_deadline, message,
        ],
    )
