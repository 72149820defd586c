from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Integers travel as decimal strings on the MEE wire
WireInt = Annotated[int, PlainSerializer(str, return_type=str)]

ExecutionMode = Literal["direct-to-mee", "fusion-with-onchain-tx", "fusion-with-erc20permit"]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RemoteModel(WireModel):
    """Payload issued by the MEE node; unknown fields are kept and echoed back."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# --- Request ---


class QuoteUserOp(WireModel):
    sender: str
    call_data: str
    call_gas_limit: WireInt
    nonce: WireInt
    chain_id: WireInt
    init_code: str | None = None


class PaymentInfo(WireModel):
    sender: str
    token: str
    nonce: WireInt
    chain_id: WireInt
    init_code: str | None = None


class QuoteRequest(WireModel):
    user_ops: list[QuoteUserOp]
    payment_info: PaymentInfo

    def nonces(self) -> dict[int, int]:
        """Nonce embedded per chain, the fee-payment chain included."""
        nonces = {user_op.chain_id: user_op.nonce for user_op in self.user_ops}
        nonces[self.payment_info.chain_id] = self.payment_info.nonce
        return nonces


# --- Response ---


class FilledPaymentInfo(RemoteModel):
    sender: str
    token: str
    nonce: str
    chain_id: int | str
    init_code: str | None = None
    token_amount: str | None = None
    token_wei_amount: str | None = None
    token_value: str | None = None


class FilledUserOp(RemoteModel):
    sender: str
    nonce: str
    init_code: str | None = None
    call_data: str
    call_gas_limit: str
    verification_gas_limit: str | None = None
    max_fee_per_gas: str | None = None
    max_priority_fee_per_gas: str | None = None
    paymaster_and_data: str | None = None
    pre_verification_gas: str | None = None


class UserOpDetails(RemoteModel):
    user_op: FilledUserOp
    user_op_hash: str
    mee_user_op_hash: str | None = None
    lower_bound_timestamp: str | None = None
    upper_bound_timestamp: str | None = None
    max_gas_limit: str | None = None
    max_fee_per_gas: str | None = None
    chain_id: int | str


class SuperTransactionQuote(RemoteModel):
    hash: str
    node: str
    commitment: str
    payment_info: FilledPaymentInfo
    user_ops: list[UserOpDetails]


class SignedQuote(SuperTransactionQuote):
    signature: str


class SignedFusionQuote(SignedQuote):
    receipt: dict[str, Any]

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"receipt"})


class ExecutePayload(RemoteModel):
    hash: str


class ExecuteFusionPayload(ExecutePayload):
    receipt: dict[str, Any]
