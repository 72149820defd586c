from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from supertx.account.token import MultichainToken
from supertx.models.instruction import Instruction


class FeeReservation(BaseModel):
    """Amount held back on the fee-payment chain so bridging can't spend it."""

    fee_chain_id: int
    fee_amount: int


class BridgingUserOpParams(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    from_chain_id: int
    to_chain_id: int
    account: Any
    token: MultichainToken
    amount: int


class BridgingPluginResult(BaseModel):
    user_op: Instruction
    received_at_destination: int | None = None
    bridging_duration_expected_ms: int | None = None


@runtime_checkable
class BridgingPlugin(Protocol):
    name: str

    async def quote(self, params: BridgingUserOpParams) -> BridgingPluginResult | None: ...


class BridgeRoute(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    from_chain_id: int
    amount: int
    received_at_destination: int
    plugin: Any
    user_op: Instruction
    bridging_duration_expected_ms: int | None = None

    @property
    def efficiency(self) -> int:
        return (self.received_at_destination * 10000) // self.amount


class BridgingInstruction(BaseModel):
    user_op: Instruction
    received_at_destination: int
    bridging_duration_expected_ms: int | None = None


class BridgingMeta(BaseModel):
    total_available_on_destination: int
    bridging_instructions: list[BridgingInstruction] = []


class BridgingInstructions(BaseModel):
    instructions: list[Instruction]
    meta: BridgingMeta
