from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from supertx.account.token import MultichainToken
from supertx.models.bridge import FeeReservation
from supertx.models.instruction import Instruction


class DefaultAction(BaseModel):
    """Append literal instructions verbatim."""

    type: Literal["default"] = "default"
    instructions: Instruction | list[Instruction]


class IntentAction(BaseModel):
    """Make ``amount`` of ``token`` available on ``chain_id``, bridging if needed."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: Literal["intent"] = "intent"
    amount: int
    token: MultichainToken
    chain_id: int
    bridging_plugins: list[Any] | None = None
    fee_data: FeeReservation | None = None


BuildAction = DefaultAction | IntentAction
