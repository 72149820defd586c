from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from supertx.account.token import MultichainToken


class RelevantBalance(BaseModel):
    chain_id: int
    balance: int
    decimals: int


class UnifiedBalance(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    token: MultichainToken
    balance: int
    decimals: int
    breakdown: list[RelevantBalance]

    def balance_on(self, chain_id: int) -> int:
        for item in self.breakdown:
            if item.chain_id == chain_id:
                return item.balance
        return 0
