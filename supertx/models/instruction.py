from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class Call(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    to: str
    gas_limit: int
    value: int | None = None
    data: str | None = None

    @model_validator(mode="after")
    def _value_or_data(self) -> Call:
        if self.value is None and self.data is None:
            raise ValueError("A call needs at least one of value or data")
        return self


class Instruction(BaseModel):
    """An ordered batch of calls targeted at one chain."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    chain_id: int
    calls: tuple[Call, ...]

    @property
    def call_gas_limit(self) -> int:
        return sum(call.gas_limit for call in self.calls)


class FeeToken(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    address: str
    chain_id: int
