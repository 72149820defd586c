from __future__ import annotations

from collections.abc import Sequence

from supertx.instructions.actions import DefaultAction
from supertx.models.instruction import Instruction


async def build_default_instructions(
    account,
    action: DefaultAction,
    current_instructions: Sequence[Instruction] = (),
) -> list[Instruction]:
    added = action.instructions if isinstance(action.instructions, list) else [action.instructions]
    return [*current_instructions, *added]
