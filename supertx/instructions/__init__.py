from collections.abc import Sequence

from supertx.instructions.actions import BuildAction, DefaultAction, IntentAction
from supertx.instructions.default import build_default_instructions
from supertx.instructions.intent import build_intent_instructions
from supertx.models.instruction import Instruction

_BUILDERS = {
    "default": build_default_instructions,
    "intent": build_intent_instructions,
}


async def build(
    account,
    action: BuildAction,
    current_instructions: Sequence[Instruction] = (),
) -> list[Instruction]:
    builder = _BUILDERS.get(action.type)
    if builder is None:
        raise ValueError(f"Unknown build action type: {action.type}")
    return await builder(account, action, current_instructions)


async def compose(account, actions: Sequence[BuildAction]) -> list[Instruction]:
    instructions: list[Instruction] = []
    for action in actions:
        instructions = await build(account, action, instructions)
    return instructions


__all__ = ["BuildAction", "DefaultAction", "IntentAction", "build", "compose"]
