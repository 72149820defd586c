from __future__ import annotations

import logging
from collections.abc import Sequence

from supertx.balances.aggregator import get_unified_balance
from supertx.bridging.router import build_bridge_instructions
from supertx.instructions.actions import IntentAction
from supertx.models.instruction import Instruction

logger = logging.getLogger(__name__)


async def build_intent_instructions(
    account,
    action: IntentAction,
    current_instructions: Sequence[Instruction] = (),
) -> list[Instruction]:
    plugins = account.bridging_plugins if action.bridging_plugins is None else action.bridging_plugins

    unified_balance = await get_unified_balance(action.token, account)
    bridging = await build_bridge_instructions(
        account=account,
        amount=action.amount,
        to_chain_id=action.chain_id,
        unified_balance=unified_balance,
        bridging_plugins=plugins,
        fee_data=action.fee_data,
    )
    logger.info(
        "INTENT: %s %s on chain %s -> %d bridging instruction(s)",
        action.amount, action.token.symbol, action.chain_id, len(bridging.instructions),
    )
    return [*current_instructions, *bridging.instructions]
