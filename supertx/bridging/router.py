"""
Bridge route selection.

Covers a shortfall on a destination chain by bridging from the account's
other chains. Every (source chain, plugin) pair is quoted for the source's
full available balance, quotes are ranked by how much of the input arrives at
the destination, and the best ones are consumed greedily until the shortfall
is covered. Never revisits a route once it has been passed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from supertx.account.token import MultichainToken
from supertx.errors import InsufficientBridgeLiquidityError
from supertx.models.balance import UnifiedBalance
from supertx.models.bridge import (
    BridgeRoute,
    BridgingInstruction,
    BridgingInstructions,
    BridgingMeta,
    BridgingPlugin,
    BridgingUserOpParams,
    FeeReservation,
)
from supertx.models.instruction import Instruction

logger = logging.getLogger(__name__)


def _available(balance: int, chain_id: int, fee_data: FeeReservation | None) -> int:
    if fee_data is not None and fee_data.fee_chain_id == chain_id:
        return max(balance - fee_data.fee_amount, 0)
    return balance


async def query_bridge(
    account,
    from_chain_id: int,
    to_chain_id: int,
    plugin: BridgingPlugin,
    amount: int,
    token: MultichainToken,
) -> BridgeRoute | None:
    result = await plugin.quote(
        BridgingUserOpParams(
            from_chain_id=from_chain_id,
            to_chain_id=to_chain_id,
            account=account,
            token=token,
            amount=amount,
        )
    )

    if result is None or not result.received_at_destination:
        logger.debug("BRIDGE: %s can't quote %s -> %s", plugin.name, from_chain_id, to_chain_id)
        return None

    return BridgeRoute(
        from_chain_id=from_chain_id,
        amount=amount,
        received_at_destination=result.received_at_destination,
        plugin=plugin,
        user_op=result.user_op,
        bridging_duration_expected_ms=result.bridging_duration_expected_ms,
    )


def rank_routes(routes: Sequence[BridgeRoute]) -> list[BridgeRoute]:
    # sorted() is stable with reverse=True, so equally efficient routes keep input order
    return sorted(routes, key=lambda route: route.efficiency, reverse=True)


async def build_bridge_instructions(
    account,
    amount: int,
    to_chain_id: int,
    unified_balance: UnifiedBalance,
    bridging_plugins: Sequence[BridgingPlugin],
    fee_data: FeeReservation | None = None,
) -> BridgingInstructions:
    destination_balance = _available(unified_balance.balance_on(to_chain_id), to_chain_id, fee_data)

    if destination_balance >= amount:
        logger.info(
            "BRIDGE: chain %s already holds %s >= %s, nothing to bridge",
            to_chain_id, destination_balance, amount,
        )
        return BridgingInstructions(
            instructions=[],
            meta=BridgingMeta(total_available_on_destination=destination_balance),
        )

    amount_to_bridge = amount - destination_balance

    sources = [
        (item.chain_id, _available(item.balance, item.chain_id, fee_data))
        for item in unified_balance.breakdown
        if item.chain_id != to_chain_id
    ]
    sources = [(chain_id, balance) for chain_id, balance in sources if balance > 0]

    logger.info(
        "BRIDGE: need %s more on chain %s, quoting %d source(s) x %d plugin(s)",
        amount_to_bridge, to_chain_id, len(sources), len(bridging_plugins),
    )

    quotes = await asyncio.gather(
        *(
            query_bridge(
                account=account,
                from_chain_id=chain_id,
                to_chain_id=to_chain_id,
                plugin=plugin,
                amount=balance,
                token=unified_balance.token,
            )
            for chain_id, balance in sources
            for plugin in bridging_plugins
        )
    )
    routes = rank_routes([route for route in quotes if route is not None])

    instructions: list[Instruction] = []
    bridging_instructions: list[BridgingInstruction] = []
    total_bridged = 0
    remaining_needed = amount_to_bridge

    for route in routes:
        if remaining_needed <= 0:
            break

        amount_to_take = min(remaining_needed, route.amount)
        received_from_route = (route.received_at_destination * amount_to_take) // route.amount

        instructions.append(route.user_op)
        bridging_instructions.append(
            BridgingInstruction(
                user_op=route.user_op,
                received_at_destination=received_from_route,
                bridging_duration_expected_ms=route.bridging_duration_expected_ms,
            )
        )
        logger.debug(
            "BRIDGE: taking %s from chain %s via %s, %s arrives",
            amount_to_take, route.from_chain_id, route.plugin.name, received_from_route,
        )

        total_bridged += received_from_route
        remaining_needed -= amount_to_take

    if remaining_needed > 0:
        raise InsufficientBridgeLiquidityError(
            required=amount,
            available=total_bridged,
            shortfall=amount_to_bridge - total_bridged,
        )

    return BridgingInstructions(
        instructions=instructions,
        meta=BridgingMeta(
            total_available_on_destination=destination_balance + total_bridged,
            bridging_instructions=bridging_instructions,
        ),
    )
