"""
Unified ERC-20 balance across every chain where both the token and the
account are deployed.
"""

from __future__ import annotations

import asyncio
import logging

from supertx.account.token import MultichainToken
from supertx.errors import DecimalMismatchError
from supertx.models.balance import RelevantBalance, UnifiedBalance

logger = logging.getLogger(__name__)


async def _read_chain_balance(deployment, token_address: str) -> RelevantBalance:
    balance, decimals = await asyncio.gather(
        deployment.rpc.erc20_balance_of(token_address, deployment.address),
        deployment.rpc.erc20_decimals(token_address),
    )
    logger.debug("BALANCE chain=%s balance=%s decimals=%s", deployment.chain_id, balance, decimals)
    return RelevantBalance(chain_id=deployment.chain_id, balance=balance, decimals=decimals)


async def get_unified_balance(token: MultichainToken, account) -> UnifiedBalance:
    relevant = [
        (account.deployment_on(chain_id), address)
        for chain_id, address in token.deployments.items()
        if account.deployment_on(chain_id) is not None
    ]
    logger.info(
        "BALANCE: aggregating %s over chains %s",
        token.symbol, [deployment.chain_id for deployment, _ in relevant],
    )

    breakdown = list(
        await asyncio.gather(*(_read_chain_balance(d, address) for d, address in relevant))
    )

    total = 0
    decimals = breakdown[0].decimals if breakdown else 0
    for item in breakdown:
        if item.decimals != decimals:
            raise DecimalMismatchError(expected=decimals, got=item.decimals, chain_id=item.chain_id)
        total += item.balance

    return UnifiedBalance(token=token, balance=total, decimals=decimals, breakdown=breakdown)
