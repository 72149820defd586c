from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from supertx.errors import DeploymentNotFoundError
from supertx.models.instruction import FeeToken, Instruction
from supertx.models.quote import PaymentInfo, QuoteRequest, QuoteUserOp, SuperTransactionQuote

logger = logging.getLogger(__name__)


async def _chain_state(account, deployment, reserve_nonces: bool) -> tuple[int, bool, str]:
    deployed, init_code = await asyncio.gather(deployment.is_deployed(), deployment.get_init_code())
    # Last, so a failed read never leaves a reservation behind
    nonce = await account.nonces.acquire(deployment, reserve=reserve_nonces)
    return nonce, deployed, init_code


def _init_code_if_undeployed(deployed: bool, init_code: str | None) -> str | None:
    if deployed or not init_code or init_code == "0x":
        return None
    return init_code


async def build_quote_request(
    account,
    instructions: Sequence[Instruction],
    fee_token: FeeToken,
    reserve_nonces: bool = False,
) -> QuoteRequest:
    missing = [i.chain_id for i in instructions if account.deployment_on(i.chain_id) is None]
    if missing:
        raise DeploymentNotFoundError(missing[0], f"Account is not deployed on necessary chain(s): {missing}")
    payment_deployment = account.deployment_on(fee_token.chain_id)
    if payment_deployment is None:
        raise DeploymentNotFoundError(fee_token.chain_id, "Account is not deployed on the fee payment chain")

    chain_ids = list(dict.fromkeys([*(i.chain_id for i in instructions), fee_token.chain_id]))
    deployments = {chain_id: account.deployment_on(chain_id) for chain_id in chain_ids}

    states = await asyncio.gather(
        *(_chain_state(account, deployments[c], reserve_nonces) for c in chain_ids),
        return_exceptions=True,
    )
    acquired = {c: s[0] for c, s in zip(chain_ids, states) if not isinstance(s, BaseException)}
    try:
        for state in states:
            if isinstance(state, BaseException):
                raise state
        call_data = await asyncio.gather(
            *(deployments[i.chain_id].encode_execute_batch(i.calls) for i in instructions)
        )
    except Exception:
        if reserve_nonces:
            for chain_id, nonce in acquired.items():
                account.nonces.release(chain_id, nonce)
        raise
    state_by_chain = dict(zip(chain_ids, states))

    user_ops = []
    for instruction, encoded in zip(instructions, call_data):
        deployment = deployments[instruction.chain_id]
        nonce, deployed, init_code = state_by_chain[instruction.chain_id]
        user_ops.append(
            QuoteUserOp(
                sender=deployment.address,
                call_data=encoded,
                call_gas_limit=instruction.call_gas_limit,
                nonce=nonce,
                chain_id=instruction.chain_id,
                init_code=_init_code_if_undeployed(deployed, init_code),
            )
        )

    nonce, deployed, init_code = state_by_chain[fee_token.chain_id]
    payment_info = PaymentInfo(
        sender=payment_deployment.address,
        token=fee_token.address,
        nonce=nonce,
        chain_id=fee_token.chain_id,
        init_code=_init_code_if_undeployed(deployed, init_code),
    )
    return QuoteRequest(user_ops=user_ops, payment_info=payment_info)


def release_nonces(account, request: QuoteRequest) -> None:
    for chain_id, nonce in request.nonces().items():
        account.nonces.release(chain_id, nonce)


async def request_quote(client, request: QuoteRequest) -> SuperTransactionQuote:
    logger.info(
        "QUOTE: requesting quote for %d user op(s), fee in %s on chain %s",
        len(request.user_ops), request.payment_info.token, request.payment_info.chain_id,
    )
    payload = await client.request("v1/quote", body=request.to_wire())
    quote = SuperTransactionQuote.model_validate(payload)
    logger.info("QUOTE: received %s from node %s", quote.hash, quote.node)
    return quote


async def get_quote(
    client,
    instructions: Sequence[Instruction],
    fee_token: FeeToken,
    account=None,
    reserve_nonces: bool = False,
) -> SuperTransactionQuote:
    account = account or client.account
    request = await build_quote_request(account, instructions, fee_token, reserve_nonces)
    try:
        return await request_quote(client, request)
    except Exception:
        if reserve_nonces:
            release_nonces(account, request)
        raise
