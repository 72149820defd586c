from __future__ import annotations

import logging
from collections.abc import Sequence

from supertx.mee.quote import build_quote_request, release_nonces, request_quote
from supertx.mee.signing import Trigger, sign_fusion_quote, sign_quote
from supertx.models.instruction import FeeToken, Instruction
from supertx.models.quote import (
    ExecuteFusionPayload,
    ExecutePayload,
    ExecutionMode,
    SignedFusionQuote,
    SignedQuote,
    SuperTransactionQuote,
)

logger = logging.getLogger(__name__)


async def execute_signed_quote(client, signed_quote: SignedQuote) -> ExecutePayload:
    payload = await client.request("v1/exec", body=signed_quote.to_wire())
    result = ExecutePayload.model_validate(payload)
    logger.info("EXEC: supertransaction %s accepted", result.hash)
    return result


async def execute_signed_fusion_quote(client, signed_quote: SignedFusionQuote) -> ExecuteFusionPayload:
    # to_wire() leaves the trigger receipt out of the request body
    result = await execute_signed_quote(client, signed_quote)
    return ExecuteFusionPayload(hash=result.hash, receipt=signed_quote.receipt)


async def execute_quote(
    client,
    quote: SuperTransactionQuote,
    account=None,
    execution_mode: ExecutionMode = "direct-to-mee",
) -> ExecutePayload:
    signed_quote = await sign_quote(client, quote, account=account, execution_mode=execution_mode)
    return await execute_signed_quote(client, signed_quote)


async def execute_fusion_quote(
    client,
    quote: SuperTransactionQuote,
    trigger: Trigger,
    account=None,
) -> ExecuteFusionPayload:
    signed_quote = await sign_fusion_quote(client, quote, trigger, account=account)
    return await execute_signed_fusion_quote(client, signed_quote)


async def execute(
    client,
    instructions: Sequence[Instruction],
    fee_token: FeeToken,
    account=None,
    reserve_nonces: bool = False,
) -> ExecutePayload:
    account = account or client.account
    request = await build_quote_request(account, instructions, fee_token, reserve_nonces)
    try:
        quote = await request_quote(client, request)
        return await execute_quote(client, quote, account=account)
    except Exception:
        if reserve_nonces:
            release_nonces(account, request)
        raise
