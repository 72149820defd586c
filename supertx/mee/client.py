from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from supertx.config import settings
from supertx.mee import execution, quote, receipts, signing
from supertx.mee.http import http_request
from supertx.models.instruction import FeeToken, Instruction
from supertx.models.quote import (
    ExecuteFusionPayload,
    ExecutePayload,
    ExecutionMode,
    SignedFusionQuote,
    SignedQuote,
    SuperTransactionQuote,
)
from supertx.models.receipt import ExecutionReceipt

logger = logging.getLogger(__name__)


class MeeClient:
    """
    Talks to one MEE node on behalf of one multichain account.

    Every pipeline stage is also available as a plain function taking the
    client as first argument; the methods here only bind them.
    """

    def __init__(self, account, url: str | None = None, polling_interval: float | None = None):
        self.account = account
        self.url = (url or settings.mee_base_url).rstrip("/")
        self.polling_interval = settings.polling_interval if polling_interval is None else polling_interval

    async def request(
        self,
        path: str,
        method: str = "POST",
        body: dict | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        logger.info("MEE REQUEST: %s %s", method, path)
        return await http_request(self.url, path, method=method, body=body, params=params)

    async def get_quote(
        self,
        instructions: Sequence[Instruction],
        fee_token: FeeToken,
        reserve_nonces: bool = False,
    ) -> SuperTransactionQuote:
        return await quote.get_quote(self, instructions, fee_token, reserve_nonces=reserve_nonces)

    async def sign_quote(
        self,
        quote_: SuperTransactionQuote,
        execution_mode: ExecutionMode = "direct-to-mee",
    ) -> SignedQuote:
        return await signing.sign_quote(self, quote_, execution_mode=execution_mode)

    async def sign_fusion_quote(self, quote_: SuperTransactionQuote, trigger: signing.Trigger) -> SignedFusionQuote:
        return await signing.sign_fusion_quote(self, quote_, trigger)

    def sign_permit_quote(self, quote_: SuperTransactionQuote, permit_payload: str) -> SignedQuote:
        return signing.sign_permit_quote(quote_, permit_payload)

    async def execute_signed_quote(self, signed_quote: SignedQuote) -> ExecutePayload:
        return await execution.execute_signed_quote(self, signed_quote)

    async def execute_signed_fusion_quote(self, signed_quote: SignedFusionQuote) -> ExecuteFusionPayload:
        return await execution.execute_signed_fusion_quote(self, signed_quote)

    async def execute_quote(
        self,
        quote_: SuperTransactionQuote,
        execution_mode: ExecutionMode = "direct-to-mee",
    ) -> ExecutePayload:
        return await execution.execute_quote(self, quote_, execution_mode=execution_mode)

    async def execute_fusion_quote(self, quote_: SuperTransactionQuote, trigger: signing.Trigger) -> ExecuteFusionPayload:
        return await execution.execute_fusion_quote(self, quote_, trigger)

    async def execute(
        self,
        instructions: Sequence[Instruction],
        fee_token: FeeToken,
        reserve_nonces: bool = False,
    ) -> ExecutePayload:
        return await execution.execute(self, instructions, fee_token, reserve_nonces=reserve_nonces)

    async def wait_for_receipt(
        self,
        hash: str,
        timeout: float | None = None,
        max_attempts: int | None = None,
    ) -> ExecutionReceipt:
        return await receipts.wait_for_receipt(self, hash, timeout=timeout, max_attempts=max_attempts)

    def __repr__(self) -> str:
        return f"MeeClient(url={self.url}, account={self.account!r})"
