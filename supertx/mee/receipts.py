"""
Supertransaction receipt polling.

The MEE explorer endpoint reports one execution status per user op. Polling
stops on the first reported execution error, even while other user ops are
still pending, and otherwise repeats until no user op is pending or the
configured deadline / attempt budget runs out.
"""

from __future__ import annotations

import asyncio
import logging
import time

from supertx.chain.explorer import get_explorer_tx_link, get_jiffyscan_link, get_meescan_link
from supertx.config import settings
from supertx.errors import ReceiptTimeoutError, UserOpExecutionError
from supertx.models.receipt import ChainExplorerLinks, ExecutionReceipt, ExplorerLinks

logger = logging.getLogger(__name__)


def build_explorer_links(receipt: ExecutionReceipt) -> ExplorerLinks:
    chains: dict[str, ChainExplorerLinks] = {}
    for user_op in receipt.user_ops:
        tx_hash = None
        if user_op.execution_data:
            tx_hash = get_explorer_tx_link(user_op.execution_data, user_op.chain_id)
        chains[str(user_op.chain_id)] = ChainExplorerLinks(
            tx_hash=tx_hash,
            jiffy_scan=get_jiffyscan_link(user_op.user_op_hash),
        )
    return ExplorerLinks(mee_scan=get_meescan_link(receipt.hash), chains=chains)


def _exhausted(attempts: int, deadline: float | None, max_attempts: int | None) -> bool:
    if max_attempts is not None and attempts >= max_attempts:
        return True
    return deadline is not None and time.monotonic() >= deadline


async def wait_for_receipt(
    client,
    hash: str,
    polling_interval: float | None = None,
    timeout: float | None = None,
    max_attempts: int | None = None,
) -> ExecutionReceipt:
    if polling_interval is None:
        polling_interval = client.polling_interval
    if timeout is None:
        timeout = settings.receipt_timeout
    if max_attempts is None:
        max_attempts = settings.receipt_max_attempts

    deadline = time.monotonic() + timeout if timeout is not None else None
    attempts = 0

    while True:
        payload = await client.request(f"v1/explorer/{hash}", method="GET")
        receipt = ExecutionReceipt.model_validate(payload)
        attempts += 1

        failed = receipt.failed_user_op
        if failed is not None:
            logger.error(
                "RECEIPT: %s failed on chain %s: %s",
                hash, failed.chain_id, failed.execution_error,
            )
            raise UserOpExecutionError(
                failed.execution_error,
                chain_id=str(failed.chain_id),
                user_op_hash=failed.user_op_hash,
            )

        if not receipt.is_pending:
            break

        if _exhausted(attempts, deadline, max_attempts):
            raise ReceiptTimeoutError(hash, attempts)

        logger.debug("RECEIPT: %s pending after %d poll(s)", hash, attempts)
        await asyncio.sleep(polling_interval)

    receipt.explorer_links = build_explorer_links(receipt)
    logger.info("RECEIPT: %s settled after %d poll(s)", hash, attempts)
    return receipt
