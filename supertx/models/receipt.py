from __future__ import annotations

from pydantic import BaseModel

from supertx.models.quote import SuperTransactionQuote, UserOpDetails


class UserOpReceipt(UserOpDetails):
    execution_status: str = "PENDING"
    execution_data: str | None = None
    execution_error: str | None = None


class ChainExplorerLinks(BaseModel):
    tx_hash: str | None = None
    jiffy_scan: str


class ExplorerLinks(BaseModel):
    mee_scan: str
    chains: dict[str, ChainExplorerLinks] = {}


class ExecutionReceipt(SuperTransactionQuote):
    user_ops: list[UserOpReceipt]
    explorer_links: ExplorerLinks | None = None

    @property
    def failed_user_op(self) -> UserOpReceipt | None:
        for user_op in self.user_ops:
            if user_op.execution_error:
                return user_op
        return None

    @property
    def is_pending(self) -> bool:
        return any(user_op.execution_status == "PENDING" for user_op in self.user_ops)
