from __future__ import annotations


class SupertxError(Exception):
    """Base class for every error raised by the orchestration pipeline."""


class DeploymentNotFoundError(SupertxError):
    def __init__(self, chain_id: int, detail: str | None = None):
        self.chain_id = chain_id
        super().__init__(detail or f"Account is not deployed on chain {chain_id}")


class DecimalMismatchError(SupertxError):
    def __init__(self, expected: int, got: int, chain_id: int):
        self.expected = expected
        self.got = got
        self.chain_id = chain_id
        super().__init__(
            "Token decimals differ across chains: expected "
            f"{expected}, got {got} on chain {chain_id}. "
            "A unified balance can't be computed for mappings with differing decimals."
        )


class InsufficientBridgeLiquidityError(SupertxError):
    def __init__(self, required: int, available: int, shortfall: int):
        self.required = required
        self.available = available
        self.shortfall = shortfall
        super().__init__(
            "Insufficient balance for bridging: "
            f"Required: {required} "
            f"Available to bridge: {available} "
            f"Shortfall: {shortfall}"
        )


class MeeRequestError(SupertxError):
    """Non-2xx, malformed or timed out response from an HTTP endpoint."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}, {detail}")


class RpcError(SupertxError):
    def __init__(self, method: str, message: str, code: int | None = None):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"{method} failed ({code}): {message}")


class UserOpExecutionError(SupertxError):
    def __init__(self, message: str, chain_id: str | None = None, user_op_hash: str | None = None):
        self.chain_id = chain_id
        self.user_op_hash = user_op_hash
        super().__init__(message)


class ReceiptTimeoutError(SupertxError):
    def __init__(self, hash: str, attempts: int):
        self.hash = hash
        self.attempts = attempts
        super().__init__(f"Supertransaction {hash} still pending after {attempts} polls")
