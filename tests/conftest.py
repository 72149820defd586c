import pytest
from eth_account import Account

from supertx.account.multichain import MultichainAccount
from supertx.account.token import MultichainToken
from supertx.chain.abi import encode_execute_batch
from supertx.models.bridge import BridgingPluginResult
from supertx.models.instruction import Call, Instruction

SIGNER = Account.from_key("0x" + "11" * 32)
ACCOUNT_ADDRESS = "0x" + "aa" * 20
MEE_URL = "https://mee.test"

TOKEN = MultichainToken(
    "USDC",
    {
        1: "0x" + "01" * 20,
        10: "0x" + "0a" * 20,
        8453: "0x" + "21" * 20,
        42161: "0x" + "a4" * 20,
    },
)


class FakeRpc:
    def __init__(self, chain_id: int, balance: int = 0, decimals: int = 6):
        self.chain_id = chain_id
        self.balance = balance
        self.decimals = decimals
        self.balance_reads = 0

    async def erc20_balance_of(self, token: str, owner: str) -> int:
        self.balance_reads += 1
        return self.balance

    async def erc20_decimals(self, token: str) -> int:
        return self.decimals


class FakeDeployment:
    def __init__(
        self,
        chain_id: int,
        balance: int = 0,
        decimals: int = 6,
        nonce: int = 0,
        deployed: bool = True,
        init_code: str = "0x" + "de" * 8,
    ):
        self.chain_id = chain_id
        self.address = ACCOUNT_ADDRESS
        self.rpc = FakeRpc(chain_id, balance, decimals)
        self.nonce = nonce
        self.deployed = deployed
        self.init_code = init_code
        self.nonce_reads = 0

    async def get_nonce(self) -> int:
        self.nonce_reads += 1
        return self.nonce

    async def is_deployed(self) -> bool:
        return self.deployed

    async def get_init_code(self) -> str:
        return self.init_code

    async def encode_execute_batch(self, calls) -> str:
        return encode_execute_batch(calls)


class FakePlugin:
    """Delivers ``numerator / denominator`` of the input; ``None`` for chains in ``unquotable``."""

    def __init__(self, name="fake", numerator=1, denominator=1, unquotable=(), duration_ms=None):
        self.name = name
        self.numerator = numerator
        self.denominator = denominator
        self.unquotable = set(unquotable)
        self.duration_ms = duration_ms
        self.quoted = []

    async def quote(self, params):
        self.quoted.append((params.from_chain_id, params.to_chain_id, params.amount))
        if params.from_chain_id in self.unquotable:
            return None
        calls = (
            Call(to="0x" + "0c" * 20, gas_limit=100_000, data="0x01"),
            Call(to="0x" + "0d" * 20, gas_limit=150_000, data="0x02"),
        )
        return BridgingPluginResult(
            user_op=Instruction(chain_id=params.from_chain_id, calls=calls),
            received_at_destination=params.amount * self.numerator // self.denominator,
            bridging_duration_expected_ms=self.duration_ms,
        )


def make_account(balances: dict[int, int], plugins=(), decimals: int = 6, **deployment_kwargs):
    deployments = [
        FakeDeployment(chain_id, balance=balance, decimals=decimals, **deployment_kwargs)
        for chain_id, balance in balances.items()
    ]
    return MultichainAccount(deployments, SIGNER, bridging_plugins=plugins)


def transfer_instruction(chain_id: int = 1, gas_limit: int = 50_000) -> Instruction:
    return TOKEN.transfer(chain_id, "0x" + "be" * 20, 1_000_000, gas_limit)


@pytest.fixture
def account():
    return make_account({1: 1_000_000, 8453: 500_000})


# --- Mock MEE payloads ---

QUOTE_HASH = "0x" + "ab" * 32


def mock_user_op(chain_id: str = "1", user_op_hash: str = "0x" + "cd" * 32, **extra) -> dict:
    return {
        "userOp": {
            "sender": ACCOUNT_ADDRESS,
            "nonce": "7",
            "initCode": "0x",
            "callData": "0x1234",
            "callGasLimit": "50000",
            "verificationGasLimit": "100000",
            "maxFeePerGas": "1000000000",
            "maxPriorityFeePerGas": "1000000",
            "paymasterAndData": "0x",
            "preVerificationGas": "21000",
        },
        "userOpHash": user_op_hash,
        "meeUserOpHash": "0x" + "ee" * 32,
        "lowerBoundTimestamp": "0",
        "upperBoundTimestamp": "1700000000",
        "maxGasLimit": "500000",
        "maxFeePerGas": "1000000000",
        "chainId": chain_id,
        **extra,
    }


MOCK_QUOTE = {
    "hash": QUOTE_HASH,
    "node": "0x" + "99" * 20,
    "commitment": "0x" + "77" * 32,
    "paymentInfo": {
        "sender": ACCOUNT_ADDRESS,
        "token": "0x" + "01" * 20,
        "nonce": "7",
        "chainId": "1",
        "tokenAmount": "0.25",
        "tokenWeiAmount": "250000",
        "tokenValue": "0.25",
        "callGasLimit": "60000",
    },
    "userOps": [mock_user_op("1")],
}


def mock_receipt(*statuses, errors=None, execution_data=None) -> dict:
    errors = errors or {}
    execution_data = execution_data or {}
    user_ops = []
    for i, status in enumerate(statuses):
        chain_id = str([1, 8453, 10, 42161][i])
        op = mock_user_op(chain_id, user_op_hash="0x" + f"{i + 1:02x}" * 32, executionStatus=status)
        if i in errors:
            op["executionError"] = errors[i]
        if i in execution_data:
            op["executionData"] = execution_data[i]
        user_ops.append(op)
    return {**MOCK_QUOTE, "userOps": user_ops}
