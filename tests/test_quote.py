import asyncio
import json

import httpx
import pytest
import respx

from supertx.account.multichain import MultichainAccount
from supertx.account.token import to_fee_token
from supertx.errors import DeploymentNotFoundError, MeeRequestError, RpcError
from supertx.mee.client import MeeClient
from supertx.mee.quote import build_quote_request
from supertx.models.instruction import Call, Instruction
from tests.conftest import MEE_URL, MOCK_QUOTE, QUOTE_HASH, SIGNER, TOKEN, FakeDeployment, make_account, transfer_instruction


class TestPreconditions:
    async def test_instruction_chain_without_deployment(self):
        account = make_account({1: 0})
        with pytest.raises(DeploymentNotFoundError) as exc_info:
            await build_quote_request(account, [transfer_instruction(8453)], to_fee_token(TOKEN, 1))
        assert exc_info.value.chain_id == 8453
        assert "Account is not deployed on necessary chain(s)" in str(exc_info.value)

    async def test_fee_chain_without_deployment(self):
        account = make_account({1: 0})
        with pytest.raises(DeploymentNotFoundError):
            await build_quote_request(account, [transfer_instruction(1)], to_fee_token(TOKEN, 10))


class TestQuoteRequest:
    async def test_user_op_fields(self):
        account = make_account({1: 0}, nonce=7)
        instruction = Instruction(
            chain_id=1,
            calls=(
                Call(to="0x" + "01" * 20, gas_limit=30_000, value=1),
                Call(to="0x" + "02" * 20, gas_limit=20_000, data="0x1234"),
            ),
        )

        request = await build_quote_request(account, [instruction], to_fee_token(TOKEN, 1))
        wire = request.to_wire()

        user_op = wire["userOps"][0]
        assert user_op["sender"] == account.deployment_on(1).address
        assert user_op["callGasLimit"] == "50000"
        assert user_op["nonce"] == "7"
        assert user_op["chainId"] == "1"
        assert user_op["callData"].startswith("0xe9ae5c53")
        assert "initCode" not in user_op
        assert wire["paymentInfo"] == {
            "sender": account.deployment_on(1).address,
            "token": TOKEN.address_on(1),
            "nonce": "7",
            "chainId": "1",
        }

    async def test_init_code_only_when_undeployed(self):
        account = MultichainAccount(
            [
                FakeDeployment(1, deployed=True),
                FakeDeployment(8453, deployed=False, init_code="0xfeed"),
            ],
            SIGNER,
        )

        request = await build_quote_request(
            account,
            [transfer_instruction(1), transfer_instruction(8453)],
            to_fee_token(TOKEN, 8453),
        )

        assert request.user_ops[0].init_code is None
        assert request.user_ops[1].init_code == "0xfeed"
        assert request.payment_info.init_code == "0xfeed"

    async def test_one_nonce_read_per_chain(self):
        account = make_account({1: 0})
        await build_quote_request(
            account,
            [transfer_instruction(1), transfer_instruction(1)],
            to_fee_token(TOKEN, 1),
        )
        assert account.deployment_on(1).nonce_reads == 1


class TestNonceReservation:
    async def test_concurrent_quotes_get_distinct_nonces(self):
        account = make_account({1: 0}, nonce=3)
        fee_token = to_fee_token(TOKEN, 1)

        requests = await asyncio.gather(
            build_quote_request(account, [transfer_instruction(1)], fee_token, reserve_nonces=True),
            build_quote_request(account, [transfer_instruction(1)], fee_token, reserve_nonces=True),
        )

        assert sorted(r.user_ops[0].nonce for r in requests) == [3, 4]

    async def test_without_reservation_nonce_is_reread(self):
        account = make_account({1: 0}, nonce=3)
        fee_token = to_fee_token(TOKEN, 1)

        first = await build_quote_request(account, [transfer_instruction(1)], fee_token)
        second = await build_quote_request(account, [transfer_instruction(1)], fee_token)

        assert first.user_ops[0].nonce == second.user_ops[0].nonce == 3

    async def test_reservation_catches_up_with_chain(self):
        account = make_account({1: 0}, nonce=3)
        fee_token = to_fee_token(TOKEN, 1)
        await build_quote_request(account, [transfer_instruction(1)], fee_token, reserve_nonces=True)

        account.deployment_on(1).nonce = 10
        request = await build_quote_request(account, [transfer_instruction(1)], fee_token, reserve_nonces=True)

        assert request.user_ops[0].nonce == 10


class TestGetQuote:
    @respx.mock
    async def test_posts_request_and_parses_quote(self):
        route = respx.post(f"{MEE_URL}/v1/quote").mock(return_value=httpx.Response(200, json=MOCK_QUOTE))
        account = make_account({1: 0})
        client = MeeClient(account, url=MEE_URL)

        quote = await client.get_quote([transfer_instruction(1)], to_fee_token(TOKEN, 1))

        assert quote.hash == QUOTE_HASH
        assert quote.payment_info.token_wei_amount == "250000"
        assert quote.user_ops[0].user_op.call_gas_limit == "50000"
        body = json.loads(route.calls[0].request.content)
        assert body["userOps"][0]["callGasLimit"] == "50000"
        assert body["paymentInfo"]["chainId"] == "1"

    @respx.mock
    async def test_node_error(self):
        respx.post(f"{MEE_URL}/v1/quote").mock(
            return_value=httpx.Response(400, json={"errors": [], "message": "Insufficient fee token balance"})
        )
        client = MeeClient(make_account({1: 0}), url=MEE_URL)

        with pytest.raises(MeeRequestError) as exc_info:
            await client.get_quote([transfer_instruction(1)], to_fee_token(TOKEN, 1))
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Insufficient fee token balance"

    async def test_precondition_checked_before_request(self):
        client = MeeClient(make_account({1: 0}), url=MEE_URL)
        # respx is not active: any HTTP request here would fail with a connection error
        with pytest.raises(DeploymentNotFoundError):
            await client.get_quote([transfer_instruction(8453)], to_fee_token(TOKEN, 1))


class BrokenDeployment(FakeDeployment):
    async def is_deployed(self) -> bool:
        raise RpcError("eth_getCode", "node unavailable")


class TestReservationRelease:
    @respx.mock
    async def test_rejected_quote_releases_nonces(self):
        respx.post(f"{MEE_URL}/v1/quote").mock(return_value=httpx.Response(400, json={"message": "no route"}))
        account = make_account({1: 0}, nonce=7)
        client = MeeClient(account, url=MEE_URL)

        with pytest.raises(MeeRequestError):
            await client.get_quote([transfer_instruction(1)], to_fee_token(TOKEN, 1), reserve_nonces=True)

        assert await account.nonces.acquire(account.deployment_on(1), reserve=True) == 7

    async def test_failed_chain_read_releases_other_chains(self):
        account = MultichainAccount([FakeDeployment(1, nonce=7), BrokenDeployment(8453, nonce=7)], SIGNER)

        with pytest.raises(RpcError):
            await build_quote_request(
                account,
                [transfer_instruction(1), transfer_instruction(8453)],
                to_fee_token(TOKEN, 1),
                reserve_nonces=True,
            )

        assert account.nonces.reserved(1) == []
        assert account.nonces.reserved(8453) == []

    async def test_request_records_fee_chain_nonce(self):
        account = MultichainAccount([FakeDeployment(1, nonce=3), FakeDeployment(8453, nonce=9)], SIGNER)

        request = await build_quote_request(account, [transfer_instruction(8453)], to_fee_token(TOKEN, 1))

        assert request.nonces() == {8453: 9, 1: 3}
