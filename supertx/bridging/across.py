"""
Across protocol bridge provider.

Asks the Across API for the relay fee of a transfer, then builds the source
chain instruction: approve the spoke pool for the input amount and call
``depositV3`` with the fee-adjusted output amount.
"""

from __future__ import annotations

import logging
import time

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from supertx.chain.abi import encode_approve, encode_deposit_v3
from supertx.config import settings
from supertx.errors import DeploymentNotFoundError
from supertx.mee.http import http_request
from supertx.models.bridge import BridgingPluginResult, BridgingUserOpParams
from supertx.models.instruction import Call, Instruction

logger = logging.getLogger(__name__)

APPROVE_GAS_LIMIT = 100_000
DEPOSIT_GAS_LIMIT = 150_000


class _AcrossModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AcrossFee(_AcrossModel):
    pct: int | str | None = None
    total: int


class AcrossRelayFeeResponse(_AcrossModel):
    total_relay_fee: AcrossFee
    relayer_capital_fee: AcrossFee | None = None
    relayer_gas_fee: AcrossFee | None = None
    lp_fee: AcrossFee | None = None
    timestamp: int
    is_amount_too_low: bool = False
    quote_block: int | str | None = None
    spoke_pool_address: str
    exclusive_relayer: str
    exclusivity_deadline: int


class AcrossPlugin:
    name = "across"

    def __init__(self, api_url: str | None = None, fill_deadline_buffer: int | None = None):
        self.api_url = api_url or settings.across_api_url
        self.fill_deadline_buffer = (
            settings.across_fill_deadline_buffer if fill_deadline_buffer is None else fill_deadline_buffer
        )

    async def get_suggested_fees(
        self,
        input_token: str,
        output_token: str,
        origin_chain_id: int,
        destination_chain_id: int,
        amount: int,
    ) -> AcrossRelayFeeResponse:
        logger.info(
            "ACROSS: suggested fees for %s from %s to %s",
            amount, origin_chain_id, destination_chain_id,
        )
        payload = await http_request(
            self.api_url,
            "suggested-fees",
            method="GET",
            params={
                "inputToken": input_token,
                "outputToken": output_token,
                "originChainId": str(origin_chain_id),
                "destinationChainId": str(destination_chain_id),
                "amount": str(amount),
            },
        )
        return AcrossRelayFeeResponse.model_validate(payload)

    async def quote(self, params: BridgingUserOpParams) -> BridgingPluginResult | None:
        input_token = params.token.address_on(params.from_chain_id)
        output_token = params.token.address_on(params.to_chain_id)

        depositor = params.account.deployment_on(params.from_chain_id)
        recipient = params.account.deployment_on(params.to_chain_id)
        if depositor is None:
            raise DeploymentNotFoundError(params.from_chain_id, "No depositor found")
        if recipient is None:
            raise DeploymentNotFoundError(params.to_chain_id, "No recipient found")

        fees = await self.get_suggested_fees(
            input_token=input_token,
            output_token=output_token,
            origin_chain_id=params.from_chain_id,
            destination_chain_id=params.to_chain_id,
            amount=params.amount,
        )

        output_amount = params.amount - fees.total_relay_fee.total
        if fees.is_amount_too_low or output_amount <= 0:
            logger.warning(
                "ACROSS: amount %s too low to bridge from %s to %s",
                params.amount, params.from_chain_id, params.to_chain_id,
            )
            return None

        fill_deadline = round(time.time()) + self.fill_deadline_buffer

        approve_call = Call(
            to=input_token,
            gas_limit=APPROVE_GAS_LIMIT,
            data=encode_approve(fees.spoke_pool_address, params.amount),
        )
        deposit_call = Call(
            to=fees.spoke_pool_address,
            gas_limit=DEPOSIT_GAS_LIMIT,
            data=encode_deposit_v3(
                depositor=depositor.address,
                recipient=recipient.address,
                input_token=input_token,
                output_token=output_token,
                input_amount=params.amount,
                output_amount=output_amount,
                destination_chain_id=params.to_chain_id,
                exclusive_relayer=fees.exclusive_relayer,
                quote_timestamp=fees.timestamp,
                fill_deadline=fill_deadline,
                exclusivity_deadline=fees.exclusivity_deadline,
            ),
        )

        return BridgingPluginResult(
            user_op=Instruction(chain_id=params.from_chain_id, calls=(approve_call, deposit_call)),
            received_at_destination=output_amount,
        )
