from __future__ import annotations

from collections.abc import Sequence

from eth_account.signers.local import LocalAccount

from supertx.account.deployment import Deployment
from supertx.account.nonces import NonceManager
from supertx.account.token import MultichainToken
from supertx.errors import DeploymentNotFoundError
from supertx.models.balance import UnifiedBalance
from supertx.models.bridge import BridgingInstructions, BridgingPlugin, BridgeRoute, FeeReservation
from supertx.models.instruction import Instruction


class MultichainAccount:
    """One signer operating a smart account deployment on several chains."""

    def __init__(
        self,
        deployments: Sequence[Deployment],
        signer: LocalAccount,
        bridging_plugins: Sequence[BridgingPlugin] = (),
    ):
        chain_ids = [d.chain_id for d in deployments]
        if len(set(chain_ids)) != len(chain_ids):
            raise ValueError(f"Duplicate deployments for chains {chain_ids}")

        self._deployments = tuple(deployments)
        self.signer = signer
        self.bridging_plugins = tuple(bridging_plugins)
        self.nonces = NonceManager()

    @property
    def deployments(self) -> tuple[Deployment, ...]:
        return self._deployments

    @property
    def chain_ids(self) -> list[int]:
        return [d.chain_id for d in self._deployments]

    def deployment_on(self, chain_id: int) -> Deployment | None:
        for deployment in self._deployments:
            if deployment.chain_id == chain_id:
                return deployment
        return None

    def require_deployment_on(self, chain_id: int) -> Deployment:
        deployment = self.deployment_on(chain_id)
        if deployment is None:
            raise DeploymentNotFoundError(chain_id)
        return deployment

    async def get_unified_balance(self, token: MultichainToken) -> UnifiedBalance:
        from supertx.balances.aggregator import get_unified_balance

        return await get_unified_balance(token, self)

    async def build(self, action, current_instructions: Sequence[Instruction] = ()) -> list[Instruction]:
        from supertx.instructions import build

        return await build(self, action, current_instructions)

    async def build_bridge_instructions(
        self,
        amount: int,
        to_chain_id: int,
        unified_balance: UnifiedBalance,
        bridging_plugins: Sequence[BridgingPlugin] | None = None,
        fee_data: FeeReservation | None = None,
    ) -> BridgingInstructions:
        from supertx.bridging.router import build_bridge_instructions

        plugins = self.bridging_plugins if bridging_plugins is None else bridging_plugins
        return await build_bridge_instructions(
            account=self,
            amount=amount,
            to_chain_id=to_chain_id,
            unified_balance=unified_balance,
            bridging_plugins=plugins,
            fee_data=fee_data,
        )

    async def query_bridge(
        self,
        from_chain_id: int,
        to_chain_id: int,
        plugin: BridgingPlugin,
        amount: int,
        token: MultichainToken,
    ) -> BridgeRoute | None:
        from supertx.bridging.router import query_bridge

        return await query_bridge(
            account=self,
            from_chain_id=from_chain_id,
            to_chain_id=to_chain_id,
            plugin=plugin,
            amount=amount,
            token=token,
        )

    def __repr__(self) -> str:
        return f"MultichainAccount(signer={self.signer.address}, chains={self.chain_ids})"
