from __future__ import annotations

import asyncio
from typing import ClassVar, List, Optional, Tuple

from ..chain import ChainApi, UnsignedCall
from ..config import Settings
from ..errors import InsufficientLiquidity
from ..fees import FeeEstimate, FeeOracle
from ..models import (
    ExtrinsicType,
    Path,
    PathBuilder,
    PlanningRequest,
    PoolInfo,
    PoolStats,
    Step,
    SubmitYieldInput,
    TransferMetadata,
    YieldProtocol,
    YieldStepType,
)
from ..registry import AssetRegistry
from ..utils import get_logger
from ..xcm import build_xcm_transfer

logger = get_logger("strategies")

FIXED_POINT = 10**18


class YieldStrategy:
    """
    Path generator for one yield protocol.

    Subclasses name the terminal step and build its call; the shared
    skeleton decides whether a cross-chain top-up is needed and which
    asset each fee is recorded in. Affordability is left to the validator.
    """

    protocol: ClassVar[YieldProtocol]
    step_type: ClassVar[YieldStepType] = YieldStepType.MINT_DERIVATIVE
    step_name: ClassVar[str]
    extrinsic_type: ClassVar[ExtrinsicType]

    def __init__(self, oracle: FeeOracle) -> None:
        self.oracle = oracle

    @property
    def chain_api(self) -> ChainApi:
        return self.oracle.chain_api

    @property
    def settings(self) -> Settings:
        return self.oracle.settings

    def build_submit_call(
        self, pool: PoolInfo, registry: AssetRegistry, data: SubmitYieldInput
    ) -> UnsignedCall:
        raise NotImplementedError

    def planning_input(self, request: PlanningRequest) -> SubmitYieldInput:
        return SubmitYieldInput(amount=str(request.amount_value))

    async def fetch_stats(self, pool: PoolInfo, registry: AssetRegistry) -> PoolStats:
        raise NotImplementedError

    async def generate_path(self, request: PlanningRequest) -> Path:
        pool = request.pool_info
        amount = request.amount_value
        input_balance = request.free(pool.input_asset)
        builder = PathBuilder()

        calls: List[UnsignedCall] = []
        top_up: Optional[Tuple[Step, UnsignedCall]] = None
        if amount > input_balance:
            top_up = self._add_top_up(builder, request, amount - input_balance)
            calls.append(top_up[1])

        submit_step = builder.add_step(self.step_type, self.step_name)
        calls.append(self.build_submit_call(pool, request.registry, self.planning_input(request)))

        estimates = await asyncio.gather(*(self.oracle.estimate_fee(call) for call in calls))

        if top_up is not None:
            builder.add_fee(top_up[0], pool.alt_input_asset, estimates[0].partial_fee)
        self._add_submit_fee(builder, submit_step, request, estimates[-1])

        path = builder.build()
        logger.info(
            "%s: planned %d steps for %s (transfer=%s)",
            pool.slug,
            len(path.steps),
            amount,
            top_up is not None,
        )
        return path

    def _add_top_up(
        self, builder: PathBuilder, request: PlanningRequest, shortfall: int
    ) -> Tuple[Step, UnsignedCall]:
        pool = request.pool_info
        alt_slug = pool.alt_input_asset
        if alt_slug is None:
            raise InsufficientLiquidity(
                f"{pool.slug}: balance of {pool.input_asset} is short by {shortfall}"
            )
        if request.free(alt_slug) <= 0:
            raise InsufficientLiquidity(
                f"{pool.slug}: short by {shortfall} and no {alt_slug} to transfer"
            )

        registry = request.registry
        origin_asset = registry.get_asset(alt_slug)
        destination_asset = registry.get_asset(pool.input_asset)
        origin_chain = registry.get_chain(origin_asset.origin_chain)
        step = builder.add_step(
            YieldStepType.CROSS_CHAIN_TRANSFER,
            f"Transfer {origin_asset.symbol} from {origin_chain.name}",
            TransferMetadata(
                sending_value=shortfall,
                origin_asset=alt_slug,
                destination_asset=pool.input_asset,
            ),
        )
        call = build_xcm_transfer(
            registry,
            origin_asset,
            destination_asset,
            shortfall,
            self.settings.placeholder_address,
        )
        return step, call

    def _add_submit_fee(
        self,
        builder: PathBuilder,
        step: Step,
        request: PlanningRequest,
        estimate: FeeEstimate,
    ) -> None:
        pool = request.pool_info
        registry = request.registry
        fee_asset = registry.get_asset(pool.fee_asset)
        fee = estimate.partial_fee
        spent = fee
        if fee_asset.slug == pool.input_asset:
            spent += request.amount_value

        if request.free(fee_asset.slug) - spent >= fee_asset.min_amount:
            builder.add_fee(step, fee_asset.slug, fee)
        elif pool.input_asset in pool.fee_assets and pool.input_asset != fee_asset.slug:
            native_asset = registry.native_asset(pool.chain)
            input_asset = registry.get_asset(pool.input_asset)
            builder.add_fee(step, input_asset.slug, self.oracle.convert_fee(estimate, native_asset, input_asset))
        else:
            logger.info("%s: no accepted fee asset can pay %s for %s", pool.slug, fee, step.name)
