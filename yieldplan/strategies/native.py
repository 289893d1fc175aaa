from __future__ import annotations

import asyncio
from typing import Optional

from ..chain import UnsignedCall
from ..models import (
    AssetEarning,
    ExtrinsicType,
    PlanningRequest,
    PoolInfo,
    PoolStats,
    SubmitYieldInput,
    YieldProtocol,
    YieldStepType,
)
from ..registry import AssetRegistry
from .base import YieldStrategy

PLANNING_POOL_ID = 1


async def _era_apr(strategy: YieldStrategy, chain: str) -> float:
    api = strategy.chain_api
    era = int(await api.query_state(chain, "staking.activeEra"))
    last_era = max(era - 1, 0)
    reward, total_stake = await asyncio.gather(
        api.query_state(chain, "staking.erasValidatorReward", last_era),
        api.query_state(chain, "staking.erasTotalStake", last_era),
    )
    total_stake = int(total_stake or 0)
    if not total_stake:
        return 0.0
    return int(reward or 0) / total_stake * strategy.settings.eras_per_year * 100


class NativeStakingStrategy(YieldStrategy):
    protocol = YieldProtocol.NATIVE_STAKING
    step_type = YieldStepType.NATIVE_BOND
    step_name = "Bond and nominate validators"
    extrinsic_type = ExtrinsicType.STAKING_BOND

    def planning_input(self, request: PlanningRequest) -> SubmitYieldInput:
        # One nomination target is enough to price the batch
        return SubmitYieldInput(
            amount=str(request.amount_value),
            validators=(self.settings.placeholder_address,),
        )

    def build_submit_call(
        self, pool: PoolInfo, registry: AssetRegistry, data: SubmitYieldInput
    ) -> UnsignedCall:
        bond = self.chain_api.build_call(pool.chain, "staking", "bond", data.amount, "Staked")
        if not data.validators:
            return bond
        nominate = self.chain_api.build_call(pool.chain, "staking", "nominate", list(data.validators))
        return self.chain_api.build_call(pool.chain, "utility", "batchAll", [bond, nominate])

    async def fetch_stats(self, pool: PoolInfo, registry: AssetRegistry) -> PoolStats:
        apr, min_bond = await asyncio.gather(
            _era_apr(self, pool.chain),
            self.chain_api.query_state(pool.chain, "staking.minNominatorBond"),
        )
        return PoolStats(
            asset_earning=(AssetEarning(slug=pool.input_asset, apr=apr),),
            max_candidate_per_farmer=16,
            min_join_pool=int(min_bond or 0),
            total_apr=apr,
        )


class NominationPoolStrategy(YieldStrategy):
    protocol = YieldProtocol.NOMINATION_POOL
    step_type = YieldStepType.NATIVE_JOIN_POOL
    step_name = "Join nomination pool"
    extrinsic_type = ExtrinsicType.STAKING_JOIN_POOL

    def planning_input(self, request: PlanningRequest) -> SubmitYieldInput:
        return SubmitYieldInput(amount=str(request.amount_value), pool_id=PLANNING_POOL_ID)

    def build_submit_call(
        self, pool: PoolInfo, registry: AssetRegistry, data: SubmitYieldInput
    ) -> UnsignedCall:
        pool_id: Optional[int] = data.pool_id
        if pool_id is None:
            raise ValueError("A nomination pool id is required to join a pool")
        return self.chain_api.build_call(pool.chain, "nominationPools", "join", data.amount, pool_id)

    async def fetch_stats(self, pool: PoolInfo, registry: AssetRegistry) -> PoolStats:
        apr, min_join = await asyncio.gather(
            _era_apr(self, pool.chain),
            self.chain_api.query_state(pool.chain, "nominationPools.minJoinBond"),
        )
        return PoolStats(
            asset_earning=(AssetEarning(slug=pool.input_asset, apr=apr),),
            min_join_pool=int(min_join or 0),
            total_apr=apr,
        )
