from __future__ import annotations

import asyncio

from ..chain import UnsignedCall
from ..models import AssetEarning, ExtrinsicType, PoolInfo, PoolStats, SubmitYieldInput, YieldProtocol
from ..registry import AssetRegistry
from .base import FIXED_POINT, YieldStrategy

BLOCKS_PER_YEAR = 365 * 24 * 60 * 60 // 12


class AcalaLiquidStakingStrategy(YieldStrategy):
    """Homa liquid staking: DOT on Acala is minted into LDOT."""

    protocol = YieldProtocol.ACALA_LIQUID_STAKING
    step_name = "Mint LDOT"
    extrinsic_type = ExtrinsicType.MINT_LDOT

    def build_submit_call(
        self, pool: PoolInfo, registry: AssetRegistry, data: SubmitYieldInput
    ) -> UnsignedCall:
        return self.chain_api.build_call(pool.chain, "homa", "mint", data.amount)

    async def fetch_stats(self, pool: PoolInfo, registry: AssetRegistry) -> PoolStats:
        api = self.chain_api
        bump_frequency, commission_rate, reward_rate, mint_threshold = await asyncio.gather(
            api.query_state(pool.chain, "homa.bumpEraFrequency"),
            api.query_state(pool.chain, "homa.commissionRate"),
            api.query_state(pool.chain, "homa.estimatedRewardRatePerEra"),
            api.query_state(pool.chain, "homa.mintThreshold"),
        )
        bump_frequency = int(bump_frequency or 0)
        apr = 0.0
        if bump_frequency:
            eras_per_year = BLOCKS_PER_YEAR / bump_frequency
            net_rate = int(reward_rate or 0) / FIXED_POINT * (1 - int(commission_rate or 0) / FIXED_POINT)
            apr = net_rate * eras_per_year * 100
        return PoolStats(
            asset_earning=(AssetEarning(slug=pool.input_asset, apr=apr),),
            min_join_pool=int(mint_threshold or 0),
            total_apr=apr,
        )
