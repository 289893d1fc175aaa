from __future__ import annotations

import asyncio

from ..chain import UnsignedCall
from ..models import AssetEarning, ExtrinsicType, PoolInfo, PoolStats, SubmitYieldInput, YieldProtocol
from ..registry import AssetRegistry
from .base import FIXED_POINT, YieldStrategy


class InterlayLendingStrategy(YieldStrategy):
    """Interlay loans market: supplying DOT mints qDOT."""

    protocol = YieldProtocol.INTERLAY_LENDING
    step_name = "Mint qDOT"
    extrinsic_type = ExtrinsicType.MINT_QDOT

    def build_submit_call(
        self, pool: PoolInfo, registry: AssetRegistry, data: SubmitYieldInput
    ) -> UnsignedCall:
        currency_id = dict(registry.get_asset(pool.input_asset).on_chain_info)
        return self.chain_api.build_call(pool.chain, "loans", "mint", currency_id, data.amount)

    async def fetch_stats(self, pool: PoolInfo, registry: AssetRegistry) -> PoolStats:
        currency_id = dict(registry.get_asset(pool.input_asset).on_chain_info)
        supply_rate, total_supply = await asyncio.gather(
            self.chain_api.query_state(pool.chain, "loans.supplyRate", currency_id),
            self.chain_api.query_state(pool.chain, "loans.totalSupply", currency_id),
        )
        apr = int(supply_rate or 0) / FIXED_POINT * 100
        return PoolStats(
            asset_earning=(AssetEarning(slug=pool.input_asset, apr=apr),),
            total_apr=apr,
            tvl=int(total_supply or 0),
        )
