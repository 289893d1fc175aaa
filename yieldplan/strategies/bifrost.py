from __future__ import annotations

import asyncio
from typing import Any, Dict

import aiohttp

from ..chain import UnsignedCall
from ..models import AssetEarning, ExtrinsicType, PoolInfo, PoolStats, SubmitYieldInput, YieldProtocol
from ..registry import AssetRegistry
from ..utils import get_logger
from .base import YieldStrategy

logger = get_logger("bifrost")


class BifrostLiquidStakingStrategy(YieldStrategy):
    """vToken minting: DOT on Bifrost is minted into vDOT."""

    protocol = YieldProtocol.BIFROST_LIQUID_STAKING
    step_name = "Mint vDOT"
    extrinsic_type = ExtrinsicType.MINT_VDOT

    def build_submit_call(
        self, pool: PoolInfo, registry: AssetRegistry, data: SubmitYieldInput
    ) -> UnsignedCall:
        currency_id = dict(registry.get_asset(pool.input_asset).on_chain_info)
        return self.chain_api.build_call(pool.chain, "vtokenMinting", "mint", currency_id, data.amount, None)

    async def fetch_site_data(self) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self.settings.indexer_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.settings.bifrost_site_api) as resp:
                if resp.status >= 300:
                    raise RuntimeError(f"Bifrost site API returned {resp.status}: {await resp.text()}")
                return await resp.json()

    async def fetch_stats(self, pool: PoolInfo, registry: AssetRegistry) -> PoolStats:
        currency_id = dict(registry.get_asset(pool.input_asset).on_chain_info)
        site, minimum_mint = await asyncio.gather(
            self.fetch_site_data(),
            self.chain_api.query_state(pool.chain, "vtokenMinting.minimumMint", currency_id),
        )
        vdot = site.get("vDOT") or {}
        apr = float(vdot.get("apyBase") or 0.0)
        return PoolStats(
            asset_earning=(AssetEarning(slug=pool.input_asset, apr=apr),),
            min_join_pool=int(minimum_mint or 0),
            total_apr=apr,
        )
