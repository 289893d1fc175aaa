from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple

import pytest

from yieldplan.chain import StaticChainApi, UnsignedCall
from yieldplan.config import Settings
from yieldplan.data import default_registry, load_pools
from yieldplan.models import PlanningRequest, PoolInfo, PoolStats
from yieldplan.planner import YieldPlanner
from yieldplan.registry import AssetRegistry

DOT = 10**10
ACA = 10**12
PLACEHOLDER = "5PlaceholderAccountForFeeEstimation"

FEES = {
    "polkadot": {"*": "160000000"},
    "acala": {"*": "3000000000"},
    "bifrost_dot": {"*": "5000000000"},
    "interlay": {"*": "20000000"},
}

ACALA = "DOT___acala_liquid_staking"
BIFROST = "DOT___bifrost_liquid_staking"
INTERLAY = "DOT___interlay_lending"
NATIVE = "DOT___native_staking___polkadot"
NOMINATION = "DOT___nomination_pool___polkadot"


class RecordingChainApi(StaticChainApi):
    """StaticChainApi that remembers which calls were priced and for whom."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.estimated: List[Tuple[UnsignedCall, str]] = []

    async def estimate_dispatch_fee(self, call: UnsignedCall, payer: str) -> Mapping[str, Any]:
        self.estimated.append((call, payer))
        return await super().estimate_dispatch_fee(call, payer)


@pytest.fixture
def cfg() -> Settings:
    return Settings(
        placeholder_address=PLACEHOLDER,
        alt_fee_ratio=Decimal("1"),
        stats_interval_seconds=0.01,
        eras_per_year=365,
        indexer_limit_rate=2,
        indexer_max_retry=3,
        indexer_retry_delay=0.0,
    )


@pytest.fixture
def registry() -> AssetRegistry:
    return default_registry()


@pytest.fixture
def pools() -> Dict[str, PoolInfo]:
    loaded = {pool.slug: pool for pool in load_pools()}
    # Live stats would normally come from the stats subscription
    for slug in (ACALA, BIFROST, INTERLAY, NATIVE, NOMINATION):
        loaded[slug] = loaded[slug].with_stats(PoolStats(min_join_pool=1 * DOT))
    return loaded


@pytest.fixture
def chain_api() -> RecordingChainApi:
    return RecordingChainApi(fees=FEES)


@pytest.fixture
def planner(chain_api, registry, pools, cfg) -> YieldPlanner:
    return YieldPlanner(chain_api, registry, pools.values(), cfg)


@pytest.fixture
def make_request(registry, pools):
    def _make(slug: str, amount: int, balances: Mapping[str, int], **pool_changes: Any) -> PlanningRequest:
        pool = pools[slug]
        if pool_changes:
            pool = replace(pool, **pool_changes)
        return PlanningRequest(
            pool_info=pool,
            amount=str(amount),
            balances={k: str(v) for k, v in balances.items()},
            registry=registry,
        )

    return _make
