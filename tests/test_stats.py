from __future__ import annotations

import asyncio

import pytest

from yieldplan.chain import StaticChainApi
from yieldplan.fees import FeeOracle
from yieldplan.stats import refresh_pool_stats, subscribe_stats
from yieldplan.strategies import (
    AcalaLiquidStakingStrategy,
    BifrostLiquidStakingStrategy,
    InterlayLendingStrategy,
    NativeStakingStrategy,
    NominationPoolStrategy,
)

from tests.conftest import ACALA, BIFROST, DOT, INTERLAY, NATIVE, NOMINATION

STATE = {
    "polkadot": {
        "staking.activeEra": 1200,
        "staking.erasValidatorReward": 3 * 10**15,
        "staking.erasTotalStake": 7 * 10**18,
        "staking.minNominatorBond": str(250 * DOT),
        "nominationPools.minJoinBond": str(1 * DOT),
    },
    "acala": {
        "homa.bumpEraFrequency": 1800,
        "homa.commissionRate": str(10**17),
        "homa.estimatedRewardRatePerEra": str(125 * 10**12),
        "homa.mintThreshold": str(5 * DOT),
    },
    "bifrost_dot": {"vtokenMinting.minimumMint": str(5 * 10**9)},
    "interlay": {
        "loans.supplyRate": str(4 * 10**16),
        "loans.totalSupply": str(12345 * DOT),
    },
}


@pytest.fixture
def stats_oracle(cfg) -> FeeOracle:
    return FeeOracle(StaticChainApi(state=STATE), cfg)


@pytest.mark.asyncio
async def test_acala_stats_from_homa_state(stats_oracle, pools, registry) -> None:
    updated = await refresh_pool_stats(AcalaLiquidStakingStrategy(stats_oracle), pools[ACALA], registry)

    # 0.0125% per era, 1460 eras a year, 10% commission
    assert updated.stats.total_apr == pytest.approx(0.000125 * 0.9 * 1460 * 100)
    assert updated.stats.min_join_pool == 5 * DOT
    assert updated.slug == ACALA


@pytest.mark.asyncio
async def test_native_stats_from_last_era(stats_oracle, pools, registry) -> None:
    native = await refresh_pool_stats(NativeStakingStrategy(stats_oracle), pools[NATIVE], registry)
    nomination = await refresh_pool_stats(NominationPoolStrategy(stats_oracle), pools[NOMINATION], registry)

    expected_apr = 3 * 10**15 / (7 * 10**18) * 365 * 100
    assert native.stats.total_apr == pytest.approx(expected_apr)
    assert native.stats.min_join_pool == 250 * DOT
    assert nomination.stats.min_join_pool == 1 * DOT


@pytest.mark.asyncio
async def test_interlay_stats_from_supply_rate(stats_oracle, pools, registry) -> None:
    updated = await refresh_pool_stats(InterlayLendingStrategy(stats_oracle), pools[INTERLAY], registry)

    assert updated.stats.total_apr == pytest.approx(4.0)
    assert updated.stats.tvl == 12345 * DOT


@pytest.mark.asyncio
async def test_bifrost_stats_combine_site_api_and_chain(stats_oracle, pools, registry, monkeypatch) -> None:
    strategy = BifrostLiquidStakingStrategy(stats_oracle)

    async def fake_site_data():
        return {"vDOT": {"apyBase": "15.2"}}

    monkeypatch.setattr(strategy, "fetch_site_data", fake_site_data)

    updated = await refresh_pool_stats(strategy, pools[BIFROST], registry)

    assert updated.stats.total_apr == pytest.approx(15.2)
    assert updated.stats.min_join_pool == 5 * 10**9


@pytest.mark.asyncio
async def test_subscription_publishes_until_unsubscribed(stats_oracle, pools, registry) -> None:
    received = []
    first = asyncio.Event()

    def callback(pool):
        received.append(pool)
        first.set()

    unsubscribe = subscribe_stats(
        AcalaLiquidStakingStrategy(stats_oracle), pools[ACALA], registry, callback, interval=0.01
    )
    await asyncio.wait_for(first.wait(), timeout=1)
    unsubscribe()
    await asyncio.sleep(0)
    count = len(received)
    await asyncio.sleep(0.05)

    assert count >= 1
    assert len(received) == count
    assert received[0].stats.min_join_pool == 5 * DOT


@pytest.mark.asyncio
async def test_failed_refresh_is_skipped_not_fatal(cfg, pools, registry) -> None:
    received = []
    strategy = AcalaLiquidStakingStrategy(FeeOracle(StaticChainApi(), cfg))

    unsubscribe = subscribe_stats(strategy, pools[ACALA], registry, received.append, interval=0.01)
    await asyncio.sleep(0.05)
    unsubscribe()

    assert received == []


@pytest.mark.asyncio
async def test_planner_subscribes_every_pool(planner, monkeypatch) -> None:
    seen = set()
    done = asyncio.Event()

    async def fake_stats(pool, registry):
        return pool.stats

    for slug in planner.pools:
        monkeypatch.setattr(planner.strategy_for(slug), "fetch_stats", fake_stats)

    def callback(pool):
        seen.add(pool.slug)
        if seen == set(planner.pools):
            done.set()

    unsubscribe = planner.subscribe_stats(callback, interval=0.01)
    await asyncio.wait_for(done.wait(), timeout=1)
    unsubscribe()

    assert seen == set(planner.pools)
