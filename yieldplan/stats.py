from __future__ import annotations

import asyncio
from typing import Callable, Iterable, List, Optional, Tuple

from .models import PoolInfo
from .registry import AssetRegistry
from .strategies import YieldStrategy
from .utils import get_logger

logger = get_logger("stats")

Unsubscribe = Callable[[], None]
StatsCallback = Callable[[PoolInfo], None]


async def refresh_pool_stats(strategy: YieldStrategy, pool: PoolInfo, registry: AssetRegistry) -> PoolInfo:
    stats = await strategy.fetch_stats(pool, registry)
    return pool.with_stats(stats)


def subscribe_stats(
    strategy: YieldStrategy,
    pool: PoolInfo,
    registry: AssetRegistry,
    callback: StatsCallback,
    interval: Optional[float] = None,
) -> Unsubscribe:
    """
    Poll the pool's stats every `interval` seconds and publish the refreshed PoolInfo.

    Must be called from a running event loop. Failed refreshes are logged
    and retried on the next tick. The returned handle cancels the poller.
    """
    period = strategy.settings.stats_interval_seconds if interval is None else interval

    async def poll() -> None:
        while True:
            try:
                updated = await refresh_pool_stats(strategy, pool, registry)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.warning("%s: stats refresh failed: %s", pool.slug, exc)
            else:
                callback(updated)
            await asyncio.sleep(period)

    task = asyncio.get_running_loop().create_task(poll(), name=f"stats:{pool.slug}")

    def unsubscribe() -> None:
        if not task.done():
            task.cancel()

    return unsubscribe


def subscribe_all_pool_stats(
    handles: Iterable[Tuple[YieldStrategy, PoolInfo]],
    registry: AssetRegistry,
    callback: StatsCallback,
    interval: Optional[float] = None,
) -> Unsubscribe:
    """Subscribe every (strategy, pool) pair; the handle stops all of them."""
    unsubs: List[Unsubscribe] = [
        subscribe_stats(strategy, pool, registry, callback, interval) for strategy, pool in handles
    ]

    def unsubscribe() -> None:
        for unsub in unsubs:
            unsub()

    return unsubscribe
