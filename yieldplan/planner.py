from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from .chain import ChainApi
from .config import Settings
from .errors import NotSupported
from .fees import FeeOracle
from .materializer import materialize
from .models import (
    ExecutionDescriptor,
    Path,
    PlanningRequest,
    PoolInfo,
    SubmitYieldInput,
    ValidationResult,
)
from .registry import AssetRegistry
from .stats import StatsCallback, Unsubscribe, subscribe_all_pool_stats
from .strategies import YieldStrategy, resolve_strategy
from .utils import get_logger
from .validator import validate_path

logger = get_logger("planner")


class YieldPlanner:
    """
    Entry point for planning, validating and materializing yield paths.

    Each pool is bound to its strategy once, when the planner is built;
    an unknown protocol fails here rather than at planning time.
    """

    def __init__(
        self,
        chain_api: ChainApi,
        registry: AssetRegistry,
        pools: Iterable[PoolInfo],
        settings: Settings,
    ) -> None:
        self.chain_api = chain_api
        self.registry = registry
        self.settings = settings
        self.oracle = FeeOracle(chain_api, settings)
        self.pools: Dict[str, PoolInfo] = {}
        self._strategies: Dict[str, YieldStrategy] = {}
        for pool in pools:
            self.pools[pool.slug] = pool
            self._strategies[pool.slug] = resolve_strategy(pool, self.oracle)

    def strategy_for(self, pool_slug: str) -> YieldStrategy:
        try:
            return self._strategies[pool_slug]
        except KeyError:
            raise NotSupported(f"Unknown pool: {pool_slug}") from None

    def update_pool(self, pool: PoolInfo) -> None:
        """Store refreshed pool info (e.g. from a stats subscription)."""
        self.strategy_for(pool.slug)
        self.pools[pool.slug] = pool

    def request(
        self,
        pool_slug: str,
        amount: str,
        balances: Mapping[str, str],
    ) -> PlanningRequest:
        pool = self.pools.get(pool_slug)
        if pool is None:
            raise NotSupported(f"Unknown pool: {pool_slug}")
        return PlanningRequest(pool_info=pool, amount=amount, balances=balances, registry=self.registry)

    async def generate_path(self, request: PlanningRequest) -> Path:
        return await self.strategy_for(request.pool_info.slug).generate_path(request)

    def validate(self, path: Path, request: PlanningRequest) -> ValidationResult:
        result = validate_path(path, request)
        if not result.ok:
            logger.info(
                "%s: step %d failed with %s: %s",
                request.pool_info.slug,
                result.failed_step.id,
                result.status.value,
                result.message,
            )
        return result

    def materialize(
        self,
        request: PlanningRequest,
        path: Path,
        step_index: int,
        address: str,
        submitted: SubmitYieldInput,
    ) -> ExecutionDescriptor:
        strategy = self.strategy_for(request.pool_info.slug)
        return materialize(strategy, request, path, step_index, address, submitted)

    def subscribe_stats(
        self,
        callback: StatsCallback,
        pool_slugs: Optional[List[str]] = None,
        interval: Optional[float] = None,
    ) -> Unsubscribe:
        slugs = pool_slugs if pool_slugs is not None else list(self.pools)
        handles = [(self.strategy_for(slug), self.pools[slug]) for slug in slugs]
        return subscribe_all_pool_stats(handles, self.registry, callback, interval)
