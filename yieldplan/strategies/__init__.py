from typing import Dict, Type

from ..errors import NotSupported
from ..fees import FeeOracle
from ..models import PoolInfo, YieldProtocol
from .acala import AcalaLiquidStakingStrategy
from .base import YieldStrategy
from .bifrost import BifrostLiquidStakingStrategy
from .interlay import InterlayLendingStrategy
from .native import NativeStakingStrategy, NominationPoolStrategy

STRATEGY_CLASSES: Dict[YieldProtocol, Type[YieldStrategy]] = {
    cls.protocol: cls
    for cls in (
        NativeStakingStrategy,
        NominationPoolStrategy,
        AcalaLiquidStakingStrategy,
        BifrostLiquidStakingStrategy,
        InterlayLendingStrategy,
    )
}


def resolve_strategy(pool: PoolInfo, oracle: FeeOracle) -> YieldStrategy:
    strategy_class = STRATEGY_CLASSES.get(pool.protocol)
    if strategy_class is None:
        raise NotSupported(f"No strategy for pool {pool.slug} ({pool.protocol})")
    return strategy_class(oracle)


__all__ = [
    "AcalaLiquidStakingStrategy",
    "BifrostLiquidStakingStrategy",
    "InterlayLendingStrategy",
    "NativeStakingStrategy",
    "NominationPoolStrategy",
    "STRATEGY_CLASSES",
    "YieldStrategy",
    "resolve_strategy",
]
