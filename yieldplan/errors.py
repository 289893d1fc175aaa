from __future__ import annotations


class YieldPlanError(Exception):
    """Base class for planner failures that abort the current call."""


class FeeUnavailable(YieldPlanError):
    """The chain could not estimate a dispatch fee."""


class InsufficientLiquidity(YieldPlanError):
    """No viable path exists for the requested amount given the balances."""


class NotSupported(YieldPlanError):
    """Unknown pool, protocol or chain configuration."""


class MaxRetryExceeded(YieldPlanError):
    """An indexer request kept failing after exhausting its retries."""


class PathError(ValueError):
    """A path violates its structural invariants."""
