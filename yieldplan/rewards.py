from __future__ import annotations

from enum import IntEnum
from typing import Dict

DAYS_PER_YEAR = 365


class CompoundingPeriod(IntEnum):
    """Compounding interval, in days."""

    DAILY = 1
    WEEKLY = 7
    MONTHLY = 30
    YEARLY = 365


def calculate_reward(
    apr: float,
    amount: float = 0,
    compounding_period: CompoundingPeriod = CompoundingPeriod.YEARLY,
) -> Dict[str, float]:
    """
    Project the yearly yield of an APR compounded every `compounding_period` days.

    apr is a percentage (18.38 means 18.38%). Returns {"apy", "reward_in_token"}
    with apy as a fraction, or an empty dict when there is no APR.
    """
    if not apr:
        return {}

    days = int(compounding_period)
    periods_per_year = DAYS_PER_YEAR / days
    period_apr = apr / DAYS_PER_YEAR * days  # APR is always annual
    apy = (1 + period_apr / 100) ** periods_per_year - 1

    return {
        "apy": apy,
        "reward_in_token": apy * amount,
    }
