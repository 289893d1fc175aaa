import pytest

from yieldplan.rewards import CompoundingPeriod, calculate_reward


def test_yearly_compounding_matches_apr() -> None:
    reward = calculate_reward(18.38, 1000, CompoundingPeriod.YEARLY)

    assert reward["apy"] == pytest.approx(0.1838)
    assert reward["reward_in_token"] == pytest.approx(183.8)


def test_more_frequent_compounding_yields_more() -> None:
    yearly = calculate_reward(18.38, 1000, CompoundingPeriod.YEARLY)["apy"]
    monthly = calculate_reward(18.38, 1000, CompoundingPeriod.MONTHLY)["apy"]
    daily = calculate_reward(18.38, 1000, CompoundingPeriod.DAILY)["apy"]

    assert yearly < monthly < daily
    assert daily == pytest.approx((1 + 0.1838 / 365) ** 365 - 1)


def test_reward_grows_with_amount() -> None:
    small = calculate_reward(10, 100)["reward_in_token"]
    large = calculate_reward(10, 200)["reward_in_token"]
    assert large == pytest.approx(2 * small)


@pytest.mark.parametrize("apr", [0, 0.0, None])
def test_no_apr_means_no_reward(apr) -> None:
    assert calculate_reward(apr, 1000) == {}
