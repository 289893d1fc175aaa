from __future__ import annotations

import pytest

from yieldplan.chain import StaticChainApi
from yieldplan.errors import FeeUnavailable, InsufficientLiquidity, NotSupported
from yieldplan.fees import FeeOracle
from yieldplan.models import ValidationStatus, YieldProtocol, YieldStepType
from yieldplan.strategies import (
    AcalaLiquidStakingStrategy,
    NativeStakingStrategy,
    STRATEGY_CLASSES,
    resolve_strategy,
)

from tests.conftest import (
    ACA,
    ACALA,
    BIFROST,
    DOT,
    INTERLAY,
    NATIVE,
    NOMINATION,
    PLACEHOLDER,
)

AMPLE = {
    "polkadot-NATIVE-DOT": 1000 * DOT,
    "acala-NATIVE-ACA": 100 * ACA,
    "acala-LOCAL-DOT": 1000 * DOT,
    "bifrost_dot-NATIVE-BNC": 100 * ACA,
    "bifrost_dot-LOCAL-DOT": 1000 * DOT,
    "interlay-NATIVE-INTR": 1000 * DOT,
    "interlay-LOCAL-DOT": 1000 * DOT,
}


def test_every_protocol_has_a_strategy() -> None:
    assert set(STRATEGY_CLASSES) == set(YieldProtocol)


def test_resolve_strategy_binds_by_protocol(pools, chain_api, cfg) -> None:
    oracle = FeeOracle(chain_api, cfg)
    assert isinstance(resolve_strategy(pools[ACALA], oracle), AcalaLiquidStakingStrategy)
    assert isinstance(resolve_strategy(pools[NATIVE], oracle), NativeStakingStrategy)


def test_resolve_strategy_rejects_unknown_protocol(pools, chain_api, cfg, monkeypatch) -> None:
    monkeypatch.delitem(STRATEGY_CLASSES, YieldProtocol.INTERLAY_LENDING)
    with pytest.raises(NotSupported):
        resolve_strategy(pools[INTERLAY], FeeOracle(chain_api, cfg))


@pytest.mark.asyncio
@pytest.mark.parametrize("slug", [ACALA, BIFROST, INTERLAY, NATIVE, NOMINATION])
async def test_step_ids_match_positions(planner, make_request, slug) -> None:
    for balances in (AMPLE, {**AMPLE, "acala-LOCAL-DOT": 0, "bifrost_dot-LOCAL-DOT": 0, "interlay-LOCAL-DOT": 0}):
        path = await planner.generate_path(make_request(slug, 10 * DOT, balances))
        assert [step.id for step in path.steps] == list(range(len(path.steps)))
        assert path.steps[0].type == YieldStepType.DEFAULT


@pytest.mark.asyncio
async def test_shortfall_is_topped_up_from_relay_chain(planner, make_request, chain_api) -> None:
    request = make_request(
        ACALA,
        10 * DOT,
        {"acala-LOCAL-DOT": 5 * DOT, "polkadot-NATIVE-DOT": 100 * DOT, "acala-NATIVE-ACA": 10 * ACA},
    )

    path = await planner.generate_path(request)

    assert [step.type for step in path.steps] == [
        YieldStepType.DEFAULT,
        YieldStepType.CROSS_CHAIN_TRANSFER,
        YieldStepType.MINT_DERIVATIVE,
    ]
    transfer = path.steps[1]
    assert transfer.metadata.sending_value >= 5 * DOT
    assert transfer.metadata.origin_asset == "polkadot-NATIVE-DOT"
    assert transfer.metadata.destination_asset == "acala-LOCAL-DOT"
    assert path.fee_for(1).slug == "polkadot-NATIVE-DOT"
    assert path.fee_for(1).amount == 160_000_000
    assert path.fee_for(2).slug == "acala-NATIVE-ACA"
    assert path.fee_for(2).amount == 3_000_000_000

    # Fees are always priced for the placeholder account
    assert {payer for _, payer in chain_api.estimated} == {PLACEHOLDER}
    xcm_call = next(call for call, _ in chain_api.estimated if call.chain == "polkadot")
    assert xcm_call.call_id == "xcmPallet.limitedReserveTransferAssets"
    assert PLACEHOLDER in repr(xcm_call.args[1])


@pytest.mark.asyncio
async def test_no_transfer_when_primary_balance_covers_amount(planner, make_request) -> None:
    request = make_request(ACALA, 10 * DOT, AMPLE)

    path = await planner.generate_path(request)

    assert YieldStepType.CROSS_CHAIN_TRANSFER not in [step.type for step in path.steps]


@pytest.mark.asyncio
async def test_pool_without_alt_asset_never_transfers(planner, make_request) -> None:
    request = make_request(NATIVE, 10 * DOT, {"polkadot-NATIVE-DOT": 5 * DOT})

    with pytest.raises(InsufficientLiquidity):
        await planner.generate_path(request)


@pytest.mark.asyncio
async def test_empty_alt_balance_is_insufficient_liquidity(planner, make_request) -> None:
    request = make_request(BIFROST, 10 * DOT, {"bifrost_dot-LOCAL-DOT": 2 * DOT, "bifrost_dot-NATIVE-BNC": ACA})

    with pytest.raises(InsufficientLiquidity):
        await planner.generate_path(request)


@pytest.mark.asyncio
async def test_fee_falls_back_to_input_asset(planner, make_request) -> None:
    request = make_request(ACALA, 10 * DOT, {"acala-LOCAL-DOT": 20 * DOT})

    path = await planner.generate_path(request)

    fee = path.fee_for(path.submit_step.id)
    assert fee.slug == "acala-LOCAL-DOT"
    # 0.003 ACA priced 1:1 in DOT, rescaled from 12 to 10 decimals
    assert fee.amount == 30_000_000


@pytest.mark.asyncio
async def test_no_fee_record_when_no_accepted_asset_can_pay(planner, make_request) -> None:
    request = make_request(
        ACALA,
        10 * DOT,
        {"acala-LOCAL-DOT": 20 * DOT},
        fee_assets=("acala-NATIVE-ACA",),
    )

    path = await planner.generate_path(request)

    assert path.fee_for(path.submit_step.id) is None


@pytest.mark.asyncio
async def test_fee_query_failure_aborts_planning(make_request, registry, pools, cfg) -> None:
    strategy = AcalaLiquidStakingStrategy(FeeOracle(StaticChainApi(fees={"polkadot": {"*": "1"}}), cfg))

    with pytest.raises(FeeUnavailable):
        await strategy.generate_path(make_request(ACALA, 10 * DOT, AMPLE))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "slug, step_type, call_id",
    [
        (ACALA, YieldStepType.MINT_DERIVATIVE, "homa.mint"),
        (BIFROST, YieldStepType.MINT_DERIVATIVE, "vtokenMinting.mint"),
        (INTERLAY, YieldStepType.MINT_DERIVATIVE, "loans.mint"),
        (NATIVE, YieldStepType.NATIVE_BOND, "utility.batchAll"),
        (NOMINATION, YieldStepType.NATIVE_JOIN_POOL, "nominationPools.join"),
    ],
)
async def test_terminal_step_per_protocol(planner, make_request, chain_api, slug, step_type, call_id) -> None:
    path = await planner.generate_path(make_request(slug, 10 * DOT, AMPLE))

    assert path.submit_step.type == step_type
    assert [call.call_id for call, _ in chain_api.estimated] == [call_id]


@pytest.mark.asyncio
async def test_full_balance_bond_records_no_fee_and_fails_validation(planner, make_request) -> None:
    request = make_request(NATIVE, 10 * DOT, {"polkadot-NATIVE-DOT": 10 * DOT})

    path = await planner.generate_path(request)

    assert path.fee_for(path.submit_step.id) is None
    result = planner.validate(path, request)
    assert result.status == ValidationStatus.NOT_ENOUGH_FEE
    assert result.failed_step == path.submit_step
