from __future__ import annotations

from dataclasses import replace

from .models import (
    CrossChainTransferRequest,
    ExecutionDescriptor,
    ExtrinsicType,
    Path,
    PlanningRequest,
    SubmitYieldInput,
    YieldStepType,
)
from .strategies import YieldStrategy
from .utils import get_logger, parse_amount
from .xcm import build_xcm_transfer

logger = get_logger("materializer")


def materialize(
    strategy: YieldStrategy,
    request: PlanningRequest,
    path: Path,
    step_index: int,
    address: str,
    submitted: SubmitYieldInput,
) -> ExecutionDescriptor:
    """
    Turn one step of a validated path into an unsigned call for the user's account.

    Transfers are addressed to the real account here, never the planning
    placeholder. Terminal steps use the amount the user submitted.
    """
    if not 0 <= step_index < len(path.steps):
        raise IndexError(f"Step {step_index} is outside a path of {len(path.steps)} steps")
    step = path.steps[step_index]
    pool = request.pool_info

    if step.type == YieldStepType.DEFAULT:
        raise ValueError("The bootstrap step has no chain call")

    if step.type == YieldStepType.CROSS_CHAIN_TRANSFER:
        if step.metadata is None:
            raise ValueError(f"Transfer step {step.id} carries no transfer metadata")
        registry = request.registry
        origin_chain = registry.get_chain(registry.get_asset(step.metadata.origin_asset).origin_chain)
        origin_asset = registry.native_asset(origin_chain.slug)
        destination_asset = registry.get_asset(step.metadata.destination_asset)
        value = step.metadata.sending_value

        call = build_xcm_transfer(registry, origin_asset, destination_asset, value, address)
        routing = CrossChainTransferRequest(
            origin_network_key=origin_chain.slug,
            destination_network_key=destination_asset.origin_chain,
            from_address=address,
            to_address=address,
            value=str(value),
            token_slug=origin_asset.slug,
        )
        logger.debug("%s: step %d transfers %s %s", pool.slug, step.id, value, origin_asset.slug)
        return ExecutionDescriptor(
            chain=origin_chain.slug,
            extrinsic_type=ExtrinsicType.TRANSFER_XCM,
            call=call,
            routing=routing,
        )

    if step.type != strategy.step_type:
        raise ValueError(f"Step {step.id} ({step.type.value}) does not belong to {strategy.protocol.value}")

    submitted = replace(submitted, amount=str(parse_amount(submitted.amount)))
    call = strategy.build_submit_call(pool, request.registry, submitted)
    logger.debug("%s: step %d submits %s", pool.slug, step.id, call.call_id)
    return ExecutionDescriptor(chain=pool.chain, extrinsic_type=strategy.extrinsic_type, call=call)
