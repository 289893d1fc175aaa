from __future__ import annotations

from typing import Optional

from .errors import PathError
from .models import Path, PlanningRequest, ValidationResult, ValidationStatus


def validate_path(path: Path, request: PlanningRequest) -> ValidationResult:
    """
    Run the cross-chain liquidity, fee and minimum-join checks in order.

    The first violation wins; the result names the step that failed.
    Pure function of its inputs: no chain access, no caching.
    """
    result = _check_transfer_liquidity(path, request)
    if result is not None:
        return result

    submit_step = path.submit_step
    if submit_step is None:
        raise PathError("Path has no step to submit.")

    result = _check_fee(path, request)
    if result is not None:
        return result

    result = _check_min_join(path, request)
    if result is not None:
        return result

    return ValidationResult.success()


def _check_transfer_liquidity(path: Path, request: PlanningRequest) -> Optional[ValidationResult]:
    step = path.transfer_step
    if step is None or step.metadata is None:
        return None

    alt_slug = step.metadata.origin_asset
    fee = path.fee_for(step.id)
    spent = step.metadata.sending_value + (fee.amount if fee else 0)
    min_amount = request.registry.min_amount(alt_slug)

    if request.free(alt_slug) - spent < min_amount:
        symbol = request.registry.get_asset(alt_slug).symbol
        return ValidationResult.failure(
            ValidationStatus.NOT_ENOUGH_MIN_AMOUNT,
            step,
            f"Transferring {spent} would leave less than the minimum {min_amount} {symbol}",
        )
    return None


def _check_fee(path: Path, request: PlanningRequest) -> Optional[ValidationResult]:
    pool = request.pool_info
    step = path.submit_step
    fee = path.fee_for(step.id)

    if fee is None:
        return ValidationResult.failure(
            ValidationStatus.NOT_ENOUGH_FEE,
            step,
            f"No accepted fee asset can pay for {step.name}",
        )

    if fee.slug == pool.fee_asset:
        spent = fee.amount
        if fee.slug == pool.input_asset:
            # Joined amount and fee come out of the same balance
            spent += request.amount_value
        min_amount = request.registry.min_amount(fee.slug)
        if request.free(fee.slug) - spent < min_amount:
            symbol = request.registry.get_asset(fee.slug).symbol
            return ValidationResult.failure(
                ValidationStatus.NOT_ENOUGH_FEE,
                step,
                f"Not enough {symbol} to pay a fee of {fee.amount}",
            )
        return None

    # Fee is taken from the input asset itself
    if request.amount_value - fee.amount < pool.min_join_pool:
        return ValidationResult.failure(
            ValidationStatus.NOT_ENOUGH_MIN_AMOUNT,
            step,
            f"Amount after a fee of {fee.amount} is below the minimum of {pool.min_join_pool}",
        )
    return None


def _check_min_join(path: Path, request: PlanningRequest) -> Optional[ValidationResult]:
    pool = request.pool_info
    step = path.submit_step
    amount = request.amount_value
    fee = path.fee_for(step.id)
    if fee is not None and fee.slug != pool.fee_asset:
        amount -= fee.amount

    if amount < pool.min_join_pool:
        return ValidationResult.failure(
            ValidationStatus.NOT_ENOUGH_MIN_AMOUNT,
            step,
            f"Amount is below the minimum of {pool.min_join_pool} to join {pool.name}",
        )
    return None
