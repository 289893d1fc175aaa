from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal
from typing import Optional

from .chain import ChainApi, UnsignedCall
from .config import Settings
from .errors import FeeUnavailable
from .registry import Asset
from .utils import get_logger

logger = get_logger("fees")


@dataclass(frozen=True)
class FeeEstimate:
    chain: str
    call_id: str
    partial_fee: int  # in the chain's native fee asset
    weight: int = 0


class FeeOracle:
    def __init__(self, chain_api: ChainApi, settings: Settings) -> None:
        self.chain_api = chain_api
        self.settings = settings

    async def estimate_fee(self, call: UnsignedCall, payer: Optional[str] = None) -> FeeEstimate:
        """
        Estimate the dispatch fee of an unsigned call.

        payer defaults to the placeholder address so the estimate does not
        depend on the real account's balance or nonce.
        """
        payer = payer or self.settings.placeholder_address
        try:
            info = await self.chain_api.estimate_dispatch_fee(call, payer)
            partial_fee = int(str(info["partialFee"]))
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s fee estimation for %s failed: %s", call.chain, call.call_id, exc)
            raise FeeUnavailable(f"{call.chain}: cannot estimate fee for {call.call_id}") from exc
        weight = info.get("weight") or 0
        if isinstance(weight, dict):
            weight = weight.get("refTime", 0)
        return FeeEstimate(
            chain=call.chain,
            call_id=call.call_id,
            partial_fee=partial_fee,
            weight=int(weight),
        )

    def convert_fee(self, estimate: FeeEstimate, source_asset: Asset, target_asset: Asset) -> int:
        return convert_fee(estimate, source_asset, target_asset, self.settings.alt_fee_ratio)


def convert_fee(
    estimate: FeeEstimate,
    source_asset: Asset,
    target_asset: Asset,
    ratio: Decimal = Decimal(1),
) -> int:
    """
    Approximate a fee as if paid in another asset.

    ratio: whole units of target_asset per whole unit of source_asset.
    Decimals are rescaled and the result rounded up, so the converted fee
    never undercuts the original one at the given ratio.
    """
    if ratio <= 0:
        raise ValueError("Fee conversion ratio must be positive")
    scale = Decimal(10) ** (target_asset.decimals - source_asset.decimals)
    converted = Decimal(estimate.partial_fee) * ratio * scale
    return int(converted.to_integral_value(rounding=ROUND_CEILING))
