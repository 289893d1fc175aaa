from __future__ import annotations

from typing import Any, Dict

from .chain import UnsignedCall
from .errors import NotSupported
from .registry import Asset, AssetRegistry


def _account_junction(recipient: str) -> Dict[str, Any]:
    return {"AccountId32": {"network": None, "id": recipient}}


def build_xcm_transfer(
    registry: AssetRegistry,
    origin_asset: Asset,
    destination_asset: Asset,
    value: int,
    recipient: str,
) -> UnsignedCall:
    """
    Build an unsigned cross-chain transfer of origin_asset into destination_asset's chain.

    Relay -> parachain goes through xcmPallet reserve transfers,
    parachain -> relay through xTokens.
    """
    origin_chain = registry.get_chain(origin_asset.origin_chain)
    destination_chain = registry.get_chain(destination_asset.origin_chain)
    if origin_chain.slug == destination_chain.slug:
        raise NotSupported(f"Cross-chain transfer within {origin_chain.slug}")

    if origin_chain.is_relay and not destination_chain.is_relay:
        dest = {"V3": {"parents": 0, "interior": {"X1": {"Parachain": destination_chain.para_id}}}}
        beneficiary = {"V3": {"parents": 0, "interior": {"X1": _account_junction(recipient)}}}
        assets = {
            "V3": [
                {
                    "id": {"Concrete": {"parents": 0, "interior": "Here"}},
                    "fun": {"Fungible": str(value)},
                }
            ]
        }
        return UnsignedCall(
            chain=origin_chain.slug,
            pallet="xcmPallet",
            method="limitedReserveTransferAssets",
            args=(dest, beneficiary, assets, 0, "Unlimited"),
        )

    if not origin_chain.is_relay and destination_chain.is_relay:
        if not origin_asset.on_chain_info:
            raise NotSupported(f"Asset {origin_asset.slug} has no currency id for xTokens")
        dest = {"V3": {"parents": 1, "interior": {"X1": _account_junction(recipient)}}}
        return UnsignedCall(
            chain=origin_chain.slug,
            pallet="xTokens",
            method="transfer",
            args=(dict(origin_asset.on_chain_info), str(value), dest, "Unlimited"),
        )

    raise NotSupported(
        f"Cross-chain transfer {origin_chain.slug} -> {destination_chain.slug} is not supported"
    )
