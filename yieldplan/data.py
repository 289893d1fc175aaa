from __future__ import annotations

from typing import Any, Dict, List, Mapping

from .errors import NotSupported
from .models import PoolInfo, PoolStats, YieldPoolType, YieldProtocol
from .registry import Asset, AssetRegistry, ChainInfo

DEFAULT_CHAINS = (
    ChainInfo(slug="polkadot", name="Polkadot", native_token_slug="polkadot-NATIVE-DOT"),
    ChainInfo(slug="acala", name="Acala", native_token_slug="acala-NATIVE-ACA", para_id=2000),
    ChainInfo(slug="bifrost_dot", name="Bifrost Polkadot", native_token_slug="bifrost_dot-NATIVE-BNC", para_id=2030),
    ChainInfo(slug="interlay", name="Interlay", native_token_slug="interlay-NATIVE-INTR", para_id=2032),
)

DEFAULT_ASSETS = (
    Asset("polkadot-NATIVE-DOT", "polkadot", "DOT", 10, min_amount=10_000_000_000),
    Asset("acala-NATIVE-ACA", "acala", "ACA", 12, min_amount=100_000_000_000),
    Asset("acala-LOCAL-DOT", "acala", "DOT", 10, min_amount=100_000_000, on_chain_info={"Token": "DOT"}),
    Asset("acala-LOCAL-LDOT", "acala", "LDOT", 10, min_amount=500_000_000, on_chain_info={"Token": "LDOT"}),
    Asset("bifrost_dot-NATIVE-BNC", "bifrost_dot", "BNC", 12, min_amount=10_000_000_000),
    Asset("bifrost_dot-LOCAL-DOT", "bifrost_dot", "DOT", 10, min_amount=1_000_000, on_chain_info={"Token2": 0}),
    Asset("bifrost_dot-LOCAL-vDOT", "bifrost_dot", "vDOT", 10, min_amount=1_000_000, on_chain_info={"VToken2": 0}),
    Asset("interlay-NATIVE-INTR", "interlay", "INTR", 10, min_amount=0),
    Asset("interlay-LOCAL-DOT", "interlay", "DOT", 10, min_amount=0, on_chain_info={"Token": "DOT"}),
    Asset("interlay-LOCAL-qDOT", "interlay", "qDOT", 10, min_amount=0, on_chain_info={"LendToken": 2}),
)

DEFAULT_SUBSCAN_CHAINS = {
    "polkadot": "polkadot",
    "acala": "acala",
    "bifrost_dot": "bifrost",
    "interlay": "interlay",
}

YIELD_POOLS_INFO: Dict[str, Dict[str, Any]] = {
    "DOT___native_staking___polkadot": {
        "name": "Polkadot native staking",
        "chain": "polkadot",
        "type": "NATIVE_STAKING",
        "protocol": "NATIVE_STAKING",
        "inputAssets": ["polkadot-NATIVE-DOT"],
        "feeAssets": ["polkadot-NATIVE-DOT"],
    },
    "DOT___nomination_pool___polkadot": {
        "name": "Polkadot nomination pool",
        "chain": "polkadot",
        "type": "NOMINATION_POOL",
        "protocol": "NOMINATION_POOL",
        "inputAssets": ["polkadot-NATIVE-DOT"],
        "feeAssets": ["polkadot-NATIVE-DOT"],
    },
    "DOT___acala_liquid_staking": {
        "name": "Acala liquid staking",
        "chain": "acala",
        "type": "LIQUID_STAKING",
        "protocol": "ACALA_LIQUID_STAKING",
        "inputAssets": ["acala-LOCAL-DOT"],
        "altInputAssets": ["polkadot-NATIVE-DOT"],
        "feeAssets": ["acala-NATIVE-ACA", "acala-LOCAL-DOT"],
        "derivativeAssets": ["acala-LOCAL-LDOT"],
    },
    "DOT___bifrost_liquid_staking": {
        "name": "Bifrost liquid staking",
        "chain": "bifrost_dot",
        "type": "LIQUID_STAKING",
        "protocol": "BIFROST_LIQUID_STAKING",
        "inputAssets": ["bifrost_dot-LOCAL-DOT"],
        "altInputAssets": ["polkadot-NATIVE-DOT"],
        "feeAssets": ["bifrost_dot-NATIVE-BNC", "bifrost_dot-LOCAL-DOT"],
        "derivativeAssets": ["bifrost_dot-LOCAL-vDOT"],
    },
    "DOT___interlay_lending": {
        "name": "Interlay lending",
        "chain": "interlay",
        "type": "LENDING",
        "protocol": "INTERLAY_LENDING",
        "inputAssets": ["interlay-LOCAL-DOT"],
        "altInputAssets": ["polkadot-NATIVE-DOT"],
        "feeAssets": ["interlay-NATIVE-INTR", "interlay-LOCAL-DOT"],
        "derivativeAssets": ["interlay-LOCAL-qDOT"],
    },
}


def default_registry() -> AssetRegistry:
    return AssetRegistry(DEFAULT_CHAINS, DEFAULT_ASSETS)


def parse_stats(raw: Mapping[str, Any]) -> PoolStats:
    return PoolStats(
        min_join_pool=int(raw.get("minJoinPool") or "0"),
        min_withdrawal=int(raw.get("minWithdrawal") or "0"),
        total_apr=raw.get("totalApr"),
    )


def load_pool(slug: str, raw: Mapping[str, Any]) -> PoolInfo:
    try:
        pool_type = YieldPoolType(raw["type"])
        protocol = YieldProtocol(raw["protocol"])
    except (KeyError, ValueError) as exc:
        raise NotSupported(f"Pool {slug} has an unsupported type/protocol: {exc}") from exc
    input_assets = tuple(raw.get("inputAssets") or ())
    fee_assets = tuple(raw.get("feeAssets") or ())
    if not input_assets or not fee_assets:
        raise NotSupported(f"Pool {slug} must declare input and fee assets")
    stats = raw.get("stats")
    return PoolInfo(
        slug=slug,
        chain=raw["chain"],
        type=pool_type,
        protocol=protocol,
        name=raw.get("name", slug),
        input_assets=input_assets,
        fee_assets=fee_assets,
        alt_input_assets=tuple(raw.get("altInputAssets") or ()),
        derivative_assets=tuple(raw.get("derivativeAssets") or ()),
        stats=parse_stats(stats) if stats else None,
    )


def load_pools(raw_pools: Mapping[str, Mapping[str, Any]] = YIELD_POOLS_INFO) -> List[PoolInfo]:
    return [load_pool(slug, raw) for slug, raw in raw_pools.items()]
