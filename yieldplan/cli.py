from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict

from tabulate import tabulate

from .chain import StaticChainApi
from .config import Settings, settings
from .data import DEFAULT_SUBSCAN_CHAINS, default_registry, load_pools, parse_stats
from .errors import NotSupported, YieldPlanError
from .indexer import IndexerClient
from .planner import YieldPlanner
from .rewards import CompoundingPeriod, calculate_reward
from .stats import refresh_pool_stats
from .utils import get_logger, json_dumps

logger = get_logger("cli")


def use_uvloop_if_available() -> None:
    try:
        import uvloop  # type: ignore

        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    except Exception:  # noqa: BLE001
        pass


def _load_scenario(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _build_planner(scenario: Dict[str, Any], cfg: Settings) -> YieldPlanner:
    planner = YieldPlanner(
        StaticChainApi.from_dict(scenario),
        default_registry(),
        load_pools(),
        cfg,
    )
    # Scenario stats stand in for a live stats refresh
    for slug, raw_stats in (scenario.get("stats") or {}).items():
        pool = planner.pools.get(slug)
        if pool is None:
            raise NotSupported(f"Scenario has stats for unknown pool {slug}")
        planner.update_pool(pool.with_stats(parse_stats(raw_stats)))
    return planner


async def cmd_pools(args, cfg: Settings):
    rows = [
        [
            pool.slug,
            pool.chain,
            pool.type.value,
            ",".join(pool.input_assets),
            ",".join(pool.alt_input_assets) or "-",
            ",".join(pool.fee_assets),
        ]
        for pool in load_pools()
    ]
    print(tabulate(rows, headers=["Pool", "Chain", "Type", "Input", "Alt input", "Fee assets"], tablefmt="github"))
    return 0


async def cmd_plan(args, cfg: Settings):
    scenario = _load_scenario(args.scenario)
    planner = _build_planner(scenario, cfg)
    request = planner.request(args.pool, args.amount, scenario.get("balances") or {})
    path = await planner.generate_path(request)
    result = planner.validate(path, request)

    if args.json:
        print(json_dumps({"path": path.to_dict(), "validation": result.to_dict()}))
    else:
        rows = []
        for step in path.steps:
            fee = path.fee_for(step.id)
            rows.append(
                [
                    step.id,
                    step.type.value,
                    step.name,
                    str(step.metadata.sending_value) if step.metadata else "",
                    f"{fee.amount} {fee.slug}" if fee else "",
                ]
            )
        print(tabulate(rows, headers=["#", "Type", "Name", "Sending", "Fee"], tablefmt="github"))
        if result.ok:
            print("Validation: OK")
        else:
            print(f"Validation: {result.status.value} at step {result.failed_step.id}: {result.message}")
    return 0 if result.ok else 2


async def cmd_stats(args, cfg: Settings):
    scenario = _load_scenario(args.scenario)
    planner = _build_planner(scenario, cfg)
    pool = planner.pools.get(args.pool)
    if pool is None:
        print(f"Unknown pool: {args.pool}")
        return 1
    updated = await refresh_pool_stats(planner.strategy_for(pool.slug), pool, planner.registry)
    print(json_dumps(updated.stats.to_dict()))
    return 0


async def cmd_reward(args, cfg: Settings):
    reward = calculate_reward(args.apr, args.amount, CompoundingPeriod[args.period.upper()])
    if not reward:
        print("No reward: APR is zero")
        return 0
    rows = [[reward["apy"], reward["reward_in_token"]]]
    print(tabulate(rows, headers=["APY", "Reward"], tablefmt="github", floatfmt=".6f"))
    return 0


async def cmd_history(args, cfg: Settings):
    async with IndexerClient(DEFAULT_SUBSCAN_CHAINS, cfg) as client:
        if args.transfers:
            items = await client.get_all_transfer_items(args.chain, args.address)
        else:
            items = await client.get_all_extrinsic_items(args.chain, args.address)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(items, f, ensure_ascii=False, indent=2)
        print(f"Saved {len(items)} items to {args.out}")
    else:
        print(f"{args.chain}: {len(items)} {'transfers' if args.transfers else 'extrinsics'} for {args.address}")
    return 0


def main(argv: list[str] | None = None) -> int:
    use_uvloop_if_available()

    parser = argparse.ArgumentParser(description="Yield strategy planner")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_pools = sub.add_parser("pools", help="List the configured yield pools")
    p_pools.set_defaults(func=cmd_pools)

    p_plan = sub.add_parser("plan", help="Plan and validate joining a pool against a scenario file")
    p_plan.add_argument("--pool", required=True, help="Pool slug, e.g. DOT___acala_liquid_staking")
    p_plan.add_argument("--amount", required=True, help="Amount in the input asset's smallest unit")
    p_plan.add_argument("--scenario", required=True, help="JSON file with balances, fees, state and stats")
    p_plan.add_argument("--json", action="store_true", help="Print the path and validation result as JSON")
    p_plan.set_defaults(func=cmd_plan)

    p_stats = sub.add_parser("stats", help="Refresh a pool's stats once from scenario chain state")
    p_stats.add_argument("--pool", required=True)
    p_stats.add_argument("--scenario", required=True)
    p_stats.set_defaults(func=cmd_stats)

    p_reward = sub.add_parser("reward", help="Project the yearly reward for an APR")
    p_reward.add_argument("--apr", type=float, required=True, help="Annual rate in percent")
    p_reward.add_argument("--amount", type=float, default=0.0)
    p_reward.add_argument(
        "--period",
        choices=[p.name.lower() for p in CompoundingPeriod],
        default="yearly",
    )
    p_reward.set_defaults(func=cmd_reward)

    p_history = sub.add_parser("history", help="Fetch account history from the indexer")
    p_history.add_argument("--chain", required=True)
    p_history.add_argument("--address", required=True)
    p_history.add_argument("--transfers", action="store_true", help="Fetch transfers instead of extrinsics")
    p_history.add_argument("--out", type=str, default=None, help="Optional JSON output path")
    p_history.set_defaults(func=cmd_history)

    args = parser.parse_args(argv)

    async def runner():
        return await args.func(args, settings)

    try:
        return asyncio.run(runner())
    except YieldPlanError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
