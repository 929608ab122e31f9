#!/usr/bin/env python3
"""Simple CLI for trying the market-data tools locally"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from cryptoseek.config import SUPPORTED_CHAINS
from cryptoseek.core.agent import ToolExecutor, get_tool_registry
from cryptoseek.logging_config import setup_logging
from cryptoseek.tools.big_swaps import get_big_swaps
from cryptoseek.types import ToolCall


def print_swaps(result: Dict[str, Any]):
    """Pretty print a big swaps envelope"""
    if not result.get("success"):
        print(f"❌ {result.get('error')}")
        if result.get("suggestion"):
            print(f"💡 {result['suggestion']}")
        for failed in result.get("failedChains", []):
            print(f"   - {failed['chain']}: {failed['reason']}")
        return

    print(f"\n🐋 Big Swaps ({result['endpointUsed']})")
    print("=" * 60)
    print(result["message"])
    print(f"Chains checked: {result['chainsChecked']}  Fetched: {result['totalFetched']}  Shown: {result['count']}")

    for i, trade in enumerate(result["data"], 1):
        side = (trade.get("type") or "").upper()
        ago = trade.get("age") or "unknown time"
        print(f"{i:2d}. [{trade.get('chain')}] {trade.get('pair'):<16} {side:<4} {trade.get('value'):>14}  {ago}")

    if result["count"] == 0 and result.get("availableSymbols"):
        print(f"\nAvailable symbols: {', '.join(result['availableSymbols'])}")

    if result.get("failedChains"):
        print("\n⚠️  Unreachable chains:")
        for failed in result["failedChains"]:
            print(f"   - {failed['chain']}: {failed['reason']}")


async def cli_swaps(
    chain: Optional[str],
    token: Optional[str],
    pair: Optional[str],
    min_value: Optional[float],
    limit: Optional[int],
    trade_type: Optional[str],
    as_json: bool = False,
):
    """CLI command to search big swaps"""
    if not as_json:
        print(f"🔍 Searching big swaps on {chain or 'all chains'}...")

    result = await get_big_swaps(
        chain=chain,
        token=token,
        pair=pair,
        min_value=min_value,
        limit=limit,
        trade_type=trade_type,
    )
    if as_json:
        print(json.dumps(result, indent=2, default=str))
    else:
        print_swaps(result)


def parse_tool_args(pairs: List[str]) -> Dict[str, Any]:
    """Turn ``key=value`` strings into tool arguments; values are JSON when they parse."""
    arguments: Dict[str, Any] = {}
    for item in pairs:
        if "=" not in item:
            raise ValueError(f"Expected key=value, got '{item}'")
        key, raw = item.split("=", 1)
        try:
            arguments[key] = json.loads(raw)
        except json.JSONDecodeError:
            arguments[key] = raw
    return arguments


async def cli_tool(name: str, arg_pairs: List[str]):
    """Run one registered tool through the executor"""
    registry = get_tool_registry()
    executor = ToolExecutor(registry)
    try:
        arguments = parse_tool_args(arg_pairs)
    except ValueError as e:
        print(f"❌ {e}")
        return

    call = ToolCall(id="cli", name=name, arguments=arguments)
    result = await executor.execute_single(call)

    if result.error:
        print(f"❌ {result.error}")
        return
    print(json.dumps(result.result, indent=2, default=str))


def cli_list_tools():
    registry = get_tool_registry()
    print("🧰 Available tools")
    print("-" * 40)
    for definition in registry.get_definitions():
        params = ", ".join(
            p.name if p.required else f"[{p.name}]" for p in definition.parameters
        )
        print(f"{definition.name}({params})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cryptoseek CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    swaps_parser = subparsers.add_parser("swaps", help="Search big swaps across chains")
    swaps_parser.add_argument("--chain", choices=SUPPORTED_CHAINS, help="Single chain (default: all)")
    swaps_parser.add_argument("--token", help="Token symbol on either side of the pair")
    swaps_parser.add_argument("--pair", help="Pair such as USDC/WETH")
    swaps_parser.add_argument("--min-value", type=float, help="Minimum USD value")
    swaps_parser.add_argument("--limit", type=int, help="Max results; 0 or less for no limit")
    swaps_parser.add_argument("--trade-type", choices=["buy", "sell"], help="Trade side")
    swaps_parser.add_argument("--json", action="store_true", help="Print the raw response")

    tool_parser = subparsers.add_parser("tool", help="Run a registered tool")
    tool_parser.add_argument("name", help="Tool name, see 'tools'")
    tool_parser.add_argument("--arg", action="append", default=[], help="Tool argument as key=value")

    subparsers.add_parser("tools", help="List registered tools")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging(args.log_level, stream=sys.stderr)
    command = args.command.lower()

    if command == "swaps":
        await cli_swaps(
            args.chain,
            args.token,
            args.pair,
            args.min_value,
            args.limit,
            args.trade_type,
            as_json=args.json,
        )

    elif command == "tool":
        await cli_tool(args.name, args.arg)

    elif command == "tools":
        cli_list_tools()

    else:
        print(f"❌ Unknown command: {command}")
        parser.print_help()


if __name__ == "__main__":
    asyncio.run(main())
