"""
Agent Tools Test

Tool registry contents, schema export and the executor's error handling.
"""

import pytest
from unittest.mock import AsyncMock

from cryptoseek.config import SUPPORTED_CHAINS
from cryptoseek.core.agent.tools import ToolExecutor, ToolRegistry
from cryptoseek.types import ToolCall, ToolDefinition, ToolParameter, ToolParameterType

EXPECTED_TOOLS = [
    "masterdex_big_swaps",
    "binance_ticker",
    "binance_klines",
    "binance_order_book",
    "binance_recent_trades",
    "binance_exchange_info",
    "lcx_kline",
    "lcx_order_book",
    "lcx_ticker",
    "lcx_pairs",
    "lcx_pair",
    "lcx_tickers",
    "lcx_trades",
    "lcx_price_prediction",
]


def echo_registry():
    registry = ToolRegistry(register_defaults=False)
    handler = AsyncMock(side_effect=lambda **kwargs: {"success": True, "args": kwargs})
    registry.register(
        ToolDefinition(
            name="echo",
            description="Echo arguments back",
            parameters=[
                ToolParameter(name="pair", type=ToolParameterType.STRING, description="Pair"),
                ToolParameter(name="limit", type=ToolParameterType.INTEGER, description="Limit", required=False),
            ],
        ),
        handler,
    )
    return registry, handler


class TestToolRegistry:
    """Default tool set and schema export."""

    def test_all_tools_registered(self):
        registry = ToolRegistry()
        assert registry.names == EXPECTED_TOOLS

    def test_big_swaps_schema(self):
        registry = ToolRegistry()
        schema = registry.get_tool("masterdex_big_swaps").definition.to_anthropic_format()
        props = schema["input_schema"]["properties"]

        assert props["chain"]["enum"] == SUPPORTED_CHAINS
        assert props["trade_type"]["enum"] == ["buy", "sell"]
        assert props["limit"]["default"] == 20
        assert schema["input_schema"]["required"] == []

    def test_required_parameters(self):
        registry = ToolRegistry()
        schema = registry.get_tool("lcx_trades").definition.to_anthropic_format()

        assert schema["input_schema"]["required"] == ["pair"]
        assert registry.has_tool("lcx_trades")
        assert not registry.has_tool("get_portfolio")


class TestToolExecutor:
    """Tool calls never raise; problems come back as error results."""

    @pytest.mark.asyncio
    async def test_execute_single(self):
        registry, handler = echo_registry()
        executor = ToolExecutor(registry)

        result = await executor.execute_single(ToolCall(id="1", name="echo", arguments={"pair": "LCX/EUR", "limit": 5}))

        assert result.error is None
        assert result.tool_call_id == "1"
        assert result.result["args"] == {"pair": "LCX/EUR", "limit": 5}

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        executor = ToolExecutor(ToolRegistry(register_defaults=False))

        result = await executor.execute_single(ToolCall(name="nope"))

        assert result.error == "Unknown tool: nope"

    @pytest.mark.asyncio
    async def test_unexpected_arguments_are_dropped(self):
        registry, handler = echo_registry()
        executor = ToolExecutor(registry)

        await executor.execute_single(ToolCall(name="echo", arguments={"pair": "A/B", "provider": "evil"}))

        handler.assert_awaited_once_with(pair="A/B")

    @pytest.mark.asyncio
    async def test_missing_required_argument(self):
        registry, handler = echo_registry()
        executor = ToolExecutor(registry)

        result = await executor.execute_single(ToolCall(name="echo", arguments={"limit": 1}))

        assert result.error == "Missing required arguments for echo: pair"
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_error(self):
        registry, handler = echo_registry()
        handler.side_effect = RuntimeError("upstream exploded")
        executor = ToolExecutor(registry)

        result = await executor.execute_single(ToolCall(name="echo", arguments={"pair": "A/B"}))

        assert result.error == "upstream exploded"
        assert result.to_anthropic_format()["is_error"] is True

    @pytest.mark.asyncio
    async def test_execute_parallel_keeps_order(self):
        registry, _ = echo_registry()
        executor = ToolExecutor(registry)

        results = await executor.execute_parallel([
            ToolCall(id="a", name="echo", arguments={"pair": "A/B"}),
            ToolCall(id="b", name="missing"),
            ToolCall(id="c", name="echo", arguments={"pair": "C/D"}),
        ])

        assert [r.tool_call_id for r in results] == ["a", "b", "c"]
        assert results[1].error == "Unknown tool: missing"
        assert results[2].result["args"] == {"pair": "C/D"}

    @pytest.mark.asyncio
    async def test_execute_parallel_empty(self):
        assert await ToolExecutor(ToolRegistry(register_defaults=False)).execute_parallel([]) == []
