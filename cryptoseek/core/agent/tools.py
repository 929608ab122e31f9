"""
Tool Registry and Executor for LLM-driven tool calling.

This module defines the market-data tools the LLM can call, and executes
tool calls (singly or in parallel) without ever raising to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Dict, List, Optional

from ...config import SUPPORTED_CHAINS
from ...tools import binance, lcx
from ...tools.big_swaps import get_big_swaps
from ...tools.price_prediction import TIMEFRAME_MULTIPLIERS, lcx_price_prediction
from ...types import ToolCall, ToolDefinition, ToolParameter, ToolParameterType, ToolResult

ToolHandler = Callable[..., Coroutine[Any, Any, Any]]

_PAIR_PARAM = ToolParameter(
    name="pair",
    type=ToolParameterType.STRING,
    description="Trading pair (e.g., LCX/ETH, BTC/EUR, MATIC/EUR)",
    required=True,
)

_SYMBOL_PARAM = ToolParameter(
    name="symbol",
    type=ToolParameterType.STRING,
    description="Trading symbol, e.g., BTCUSDT, ETHUSDT",
    required=True,
)


@dataclass
class RegisteredTool:
    """A tool registered in the registry with its definition and handler."""
    definition: ToolDefinition
    handler: ToolHandler

    @property
    def parameter_names(self) -> List[str]:
        return [p.name for p in self.definition.parameters]


class ToolRegistry:
    """
    Registry of available tools that the LLM can call.

    Each tool has a definition (name, description, parameters) and a handler function.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, register_defaults: bool = True):
        self._tools: Dict[str, RegisteredTool] = {}
        self.logger = logger or logging.getLogger(__name__)
        if register_defaults:
            self._register_default_tools()

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        """Register a tool with its definition and handler."""
        self._tools[definition.name] = RegisteredTool(definition=definition, handler=handler)

    def get_definitions(self) -> List[ToolDefinition]:
        """Get all tool definitions for passing to the LLM."""
        return [tool.definition for tool in self._tools.values()]

    def get_tool(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def _register_default_tools(self) -> None:
        """Register the default set of tools."""

        # Big swaps (multi-chain aggregation)
        self.register(
            ToolDefinition(
                name="masterdex_big_swaps",
                description=(
                    "Fetch big swaps (large trades) happening on multiple blockchains from MasterDex. "
                    "Supports Ethereum, Base, Optimism, Polygon, Arbitrum, BNB, and Blast. Returns "
                    "pair name, trade type (buy/sell), price, value, amounts, wallet address, "
                    "transaction hash, and more. If no trades match, availableSymbols lists the "
                    "symbols that were seen so the query can be reformulated."
                ),
                parameters=[
                    ToolParameter(
                        name="chain",
                        type=ToolParameterType.STRING,
                        description="Blockchain to fetch data from. If not specified, returns data from all supported chains.",
                        required=False,
                        enum=list(SUPPORTED_CHAINS),
                    ),
                    ToolParameter(
                        name="token",
                        type=ToolParameterType.STRING,
                        description="Token symbol to filter for (case-insensitive, matches either side of the pair)",
                        required=False,
                    ),
                    ToolParameter(
                        name="pair",
                        type=ToolParameterType.STRING,
                        description="Pair symbol to filter for, e.g., USDC/WETH (case-insensitive, any order)",
                        required=False,
                    ),
                    ToolParameter(
                        name="min_value",
                        type=ToolParameterType.NUMBER,
                        description="Minimum transaction value in USD",
                        required=False,
                    ),
                    ToolParameter(
                        name="limit",
                        type=ToolParameterType.INTEGER,
                        description="Maximum number of results to return (default: 20)",
                        required=False,
                        default=20,
                    ),
                    ToolParameter(
                        name="trade_type",
                        type=ToolParameterType.STRING,
                        description="Filter by trade type: buy or sell",
                        required=False,
                        enum=["buy", "sell"],
                    ),
                ],
            ),
            get_big_swaps,
        )

        # Binance
        self.register(
            ToolDefinition(
                name="binance_ticker",
                description="Get the latest ticker price for a symbol from Binance.",
                parameters=[_SYMBOL_PARAM],
            ),
            binance.binance_ticker,
        )
        self.register(
            ToolDefinition(
                name="binance_klines",
                description="Get candlestick (OHLCV) data for a symbol from Binance.",
                parameters=[
                    _SYMBOL_PARAM,
                    ToolParameter(
                        name="interval",
                        type=ToolParameterType.STRING,
                        description="Kline interval (e.g., 1m, 5m, 1h, 1d)",
                        required=False,
                        default="1d",
                    ),
                    ToolParameter(
                        name="limit",
                        type=ToolParameterType.INTEGER,
                        description="Number of klines to fetch (default: 30, max: 1000)",
                        required=False,
                        default=30,
                    ),
                ],
            ),
            binance.binance_klines,
        )
        self.register(
            ToolDefinition(
                name="binance_order_book",
                description="Get the order book (bids and asks) for a symbol from Binance.",
                parameters=[
                    _SYMBOL_PARAM,
                    ToolParameter(
                        name="limit",
                        type=ToolParameterType.INTEGER,
                        description="Limit the number of bids and asks (5, 10, 20, 50, 100, 500, 1000, 5000)",
                        required=False,
                        default=100,
                    ),
                ],
            ),
            binance.binance_order_book,
        )
        self.register(
            ToolDefinition(
                name="binance_recent_trades",
                description="Get recent trades for a symbol from Binance.",
                parameters=[
                    _SYMBOL_PARAM,
                    ToolParameter(
                        name="limit",
                        type=ToolParameterType.INTEGER,
                        description="Number of trades to fetch (default: 50, max: 1000)",
                        required=False,
                        default=50,
                    ),
                ],
            ),
            binance.binance_recent_trades,
        )
        self.register(
            ToolDefinition(
                name="binance_exchange_info",
                description="Get exchange information and list of all trading pairs from Binance.",
            ),
            binance.binance_exchange_info,
        )

        # LCX
        self.register(
            ToolDefinition(
                name="lcx_kline",
                description=(
                    "Get OHLCV (Open, High, Low, Close, Volume) candlestick data from LCX "
                    "exchange for charting."
                ),
                parameters=[
                    _PAIR_PARAM,
                    ToolParameter(
                        name="resolution",
                        type=ToolParameterType.STRING,
                        description="Time resolution (1, 3, 5, 15, 30, 45, 60, 120, 180, 240, 1D, 1W, 1M)",
                        required=False,
                        default="1D",
                    ),
                    ToolParameter(
                        name="from_ts",
                        type=ToolParameterType.INTEGER,
                        description="Start timestamp in seconds (default: 30 days ago)",
                        required=False,
                    ),
                    ToolParameter(
                        name="to_ts",
                        type=ToolParameterType.INTEGER,
                        description="End timestamp in seconds (default: now)",
                        required=False,
                    ),
                ],
            ),
            lcx.lcx_kline,
        )
        self.register(
            ToolDefinition(
                name="lcx_order_book",
                description="Get complete order book data for a trading pair on LCX exchange.",
                parameters=[_PAIR_PARAM],
            ),
            lcx.lcx_order_book,
        )
        self.register(
            ToolDefinition(
                name="lcx_ticker",
                description="Get real-time ticker data for a specific trading pair on LCX exchange.",
                parameters=[_PAIR_PARAM],
            ),
            lcx.lcx_ticker,
        )
        self.register(
            ToolDefinition(
                name="lcx_pairs",
                description="Get all available trading pairs on LCX exchange.",
            ),
            lcx.lcx_pairs,
        )
        self.register(
            ToolDefinition(
                name="lcx_pair",
                description="Get detailed information about a specific trading pair on LCX exchange.",
                parameters=[_PAIR_PARAM],
            ),
            lcx.lcx_pair,
        )
        self.register(
            ToolDefinition(
                name="lcx_tickers",
                description="Get all ticker data for all trading pairs on LCX exchange.",
            ),
            lcx.lcx_tickers,
        )
        self.register(
            ToolDefinition(
                name="lcx_trades",
                description="Get recent trades for a trading pair on LCX exchange.",
                parameters=[
                    _PAIR_PARAM,
                    ToolParameter(
                        name="limit",
                        type=ToolParameterType.INTEGER,
                        description="Number of trades to fetch (default: 100, max: 1000)",
                        required=False,
                        default=100,
                    ),
                ],
            ),
            lcx.lcx_trades,
        )
        self.register(
            ToolDefinition(
                name="lcx_price_prediction",
                description=(
                    "Get future price predictions for cryptocurrency pairs using technical "
                    "analysis of current LCX market data."
                ),
                parameters=[
                    ToolParameter(
                        name="pair",
                        type=ToolParameterType.STRING,
                        description="Trading pair (e.g., BTC/EUR, ETH/EUR)",
                        required=True,
                    ),
                    ToolParameter(
                        name="timeframe",
                        type=ToolParameterType.STRING,
                        description="Prediction timeframe",
                        required=False,
                        default="1d",
                        enum=list(TIMEFRAME_MULTIPLIERS),
                    ),
                    ToolParameter(
                        name="method",
                        type=ToolParameterType.STRING,
                        description="Prediction method",
                        required=False,
                        default="technical",
                        enum=["technical"],
                    ),
                ],
            ),
            lcx_price_prediction,
        )


class ToolExecutor:
    """
    Executes tool calls requested by the LLM.

    Supports parallel execution of independent tool calls.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    async def execute_single(self, tool_call: ToolCall) -> ToolResult:
        """Execute a single tool call and return the result."""
        tool = self.registry.get_tool(tool_call.name)

        if not tool:
            return ToolResult(
                tool_call_id=tool_call.id,
                result=None,
                error=f"Unknown tool: {tool_call.name}",
            )

        allowed = set(tool.parameter_names)
        unexpected = sorted(set(tool_call.arguments) - allowed)
        if unexpected:
            self.logger.warning(f"Ignoring unexpected arguments for {tool_call.name}: {unexpected}")
        arguments = {k: v for k, v in tool_call.arguments.items() if k in allowed}

        missing = [
            p.name for p in tool.definition.parameters
            if p.required and arguments.get(p.name) in (None, "")
        ]
        if missing:
            return ToolResult(
                tool_call_id=tool_call.id,
                result=None,
                error=f"Missing required arguments for {tool_call.name}: {', '.join(missing)}",
            )

        try:
            result = await tool.handler(**arguments)
            return ToolResult(
                tool_call_id=tool_call.id,
                result=result,
                error=None,
            )
        except Exception as e:
            self.logger.error(f"Tool execution error for {tool_call.name}: {e}")
            return ToolResult(
                tool_call_id=tool_call.id,
                result=None,
                error=str(e),
            )

    async def execute_parallel(self, tool_calls: List[ToolCall]) -> List[ToolResult]:
        """Execute multiple tool calls in parallel."""
        if not tool_calls:
            return []

        tasks = [self.execute_single(tc) for tc in tool_calls]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        # Convert any exceptions to ToolResults
        final_results = []
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                final_results.append(ToolResult(
                    tool_call_id=tool_calls[i].id,
                    result=None,
                    error=str(result),
                ))
            else:
                final_results.append(result)

        return final_results


_registry: Optional[ToolRegistry] = None


def get_tool_registry() -> ToolRegistry:
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
    return _registry
