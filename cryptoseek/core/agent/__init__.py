"""
Tool calling surface

Definitions of the market-data tools exposed to the LLM, and the executor
that runs the tool calls it requests.
"""

from .tools import RegisteredTool, ToolExecutor, ToolRegistry, get_tool_registry

__all__ = [
    "RegisteredTool",
    "ToolExecutor",
    "ToolRegistry",
    "get_tool_registry",
]
